"""
Wetness and power indices combining flow accumulation and slope

SPI = log( cellsize * (acc + eps) * (slope_percent / 100 + eps) )
CTI = log( cellsize * (acc + eps) / (slope_percent / 100 + eps) )
"""

import numpy as np
from loguru import logger

from floodshed.grid import Grid
from floodshed.grid import check_same_extent

logger.bind(module="indices")


def _index(flow_accumulation, percent_slope, op, epsilon, no_data):
    check_same_extent(flow_accumulation, percent_slope)

    result = Grid.like(flow_accumulation, dtype=np.float32, no_data=no_data)
    valid = flow_accumulation.data_mask() & percent_slope.data_mask()

    acc = flow_accumulation.cellsize * (
        flow_accumulation.data[valid].astype(np.float64) + epsilon
    )
    rise = percent_slope.data[valid].astype(np.float64) / 100 + epsilon
    with np.errstate(divide="ignore", invalid="ignore"):
        result.data[valid] = np.log(op(acc, rise))
    return result


def spi(
    flow_accumulation: Grid,
    percent_slope: Grid,
    epsilon: float = 0.001,
    no_data: float = -1.0,
) -> Grid:
    """
    Stream power index

    Parameters
    ----------
    flow_accumulation: Grid
        Upslope area in cells
    percent_slope: Grid
        Slope in percent, see terrain.attributes.slope
    epsilon: float
        Offset keeping the logarithm finite on flats and ridges
    no_data: float
        No-data sentinel of the output, a cell is no-data where either input is

    Returns
    -------
    Grid
        float32 grid with the properties of flow_accumulation
    """
    logger.debug("Calculating SPI")
    return _index(flow_accumulation, percent_slope, np.multiply, epsilon, no_data)


def cti(
    flow_accumulation: Grid,
    percent_slope: Grid,
    epsilon: float = 0.001,
    no_data: float = -1.0,
) -> Grid:
    """Compound topographic (wetness) index, arguments as for spi"""
    logger.debug("Calculating CTI")
    return _index(flow_accumulation, percent_slope, np.divide, epsilon, no_data)
