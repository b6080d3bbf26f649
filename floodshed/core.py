"""Core workflow for watershed labeling and terrain analysis."""

import time
from typing import Optional

from loguru import logger
import xarray as xr

from floodshed.basin import TerrainData
from floodshed.config import TerrainConfig
from floodshed.flood.watershed import find_watersheds
from floodshed.grid import Grid
from floodshed.report.areas import watershed_area
from floodshed.terrain.attributes import terrain_attribute
from floodshed.terrain.indices import cti
from floodshed.terrain.indices import spi
from floodshed.utils.raster import finite_unique


def format_time_duration(seconds):
    """
    Format seconds into a human-readable time string.
    For longer durations, shows hours and minutes; for shorter ones, shows minutes and seconds.
    """

    hours, remainder = divmod(int(seconds), 3600)
    minutes, whole_seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {whole_seconds}s"
    elif minutes > 0:
        return f"{minutes}m {whole_seconds}s"
    else:
        return f"{seconds:.2f}s"


def analyze_terrain(
    dem: xr.DataArray,
    config: Optional[TerrainConfig] = None,
    flow_acc: Optional[xr.DataArray] = None,
) -> TerrainData:
    """
    Label watersheds, optionally correct drainage, and derive terrain
    attributes from a digital elevation model.

    Parameters
    ----------
    dem : xarray.DataArray
        Digital elevation model as a single band raster. Not modified, drainage
        correction is applied to a copy.
    config : TerrainConfig, optional
        Configuration parameters for the workflow. See help(TerrainConfig)
        for details on available parameters.
    flow_acc : xarray.DataArray, optional
        Flow accumulation raster (in cells) aligned with dem. When given,
        SPI and CTI are computed from it and the percent slope of the
        conditioned DEM.

    Returns
    -------
    TerrainData
        - conditioned_dem: the DEM after the flood, identical to dem unless
          drainage correction is enabled
        - watersheds: int32 raster of watershed labels
        - areas: cell count and area of every watershed
        - attributes: terrain attribute rasters keyed by name
        - spi, cti: index rasters when flow_acc is given
    """
    if config is None:
        config = TerrainConfig()

    start_time = time.time()
    logger.info("Starting terrain analysis workflow")
    logger.debug(f"Configuration: {config}")

    dem = dem.squeeze()
    elevations = Grid.from_dataarray(dem.copy(deep=True))

    logger.info("Running priority flood")
    flood_start_time = time.time()
    result = find_watersheds(
        elevations,
        correct_drainage=config.flood.correct_drainage,
        label_no_data=config.flood.label_no_data,
        show_progress=config.flood.show_progress,
    )
    flood_duration = time.time() - flood_start_time

    conditioned = result.elevations.to_dataarray(dem)
    watersheds = result.labels.to_dataarray(dem)
    labeled = watersheds.where(watersheds != config.flood.label_no_data)
    logger.debug(f"Number of watersheds: {len(finite_unique(labeled))}")

    logger.info("Computing watershed areas")
    areas = watershed_area(result.labels)

    logger.info("Computing terrain attributes")
    attribute_start_time = time.time()
    attributes = {}
    for name in config.attributes.attributes:
        grid = terrain_attribute(
            result.elevations,
            name,
            z_scale=config.attributes.z_scale,
            no_data=config.attributes.no_data,
        )
        attributes[name] = grid.to_dataarray(dem)
    attribute_duration = time.time() - attribute_start_time

    spi_raster = None
    cti_raster = None
    if flow_acc is not None:
        logger.info("Computing SPI and CTI")
        acc = Grid.from_dataarray(flow_acc)
        percent_slope = terrain_attribute(
            result.elevations,
            "slope_percent",
            z_scale=config.attributes.z_scale,
            no_data=config.attributes.no_data,
        )
        spi_raster = spi(
            acc, percent_slope, config.indices.epsilon, config.indices.no_data
        ).to_dataarray(dem)
        cti_raster = cti(
            acc, percent_slope, config.indices.epsilon, config.indices.no_data
        ).to_dataarray(dem)

    total_duration = time.time() - start_time

    logger.info(f"Priority flood time: {format_time_duration(flood_duration)}")
    logger.info(f"Terrain attribute time: {format_time_duration(attribute_duration)}")
    logger.info(f"Total execution time: {format_time_duration(total_duration)}")
    logger.success("Terrain analysis workflow completed")

    return TerrainData(
        dem=dem,
        conditioned_dem=conditioned,
        watersheds=watersheds,
        areas=areas,
        attributes=attributes,
        spi=spi_raster,
        cti=cti_raster,
    )
