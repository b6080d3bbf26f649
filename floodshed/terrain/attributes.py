"""
Terrain attributes from the 3x3 neighbourhood of each cell

slope and aspect as per Horn (1981), curvatures as per Zevenbergen and
Thorne (1987), following Burrough (1998) "Principles of Geographical
Information Systems" p. 190.

Neighbourhood naming used throughout:
    a b c
    d e f
    g h i
"""

import math

import numba
import numpy as np
from loguru import logger

from floodshed.grid import Grid

logger.bind(module="terrain_attributes")

ATTRIBUTES = {
    "curvature": 0,
    "planform_curvature": 1,
    "profile_curvature": 2,
    "aspect": 3,
    "slope_riserun": 4,
    "slope_percent": 5,
    "slope_radian": 6,
    "slope_degree": 7,
}

SLOPE_TYPES = ("slope_riserun", "slope_percent", "slope_radian", "slope_degree")


@numba.njit
def _neighbor(elev, no_data, row, col, default):
    nrows, ncols = elev.shape
    if row < 0 or col < 0 or row >= nrows or col >= ncols:
        return default
    if no_data[row, col]:
        return default
    return elev[row, col]


@numba.njit
def _cell_attributes(elev, no_data, row, col, cellsize, z_scale):
    # edges and no-data neighbours take the centre value
    e = elev[row, col]
    a = _neighbor(elev, no_data, row - 1, col - 1, e) * z_scale
    b = _neighbor(elev, no_data, row - 1, col, e) * z_scale
    c = _neighbor(elev, no_data, row - 1, col + 1, e) * z_scale
    d = _neighbor(elev, no_data, row, col - 1, e) * z_scale
    f = _neighbor(elev, no_data, row, col + 1, e) * z_scale
    g = _neighbor(elev, no_data, row + 1, col - 1, e) * z_scale
    h = _neighbor(elev, no_data, row + 1, col, e) * z_scale
    i = _neighbor(elev, no_data, row + 1, col + 1, e) * z_scale
    e = e * z_scale

    # aspect does not depend on the cell size
    dzdx = ((c + 2 * f + i) - (a + 2 * d + g)) / 8
    dzdy = ((g + 2 * h + i) - (a + 2 * b + c)) / 8
    aspect = 180.0 / math.pi * math.atan2(dzdy, -dzdx)
    if aspect < 0:
        aspect = 90 - aspect
    elif aspect > 90.0:
        aspect = 360.0 - aspect + 90.0
    else:
        aspect = 90.0 - aspect

    dzdx /= cellsize
    dzdy /= cellsize
    rise_over_run = math.sqrt(dzdx * dzdx + dzdy * dzdy)

    if rise_over_run == 0:
        # flat
        return rise_over_run, -1.0, 0.0, 0.0, 0.0

    L = cellsize
    D = ((d + f) / 2 - e) / L / L
    E = ((b + h) / 2 - e) / L / L
    F = (-a + c + g - i) / 4 / L / L
    G = (-d + f) / 2 / L
    H = (b - h) / 2 / L
    curvature = -2 * (D + E) * 100

    if G == 0 and H == 0:
        return rise_over_run, aspect, curvature, 0.0, 0.0

    profile = 2 * (D * G * G + E * H * H + F * G * H) / (G * G + H * H) * 100
    planform = -2 * (D * H * H + E * G * G - F * G * H) / (G * G + H * H) * 100
    return rise_over_run, aspect, curvature, profile, planform


@numba.njit(parallel=True)
def _terrain_attribute_numba(elev, no_data, cellsize, z_scale, attrib, out_no_data, out):
    nrows, ncols = elev.shape
    for row in numba.prange(nrows):
        for col in range(ncols):
            if no_data[row, col]:
                out[row, col] = out_no_data
                continue
            rise_over_run, aspect, curvature, profile, planform = _cell_attributes(
                elev, no_data, row, col, cellsize, z_scale
            )
            if attrib == 0:
                out[row, col] = curvature
            elif attrib == 1:
                out[row, col] = planform
            elif attrib == 2:
                out[row, col] = profile
            elif attrib == 3:
                out[row, col] = aspect
            elif attrib == 4:
                out[row, col] = rise_over_run
            elif attrib == 5:
                out[row, col] = rise_over_run * 100
            elif attrib == 6:
                out[row, col] = math.atan(rise_over_run)
            else:
                out[row, col] = math.atan(rise_over_run) * 180 / math.pi


def terrain_attribute(
    elevations: Grid,
    attribute: str,
    z_scale: float = 1.0,
    no_data: float = -99999.0,
) -> Grid:
    """
    Compute a terrain attribute for every data cell

    Parameters
    ----------
    elevations: Grid
        An elevation grid
    attribute: str
        one of 'curvature', 'planform_curvature', 'profile_curvature',
        'aspect', 'slope_riserun', 'slope_percent', 'slope_radian',
        'slope_degree'
    z_scale: float
        Multiplier applied to elevations before differencing, e.g. 0.3048
        for elevations in feet and a cell size in metres
    no_data: float
        No-data sentinel of the output grid

    Returns
    -------
    Grid
        float32 grid with the extent of elevations. Aspect is in degrees
        clockwise from north, -1 on flats. Curvatures are 0 on flats.
    """
    if attribute not in ATTRIBUTES:
        raise ValueError(f"attribute needs to be one of {list(ATTRIBUTES)}")

    logger.debug(f"Calculating terrain attribute {attribute}")
    attribs = Grid.like(elevations, dtype=np.float32, no_data=no_data)
    elev = np.asarray(elevations.data, dtype=np.float64)
    _terrain_attribute_numba(
        elev,
        elevations.no_data_mask(),
        np.float64(elevations.cellsize),
        np.float64(z_scale),
        ATTRIBUTES[attribute],
        np.float32(no_data),
        attribs.data,
    )
    return attribs


def slope(elevations: Grid, slope_type: str = "slope_degree", **kwargs) -> Grid:
    if slope_type not in SLOPE_TYPES:
        raise ValueError(f"slope_type needs to be one of {SLOPE_TYPES}")
    return terrain_attribute(elevations, slope_type, **kwargs)


def aspect(elevations: Grid, **kwargs) -> Grid:
    return terrain_attribute(elevations, "aspect", **kwargs)


def curvature(elevations: Grid, **kwargs) -> Grid:
    return terrain_attribute(elevations, "curvature", **kwargs)


def planform_curvature(elevations: Grid, **kwargs) -> Grid:
    return terrain_attribute(elevations, "planform_curvature", **kwargs)


def profile_curvature(elevations: Grid, **kwargs) -> Grid:
    return terrain_attribute(elevations, "profile_curvature", **kwargs)
