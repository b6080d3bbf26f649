import os

import numpy as np
import rioxarray as rxr
import xarray as xr


def load_raster(path: str) -> xr.DataArray:
    """
    Read a single band raster, masking no-data to NaN

    Parameters
    ----------
    path: str
        path to a raster readable by rasterio

    Returns
    -------
    xr.DataArray
    """
    try:
        with rxr.open_rasterio(path, masked=True) as src:
            raster = src.squeeze().load()
    except Exception as e:
        raise ValueError(f"Error reading raster {path}: {e}") from e

    if raster.ndim != 2:
        raise ValueError(f"Expected a single band raster, {path} has dims {raster.dims}")
    return raster


def save_raster(raster: xr.DataArray, path: str):
    directory = os.path.dirname(os.path.abspath(os.path.expanduser(path)))
    if not os.path.exists(directory):
        os.makedirs(directory)
    try:
        raster.rio.to_raster(path)
    except Exception as e:
        raise ValueError(f"Error writing raster {path}: {e}") from e


def finite_unique(raster: xr.DataArray) -> np.ndarray:
    """
    Returns all unique non-NaN and non-infinite values from a raster array.

    Parameters
    ----------
    raster : xr.DataArray
        The input raster array.

    Returns
    -------
    np.ndarray
        A NumPy array of unique valid values (non-NaN, non-infinite).
    """
    data = raster.values
    uniques = np.unique(data)
    valid_uniques = uniques[np.isfinite(uniques)]
    return valid_uniques
