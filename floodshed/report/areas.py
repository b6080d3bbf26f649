import numpy as np
import pandas as pd
from loguru import logger

from floodshed.grid import Grid


def watershed_area(labels: Grid) -> pd.DataFrame:
    """
    Count the cells in each watershed

    Parameters
    ----------
    labels: Grid
        Label grid produced by find_watersheds

    Returns
    -------
    pd.DataFrame
        Indexed by label, sorted ascending, with columns
        - cells: number of cells carrying the label
        - area: cells * cellsize ** 2
    """
    values = labels.data[labels.data_mask()]
    ids, counts = np.unique(values, return_counts=True)

    areas = pd.DataFrame(
        {"cells": counts.astype(np.int64), "area": counts * labels.cellsize**2},
        index=pd.Index(ids, name="label"),
    )

    for label, cells in areas["cells"].items():
        logger.debug(f"Watershed {label} has area {cells}")
    logger.debug(f"Number of watersheds: {len(areas)}")
    return areas
