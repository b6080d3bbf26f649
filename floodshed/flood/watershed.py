"""
Priority-flood watershed labeling and depression filling

Works inward from the edges of the DEM. Every cell on the raster boundary,
and every data cell touching a no-data cell, is an outlet. Outlets are
expanded in ascending elevation order; cells that are not higher than the
current water level are drained through a stack without touching the
priority queue. A cell that is popped without a label starts a new
watershed, every cell flooded from a labeled cell takes on that label.

Barnes, Lehman & Mulla (2014), Priority-flood: An optimal
depression-filling and watershed-labeling algorithm for digital elevation
models.
"""

from dataclasses import dataclass

import numpy as np
from loguru import logger
from scipy.ndimage import binary_dilation
from tqdm import tqdm

from floodshed.exceptions import GridAllocationError
from floodshed.exceptions import InvalidGridError
from floodshed.flood.cell import GridCell
from floodshed.flood.scheduler import FloodScheduler
from floodshed.grid import Grid

logger.bind(module="watershed")

# (dx, dy) starting west and turning clockwise
NEIGHBORS = (
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
)

PROGRESS_INTERVAL = 10000


@dataclass
class WatershedResult:
    labels: Grid
    elevations: Grid
    processed_cells: int
    meander_cells: int
    open_cells: int
    num_labels: int


def outlet_mask(no_data: np.ndarray) -> np.ndarray:
    """
    Cells the flood starts from: data cells on the raster boundary and data
    cells 8-adjacent to no-data.

    Parameters
    ----------
    no_data: np.ndarray
        Boolean array, True where the DEM has no data

    Returns
    -------
    np.ndarray
        Boolean array of outlet cells
    """
    edges = np.zeros(no_data.shape, dtype=bool)
    edges[0, :] = True
    edges[-1, :] = True
    edges[:, 0] = True
    edges[:, -1] = True
    if no_data.any():
        edges |= binary_dilation(no_data, structure=np.ones((3, 3), dtype=bool))
    return edges & ~no_data


def find_watersheds(
    elevations: Grid,
    correct_drainage: bool = False,
    label_no_data: int = -1,
    show_progress: bool = False,
) -> WatershedResult:
    """
    Label watershed drainage areas, working inwards from the edges of the DEM

    Parameters
    ----------
    elevations: Grid
        Elevation grid. Altered in place when correct_drainage is True.
    correct_drainage: bool
        If True, cells in depressions are raised to their spill level so
        every cell drains to the edge of the DEM. Otherwise elevations are
        not altered.
    label_no_data: int
        Sentinel for cells without a label
    show_progress: bool
        Show a tqdm progress bar

    Returns
    -------
    WatershedResult
        labels grid with the extent of elevations and traversal counts
    """
    if not isinstance(elevations, Grid):
        raise InvalidGridError(
            f"elevations must be a Grid, got {type(elevations).__name__}"
        )

    # labels start at 1, the sentinel must sit below them
    if label_no_data >= 1:
        raise ValueError(f"label_no_data must be less than 1, got {label_no_data}")
    if elevations.no_data is not None and label_no_data == elevations.no_data:
        raise ValueError(
            f"label_no_data {label_no_data} must differ from the elevation no-data value"
        )

    logger.info("Starting priority flood watershed labeling")
    logger.debug(
        f"DEM is {elevations.width}x{elevations.height}, "
        f"cellsize {elevations.cellsize}, correct_drainage={correct_drainage}"
    )

    width = elevations.width
    height = elevations.height
    elev = elevations.data
    no_data = elevations.no_data_mask()

    logger.debug("Setting up visited and label grids")
    closed = Grid.like(elevations, dtype=bool, fill=False)
    labels = Grid.like(elevations, dtype=np.int32, no_data=label_no_data)
    visited = closed.data
    lab = labels.data

    logger.debug(
        "The open priority queue will require approximately "
        f"{(width * 2 + height * 2) * 72 // 1024 // 1024}MB of RAM"
    )

    scheduler = FloodScheduler()
    processed = 0
    clabel = 1

    try:
        seed_rows, seed_cols = np.nonzero(outlet_mask(no_data))
        for y, x in zip(seed_rows.tolist(), seed_cols.tolist()):
            visited[y, x] = True
            scheduler.push_open(GridCell(float(elev[y, x]), x, y))
        logger.debug(f"Seeded {len(scheduler)} outlet cells")

        with tqdm(
            total=elevations.size, disable=not show_progress, desc="priority flood"
        ) as progress:
            while scheduler:
                c = scheduler.pop()
                processed += 1

                # unlabeled on pop: an outlet nobody has flooded into yet
                if lab[c.y, c.x] == label_no_data and not no_data[c.y, c.x]:
                    lab[c.y, c.x] = clabel
                    clabel += 1
                current = lab[c.y, c.x]

                for dx, dy in NEIGHBORS:
                    nx = c.x + dx
                    ny = c.y + dy
                    if nx < 0 or ny < 0 or nx >= width or ny >= height:
                        continue
                    if no_data[ny, nx]:
                        continue

                    if visited[ny, nx]:
                        # pending outlet, joins the watershed that reaches it first
                        if lab[ny, nx] == label_no_data:
                            lab[ny, nx] = current
                        continue

                    lab[ny, nx] = current
                    visited[ny, nx] = True
                    if elev[ny, nx] <= c.z:
                        if correct_drainage:
                            elev[ny, nx] = c.z
                        scheduler.push_meander(GridCell(c.z, nx, ny))
                    else:
                        scheduler.push_open(GridCell(float(elev[ny, nx]), nx, ny))

                if processed % PROGRESS_INTERVAL == 0:
                    progress.update(PROGRESS_INTERVAL)
            progress.update(processed % PROGRESS_INTERVAL)
    except MemoryError as e:
        raise GridAllocationError(
            f"Ran out of memory after flooding {processed} cells"
        ) from e

    logger.debug(
        f"{processed} cells processed. {scheduler.meander_pops} in pits, "
        f"{scheduler.open_pops} not in pits."
    )
    logger.debug(f"Number of watersheds: {clabel - 1}")
    logger.success("Priority flood completed")

    return WatershedResult(
        labels=labels,
        elevations=elevations,
        processed_cells=processed,
        meander_cells=scheduler.meander_pops,
        open_cells=scheduler.open_pops,
        num_labels=clabel - 1,
    )


def fill_depressions(
    elevations: Grid, label_no_data: int = -1, show_progress: bool = False
) -> WatershedResult:
    """Raise every depression to its spill level, altering elevations in place"""
    return find_watersheds(
        elevations,
        correct_drainage=True,
        label_no_data=label_no_data,
        show_progress=show_progress,
    )
