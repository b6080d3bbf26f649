# tests/unit/test_watershed.py

from collections import deque

import numpy as np
import pytest

from floodshed.exceptions import GridAllocationError
from floodshed.exceptions import InvalidGridError
from floodshed.flood import watershed
from floodshed.flood.scheduler import FloodScheduler
from floodshed.flood.watershed import fill_depressions
from floodshed.flood.watershed import find_watersheds
from floodshed.flood.watershed import outlet_mask
from floodshed.grid import Grid

OFFSETS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


def drains_to_outlet(grid: Grid) -> np.ndarray:
    """
    Cells with a non-increasing path to an outlet. Climbs from the outlets,
    only stepping to neighbours at least as high as the current cell.
    """
    elev = grid.data
    no_data = grid.no_data_mask()
    reached = outlet_mask(no_data)
    queue = deque(zip(*np.nonzero(reached)))
    nrows, ncols = elev.shape
    while queue:
        row, col = queue.popleft()
        for drow, dcol in OFFSETS:
            r, c = row + drow, col + dcol
            if not (0 <= r < nrows and 0 <= c < ncols):
                continue
            if reached[r, c] or no_data[r, c]:
                continue
            if elev[r, c] >= elev[row, col]:
                reached[r, c] = True
                queue.append((r, c))
    return reached


def same_partition(a: np.ndarray, b: np.ndarray) -> bool:
    pairs = np.unique(np.stack([a.ravel(), b.ravel()], axis=1), axis=0)
    return len(pairs) == len(np.unique(a)) == len(np.unique(b))


@pytest.fixture
def pit():
    data = np.array([[5, 5, 5], [5, 1, 5], [5, 5, 5]], dtype=np.float32)
    return Grid(data, cellsize=1.0, no_data=-9999.0)


@pytest.fixture
def random_dem():
    rng = np.random.default_rng(42)
    data = rng.uniform(0, 100, size=(25, 40)).astype(np.float32)
    data[10:14, 15:19] = np.nan
    data[0, 5] = np.nan
    return Grid(data, cellsize=30.0, no_data=np.nan)


@pytest.fixture
def moat():
    """Two data regions separated by a ring of no-data"""
    data = np.full((7, 7), 10.0, dtype=np.float32)
    data[1:6, 1:6] = -9999.0
    data[2:5, 2:5] = 5.0
    data[3, 3] = 1.0
    return Grid(data, cellsize=1.0, no_data=-9999.0)


def test_pit_is_filled(pit):
    result = find_watersheds(pit, correct_drainage=True)
    assert pit[1, 1] == 5
    assert (pit.data == 5).all()
    assert (result.labels.data == 1).all()
    assert result.num_labels == 1


def test_pit_without_correction(pit):
    before = pit.data.copy()
    result = find_watersheds(pit, correct_drainage=False)
    np.testing.assert_array_equal(pit.data, before)
    assert (result.labels.data == 1).all()


def test_fill_depressions_corrects(pit):
    fill_depressions(pit)
    assert pit[1, 1] == 5


def test_labels_congruent_with_elevations(pit):
    result = find_watersheds(pit, label_no_data=-5)
    assert result.labels.shape == pit.shape
    assert result.labels.cellsize == pit.cellsize
    assert result.labels.no_data == -5
    assert result.labels.dtype == np.int32
    assert result.elevations is pit


def test_traversal_counts(random_dem):
    result = find_watersheds(random_dem)
    data_cells = int(random_dem.data_mask().sum())
    assert result.processed_cells == data_cells
    assert result.meander_cells + result.open_cells == data_cells


@pytest.mark.parametrize("correct_drainage", [True, False])
def test_every_data_cell_labeled_once(random_dem, correct_drainage):
    result = find_watersheds(random_dem, correct_drainage=correct_drainage)
    labels = result.labels.data
    no_data = random_dem.no_data_mask()

    assert (labels[no_data] == -1).all()
    assert (labels[~no_data] >= 1).all()
    assert set(np.unique(labels[~no_data])) == set(range(1, result.num_labels + 1))


def test_no_closed_depressions_after_correction(random_dem):
    assert not drains_to_outlet(random_dem)[random_dem.data_mask()].all()
    find_watersheds(random_dem, correct_drainage=True)
    assert drains_to_outlet(random_dem)[random_dem.data_mask()].all()


def test_correction_only_raises(random_dem):
    before = random_dem.data.copy()
    find_watersheds(random_dem, correct_drainage=True)
    valid = random_dem.data_mask()
    assert (random_dem.data[valid] >= before[valid]).all()
    assert np.isnan(random_dem.data[~valid]).all()


def test_elevations_unchanged_without_correction(random_dem):
    before = random_dem.data.copy()
    find_watersheds(random_dem, correct_drainage=False)
    assert random_dem.data.tobytes() == before.tobytes()


def test_correction_is_idempotent(random_dem):
    first = find_watersheds(random_dem, correct_drainage=True)
    filled = random_dem.data.copy()

    second = find_watersheds(random_dem, correct_drainage=True)
    np.testing.assert_array_equal(random_dem.data, filled)
    assert same_partition(first.labels.data, second.labels.data)


def test_open_pops_never_decrease(random_dem, monkeypatch):
    schedulers = []

    class RecordingScheduler(FloodScheduler):
        def __init__(self):
            super().__init__()
            self.open_levels = []
            schedulers.append(self)

        def pop(self):
            from_open = not self.meander
            cell = super().pop()
            if from_open:
                self.open_levels.append(cell.z)
            return cell

    monkeypatch.setattr(watershed, "FloodScheduler", RecordingScheduler)
    find_watersheds(random_dem, correct_drainage=True)

    levels = schedulers[0].open_levels
    assert len(levels) == schedulers[0].open_pops
    assert all(a <= b for a, b in zip(levels, levels[1:]))


def test_moat_separates_watersheds(moat):
    result = find_watersheds(moat, correct_drainage=True)
    labels = result.labels.data

    inner = labels[2:5, 2:5]
    ring = np.ones((7, 7), dtype=bool)
    ring[1:6, 1:6] = False
    outer = labels[ring]

    assert result.num_labels == 2
    assert len(np.unique(inner)) == 1
    assert len(np.unique(outer)) == 1
    assert inner[0, 0] != outer[0]
    assert (labels[moat.no_data_mask()] == -1).all()

    # no-data acts as an edge, the centre fills to the inner rim
    assert moat[3, 3] == 5
    assert (moat.data[moat.no_data_mask()] == -9999).all()
    assert drains_to_outlet(moat)[moat.data_mask()].all()


def test_no_data_never_raised():
    data = np.array(
        [[9, 9, 9, 9], [9, -9999, 2, 9], [9, 3, 4, 9], [9, 9, 9, 9]], dtype=np.int32
    )
    grid = Grid(data, cellsize=1.0, no_data=-9999)
    result = find_watersheds(grid, correct_drainage=True)

    assert grid[1, 1] == -9999
    assert result.labels[1, 1] == -1
    # interior cells touching no-data drain into it
    assert grid[2, 1] == 2
    assert grid[1, 2] == 3
    assert (result.labels.data[grid.data_mask()] > 0).all()


def test_outlets_become_separate_watersheds():
    # two valleys draining to opposite edges split by a ridge
    data = np.array(
        [
            [1, 5, 9, 5, 1],
            [2, 5, 9, 5, 2],
            [3, 5, 9, 5, 3],
        ],
        dtype=np.float64,
    )
    result = find_watersheds(Grid(data))
    labels = result.labels.data
    assert labels[0, 0] != labels[0, 4]
    assert result.num_labels >= 2


def test_single_cell():
    grid = Grid(np.array([[3.0]]))
    result = find_watersheds(grid, correct_drainage=True)
    assert result.labels[0, 0] == 1
    assert grid[0, 0] == 3.0


def test_all_no_data():
    grid = Grid(np.full((3, 3), np.nan), no_data=np.nan)
    result = find_watersheds(grid, correct_drainage=True)
    assert (result.labels.data == -1).all()
    assert result.processed_cells == 0
    assert result.num_labels == 0


def test_rejects_non_grid():
    with pytest.raises(InvalidGridError):
        find_watersheds(np.zeros((3, 3)))


def test_outlet_mask():
    no_data = np.zeros((5, 5), dtype=bool)
    no_data[2, 2] = True
    mask = outlet_mask(no_data)
    assert mask[0].all() and mask[-1].all() and mask[:, 0].all() and mask[:, -1].all()
    assert not mask[2, 2]
    assert mask[1:4, 1:4].sum() == 8


def test_label_sentinel_must_differ_from_elevation_sentinel():
    data = np.array([[5, 5, 5], [5, -1, 5], [5, 5, 5]], dtype=np.int32)
    grid = Grid(data, cellsize=1.0, no_data=-1)
    with pytest.raises(ValueError):
        find_watersheds(grid)

    result = find_watersheds(grid, label_no_data=-2)
    assert result.labels.no_data != grid.no_data
    assert result.labels[1, 1] == -2
    assert (result.labels.data[grid.data_mask()] == 1).all()


@pytest.mark.parametrize("label_no_data", [1, 2, 100])
def test_label_sentinel_below_first_label(pit, label_no_data):
    with pytest.raises(ValueError):
        find_watersheds(pit, label_no_data=label_no_data)
    assert pit[1, 1] == 1


def test_label_sentinel_zero(pit):
    result = find_watersheds(pit, label_no_data=0)
    assert result.num_labels == 1
    assert set(np.unique(result.labels.data)) == {1}


def test_worklist_memory_error(pit, monkeypatch):
    def out_of_memory(self, cell):
        raise MemoryError

    monkeypatch.setattr(FloodScheduler, "push_open", out_of_memory)
    with pytest.raises(GridAllocationError):
        find_watersheds(pit)


def test_grid_memory_error(pit, monkeypatch):
    def out_of_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr("floodshed.grid.np.full", out_of_memory)
    with pytest.raises(GridAllocationError):
        find_watersheds(pit)
