# tests/unit/test_scheduler.py

import dataclasses

import pytest

from floodshed.exceptions import FloodInvariantError
from floodshed.flood.cell import GridCell
from floodshed.flood.scheduler import FloodScheduler


def test_cells_order_by_water_level():
    low = GridCell(1.0, 9, 9)
    high = GridCell(2.0, 0, 0)
    assert low < high
    assert min([high, low]) is low


def test_cells_are_immutable():
    cell = GridCell(1.0, 2, 3)
    with pytest.raises(dataclasses.FrozenInstanceError):
        cell.z = 5.0


def test_empty_scheduler():
    scheduler = FloodScheduler()
    assert len(scheduler) == 0
    assert not scheduler
    with pytest.raises(IndexError):
        scheduler.pop()


def test_open_pops_lowest_first():
    scheduler = FloodScheduler()
    for z in [7.0, 3.0, 5.0, 1.0]:
        scheduler.push_open(GridCell(z, 0, 0))

    popped = [scheduler.pop().z for _ in range(4)]
    assert popped == [1.0, 3.0, 5.0, 7.0]
    assert scheduler.open_pops == 4
    assert scheduler.meander_pops == 0


def test_meander_takes_precedence():
    scheduler = FloodScheduler()
    scheduler.push_open(GridCell(0.0, 0, 0))
    scheduler.push_meander(GridCell(9.0, 1, 1))
    scheduler.push_meander(GridCell(9.0, 2, 2))
    assert len(scheduler) == 3

    # last in, first out
    assert scheduler.pop() == GridCell(9.0, 2, 2)
    assert scheduler.pop() == GridCell(9.0, 1, 1)
    assert scheduler.pop() == GridCell(0.0, 0, 0)
    assert scheduler.meander_pops == 2
    assert scheduler.open_pops == 1
    assert not scheduler


def test_meander_does_not_move_water_level():
    scheduler = FloodScheduler()
    scheduler.push_open(GridCell(4.0, 0, 0))
    scheduler.pop()
    scheduler.push_meander(GridCell(4.0, 1, 0))
    scheduler.pop()
    assert scheduler.level == 4.0


def test_open_below_water_level_is_a_defect():
    scheduler = FloodScheduler()
    scheduler.push_open(GridCell(5.0, 0, 0))
    scheduler.pop()
    scheduler.push_open(GridCell(3.0, 1, 0))
    with pytest.raises(FloodInvariantError):
        scheduler.pop()


def test_equal_levels_are_allowed():
    scheduler = FloodScheduler()
    scheduler.push_open(GridCell(5.0, 0, 0))
    scheduler.pop()
    scheduler.push_open(GridCell(5.0, 1, 0))
    assert scheduler.pop().x == 1
