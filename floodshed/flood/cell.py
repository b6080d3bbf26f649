from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class GridCell:
    """A unit of flood work

    Parameters
    ----------
    z : float
        Water level at the time the cell was discovered. This is the key the
        priority queue orders on and may be higher than the stored elevation
        of the cell.
    x : int
        Column index
    y : int
        Row index
    """

    z: float
    x: int
    y: int
