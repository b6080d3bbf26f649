"""
Flood frontier

Two worklists cooperate:
    open    - min-heap on water level, gives the global ascending order
    meander - stack of cells known not to rise above the current level

Cells on the stack cannot open a new local minimum relative to the cell
that discovered them, so they are drained immediately and in any order.
Only cells that rise above the water level pay for a heap operation.
"""

import heapq

from floodshed.exceptions import FloodInvariantError
from floodshed.flood.cell import GridCell


class FloodScheduler:
    def __init__(self):
        self.open = []
        self.meander = []
        self.open_pops = 0
        self.meander_pops = 0
        self.level = float("-inf")

    def __len__(self):
        return len(self.open) + len(self.meander)

    def __bool__(self):
        return bool(self.open) or bool(self.meander)

    def push_open(self, cell: GridCell):
        heapq.heappush(self.open, cell)

    def push_meander(self, cell: GridCell):
        self.meander.append(cell)

    def pop(self) -> GridCell:
        """Next cell to expand, the stack takes precedence over the queue"""
        if self.meander:
            self.meander_pops += 1
            return self.meander.pop()

        if not self.open:
            raise IndexError("pop from an empty flood scheduler")

        cell = heapq.heappop(self.open)
        if cell.z < self.level:
            raise FloodInvariantError(
                f"Priority queue went below the water level: {cell.z} < {self.level}"
            )
        self.level = cell.z
        self.open_pops += 1
        return cell
