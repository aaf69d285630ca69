from __future__ import annotations

import random

from .rooms import Connection, Direction, RoomGrid
from .walk import PathWalk


class ConnectionResolver:
    """Assigns edge states so that every shared edge agrees between neighbours.

    Down and Right are authoritative; Up and Left are copied from the
    neighbour above and the neighbour to the left in the final pass.
    """

    def __init__(self, rng: random.Random) -> None:
        self._random = rng

    def resolve(self, walk: PathWalk) -> RoomGrid:
        grid = RoomGrid(walk.width, walk.height)
        last_x = walk.width - 1
        last_y = walk.height - 1

        for slot in grid:
            x, y = slot.x, slot.y
            slot.up = self._pick()
            slot.right = self._pick()
            slot.down = self._pick()
            slot.left = self._pick()

            if x == 0:
                slot.left = Connection.CLOSED
            if y == 0:
                slot.down = Connection.CLOSED
            if x == last_x:
                slot.right = Connection.CLOSED
            if y == last_y:
                slot.up = Connection.CLOSED

            index = walk.index_at(x, y)
            if index > 0:
                if walk.on_path(x, y - 1):
                    slot.down = Connection.OPEN
                if walk.on_path(x, y + 1):
                    slot.up = Connection.OPEN
                if walk.on_path(x - 1, y):
                    slot.left = Connection.OPEN
                if walk.on_path(x + 1, y):
                    slot.right = Connection.OPEN
                slot.on_path = True
                slot.path_index = index

        self._match_neighbours(grid)
        return grid

    def _pick(self) -> Connection:
        return Connection.OPEN if self._random.randrange(2) == 0 else Connection.CLOSED

    @staticmethod
    def _match_neighbours(grid: RoomGrid) -> None:
        for x in range(grid.width):
            for y in range(grid.height):
                slot = grid[(x, y)]
                above = grid.neighbor(slot, Direction.UP)
                if above is not None:
                    slot.up = above.down
                left = grid.neighbor(slot, Direction.LEFT)
                if left is not None:
                    slot.left = left.right
