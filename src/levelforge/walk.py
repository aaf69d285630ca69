from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .errors import PathGenerationStalled
from .rooms import Direction, Vec2

logger = logging.getLogger(__name__)

# Cyclic priority used when the drawn direction is blocked. Left is never taken.
_SCAN_ORDER: Tuple[Direction, ...] = (Direction.DOWN, Direction.RIGHT, Direction.UP)


@dataclass
class PathWalk:
    width: int
    height: int
    indices: List[List[int]]
    cells: List[Vec2] = field(default_factory=list)
    exited: bool = False

    def index_at(self, x: int, y: int) -> int:
        return self.indices[x][y]

    def on_path(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and self.indices[x][y] > 0

    @property
    def start(self) -> Vec2:
        return self.cells[0]

    @property
    def end(self) -> Vec2:
        return self.cells[-1]


def sample_dimensions(
    rng: random.Random, width_range: Sequence[int], height_range: Sequence[int]
) -> Tuple[int, int]:
    width = rng.randint(int(width_range[0]), int(width_range[1]))
    height = rng.randint(int(height_range[0]), int(height_range[1]))
    if width < 1 or height < 1:
        raise ValueError(f"Sampled grid dimensions must be at least 1x1, got {width}x{height}.")
    return width, height


class PathGraphGenerator:
    def __init__(self, rng: random.Random) -> None:
        self._random = rng

    def generate(self, width: int, height: int) -> PathWalk:
        if width < 1 or height < 1:
            raise ValueError(f"Path grid must be at least 1x1, got {width}x{height}.")
        indices = [[0 for _ in range(height)] for _ in range(width)]
        walk = PathWalk(width=width, height=height, indices=indices)

        x, y = 0, self._random.randrange(height)
        index = 1
        indices[x][y] = index
        walk.cells.append((x, y))

        max_moves = width * height
        moves = 0
        while not walk.exited:
            if moves >= max_moves:
                raise PathGenerationStalled(
                    f"Path walk exceeded {max_moves} moves on a {width}x{height} grid."
                )
            primary = self._random.randrange(len(_SCAN_ORDER))
            step = self._next_step(walk, x, y, primary)
            if step is None:
                if walk.exited:
                    break
                raise PathGenerationStalled(
                    f"Path walk stalled at ({x}, {y}) on a {width}x{height} grid."
                )
            x, y = step
            index += 1
            indices[x][y] = index
            walk.cells.append((x, y))
            moves += 1

        logger.debug("Path walk finished after %d rooms, exit at %s", len(walk.cells), walk.end)
        return walk

    def _next_step(self, walk: PathWalk, x: int, y: int, primary: int):
        for offset in range(len(_SCAN_ORDER)):
            direction = _SCAN_ORDER[(primary + offset) % len(_SCAN_ORDER)]
            if direction is Direction.RIGHT and x == walk.width - 1:
                walk.exited = True
                return None
            dx, dy = direction.delta
            nx, ny = x + dx, y + dy
            if 0 <= nx < walk.width and 0 <= ny < walk.height and walk.indices[nx][ny] == 0:
                return nx, ny
        return None
