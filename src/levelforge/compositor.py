from __future__ import annotations

import logging
import random
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from .rooms import Vec2
from .templates import EMPTY_TILE, TEMPLATE_HEIGHT, TEMPLATE_WIDTH, RoomTemplate, TileRecord

logger = logging.getLogger(__name__)


class TileSurface(Protocol):
    def set_tile(self, x: int, y: int, tile_id: int, brush_id: int) -> None: ...

    def clear(self) -> None: ...

    def update_mesh(self) -> None: ...


class CompositeGrid:
    """The single tile surface assembled from every placed room template."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._tiles: Dict[Vec2, int] = {}

    @classmethod
    def for_rooms(cls, room_width: int, room_height: int) -> "CompositeGrid":
        return cls(room_width * TEMPLATE_WIDTH, room_height * TEMPLATE_HEIGHT)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> int:
        return self._tiles.get((x, y), EMPTY_TILE)

    def is_empty(self, x: int, y: int) -> bool:
        return self.get_tile(x, y) == EMPTY_TILE

    def set_tile(self, x: int, y: int, tile_id: int) -> None:
        if tile_id == EMPTY_TILE:
            self._tiles.pop((x, y), None)
        else:
            self._tiles[(x, y)] = tile_id

    def clear_tile(self, x: int, y: int) -> None:
        self._tiles.pop((x, y), None)

    def clear(self) -> None:
        self._tiles.clear()

    def placed(self) -> Iterator[Tuple[Vec2, int]]:
        return iter(sorted(self._tiles.items()))

    def __len__(self) -> int:
        return len(self._tiles)

    def rows(self) -> List[List[int]]:
        """Tile ids row by row, top row first."""
        return [
            [self.get_tile(x, y) for x in range(self.width)]
            for y in range(self.height - 1, -1, -1)
        ]


class LevelCompositor:
    def __init__(
        self,
        grid: CompositeGrid,
        rng: random.Random,
        mutation_chance: float,
        brush_id: int = 0,
        surface: Optional[TileSurface] = None,
    ) -> None:
        if not 0.0 <= mutation_chance <= 1.0:
            raise ValueError(f"Mutation chance must be within [0, 1], got {mutation_chance}.")
        self._grid = grid
        self._random = rng
        self._threshold = int(mutation_chance * 10)
        self._brush_id = brush_id
        self._surface = surface

    @staticmethod
    def offset_for(slot: Vec2) -> Vec2:
        return slot[0] * TEMPLATE_WIDTH, slot[1] * TEMPLATE_HEIGHT

    def place(self, template: RoomTemplate, slot: Vec2) -> int:
        x_offset, y_offset = self.offset_for(slot)
        deferred: List[TileRecord] = []
        placed = 0

        for record in template.records:
            if record.tile_id == EMPTY_TILE:
                continue
            if record.mutable:
                deferred.append(record)
                continue
            self._set(record.x + x_offset, record.y + y_offset, record.tile_id)
            placed += 1

        for record in deferred:
            # Roll 0..10 inclusive against the chance in tenths.
            if self._random.randint(0, 10) < self._threshold:
                self._set(record.x + x_offset, record.y + y_offset, record.tile_id)
                placed += 1

        logger.debug(
            "Placed %s at slot %s: %d tiles (%d mutable candidates)",
            template.label, slot, placed, len(deferred),
        )
        return placed

    def _set(self, x: int, y: int, tile_id: int) -> None:
        self._grid.set_tile(x, y, tile_id)
        if self._surface is not None:
            self._surface.set_tile(x, y, tile_id, self._brush_id)
