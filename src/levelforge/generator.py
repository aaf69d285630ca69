"""Level generation pipeline.

Phases run strictly in order: path walk, connection resolution, per-slot
template resolution and compositing, then the clutter pass. ``iter_generate``
yields after every composed slot so a caller can present the level while it
is being built; resuming simply continues with the next slot.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Generator, Hashable, List, Optional

from .clutter import ClutterPlacer, ClutterRegistry, ClutterTheme, Placement, PropSpawner, RecordingSpawner
from .compositor import CompositeGrid, LevelCompositor, TileSurface
from .config import ClutterConfig, GenerationConfig
from .connections import ConnectionResolver
from .rooms import RoomGrid, RoomSlot, Vec2
from .templates import EMPTY_TILE, RoomTemplate, TemplateStore
from .walk import PathGraphGenerator, PathWalk, sample_dimensions

logger = logging.getLogger(__name__)


@dataclass
class GenerationStep:
    slot: RoomSlot
    template: RoomTemplate
    tiles_placed: int
    completed: int
    total: int


@dataclass
class Level:
    theme: str
    seed: Optional[int]
    slots: RoomGrid
    walk: PathWalk
    grid: CompositeGrid
    templates: Dict[Vec2, RoomTemplate] = field(default_factory=dict)
    placements: List[Placement] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.slots.width

    @property
    def height(self) -> int:
        return self.slots.height

    def to_dict(self) -> Dict[str, object]:
        return {
            "theme": self.theme,
            "seed": self.seed,
            "rooms": self.slots.to_dict(),
            "path": [list(cell) for cell in self.walk.cells],
            "templates": {
                f"{x},{y}": template.label for (x, y), template in sorted(self.templates.items())
            },
            "tiles": {
                "width": self.grid.width,
                "height": self.grid.height,
                "placed": len(self.grid),
            },
            "clutter": [
                {
                    "category": placement.category.value,
                    "tile": list(placement.tile),
                    "anchor": list(placement.anchor),
                    "asset": placement.asset,
                }
                for placement in self.placements
            ],
        }


class LevelGenerator:
    def __init__(
        self,
        config: GenerationConfig,
        store: TemplateStore,
        clutter: Optional[ClutterConfig] = None,
        rng: Optional[random.Random] = None,
        surface: Optional[TileSurface] = None,
        spawner: Optional[PropSpawner] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._clutter = clutter if clutter is not None else ClutterConfig()
        self._random = rng if rng is not None else random.Random(config.seed)
        self._seed = config.seed if rng is None else None
        self._surface = surface
        self.spawner: PropSpawner = spawner if spawner is not None else RecordingSpawner()
        self.registry = ClutterRegistry()
        self.grid = CompositeGrid(0, 0)
        self.level: Optional[Level] = None

    def reset(self) -> None:
        for handle in list(self.registry.anchors.values()):
            self.spawner.despawn(handle)
        self.registry.reset()
        self.grid = CompositeGrid(0, 0)
        if self._surface is not None:
            self._surface.clear()
        self.level = None

    def generate(self) -> Level:
        steps = self.iter_generate()
        while True:
            try:
                next(steps)
            except StopIteration as finished:
                return finished.value

    def iter_generate(self) -> Generator[GenerationStep, None, Level]:
        self.reset()
        config = self._config
        width, height = sample_dimensions(self._random, config.width_range, config.height_range)
        logger.info("Generating %dx%d level with theme %s", width, height, config.theme)

        walk = PathGraphGenerator(self._random).generate(width, height)
        slots = ConnectionResolver(self._random).resolve(walk)

        self.grid = CompositeGrid.for_rooms(width, height)
        level = Level(theme=config.theme, seed=self._seed, slots=slots, walk=walk, grid=self.grid)
        compositor = LevelCompositor(
            self.grid, self._random, config.mutation_chance, brush_id=config.brush_id, surface=self._surface
        )

        total = len(slots)
        for completed, slot in enumerate(slots, start=1):
            template = self._store.resolve(config.theme, slot.signature, self._random, config.difficulty)
            placed = compositor.place(template, slot.position)
            level.templates[slot.position] = template
            if self._surface is not None:
                self._surface.update_mesh()
            yield GenerationStep(slot=slot, template=template, tiles_placed=placed, completed=completed, total=total)

        theme = self._clutter.themes.get(config.theme)
        if theme is None:
            logger.warning("No clutter collections configured for theme %s, skipping clutter pass", config.theme)
        else:
            level.placements = self._scatter(theme)

        if self._surface is not None:
            self._surface.update_mesh()
        self.level = level
        logger.info(
            "Level ready: %d rooms, %d on path, %d tiles, %d props",
            total, len(walk.cells), len(self.grid), len(level.placements),
        )
        return level

    def _scatter(self, theme: ClutterTheme) -> List[Placement]:
        placer = ClutterPlacer(
            self.grid,
            self.registry,
            self.spawner,
            self._clutter.chances,
            self._random,
            tile_size=self._config.tile_size,
        )
        return placer.scan(theme)

    def destroy_tile(self, x: int, y: int) -> Optional[Hashable]:
        """Clear a tile and remove the prop it supports, returning that prop."""
        self.grid.clear_tile(x, y)
        if self._surface is not None:
            self._surface.set_tile(x, y, EMPTY_TILE, self._config.brush_id)
        handle = self.registry.release((x, y))
        if handle is None:
            return None
        self.spawner.despawn(handle)
        if self.level is not None:
            self.level.placements = [p for p in self.level.placements if p.anchor != (x, y)]
        logger.debug("Tile (%d, %d) destroyed along with its prop", x, y)
        return handle


def find_spawn_location(level: Level, rng: random.Random, attempts: int = 256) -> Optional[Vec2]:
    """Random empty tile, in tile coordinates; scale by the tile size for a world position."""
    grid = level.grid
    if grid.width == 0 or grid.height == 0:
        return None
    for _ in range(attempts):
        x = rng.randrange(grid.width)
        y = rng.randrange(grid.height)
        if grid.is_empty(x, y):
            return x, y
    for y in range(grid.height):
        for x in range(grid.width):
            if grid.is_empty(x, y):
                return x, y
    return None
