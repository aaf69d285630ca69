"""Decorative clutter scattered along the solid/empty boundaries of a level.

Each prop is linked to the solid tile supporting it (its anchor), so that
destroying the anchor can remove the prop with it.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from .compositor import CompositeGrid
from .rooms import Vec2

logger = logging.getLogger(__name__)

FREE = 0
SOLID = 1
CLUTTERED = -1


def weighted_random_index(weights: Sequence[float], rng: random.Random) -> Optional[int]:
    if not weights:
        return None
    total = 0.0
    for index, weight in enumerate(weights):
        if math.isinf(weight) and weight > 0:
            return index
        if weight > 0 and not math.isnan(weight):
            total += weight
    if total <= 0:
        return None

    pick = rng.random()
    cumulative = 0.0
    for index, weight in enumerate(weights):
        if math.isnan(weight) or weight <= 0:
            continue
        cumulative += weight / total
        if cumulative >= pick:
            return index
    return None


@dataclass(frozen=True)
class ClutterCollection:
    props: Tuple[str, ...]
    weights: Tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.props) != len(self.weights):
            raise ValueError(
                f"Clutter collection has {len(self.props)} props but {len(self.weights)} weights."
            )

    def request(self, rng: random.Random) -> Optional[str]:
        index = weighted_random_index(self.weights, rng)
        if index is None:
            return None
        return self.props[index]


@dataclass(frozen=True)
class ClutterTheme:
    ground: ClutterCollection
    ceiling: ClutterCollection
    left_wall: ClutterCollection
    right_wall: ClutterCollection


class ClutterCategory(Enum):
    GROUND = "ground"
    CEILING = "ceiling"
    LEFT_WALL = "left_wall"
    RIGHT_WALL = "right_wall"


@dataclass(frozen=True)
class ClutterChances:
    ground: float = 0.33
    ceiling: float = 0.33
    wall: float = 0.33

    def for_category(self, category: ClutterCategory) -> float:
        if category is ClutterCategory.GROUND:
            return self.ground
        if category is ClutterCategory.CEILING:
            return self.ceiling
        return self.wall


@dataclass(frozen=True)
class SpawnedProp:
    id: int
    asset: str
    position: Tuple[float, float]


class PropSpawner(Protocol):
    def spawn(self, asset: str, position: Tuple[float, float]) -> Hashable: ...

    def despawn(self, handle: Hashable) -> None: ...


class RecordingSpawner:
    """In-memory prop spawner keeping every live prop."""

    def __init__(self) -> None:
        self._next_id = 1
        self.live: Dict[int, SpawnedProp] = {}

    def spawn(self, asset: str, position: Tuple[float, float]) -> SpawnedProp:
        prop = SpawnedProp(id=self._next_id, asset=asset, position=position)
        self._next_id += 1
        self.live[prop.id] = prop
        return prop

    def despawn(self, handle: SpawnedProp) -> None:
        self.live.pop(handle.id, None)


@dataclass
class ClutterRegistry:
    anchors: Dict[Vec2, Hashable] = field(default_factory=dict)
    cluttered: Set[Vec2] = field(default_factory=set)
    _tiles: Dict[Vec2, Vec2] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.anchors)

    def is_anchor(self, position: Vec2) -> bool:
        return position in self.anchors

    def is_cluttered(self, position: Vec2) -> bool:
        return position in self.cluttered

    def link(self, anchor: Vec2, tile: Vec2, handle: Hashable) -> None:
        if anchor in self.anchors:
            raise ValueError(f"Anchor {anchor} already supports a prop.")
        if tile in self.cluttered:
            raise ValueError(f"Tile {tile} already holds a prop.")
        self.anchors[anchor] = handle
        self.cluttered.add(tile)
        self._tiles[anchor] = tile

    def release(self, anchor: Vec2) -> Optional[Hashable]:
        handle = self.anchors.pop(anchor, None)
        tile = self._tiles.pop(anchor, None)
        if tile is not None:
            self.cluttered.discard(tile)
        return handle

    def reset(self) -> None:
        self.anchors = {}
        self.cluttered = set()
        self._tiles = {}


@dataclass(frozen=True)
class Placement:
    category: ClutterCategory
    tile: Vec2
    anchor: Vec2
    asset: str
    handle: Hashable


# Each rule: category, neighbour indices (free, solid) into (up, right, down, left),
# and the anchor offset from the empty tile.
_RULES: Tuple[Tuple[ClutterCategory, int, int, Vec2], ...] = (
    (ClutterCategory.GROUND, 0, 2, (0, -1)),
    (ClutterCategory.CEILING, 2, 0, (0, 1)),
    (ClutterCategory.LEFT_WALL, 1, 3, (-1, 0)),
    (ClutterCategory.RIGHT_WALL, 3, 1, (1, 0)),
)


class ClutterPlacer:
    def __init__(
        self,
        grid: CompositeGrid,
        registry: ClutterRegistry,
        spawner: PropSpawner,
        chances: ClutterChances,
        rng: random.Random,
        tile_size: float = 1.0,
    ) -> None:
        self._grid = grid
        self._registry = registry
        self._spawner = spawner
        self._chances = chances
        self._random = rng
        self._tile_size = tile_size

    def occupancy(self, x: int, y: int) -> Tuple[int, int, int, int]:
        return (
            self._status(x, y + 1),
            self._status(x + 1, y),
            self._status(x, y - 1),
            self._status(x - 1, y),
        )

    def _status(self, x: int, y: int) -> int:
        if not self._grid.in_bounds(x, y):
            return FREE
        if self._registry.is_cluttered((x, y)):
            return CLUTTERED
        return FREE if self._grid.is_empty(x, y) else SOLID

    def scan(self, theme: ClutterTheme) -> List[Placement]:
        collections: Mapping[ClutterCategory, ClutterCollection] = {
            ClutterCategory.GROUND: theme.ground,
            ClutterCategory.CEILING: theme.ceiling,
            ClutterCategory.LEFT_WALL: theme.left_wall,
            ClutterCategory.RIGHT_WALL: theme.right_wall,
        }
        placements: List[Placement] = []
        for y in range(self._grid.height):
            for x in range(self._grid.width):
                if not self._grid.is_empty(x, y) or self._registry.is_cluttered((x, y)):
                    continue
                placement = self._try_place(x, y, collections)
                if placement is not None:
                    placements.append(placement)
        logger.info("Clutter pass placed %d props", len(placements))
        return placements

    def _try_place(
        self, x: int, y: int, collections: Mapping[ClutterCategory, ClutterCollection]
    ) -> Optional[Placement]:
        codes = self.occupancy(x, y)
        for category, free_side, solid_side, (dx, dy) in _RULES:
            anchor = (x + dx, y + dy)
            if codes[free_side] != FREE or codes[solid_side] != SOLID or self._registry.is_anchor(anchor):
                continue
            # First matching category decides, whether or not the roll succeeds.
            if self._random.random() > self._chances.for_category(category):
                return None
            asset = collections[category].request(self._random)
            if asset is None:
                logger.debug("No %s clutter selectable for tile (%d, %d)", category.value, x, y)
                return None
            position = (x * self._tile_size, y * self._tile_size)
            handle = self._spawner.spawn(asset, position)
            self._registry.link(anchor, (x, y), handle)
            return Placement(category=category, tile=(x, y), anchor=anchor, asset=asset, handle=handle)
        return None
