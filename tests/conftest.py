from __future__ import annotations

import random
from pathlib import Path
from typing import Iterable, List, Sequence

import pytest

from levelforge.clutter import ClutterChances, ClutterCollection, ClutterTheme
from levelforge.config import ClutterConfig, GenerationConfig
from levelforge.rooms import ConnectivitySignature
from levelforge.templates import TemplateStore, export_template, frame_template

THEME = "Theme1"

CONFIG_TEXT = """
[generation]
width_range = [2, 3]
height_range = [2, 2]
theme = "Theme1"
brush_id = 2
mutation_chance = 0.5
seed = 99

[templates]
directory = "templates"

[clutter]
ground_chance = 1.0
ceiling_chance = 0.5
wall_chance = 0.5

[clutter.themes.Theme1.ground]
props = ["grass", "rock"]
weights = [0.5, 0.5]

[clutter.themes.Theme1.ceiling]
props = ["stalactite"]

[clutter.themes.Theme1.left_wall]
props = ["vine"]

[clutter.themes.Theme1.right_wall]
props = ["vine"]
"""


class StubRandom(random.Random):
    """Random source replaying scripted values for randint/random calls."""

    def __init__(self, ints: Iterable[int] = (), floats: Iterable[float] = ()) -> None:
        super().__init__(0)
        self._ints = list(ints)
        self._floats = list(floats)

    def randint(self, a: int, b: int) -> int:
        return self._ints.pop(0)

    def random(self) -> float:
        return self._floats.pop(0)


class RecordingSurface:
    def __init__(self) -> None:
        self.tiles = {}
        self.clears = 0
        self.mesh_updates = 0

    def set_tile(self, x: int, y: int, tile_id: int, brush_id: int) -> None:
        self.tiles[(x, y)] = (tile_id, brush_id)

    def clear(self) -> None:
        self.tiles = {}
        self.clears += 1

    def update_mesh(self) -> None:
        self.mesh_updates += 1


def single_collection(prop: str) -> ClutterCollection:
    return ClutterCollection(props=(prop,), weights=(1.0,))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def frame_store() -> TemplateStore:
    return TemplateStore(frame_template(THEME, sig) for sig in ConnectivitySignature.all())


@pytest.fixture
def clutter_theme() -> ClutterTheme:
    return ClutterTheme(
        ground=single_collection("grass"),
        ceiling=single_collection("stalactite"),
        left_wall=single_collection("vine_left"),
        right_wall=single_collection("vine_right"),
    )


@pytest.fixture
def clutter_config(clutter_theme: ClutterTheme) -> ClutterConfig:
    return ClutterConfig(chances=ClutterChances(ground=1.0, ceiling=1.0, wall=1.0), themes={THEME: clutter_theme})


@pytest.fixture
def generation_config() -> GenerationConfig:
    return GenerationConfig(width_range=(2, 4), height_range=(2, 3), theme=THEME, seed=7)


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    root = tmp_path / "config" / "templates"
    for sig in ConnectivitySignature.all():
        export_template(root, frame_template(THEME, sig))
    return root


@pytest.fixture
def config_file(template_dir: Path) -> Path:
    path = template_dir.parent / "level.toml"
    path.write_text(CONFIG_TEXT, encoding="utf-8")
    return path


def solid_cells(rows: Sequence[str]) -> List[tuple]:
    """Solid cells of an ASCII map whose first line is the top row ('#' is solid)."""
    height = len(rows)
    cells = []
    for row_index, row in enumerate(rows):
        y = height - 1 - row_index
        for x, char in enumerate(row):
            if char == "#":
                cells.append((x, y))
    return cells
