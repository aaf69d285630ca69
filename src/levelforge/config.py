from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib  # type: ignore[no-redef]

from .clutter import ClutterCategory, ClutterChances, ClutterCollection, ClutterTheme


@dataclass(frozen=True)
class GenerationConfig:
    width_range: Tuple[int, int] = (3, 5)
    height_range: Tuple[int, int] = (3, 4)
    theme: str = "Theme1"
    brush_id: int = 0
    mutation_chance: float = 0.5
    chunk_template_chance: float = 0.33
    difficulty: float = 0.0
    tile_size: float = 2.5
    seed: Optional[int] = None


@dataclass(frozen=True)
class TemplateConfig:
    directory: Path


@dataclass(frozen=True)
class ClutterConfig:
    chances: ClutterChances = field(default_factory=ClutterChances)
    themes: Mapping[str, ClutterTheme] = field(default_factory=dict)


@dataclass(frozen=True)
class Config:
    generation: GenerationConfig
    templates: TemplateConfig
    clutter: ClutterConfig


def _parse_range(section: str, key: str, value: Any, default: Tuple[int, int]) -> Tuple[int, int]:
    if value is None:
        return default
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{section}.{key} must be a two-element array [min, max].")
    low, high = int(value[0]), int(value[1])
    if low < 1 or high < low:
        raise ValueError(f"{section}.{key} must satisfy 1 <= min <= max, got [{low}, {high}].")
    return low, high


def _parse_chance(section: str, key: str, value: Any, default: float) -> float:
    if value is None:
        return default
    chance = float(value)
    if not 0.0 <= chance <= 1.0:
        raise ValueError(f"{section}.{key} must be within [0, 1], got {chance}.")
    return chance


def _parse_generation(raw: Mapping[str, Any]) -> GenerationConfig:
    defaults = GenerationConfig()
    theme = str(raw.get("theme", defaults.theme)).strip()
    if not theme or "_" in theme:
        raise ValueError(f"generation.theme must be a non-empty name without underscores, got '{theme}'.")
    seed_raw = raw.get("seed")
    return GenerationConfig(
        width_range=_parse_range("generation", "width_range", raw.get("width_range"), defaults.width_range),
        height_range=_parse_range("generation", "height_range", raw.get("height_range"), defaults.height_range),
        theme=theme,
        brush_id=int(raw.get("brush_id", defaults.brush_id)),
        mutation_chance=_parse_chance("generation", "mutation_chance", raw.get("mutation_chance"), defaults.mutation_chance),
        chunk_template_chance=_parse_chance(
            "generation", "chunk_template_chance", raw.get("chunk_template_chance"), defaults.chunk_template_chance
        ),
        difficulty=float(raw.get("difficulty", defaults.difficulty)),
        tile_size=float(raw.get("tile_size", defaults.tile_size)),
        seed=int(seed_raw) if seed_raw is not None else None,
    )


def _parse_collection(theme: str, category: ClutterCategory, raw: Any) -> ClutterCollection:
    label = f"clutter.themes.{theme}.{category.value}"
    if raw is None:
        return ClutterCollection(props=(), weights=())
    if not isinstance(raw, Mapping):
        raise ValueError(f"[{label}] must be a table.")
    props_raw = raw.get("props", [])
    if isinstance(props_raw, str):
        props_raw = [props_raw]
    props = tuple(str(prop) for prop in props_raw)
    weights_raw = raw.get("weights")
    if weights_raw is None:
        weights = tuple(1.0 for _ in props)
    else:
        weights = tuple(float(weight) for weight in weights_raw)
    if len(weights) != len(props):
        raise ValueError(f"[{label}] lists {len(props)} props but {len(weights)} weights.")
    return ClutterCollection(props=props, weights=weights)


def _parse_clutter(raw: Mapping[str, Any]) -> ClutterConfig:
    defaults = ClutterChances()
    chances = ClutterChances(
        ground=_parse_chance("clutter", "ground_chance", raw.get("ground_chance"), defaults.ground),
        ceiling=_parse_chance("clutter", "ceiling_chance", raw.get("ceiling_chance"), defaults.ceiling),
        wall=_parse_chance("clutter", "wall_chance", raw.get("wall_chance"), defaults.wall),
    )
    themes_raw = raw.get("themes", {})
    if not isinstance(themes_raw, Mapping):
        raise ValueError("[clutter.themes] must be a table.")
    themes: Dict[str, ClutterTheme] = {}
    for theme, theme_raw in themes_raw.items():
        if not isinstance(theme_raw, Mapping):
            raise ValueError(f"[clutter.themes.{theme}] must be a table.")
        themes[str(theme)] = ClutterTheme(
            ground=_parse_collection(theme, ClutterCategory.GROUND, theme_raw.get("ground")),
            ceiling=_parse_collection(theme, ClutterCategory.CEILING, theme_raw.get("ceiling")),
            left_wall=_parse_collection(theme, ClutterCategory.LEFT_WALL, theme_raw.get("left_wall")),
            right_wall=_parse_collection(theme, ClutterCategory.RIGHT_WALL, theme_raw.get("right_wall")),
        )
    return ClutterConfig(chances=chances, themes=themes)


def load_config(path: str | Path) -> Config:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("rb") as handle:
        raw = tomllib.load(handle)

    generation_raw = raw.get("generation", {})
    if not isinstance(generation_raw, Mapping):
        raise ValueError("[generation] must be a table.")
    generation = _parse_generation(generation_raw)

    templates_raw = raw.get("templates")
    if not isinstance(templates_raw, Mapping):
        raise ValueError("Missing [templates] section.")
    directory = templates_raw.get("directory")
    if not isinstance(directory, str) or not directory.strip():
        raise ValueError("Missing templates.directory entry.")
    template_dir = Path(directory)
    if not template_dir.is_absolute():
        template_dir = (config_path.parent / template_dir).resolve()

    clutter_raw = raw.get("clutter", {})
    if not isinstance(clutter_raw, Mapping):
        raise ValueError("[clutter] must be a table.")

    return Config(
        generation=generation,
        templates=TemplateConfig(directory=template_dir),
        clutter=_parse_clutter(clutter_raw),
    )
