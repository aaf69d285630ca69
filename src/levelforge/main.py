from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path

from .config import Config, load_config
from .errors import LevelGenerationError
from .generator import Level, LevelGenerator, find_spawn_location
from .render import render_rooms, render_tiles
from .rooms import ConnectivitySignature
from .templates import TemplateStore, export_template, frame_template

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("config/default_config.toml")


def build_generator(config: Config, seed: int | None = None, template_dir: Path | None = None) -> LevelGenerator:
    generation = config.generation if seed is None else replace(config.generation, seed=seed)
    store = TemplateStore.load_directory(template_dir or config.templates.directory)
    missing = store.missing_signatures(generation.theme)
    if missing:
        logger.warning(
            "Theme %s lacks templates for %d signatures: %s",
            generation.theme, len(missing), ", ".join(str(sig) for sig in missing),
        )
    return LevelGenerator(generation, store, config.clutter)


def build_level(config_path: Path, seed: int | None = None, template_dir: Path | None = None) -> Level:
    config = load_config(config_path)
    return build_generator(config, seed=seed, template_dir=template_dir).generate()


def _cmd_generate(args: argparse.Namespace) -> int:
    level = build_level(args.config, seed=args.seed, template_dir=args.templates)
    if args.format == "json":
        payload = level.to_dict()
        payload["spawn"] = find_spawn_location(level, random.Random(level.seed))
        print(json.dumps(payload, indent=2))
    else:
        print(render_rooms(level))
        print()
        print(render_tiles(level))
    return 0


def _cmd_seed_templates(args: argparse.Namespace) -> int:
    written = 0
    for signature in ConnectivitySignature.all():
        template = frame_template(
            args.theme, signature, wall_tile=args.wall_tile, ledge_tile=args.ledge_tile, identifier=args.identifier
        )
        path = export_template(args.out, template, auto_index=args.auto_index)
        logger.debug("Wrote %s", path)
        written += 1
    print(f"Wrote {written} templates for theme {args.theme} to {args.out}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate template-driven 2D levels.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a level and print it.")
    generate.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="Path to config file.")
    generate.add_argument("--seed", type=int, default=None, help="Seed overriding generation.seed from the config.")
    generate.add_argument("--templates", type=Path, default=None,
                          help="Template directory overriding templates.directory from the config.")
    generate.add_argument("--format", choices=("json", "ascii"), default="ascii", help="Choose the output format.")
    generate.set_defaults(handler=_cmd_generate)

    seed = subparsers.add_parser("seed-templates", help="Write a frame template for every connectivity signature.")
    seed.add_argument("--out", type=Path, required=True, help="Template root directory.")
    seed.add_argument("--theme", default="Theme1", help="Theme to file the templates under.")
    seed.add_argument("--identifier", default="frame", help="Free-text identifier added to file names.")
    seed.add_argument("--wall-tile", type=int, default=1, help="Tile id for walls.")
    seed.add_argument("--ledge-tile", type=int, default=2, help="Tile id for mutable ledges.")
    seed.add_argument("--auto-index", action="store_true",
                      help="Append an index instead of overwriting existing files.")
    seed.set_defaults(handler=_cmd_seed_templates)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.handler(args)
    except (LevelGenerationError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
