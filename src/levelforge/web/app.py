from __future__ import annotations

import argparse
import html
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
import uvicorn

from ..config import load_config
from ..errors import LevelGenerationError
from ..generator import Level, LevelGenerator
from ..main import build_generator
from ..render import render_rooms, render_tiles

logger = logging.getLogger(__name__)

_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>Level Explorer</title></head>
<body>
<h1>{theme} level, {width}x{height} rooms</h1>
<p><a href="/?reload=1">Regenerate</a></p>
<pre>{rooms}</pre>
<pre style="font-size: 6px; line-height: 6px">{tiles}</pre>
</body>
</html>
"""


class LevelManager:
    def __init__(self, config_path: Path, template_dir: Optional[Path] = None) -> None:
        self._config_path = config_path
        self._template_dir = template_dir
        self._generator: Optional[LevelGenerator] = None

    def _get_generator(self) -> LevelGenerator:
        if self._generator is None:
            config = load_config(self._config_path)
            self._generator = build_generator(config, template_dir=self._template_dir)
        return self._generator

    def get_level(self, reload: bool = False) -> Level:
        generator = self._get_generator()
        if reload or generator.level is None:
            try:
                return generator.generate()
            except LevelGenerationError as exc:
                logger.error("Level generation failed: %s", exc)
                raise HTTPException(status_code=500, detail=str(exc)) from exc
        return generator.level

    def destroy_tile(self, x: int, y: int) -> dict:
        generator = self._get_generator()
        if generator.level is None:
            raise HTTPException(status_code=409, detail="No level generated yet.")
        if not generator.grid.in_bounds(x, y):
            raise HTTPException(status_code=404, detail=f"Tile ({x}, {y}) is outside the level.")
        handle = generator.destroy_tile(x, y)
        return {"tile": [x, y], "removed_prop": getattr(handle, "asset", None)}


def create_app(config_path: Path, template_dir: Optional[Path] = None) -> FastAPI:
    manager = LevelManager(config_path, template_dir)

    app = FastAPI(title="Level Explorer", version="0.1.0")

    @app.get("/", response_class=HTMLResponse)
    async def serve_index(reload: Optional[int] = None) -> HTMLResponse:
        level = manager.get_level(reload=bool(reload))
        page = _PAGE.format(
            theme=html.escape(level.theme),
            width=level.width,
            height=level.height,
            rooms=html.escape(render_rooms(level)),
            tiles=html.escape(render_tiles(level)),
        )
        return HTMLResponse(page)

    @app.get("/api/level")
    async def get_level(reload: Optional[int] = None) -> JSONResponse:
        level = manager.get_level(reload=bool(reload))
        return JSONResponse(level.to_dict())

    @app.post("/api/level/tiles/{x}/{y}/destroy")
    async def destroy_tile(x: int, y: int) -> JSONResponse:
        return JSONResponse(manager.destroy_tile(x, y))

    return app


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the level explorer web app.")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config/default_config.toml"),
        help="Path to the level configuration file.",
    )
    parser.add_argument("--templates", type=Path, default=None, help="Template directory override.")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    config_path = args.config.resolve()
    app = create_app(config_path, args.templates)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
