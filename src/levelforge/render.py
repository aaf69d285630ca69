from __future__ import annotations

from typing import Dict, List

from .clutter import ClutterCategory
from .generator import Level
from .rooms import Connection, RoomSlot, Vec2

_CLUTTER_GLYPHS = {
    ClutterCategory.GROUND: "g",
    ClutterCategory.CEILING: "c",
    ClutterCategory.LEFT_WALL: "l",
    ClutterCategory.RIGHT_WALL: "r",
}


def _room_symbol(slot: RoomSlot, level: Level) -> str:
    if not slot.on_path:
        return "."
    if slot.position == level.walk.start:
        return "S"
    if slot.position == level.walk.end:
        return "E"
    return "*"


def render_rooms(level: Level) -> str:
    """Each room as a 3x3 box; a gap in the wall marks an open edge."""
    lines: List[str] = []
    for y in range(level.height - 1, -1, -1):
        top, middle, bottom = [], [], []
        for x in range(level.width):
            slot = level.slots[(x, y)]
            top.append("+" + (" " if slot.up is Connection.OPEN else "-") + "+")
            middle.append(
                (" " if slot.left is Connection.OPEN else "|")
                + _room_symbol(slot, level)
                + (" " if slot.right is Connection.OPEN else "|")
            )
            bottom.append("+" + (" " if slot.down is Connection.OPEN else "-") + "+")
        lines.extend(["".join(top), "".join(middle), "".join(bottom)])
    return "\n".join(lines)


def render_tiles(level: Level) -> str:
    grid = level.grid
    props: Dict[Vec2, str] = {p.tile: _CLUTTER_GLYPHS[p.category] for p in level.placements}
    lines = []
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            if not grid.is_empty(x, y):
                row.append("#")
            else:
                row.append(props.get((x, y), " "))
        lines.append("".join(row).rstrip())
    return "\n".join(lines)
