"""Room templates, the template store, and the CSV template files behind it.

A template file holds one header row followed by one record per tile:
``TileId,TileLocationX,TileLocationY,Mutateable,IsChunkTemplate``. Files live
at ``<root>/<theme>/<signature>/roomData_<theme>_<signature>_<identifier>.csv``.
"""

from __future__ import annotations

import csv
import logging
import random
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import NoMatchingTemplate
from .rooms import ConnectivitySignature, Direction

logger = logging.getLogger(__name__)

EMPTY_TILE = 65535
TEMPLATE_WIDTH = 32
TEMPLATE_HEIGHT = 16

CSV_HEADER = ("TileId", "TileLocationX", "TileLocationY", "Mutateable", "IsChunkTemplate")
FILE_PREFIX = "roomData"

_FILENAME_PATTERN = re.compile(
    rf"^{FILE_PREFIX}_(?P<theme>[^_]+)_(?P<signature>U[OC]_R[OC]_D[OC]_L[OC])(?:_(?P<identifier>.*))?$"
)


@dataclass(frozen=True)
class TileRecord:
    tile_id: int
    x: int
    y: int
    mutable: bool = False
    is_chunk_template: bool = False

    @property
    def is_empty(self) -> bool:
        return self.tile_id == EMPTY_TILE


@dataclass(frozen=True)
class RoomTemplate:
    theme: str
    signature: ConnectivitySignature
    records: Tuple[TileRecord, ...]
    identifier: str = ""
    source: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for record in self.records:
            if not (0 <= record.x < TEMPLATE_WIDTH and 0 <= record.y < TEMPLATE_HEIGHT):
                raise ValueError(
                    f"Tile ({record.x}, {record.y}) lies outside the "
                    f"{TEMPLATE_WIDTH}x{TEMPLATE_HEIGHT} template extent ({self.label})."
                )

    @property
    def label(self) -> str:
        suffix = f"_{self.identifier}" if self.identifier else ""
        return f"{self.theme}_{self.signature}{suffix}"


class TemplateStore:
    def __init__(self, templates: Iterable[RoomTemplate] = ()) -> None:
        self._groups: Dict[Tuple[str, ConnectivitySignature], List[RoomTemplate]] = defaultdict(list)
        for template in templates:
            self.add(template)

    def __len__(self) -> int:
        return sum(len(group) for group in self._groups.values())

    def add(self, template: RoomTemplate) -> None:
        self._groups[(template.theme, template.signature)].append(template)

    def templates(self, theme: str, signature: ConnectivitySignature) -> Sequence[RoomTemplate]:
        return tuple(self._groups.get((theme, signature), ()))

    def themes(self) -> List[str]:
        return sorted({theme for theme, _ in self._groups})

    def missing_signatures(self, theme: str) -> List[ConnectivitySignature]:
        return [sig for sig in ConnectivitySignature.all() if not self._groups.get((theme, sig))]

    def resolve(
        self,
        theme: str,
        signature: ConnectivitySignature,
        rng: random.Random,
        difficulty: float = 0.0,
    ) -> RoomTemplate:
        candidates = self._groups.get((theme, signature))
        if not candidates:
            raise NoMatchingTemplate(theme, signature)
        return candidates[rng.randrange(len(candidates))]

    @classmethod
    def load_directory(cls, root: Path) -> "TemplateStore":
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Template directory not found: {root}")
        store = cls()
        for path in sorted(root.rglob("*.csv")):
            match = _FILENAME_PATTERN.match(path.stem)
            if match is None:
                logger.warning("Skipping template file with unrecognised name: %s", path)
                continue
            template = read_template(
                path,
                theme=match.group("theme"),
                signature=ConnectivitySignature.parse(match.group("signature")),
                identifier=match.group("identifier") or "",
            )
            store.add(template)
        logger.info("Loaded %d room templates from %s", len(store), root)
        return store


def _parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in {"true", "1"}:
        return True
    if text in {"false", "0", ""}:
        return False
    raise ValueError(f"Invalid boolean value: '{value}'.")


def parse_records(rows: Iterable[Sequence[str]], source: str = "<memory>") -> List[TileRecord]:
    records: List[TileRecord] = []
    iterator = iter(rows)
    next(iterator, None)  # header row, not validated
    for line_number, row in enumerate(iterator, start=2):
        if not row or not any(cell.strip() for cell in row):
            continue
        if len(row) < 3:
            raise ValueError(f"{source}:{line_number}: expected at least 3 fields, got {len(row)}.")
        try:
            records.append(
                TileRecord(
                    tile_id=int(row[0]),
                    x=int(float(row[1])),
                    y=int(float(row[2])),
                    mutable=_parse_bool(row[3]) if len(row) > 3 else False,
                    is_chunk_template=_parse_bool(row[4]) if len(row) > 4 else False,
                )
            )
        except ValueError as exc:
            raise ValueError(f"{source}:{line_number}: {exc}") from exc
    return records


def read_template(
    path: Path, theme: str, signature: ConnectivitySignature, identifier: str = ""
) -> RoomTemplate:
    with Path(path).open("r", encoding="utf-8", newline="") as handle:
        records = parse_records(csv.reader(handle), source=str(path))
    return RoomTemplate(
        theme=theme,
        signature=signature,
        records=tuple(records),
        identifier=identifier,
        source=Path(path),
    )


def write_template(path: Path, template: RoomTemplate) -> None:
    with Path(path).open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADER)
        for record in template.records:
            writer.writerow(
                [
                    record.tile_id,
                    record.x,
                    record.y,
                    "True" if record.mutable else "False",
                    "True" if record.is_chunk_template else "False",
                ]
            )


def template_path(root: Path, theme: str, signature: ConnectivitySignature, identifier: str = "") -> Path:
    name = f"{FILE_PREFIX}_{theme}_{signature}"
    if identifier:
        name = f"{name}_{identifier}"
    return Path(root) / theme / str(signature) / f"{name}.csv"


def export_template(root: Path, template: RoomTemplate, auto_index: bool = False) -> Path:
    path = template_path(root, template.theme, template.signature, template.identifier)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        if auto_index:
            counter = 1
            while path.with_name(f"{path.stem}_{counter}.csv").exists():
                counter += 1
            path = path.with_name(f"{path.stem}_{counter}.csv")
            logger.info("Template name taken, writing %s instead", path.name)
        else:
            logger.info("Overwriting existing template %s", path)
    write_template(path, template)
    return path


def frame_template(
    theme: str,
    signature: ConnectivitySignature,
    wall_tile: int = 1,
    ledge_tile: int = 2,
    identifier: str = "frame",
    opening: int = 4,
) -> RoomTemplate:
    """Solid border with centred openings on open sides and a mutable ledge.

    Every cell of the extent gets a record, empty cells included, matching
    what the room exporter writes.
    """
    if "_" in theme:
        raise ValueError(f"Theme names may not contain underscores: '{theme}'.")
    mid_x = TEMPLATE_WIDTH // 2
    mid_y = TEMPLATE_HEIGHT // 2
    half = opening // 2
    gap_x = range(mid_x - half, mid_x - half + opening)
    gap_y = range(mid_y - half, mid_y - half + opening)
    ledge_y = TEMPLATE_HEIGHT // 3
    records: List[TileRecord] = []
    for x in range(TEMPLATE_WIDTH):
        for y in range(TEMPLATE_HEIGHT):
            border = x in (0, TEMPLATE_WIDTH - 1) or y in (0, TEMPLATE_HEIGHT - 1)
            gap = (
                (y == TEMPLATE_HEIGHT - 1 and x in gap_x and signature.is_open(Direction.UP))
                or (y == 0 and x in gap_x and signature.is_open(Direction.DOWN))
                or (x == 0 and y in gap_y and signature.is_open(Direction.LEFT))
                or (x == TEMPLATE_WIDTH - 1 and y in gap_y and signature.is_open(Direction.RIGHT))
            )
            if border and not gap:
                records.append(TileRecord(tile_id=wall_tile, x=x, y=y))
            elif y == ledge_y and 4 <= x < TEMPLATE_WIDTH - 4 and x not in gap_x:
                records.append(TileRecord(tile_id=ledge_tile, x=x, y=y, mutable=True))
            elif (x, y) == (mid_x, mid_y):
                records.append(TileRecord(tile_id=EMPTY_TILE, x=x, y=y, is_chunk_template=True))
            else:
                records.append(TileRecord(tile_id=EMPTY_TILE, x=x, y=y))
    return RoomTemplate(theme=theme, signature=signature, records=tuple(records), identifier=identifier)
