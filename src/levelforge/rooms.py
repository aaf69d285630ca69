from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

Vec2 = Tuple[int, int]


class Connection(str, Enum):
    OPEN = "O"
    CLOSED = "C"


class Direction(Enum):
    UP = (0, 1)
    RIGHT = (1, 0)
    DOWN = (0, -1)
    LEFT = (-1, 0)

    @property
    def delta(self) -> Vec2:
        return self.value


_SIGNATURE_PATTERN = re.compile(r"^U([OC])_R([OC])_D([OC])_L([OC])$")


@dataclass(frozen=True)
class ConnectivitySignature:
    up: Connection
    right: Connection
    down: Connection
    left: Connection

    @classmethod
    def parse(cls, text: str) -> "ConnectivitySignature":
        match = _SIGNATURE_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid connectivity signature: '{text}'.")
        up, right, down, left = (Connection(value) for value in match.groups())
        return cls(up=up, right=right, down=down, left=left)

    @classmethod
    def all(cls) -> List["ConnectivitySignature"]:
        states = (Connection.OPEN, Connection.CLOSED)
        return [cls(*combo) for combo in itertools.product(states, repeat=4)]

    def is_open(self, direction: Direction) -> bool:
        return self.edge(direction) is Connection.OPEN

    def edge(self, direction: Direction) -> Connection:
        return {
            Direction.UP: self.up,
            Direction.RIGHT: self.right,
            Direction.DOWN: self.down,
            Direction.LEFT: self.left,
        }[direction]

    def __str__(self) -> str:
        return f"U{self.up.value}_R{self.right.value}_D{self.down.value}_L{self.left.value}"


@dataclass
class RoomSlot:
    x: int
    y: int
    up: Connection = Connection.CLOSED
    right: Connection = Connection.CLOSED
    down: Connection = Connection.CLOSED
    left: Connection = Connection.CLOSED
    on_path: bool = False
    path_index: int = 0

    @property
    def position(self) -> Vec2:
        return (self.x, self.y)

    @property
    def signature(self) -> ConnectivitySignature:
        return ConnectivitySignature(up=self.up, right=self.right, down=self.down, left=self.left)

    def to_dict(self) -> Dict[str, object]:
        return {
            "position": [self.x, self.y],
            "signature": str(self.signature),
            "on_path": self.on_path,
            "path_index": self.path_index,
        }


class RoomGrid:
    """Room slots addressed by grid coordinate, iterated column by column."""

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Room grid must be at least 1x1, got {width}x{height}.")
        self.width = width
        self.height = height
        self._slots: Dict[Vec2, RoomSlot] = {}
        for x in range(width):
            for y in range(height):
                self._slots[(x, y)] = RoomSlot(x=x, y=y)

    def __iter__(self) -> Iterator[RoomSlot]:
        return iter(self._slots.values())

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, position: Vec2) -> RoomSlot:
        return self._slots[position]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[RoomSlot]:
        return self._slots.get((x, y))

    def neighbor(self, slot: RoomSlot, direction: Direction) -> Optional[RoomSlot]:
        dx, dy = direction.delta
        return self.get(slot.x + dx, slot.y + dy)

    def path(self) -> List[RoomSlot]:
        return sorted((slot for slot in self if slot.on_path), key=lambda slot: slot.path_index)

    def to_dict(self) -> Dict[str, object]:
        return {
            "width": self.width,
            "height": self.height,
            "slots": [slot.to_dict() for slot in self],
        }
