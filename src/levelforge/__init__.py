"""Procedural 2D level generator composing room templates along a random walk."""

from .clutter import ClutterPlacer, ClutterRegistry, RecordingSpawner, weighted_random_index
from .compositor import CompositeGrid, LevelCompositor
from .config import load_config
from .connections import ConnectionResolver
from .errors import LevelGenerationError, NoMatchingTemplate, PathGenerationStalled
from .generator import Level, LevelGenerator
from .rooms import Connection, ConnectivitySignature, RoomGrid, RoomSlot
from .templates import EMPTY_TILE, RoomTemplate, TemplateStore, TileRecord
from .walk import PathGraphGenerator

__all__ = [
    "ClutterPlacer",
    "ClutterRegistry",
    "CompositeGrid",
    "Connection",
    "ConnectionResolver",
    "ConnectivitySignature",
    "EMPTY_TILE",
    "Level",
    "LevelCompositor",
    "LevelGenerationError",
    "LevelGenerator",
    "NoMatchingTemplate",
    "PathGenerationStalled",
    "PathGraphGenerator",
    "RecordingSpawner",
    "RoomGrid",
    "RoomSlot",
    "RoomTemplate",
    "TemplateStore",
    "TileRecord",
    "load_config",
    "weighted_random_index",
]
