"""Collision grid, occupancy protocol and pathfinding."""

from .tile_state import FREE_TILE, OccupantKind, TileState
from .map_data import MapData, Obstacle, TileMap
from .occupancy import OccupancyView, footprint_edges
from .pathfinder import (
    Pathfinder,
    PathResult,
    PathStatus,
    SearchNode,
    compute_static_matrices,
)
from .entity_grid import EntityGrid
from .schemas import GridSnapshot, TileSnapshot
from .helpers import get_visible_tiles, render_occupancy

__all__ = [
    "FREE_TILE",
    "OccupantKind",
    "TileState",
    "MapData",
    "Obstacle",
    "TileMap",
    "OccupancyView",
    "footprint_edges",
    "Pathfinder",
    "PathResult",
    "PathStatus",
    "SearchNode",
    "compute_static_matrices",
    "EntityGrid",
    "GridSnapshot",
    "TileSnapshot",
    "get_visible_tiles",
    "render_occupancy",
]
