"""
Tilenav - occupancy tracking and pathfinding for 2D tile-based games.

An EntityGrid binds to one map, records which actor or obstacle holds every
tile, and arbitrates movement through an all-or-nothing, two-phase
reservation protocol. Its Pathfinder answers static best-path queries from
precomputed all-pairs matrices and reroutes around live occupancy with A*.
"""

__version__ = "0.1.0"

from .actors import Actor, Direction, Mover
from .config import Config
from .errors import (
    GridNotInitializedError,
    MapLoadError,
    MovementProtocolError,
    TilenavError,
)
from .shapes import Point2D, Rectangle
from .grid import (
    FREE_TILE,
    EntityGrid,
    GridSnapshot,
    MapData,
    Obstacle,
    OccupancyView,
    OccupantKind,
    Pathfinder,
    PathResult,
    PathStatus,
    TileMap,
    TileSnapshot,
    TileState,
    render_occupancy,
)
from .walker import PathWalker, WalkStatus

__all__ = [
    # Grid
    "EntityGrid",
    "Pathfinder",
    "PathResult",
    "PathStatus",
    "OccupancyView",
    "TileState",
    "OccupantKind",
    "FREE_TILE",
    # Collaborator contracts
    "MapData",
    "TileMap",
    "Obstacle",
    "Mover",
    "Actor",
    "Direction",
    # Geometry
    "Point2D",
    "Rectangle",
    # Diagnostics
    "GridSnapshot",
    "TileSnapshot",
    "render_occupancy",
    # Movement
    "PathWalker",
    "WalkStatus",
    # Errors and config
    "TilenavError",
    "MapLoadError",
    "GridNotInitializedError",
    "MovementProtocolError",
    "Config",
]
