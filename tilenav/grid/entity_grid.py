"""Occupancy tracking and the two-phase movement protocol for one map.

``EntityGrid`` is the single source of truth for what stands on each tile.
Every change goes through its occupancy API, and every reservation is
all-or-nothing: if any covered tile is taken, nothing changes. Public methods
take pixel coordinates; storage is one ``TileState`` per tile in a flat,
row-major list.

Multi-frame moves use two phases:

1. ``begin_movement`` reserves the destination footprint (the actor now
   holds both source and destination tiles, so no other actor can be granted
   the same tiles during the same tick).
2. ``end_movement`` releases the source once the actor arrives, or
   ``abort_movement`` settles the actor on the tiles under wherever it
   actually stopped.

Path queries are forwarded to the owned ``Pathfinder``, which sees live
occupancy only through a read-only ``OccupancyView``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from ..actors import Mover
from ..config import Config
from ..errors import GridNotInitializedError, MapLoadError, MovementProtocolError
from ..logging_utils import log_deterministic, log_error, log_info
from ..shapes import Point2D, Rectangle
from .helpers import render_occupancy
from .map_data import MapData, Obstacle
from .occupancy import OccupancyView, footprint_edges
from .pathfinder import Pathfinder, PathResult
from .schemas import GridSnapshot, TileSnapshot
from .tile_state import FREE_TILE, OccupantKind, TileState

Tile = Tuple[int, int]


@dataclass
class _Placement:
    """Tiles attributed to one actor, plus its in-flight destination."""

    actor: Any
    tiles: Set[Tile] = field(default_factory=set)
    pending_dst: Optional[Point2D] = None


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _obstacle_problems(obstacle: Obstacle, width: int, height: int, tile_size: int) -> List[str]:
    where = f"obstacle at ({obstacle.tile_x!r}, {obstacle.tile_y!r})"
    if not (isinstance(obstacle.tile_x, int) and isinstance(obstacle.tile_y, int)):
        return [f"{where} must be anchored on integer tile coordinates"]
    if not (_is_positive_int(obstacle.width) and _is_positive_int(obstacle.height)):
        return [f"{where} has no area"]
    edges = footprint_edges(obstacle.origin(tile_size), obstacle.width, obstacle.height, tile_size)
    if edges.left < 0 or edges.top < 0 or edges.right >= width or edges.bottom >= height:
        return [f"{where} extends outside the map"]
    return []


def _read_map_geometry(map_data: MapData) -> Tuple[List[Tile], List[Obstacle]]:
    """Collect blocked tiles and obstacles, raising ``MapLoadError`` on bad geometry."""
    name = str(getattr(map_data, "name", "untitled"))
    problems: List[str] = []

    for attr in ("width", "height", "tile_size"):
        value = getattr(map_data, attr, None)
        if not _is_positive_int(value):
            problems.append(f"{attr} must be a positive integer, got {value!r}")
    if problems:
        raise MapLoadError(map_name=name, problems=problems)

    width, height, tile_size = map_data.width, map_data.height, map_data.tile_size
    if width * height > Config.MAX_PRECOMPUTE_TILES:
        raise MapLoadError(
            map_name=name,
            problems=[
                f"{width}x{height} = {width * height} tiles exceeds the precompute limit "
                f"of {Config.MAX_PRECOMPUTE_TILES}"
            ],
        )

    try:
        blocked = [(int(x), int(y)) for x, y in map_data.blocked_tiles()]
        obstacles = list(map_data.obstacles())
        for x, y in blocked:
            if not (0 <= x < width and 0 <= y < height):
                problems.append(f"blocked tile ({x}, {y}) is outside the {width}x{height} map")
        for obstacle in obstacles:
            problems.extend(_obstacle_problems(obstacle, width, height, tile_size))
    except (AttributeError, TypeError, ValueError) as exc:
        raise MapLoadError(map_name=name, problems=[f"unreadable static geometry: {exc}"]) from exc
    if problems:
        raise MapLoadError(map_name=name, problems=problems)

    return blocked, obstacles


class EntityGrid:
    """Binds to a map and tracks which actor or obstacle holds each tile."""

    def __init__(self, map_data: Optional[MapData] = None):
        self._map: Optional[MapData] = None
        self._width = 0
        self._height = 0
        self._tile_size = 0
        self._tiles: List[TileState] = []
        self._view: Optional[OccupancyView] = None
        self._pathfinder = Pathfinder()
        # Keyed by id() so actors need not be hashable
        self._placements: Dict[int, _Placement] = {}
        if map_data is not None:
            self.set_map(map_data)

    # -- map binding ---------------------------------------------------------

    def set_map(self, map_data: MapData) -> None:
        """Rebuild the collision grid for ``map_data`` and precompute static paths.

        Raises:
            MapLoadError: If the map geometry is malformed. The grid keeps its
                previous map in that case.
        """
        try:
            blocked, obstacles = _read_map_geometry(map_data)
        except MapLoadError as exc:
            log_error(f"Map '{exc.map_name}' rejected: {'; '.join(exc.problems)}")
            raise

        width, height, tile_size = map_data.width, map_data.height, map_data.tile_size
        tiles = [FREE_TILE] * (width * height)
        for x, y in blocked:
            tiles[y * width + x] = TileState.for_obstacle()
        for obstacle in obstacles:
            edges = footprint_edges(obstacle.origin(tile_size), obstacle.width, obstacle.height, tile_size)
            for x, y in edges.tiles():
                tiles[y * width + x] = TileState.for_obstacle(obstacle)

        view = OccupancyView(tiles, width, height, tile_size)
        log_deterministic(f"Loading map '{map_data.name}' ({width}x{height} tiles, {tile_size}px)")
        self._pathfinder.initialize(view)

        self._map = map_data
        self._width = width
        self._height = height
        self._tile_size = tile_size
        self._tiles = tiles
        self._view = view
        self._placements.clear()

    def _require_map(self, operation: str) -> OccupancyView:
        if self._view is None:
            raise GridNotInitializedError(operation)
        return self._view

    @property
    def is_initialized(self) -> bool:
        return self._view is not None

    @property
    def map_data(self) -> Optional[MapData]:
        return self._map

    @property
    def name(self) -> str:
        self._require_map("read the map name")
        return self._map.name

    @property
    def width(self) -> int:
        """Map width in tiles."""
        self._require_map("read the map width")
        return self._width

    @property
    def height(self) -> int:
        """Map height in tiles."""
        self._require_map("read the map height")
        return self._height

    @property
    def tile_size(self) -> int:
        self._require_map("read the tile size")
        return self._tile_size

    @property
    def pixel_width(self) -> int:
        return self.width * self._tile_size

    @property
    def pixel_height(self) -> int:
        return self.height * self._tile_size

    def within_map(self, x: Union[int, Point2D], y: Optional[int] = None) -> bool:
        """True iff the pixel point lies on the map. Accepts a ``Point2D`` or x, y."""
        self._require_map("check map bounds")
        if isinstance(x, Point2D):
            x, y = x.x, x.y
        return 0 <= x < self.pixel_width and 0 <= y < self.pixel_height

    def state_at(self, x: int, y: int) -> TileState:
        """Occupancy of tile (x, y), in tile coordinates."""
        return self._require_map("read tile state").state_at(x, y)

    # -- internal area helpers -----------------------------------------------

    def _edges(self, origin: Point2D, width: int, height: int) -> Rectangle:
        return footprint_edges(origin, width, height, self._tile_size)

    def _set_area(self, tiles: Iterable[Tile], state: TileState) -> None:
        for x, y in tiles:
            self._tiles[y * self._width + x] = state

    def _claim(self, placement: _Placement, tiles: Iterable[Tile]) -> None:
        tiles = set(tiles)
        self._set_area(tiles, TileState.for_actor(placement.actor))
        placement.tiles |= tiles

    def _release(self, placement: _Placement, tiles: Iterable[Tile]) -> None:
        for x, y in set(tiles) & placement.tiles:
            index = y * self._width + x
            if self._tiles[index].actor is placement.actor:
                self._tiles[index] = FREE_TILE
            placement.tiles.discard((x, y))

    def _placement_for(self, actor: Mover, operation: str) -> _Placement:
        self._require_map(operation)
        placement = self._placements.get(id(actor))
        if placement is None:
            raise MovementProtocolError(
                actor_id=actor.actor_id, reason=f"cannot {operation}: actor is not on the grid"
            )
        return placement

    # -- occupancy API -------------------------------------------------------

    def is_area_free(self, origin: Point2D, width: int, height: int) -> bool:
        """True iff every tile under the pixel rectangle is on the map and unoccupied."""
        view = self._require_map("check an area")
        return view.can_occupy(self._edges(origin, width, height))

    def add_obstacle(
        self,
        origin: Point2D,
        width: int,
        height: int,
        obstacle: Optional[Any] = None,
    ) -> bool:
        """Occupy the area with an obstacle, or change nothing if any tile is taken."""
        view = self._require_map("add an obstacle")
        area = self._edges(origin, width, height)
        if not view.can_occupy(area):
            return False
        self._set_area(area.tiles(), TileState.for_obstacle(obstacle))
        return True

    def add_actor(self, actor: Mover, origin: Optional[Point2D] = None) -> bool:
        """Place ``actor`` at ``origin`` (default: its current position), all-or-nothing.

        Raises:
            MovementProtocolError: If the actor is already on the grid.
        """
        view = self._require_map("add an actor")
        if id(actor) in self._placements:
            raise MovementProtocolError(actor_id=actor.actor_id, reason="actor is already on the grid")
        origin = origin if origin is not None else actor.position
        area = self._edges(origin, actor.width, actor.height)
        if not view.can_occupy(area):
            return False
        placement = _Placement(actor)
        self._claim(placement, area.tiles())
        self._placements[id(actor)] = placement
        actor.position = origin
        return True

    def remove_actor(self, actor: Mover) -> None:
        """Free every tile held by ``actor``. Does nothing if it holds none."""
        self._require_map("remove an actor")
        placement = self._placements.pop(id(actor), None)
        if placement is not None:
            self._release(placement, set(placement.tiles))

    def actor_tiles(self, actor: Mover) -> Set[Tile]:
        """Tiles currently attributed to ``actor`` (empty if it is not on the grid)."""
        self._require_map("read actor tiles")
        placement = self._placements.get(id(actor))
        return set(placement.tiles) if placement else set()

    def change_actor_location(self, actor: Mover, dst: Point2D) -> bool:
        """Relocate ``actor`` to ``dst`` in one step if the destination is free."""
        placement = self._placement_for(actor, "relocate an actor")
        if placement.pending_dst is not None:
            raise MovementProtocolError(
                actor_id=actor.actor_id, reason="cannot relocate while a movement is pending"
            )
        area = self._edges(dst, actor.width, actor.height)
        if not self._view.can_occupy(area, actor):
            return False
        new_tiles = set(area.tiles())
        self._release(placement, placement.tiles - new_tiles)
        self._claim(placement, new_tiles)
        actor.position = dst
        return True

    # -- two-phase movement --------------------------------------------------

    def begin_movement(self, actor: Mover, dst: Point2D) -> bool:
        """Ask to move ``actor`` to ``dst``; on success the destination is reserved.

        Returns False, changing nothing, if anything other than the actor
        itself occupies the destination. A successful call must be resolved
        with ``end_movement`` or ``abort_movement``.
        """
        placement = self._placement_for(actor, "begin movement")
        if placement.pending_dst is not None:
            raise MovementProtocolError(
                actor_id=actor.actor_id,
                reason=f"movement to {placement.pending_dst.as_tuple()} is still pending",
            )
        area = self._edges(dst, actor.width, actor.height)
        if not self._view.can_occupy(area, actor):
            if Config.DEBUG_GRID:
                log_error(f"Movement denied: {actor.actor_id} -> {dst.as_tuple()}")
            return False
        self._claim(placement, area.tiles())
        placement.pending_dst = dst
        return True

    def _resolve_pending(self, placement: _Placement, dst: Point2D, operation: str) -> None:
        if placement.pending_dst is None:
            raise MovementProtocolError(
                actor_id=placement.actor.actor_id, reason=f"{operation} without begin_movement"
            )
        if placement.pending_dst != dst:
            raise MovementProtocolError(
                actor_id=placement.actor.actor_id,
                reason=(
                    f"{operation} for {dst.as_tuple()} but the pending movement is to "
                    f"{placement.pending_dst.as_tuple()}"
                ),
            )
        placement.pending_dst = None

    def end_movement(self, actor: Mover, src: Point2D, dst: Point2D) -> None:
        """Commit a movement: the actor now holds exactly its destination footprint."""
        placement = self._placement_for(actor, "end movement")
        self._resolve_pending(placement, dst, "end_movement")
        dst_tiles = set(self._edges(dst, actor.width, actor.height).tiles())
        src_tiles = set(self._edges(src, actor.width, actor.height).tiles())
        self._release(placement, (placement.tiles | src_tiles) - dst_tiles)

    def abort_movement(self, actor: Mover, src: Point2D, dst: Point2D) -> None:
        """Cancel a movement; the actor ends up holding exactly the tiles under it.

        Stopping partway through a diagonal step covers corner tiles that were
        never reserved. They are claimed if free; if any is taken, the actor
        is put back at ``src``.

        Raises:
            MovementProtocolError: If no matching movement is pending, or if the
                actor stopped somewhere outside its source and destination.
        """
        placement = self._placement_for(actor, "abort movement")
        src_tiles = set(self._edges(src, actor.width, actor.height).tiles())
        dst_tiles = set(self._edges(dst, actor.width, actor.height).tiles())
        area = self._edges(actor.position, actor.width, actor.height)
        if not set(area.tiles()) & (src_tiles | dst_tiles) & placement.tiles:
            raise MovementProtocolError(
                actor_id=actor.actor_id,
                reason=f"actor stopped at {actor.position.as_tuple()}, outside its source and destination",
            )
        self._resolve_pending(placement, dst, "abort_movement")
        if self._view.can_occupy(area, actor):
            current = set(area.tiles())
        else:
            actor.position = src
            current = src_tiles
        self._release(placement, placement.tiles - current)
        self._claim(placement, current - placement.tiles)

    # -- queries built on occupancy ------------------------------------------

    def get_adjacent_actor(self, actor: Mover) -> Optional[Any]:
        """Return the actor on the tile just beyond ``actor``'s footprint in its facing direction."""
        self._require_map("look for an adjacent actor")
        dx, dy = actor.facing.delta
        origin = actor.position
        probe_x = origin.x - 1 if dx < 0 else origin.x + actor.width if dx > 0 else origin.x + actor.width // 2
        probe_y = origin.y - 1 if dy < 0 else origin.y + actor.height if dy > 0 else origin.y + actor.height // 2
        if not self.within_map(probe_x, probe_y):
            return None
        neighbour = self.state_at(probe_x // self._tile_size, probe_y // self._tile_size).actor
        if neighbour is None or neighbour is actor:
            return None
        return neighbour

    def _distance_to_tile_edge(self, actor: Mover, sx: int, sy: int) -> int:
        """Pixels ``actor`` can travel before its footprint enters another tile."""
        gaps = []
        for step, start, size in ((sx, actor.position.x, actor.width), (sy, actor.position.y, actor.height)):
            if step > 0:
                gaps.append(self._tile_size - 1 - (start + size - 1) % self._tile_size)
            elif step < 0:
                gaps.append(start % self._tile_size)
        return min(gaps)

    def move_to_closest_point(self, actor: Mover, x_dir: int, y_dir: int, max_distance: int) -> int:
        """Push ``actor`` in a straight line for up to ``max_distance`` pixels.

        Moves one tile at a time and stops at the first blocked step, after
        sliding up to the edge of the tile it is in. Returns the pixels moved
        along each axis.
        """
        placement = self._placement_for(actor, "move an actor")
        if placement.pending_dst is not None:
            raise MovementProtocolError(
                actor_id=actor.actor_id, reason="cannot push an actor while a movement is pending"
            )
        sx = (x_dir > 0) - (x_dir < 0)
        sy = (y_dir > 0) - (y_dir < 0)
        if (sx, sy) == (0, 0) or max_distance <= 0:
            return 0

        moved = 0
        while moved < max_distance:
            step = min(self._tile_size, max_distance - moved)
            if self.change_actor_location(actor, actor.position.offset(sx * step, sy * step)):
                moved += step
                continue
            gap = min(self._distance_to_tile_edge(actor, sx, sy), max_distance - moved)
            if 0 < gap < step and self.change_actor_location(actor, actor.position.offset(sx * gap, sy * gap)):
                moved += gap
            break
        return moved

    # -- pathfinding ---------------------------------------------------------

    def find_best_path(self, src: Point2D, dst: Point2D) -> PathResult:
        """Best route on the empty map (static obstacles only)."""
        self._require_map("find a best path")
        return self._pathfinder.find_best_path(src, dst)

    def find_rerouted_path(
        self,
        src: Point2D,
        dst: Point2D,
        width: int,
        height: int,
        *,
        actor: Optional[Mover] = None,
        max_cost: Optional[float] = None,
    ) -> PathResult:
        """Best route for a ``width`` x ``height`` footprint around everything currently on the map."""
        view = self._require_map("find a rerouted path")
        return self._pathfinder.find_rerouted_path(
            view, src, dst, width, height, actor=actor, max_cost=max_cost
        )

    @property
    def pathfinder(self) -> Pathfinder:
        return self._pathfinder

    # -- diagnostics ---------------------------------------------------------

    def snapshot(self) -> GridSnapshot:
        """Serializable copy of current occupancy (free tiles omitted)."""
        self._require_map("snapshot the grid")
        tiles: Dict[Tile, TileSnapshot] = {}
        for index, state in enumerate(self._tiles):
            if state.is_free:
                continue
            if state.kind is OccupantKind.ACTOR:
                occupant_id = state.occupant.actor_id
            else:
                occupant_id = getattr(state.occupant, "name", None)
            tiles[(index % self._width, index // self._width)] = TileSnapshot(
                kind=state.kind, occupant_id=occupant_id
            )
        return GridSnapshot(
            name=self._map.name,
            width=self._width,
            height=self._height,
            tile_size=self._tile_size,
            tiles=tiles,
        )

    def draw(self, path: Optional[PathResult] = None) -> str:
        """Print and return an ASCII view of occupancy, optionally with a path overlaid."""
        rendered = render_occupancy(self.snapshot(), path=path)
        log_info(f"Collision map '{self._map.name}':\n{rendered}")
        return rendered
