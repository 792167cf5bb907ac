"""Static and obstacle-aware path search over the collision grid.

Two kinds of query are answered here:

- ``find_best_path`` walks a successor matrix produced once per map by an
  all-pairs shortest-path precomputation (Roy-Floyd-Warshall) over the
  permanent obstacles. It ignores actors and obstacles added after load, so
  it describes the route an empty map would allow.
- ``find_rerouted_path`` runs A* against the live occupancy, using the
  precomputed static distance as the heuristic. Entities can only make
  routes longer, so the static distance never overestimates and the search
  stays optimal.

Both return a ``PathResult`` whose status separates "already there" from
"no route", which a bare empty waypoint list cannot.
"""

from __future__ import annotations

import heapq
import itertools
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from ..config import Config
from ..errors import GridNotInitializedError
from ..logging_utils import log_deterministic, log_search, log_success
from ..shapes import Point2D
from .occupancy import OccupancyView

ROOT_2 = math.sqrt(2.0)

# Successor sentinel for unreachable pairs; never a valid tile number.
UNREACHABLE = -1

# Orthogonal moves first, then diagonals. This order fixes A* tie-breaking.
ORTHOGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))
DIAGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((1, -1), (1, 1), (-1, 1), (-1, -1))
SEARCH_STEPS: Tuple[Tuple[Tuple[int, int], float], ...] = tuple(
    [(step, 1.0) for step in ORTHOGONAL_STEPS] + [(step, ROOT_2) for step in DIAGONAL_STEPS]
)


class PathStatus(str, Enum):
    FOUND = "found"
    AT_DESTINATION = "at_destination"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class PathResult:
    """Outcome of a path query.

    ``waypoints`` are pixel coordinates of tile corners, source first and
    destination last. They are empty unless a route was found.
    """

    status: PathStatus
    waypoints: Tuple[Point2D, ...] = ()
    cost: Optional[float] = None

    @classmethod
    def found(cls, waypoints: List[Point2D], cost: float) -> "PathResult":
        return cls(PathStatus.FOUND, tuple(waypoints), float(cost))

    @classmethod
    def at_destination(cls) -> "PathResult":
        return cls(PathStatus.AT_DESTINATION, (), 0.0)

    @classmethod
    def unreachable(cls) -> "PathResult":
        return cls(PathStatus.UNREACHABLE)

    @property
    def is_found(self) -> bool:
        return self.status is PathStatus.FOUND

    def __iter__(self) -> Iterator[Point2D]:
        return iter(self.waypoints)

    def __len__(self) -> int:
        return len(self.waypoints)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "waypoints": [point.to_dict() for point in self.waypoints],
            "cost": self.cost,
        }


@dataclass
class SearchNode:
    """A* working record for one tile during a single query."""

    tile: int
    cost: float
    heuristic: float
    parent: Optional["SearchNode"] = None

    @property
    def estimate(self) -> float:
        return self.cost + self.heuristic


def compute_static_matrices(blocked: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Run Roy-Floyd-Warshall over a (height, width) mask of blocked tiles.

    Adjacent open tiles are joined at cost 1 (orthogonal) or sqrt(2)
    (diagonal). A diagonal step between two blocked orthogonal tiles is not
    an edge. Returns ``(distance, successor)``, both (V, V) with V the tile
    count; unreachable pairs hold ``inf`` and ``UNREACHABLE``.
    """
    height, width = blocked.shape
    count = width * height
    distance = np.full((count, count), np.inf, dtype=np.float64)
    successor = np.full((count, count), UNREACHABLE, dtype=np.int64)

    for y in range(height):
        for x in range(width):
            if blocked[y, x]:
                continue
            i = y * width + x
            distance[i, i] = 0.0
            successor[i, i] = i
            for (dx, dy), step_cost in SEARCH_STEPS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height) or blocked[ny, nx]:
                    continue
                if dx and dy and blocked[y, nx] and blocked[ny, x]:
                    continue
                j = ny * width + nx
                distance[i, j] = step_cost
                successor[i, j] = j

    for k in range(count):
        via = distance[:, k, None] + distance[None, k, :]
        # Strict improvement keeps successors stable for equal-cost routes
        improved = via < distance
        if improved.any():
            distance = np.where(improved, via, distance)
            successor = np.where(improved, successor[:, k, None], successor)

    return distance, successor


class Pathfinder:
    """Path queries for one map, owned by an ``EntityGrid``."""

    def __init__(self) -> None:
        self._view: Optional[OccupancyView] = None
        self._distance: Optional[np.ndarray] = None
        self._successor: Optional[np.ndarray] = None

    @property
    def is_initialized(self) -> bool:
        return self._view is not None

    def initialize(self, view: OccupancyView) -> None:
        """Precompute static distances and successors for the map behind ``view``.

        Everything marked as an obstacle at this moment is treated as
        permanent. Replaces any matrices from a previous map.
        """
        started = time.perf_counter()
        log_deterministic(f"Precomputing static paths over {view.tile_count} tiles...")
        distance, successor = compute_static_matrices(view.obstacle_mask())
        distance.setflags(write=False)
        successor.setflags(write=False)
        self._view = view
        self._distance = distance
        self._successor = successor
        log_success(f"Static paths ready in {time.perf_counter() - started:.2f}s")

    def _require_initialized(self, operation: str) -> OccupancyView:
        if self._view is None:
            raise GridNotInitializedError(operation)
        return self._view

    def static_distance(self, src: Tuple[int, int], dst: Tuple[int, int]) -> Optional[float]:
        """Static cost between two tiles, or None when no route exists."""
        view = self._require_initialized("read static distances")
        value = self._distance[view.tile_number(*src), view.tile_number(*dst)]
        return float(value) if np.isfinite(value) else None

    def next_tile(self, src: Tuple[int, int], dst: Tuple[int, int]) -> Optional[Tuple[int, int]]:
        """Tile to step to from ``src`` on the static route to ``dst``, or None."""
        view = self._require_initialized("read static successors")
        tile = int(self._successor[view.tile_number(*src), view.tile_number(*dst)])
        return None if tile == UNREACHABLE else view.tile_coords(tile)

    def _walk_successors(self, src: int, dst: int) -> List[int]:
        tiles = [src]
        current = src
        while current != dst:
            current = int(self._successor[current, dst])
            tiles.append(current)
        return tiles

    def _endpoints(self, view: OccupancyView, src: Point2D, dst: Point2D) -> Optional[Tuple[int, int]]:
        src_tile = view.pixel_to_tile(src)
        dst_tile = view.pixel_to_tile(dst)
        if not (view.in_bounds(*src_tile) and view.in_bounds(*dst_tile)):
            return None
        return view.tile_number(*src_tile), view.tile_number(*dst_tile)

    def _to_waypoints(self, view: OccupancyView, tiles: List[int]) -> List[Point2D]:
        return [view.tile_to_pixel(*view.tile_coords(tile)) for tile in tiles]

    def find_best_path(self, src: Point2D, dst: Point2D) -> PathResult:
        """Follow the successor matrix from ``src`` to ``dst`` (pixel coordinates)."""
        view = self._require_initialized("find a best path")
        endpoints = self._endpoints(view, src, dst)
        if endpoints is None:
            return PathResult.unreachable()
        src_num, dst_num = endpoints
        if src_num == dst_num:
            return PathResult.at_destination()
        if self._successor[src_num, dst_num] == UNREACHABLE:
            return PathResult.unreachable()

        tiles = self._walk_successors(src_num, dst_num)
        return PathResult.found(self._to_waypoints(view, tiles), self._distance[src_num, dst_num])

    def find_rerouted_path(
        self,
        view: OccupancyView,
        src: Point2D,
        dst: Point2D,
        width: int,
        height: int,
        *,
        actor: Optional[Any] = None,
        max_cost: Optional[float] = None,
    ) -> PathResult:
        """Find the cheapest route for a ``width`` x ``height`` footprint around live occupancy.

        Args:
            view: Live occupancy of the grid.
            src: Source in pixels; its tile is the anchor of the moving footprint.
            dst: Destination in pixels.
            width: Footprint width in pixels.
            height: Footprint height in pixels.
            actor: The moving actor, whose own tiles never block it. Defaults
                to whichever actor holds the source tile.
            max_cost: Optional cap on route cost; routes above it count as
                unreachable. Use it to bound search time on large maps.
        """
        self._require_initialized("find a rerouted path")
        endpoints = self._endpoints(view, src, dst)
        if endpoints is None:
            return PathResult.unreachable()
        src_num, dst_num = endpoints
        if src_num == dst_num:
            return PathResult.at_destination()
        if self._successor[src_num, dst_num] == UNREACHABLE:
            return PathResult.unreachable()
        static_cost = float(self._distance[src_num, dst_num])
        if max_cost is not None and static_cost > max_cost:
            return PathResult.unreachable()

        mover = actor if actor is not None else view.state_at(*view.tile_coords(src_num)).actor
        admissible = _AdmissionCache(view, width, height, mover)
        if not admissible(*view.tile_coords(dst_num)):
            return PathResult.unreachable()

        # Straight shortcut: the static route is a lower bound, so if nothing
        # sits on it, it is also the best live route.
        static_tiles = self._walk_successors(src_num, dst_num)
        if _route_is_clear(view, static_tiles, admissible):
            return PathResult.found(self._to_waypoints(view, static_tiles), static_cost)

        result, expanded = self._a_star(view, src_num, dst_num, admissible, max_cost)
        if Config.DEBUG_GRID:
            log_search(
                f"Rerouted {src.as_tuple()} -> {dst.as_tuple()}: {result.status.value}, "
                f"{len(result)} waypoints, {expanded} tiles expanded"
            )
        return result

    def _a_star(
        self,
        view: OccupancyView,
        src: int,
        dst: int,
        admissible: Callable[[int, int], bool],
        max_cost: Optional[float],
    ) -> Tuple[PathResult, int]:
        discovery = itertools.count()
        start = SearchNode(src, 0.0, float(self._distance[src, dst]))
        discovered: Dict[int, int] = {src: next(discovery)}
        best_cost: Dict[int, float] = {src: 0.0}
        open_set: List[Tuple[float, int, SearchNode]] = [(start.estimate, discovered[src], start)]
        closed: Set[int] = set()

        while open_set:
            _, _, node = heapq.heappop(open_set)
            if node.tile in closed:
                continue  # stale entry superseded by a cheaper one
            if node.tile == dst:
                tiles = []
                current: Optional[SearchNode] = node
                while current is not None:
                    tiles.append(current.tile)
                    current = current.parent
                tiles.reverse()
                return PathResult.found(self._to_waypoints(view, tiles), node.cost), len(closed)
            closed.add(node.tile)

            x, y = view.tile_coords(node.tile)
            for (dx, dy), step_cost in SEARCH_STEPS:
                nx, ny = x + dx, y + dy
                if not view.in_bounds(nx, ny):
                    continue
                neighbour = view.tile_number(nx, ny)
                if neighbour in closed:
                    continue
                heuristic = float(self._distance[neighbour, dst])
                if not math.isfinite(heuristic):
                    continue
                if not _step_allowed(x, y, dx, dy, admissible):
                    continue
                cost = node.cost + step_cost
                if cost >= best_cost.get(neighbour, math.inf):
                    continue
                if max_cost is not None and cost + heuristic > max_cost:
                    continue
                best_cost[neighbour] = cost
                # Re-discovered tiles keep their first discovery index
                order = discovered.setdefault(neighbour, next(discovery))
                child = SearchNode(neighbour, cost, heuristic, node)
                heapq.heappush(open_set, (child.estimate, order, child))

        return PathResult.unreachable(), len(closed)


class _AdmissionCache:
    """Memoised "can the footprint be anchored on this tile" test for one query."""

    def __init__(self, view: OccupancyView, width: int, height: int, mover: Optional[Any]):
        self._view = view
        self._width = width
        self._height = height
        self._mover = mover
        self._seen: Dict[Tuple[int, int], bool] = {}

    def __call__(self, x: int, y: int) -> bool:
        key = (x, y)
        if key not in self._seen:
            area = self._view.anchored_footprint(x, y, self._width, self._height)
            self._seen[key] = self._view.can_occupy(area, self._mover)
        return self._seen[key]


def _step_allowed(x: int, y: int, dx: int, dy: int, admissible: Callable[[int, int], bool]) -> bool:
    """Check the target anchor, and forbid squeezing diagonally between two blocked anchors."""
    if not admissible(x + dx, y + dy):
        return False
    if dx and dy:
        return admissible(x + dx, y) or admissible(x, y + dy)
    return True


def _route_is_clear(view: OccupancyView, tiles: List[int], admissible: Callable[[int, int], bool]) -> bool:
    for current, following in zip(tiles, tiles[1:]):
        x, y = view.tile_coords(current)
        nx, ny = view.tile_coords(following)
        if not _step_allowed(x, y, nx - x, ny - y, admissible):
            return False
    return True
