"""Tick-driven path following on top of the two-phase movement protocol.

``PathWalker`` is what an NPC controller does with the grid each frame:
plan a route around whatever is in the way, reserve the next tile, slide
towards it a few pixels per tick, and commit the move on arrival. A denied
reservation means someone got there first this tick, so the route is
replanned on the next one.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from .actors import Mover
from .config import Config
from .grid.entity_grid import EntityGrid
from .grid.pathfinder import PathStatus
from .logging_utils import log_deterministic
from .shapes import Point2D


class WalkStatus(str, Enum):
    MOVING = "moving"
    WAITING = "waiting"
    ARRIVED = "arrived"
    BLOCKED = "blocked"


def _approach(current: int, target: int, speed: int) -> int:
    return current + max(-speed, min(speed, target - current))


class PathWalker:
    """Walks one actor to a destination, one reserved tile at a time."""

    def __init__(
        self,
        grid: EntityGrid,
        actor: Mover,
        destination: Point2D,
        *,
        speed: int = 4,
        max_cost: Optional[float] = None,
    ):
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.grid = grid
        self.actor = actor
        size = grid.tile_size
        # Routes end on tile corners, so snap the goal to its tile
        self.goal = Point2D(destination.x // size * size, destination.y // size * size)
        self.speed = speed
        self.max_cost = max_cost
        self._route: List[Point2D] = []
        self._src: Optional[Point2D] = None
        self._dst: Optional[Point2D] = None

    @property
    def in_transit(self) -> bool:
        return self._dst is not None

    @property
    def remaining_route(self) -> List[Point2D]:
        return list(self._route)

    def _plan(self) -> bool:
        result = self.grid.find_rerouted_path(
            self.actor.position,
            self.goal,
            self.actor.width,
            self.actor.height,
            actor=self.actor,
            max_cost=self.max_cost,
        )
        if result.status is PathStatus.AT_DESTINATION:
            self._route = [self.goal]
        elif result.is_found:
            self._route = list(result.waypoints[1:])
        else:
            return False
        return True

    def _start_next_move(self) -> WalkStatus:
        if self.actor.position == self.goal:
            return WalkStatus.ARRIVED
        if not self._route and not self._plan():
            return WalkStatus.BLOCKED

        target = self._route[0]
        if not self.grid.begin_movement(self.actor, target):
            # Someone took the tile; plan around them next tick
            self._route = []
            return WalkStatus.WAITING

        self._route.pop(0)
        self._src = self.actor.position
        self._dst = target
        return WalkStatus.MOVING

    def step(self) -> WalkStatus:
        """Advance one tick."""
        if self._dst is None:
            status = self._start_next_move()
            if status is not WalkStatus.MOVING:
                return status

        position = self.actor.position
        self.actor.position = Point2D(
            _approach(position.x, self._dst.x, self.speed),
            _approach(position.y, self._dst.y, self.speed),
        )
        if self.actor.position != self._dst:
            return WalkStatus.MOVING

        self.grid.end_movement(self.actor, self._src, self._dst)
        self._src = self._dst = None
        if self.actor.position == self.goal:
            if Config.DEBUG_GRID:
                log_deterministic(f"{self.actor.actor_id} arrived at {self.goal.as_tuple()}")
            return WalkStatus.ARRIVED
        return WalkStatus.MOVING

    def interrupt(self) -> None:
        """Stop where the actor stands, giving back the unused part of its reservation."""
        if self._dst is not None:
            self.grid.abort_movement(self.actor, self._src, self._dst)
        self._src = self._dst = None
        self._route = []
