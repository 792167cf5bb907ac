"""Actor contract consumed by the grid, plus a plain implementation.

The grid only holds references to actors; it reads their footprint and
facing when it needs them and writes ``position`` when it relocates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Tuple, runtime_checkable

from .shapes import Point2D


class Direction(Enum):
    """Facing/movement directions as (dx, dy) unit steps; y grows downward."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)
    UP_LEFT = (-1, -1)
    UP_RIGHT = (1, -1)
    DOWN_LEFT = (-1, 1)
    DOWN_RIGHT = (1, 1)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value


@runtime_checkable
class Mover(Protocol):
    """Anything the grid can place and move: an NPC, the player, a pushable."""

    actor_id: str
    position: Point2D
    width: int
    height: int
    facing: Direction


@dataclass(eq=False)
class Actor:
    """Minimal actor with a pixel footprint.

    Equality is identity: two actors standing on the same tiles are still
    different occupants.
    """

    actor_id: str
    position: Point2D = field(default_factory=lambda: Point2D(0, 0))
    width: int = 32
    height: int = 32
    facing: Direction = Direction.DOWN

    def __repr__(self) -> str:
        return f"Actor({self.actor_id!r} at {self.position.x},{self.position.y})"
