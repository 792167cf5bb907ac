"""Per-tile occupancy record stored in the collision grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OccupantKind(str, Enum):
    """What governs a tile. Actor and obstacle occupancy never share a tile."""

    FREE = "free"
    OBSTACLE = "obstacle"
    ACTOR = "actor"


@dataclass(frozen=True)
class TileState:
    """Occupancy of a single tile.

    ``occupant`` is None for free tiles and terrain, the obstacle object for
    placed obstacles (when one was supplied) and the actor for actor tiles.
    Occupants compare by identity, so two tiles held by the same actor are
    equal states.
    """

    kind: OccupantKind = OccupantKind.FREE
    occupant: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.kind is OccupantKind.FREE and self.occupant is not None:
            raise ValueError("A free tile cannot have an occupant")
        if self.kind is OccupantKind.ACTOR and self.occupant is None:
            raise ValueError("An actor tile must reference its actor")

    @property
    def is_free(self) -> bool:
        return self.kind is OccupantKind.FREE

    @property
    def actor(self) -> Optional[Any]:
        """The actor holding this tile, if any."""
        return self.occupant if self.kind is OccupantKind.ACTOR else None

    @classmethod
    def for_actor(cls, actor: Any) -> "TileState":
        return cls(OccupantKind.ACTOR, actor)

    @classmethod
    def for_obstacle(cls, obstacle: Optional[Any] = None) -> "TileState":
        return cls(OccupantKind.OBSTACLE, obstacle)


FREE_TILE = TileState()
