"""Pydantic schemas for grid diagnostics.

These models mirror the live ``TileState`` records in ``entity_grid.py`` but
hold identifiers instead of object references, so occupancy snapshots can be
compared, logged and serialized.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from .tile_state import OccupantKind


class TileSnapshot(BaseModel):
    """Occupancy of one tile at snapshot time."""

    kind: OccupantKind = OccupantKind.FREE
    occupant_id: Optional[str] = Field(
        None, description="actor_id of the occupying actor, or the obstacle's name",
    )


class GridSnapshot(BaseModel):
    """Sparse representation of the collision grid; free tiles are omitted."""

    name: str
    width: int
    height: int
    tile_size: int
    tiles: Dict[Tuple[int, int], TileSnapshot] = Field(
        default_factory=dict,
        description="Sparse map: (x, y) tile → occupancy",
    )

    def tile(self, x: int, y: int) -> TileSnapshot:
        return self.tiles.get((x, y)) or TileSnapshot()
