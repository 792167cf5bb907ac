"""Read-only occupancy capability handed from the entity grid to the pathfinder.

The pathfinder needs live occupancy to route around entities, but it must
never mutate the collision grid. ``OccupancyView`` exposes exactly the
queries the searches use and nothing else.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..shapes import Point2D, Rectangle
from .tile_state import OccupantKind, TileState


def footprint_edges(origin: Point2D, width: int, height: int, tile_size: int) -> Rectangle:
    """Return the inclusive tile edges covered by a pixel rectangle.

    Raises:
        ValueError: If the footprint has no area.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Footprint must have positive size, got {width}x{height}")
    return Rectangle(
        left=origin.x // tile_size,
        top=origin.y // tile_size,
        right=(origin.x + width - 1) // tile_size,
        bottom=(origin.y + height - 1) // tile_size,
    )


class OccupancyView:
    """Read-only view of a collision grid stored row-major in a flat list."""

    def __init__(self, tiles: Sequence[TileState], width: int, height: int, tile_size: int):
        self._tiles = tiles
        self.width = width
        self.height = height
        self.tile_size = tile_size

    @property
    def tile_count(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_number(self, x: int, y: int) -> int:
        return y * self.width + x

    def tile_coords(self, tile_num: int) -> Tuple[int, int]:
        return tile_num % self.width, tile_num // self.width

    def state_at(self, x: int, y: int) -> TileState:
        if not self.in_bounds(x, y):
            raise IndexError(f"Tile ({x}, {y}) is outside the {self.width}x{self.height} grid")
        return self._tiles[self.tile_number(x, y)]

    def pixel_to_tile(self, point: Point2D) -> Tuple[int, int]:
        return point.x // self.tile_size, point.y // self.tile_size

    def tile_to_pixel(self, x: int, y: int) -> Point2D:
        return Point2D(x * self.tile_size, y * self.tile_size)

    def anchored_footprint(self, x: int, y: int, width: int, height: int) -> Rectangle:
        """Tile edges of a ``width`` x ``height`` pixel footprint anchored on tile (x, y)."""
        return footprint_edges(self.tile_to_pixel(x, y), width, height, self.tile_size)

    def can_occupy(self, area: Rectangle, mover: Optional[Any] = None) -> bool:
        """True iff every tile of ``area`` is inside the map and free or held by ``mover``."""
        if not (self.in_bounds(area.left, area.top) and self.in_bounds(area.right, area.bottom)):
            return False
        for x, y in area.tiles():
            state = self._tiles[self.tile_number(x, y)]
            if state.is_free:
                continue
            if mover is not None and state.kind is OccupantKind.ACTOR and state.occupant is mover:
                continue
            return False
        return True

    def obstacle_mask(self) -> np.ndarray:
        """Boolean (height, width) array marking tiles held by obstacles."""
        mask = np.zeros((self.height, self.width), dtype=np.bool_)
        for tile_num, state in enumerate(self._tiles):
            if state.kind is OccupantKind.OBSTACLE:
                x, y = self.tile_coords(tile_num)
                mask[y, x] = True
        return mask
