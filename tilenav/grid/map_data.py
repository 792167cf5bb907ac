"""Map and obstacle contracts consumed by the entity grid.

Loading maps from disk is someone else's job; the grid only needs the
dimensions and the statically blocked geometry. ``TileMap`` is a small
in-memory implementation for tests, tools and examples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, Sequence, Set, Tuple, runtime_checkable

from ..config import Config
from ..shapes import Point2D


@dataclass(frozen=True)
class Obstacle:
    """An obstacle anchored on a tile, with a pixel footprint."""

    tile_x: int
    tile_y: int
    width: int
    height: int
    name: str | None = None

    def origin(self, tile_size: int) -> Point2D:
        """Top-left corner of the obstacle in pixels."""
        return Point2D(self.tile_x * tile_size, self.tile_y * tile_size)


@runtime_checkable
class MapData(Protocol):
    """What a map must provide to be set on an ``EntityGrid``."""

    name: str
    width: int
    height: int
    tile_size: int

    def blocked_tiles(self) -> Iterable[Tuple[int, int]]:
        ...

    def obstacles(self) -> Iterable[Obstacle]:
        ...


@dataclass
class TileMap:
    """In-memory map: dimensions in tiles plus static blocked geometry."""

    width: int
    height: int
    tile_size: int = field(default_factory=lambda: Config.TILE_SIZE)
    name: str = "untitled"
    blocked: Set[Tuple[int, int]] = field(default_factory=set)
    placed_obstacles: List[Obstacle] = field(default_factory=list)

    def blocked_tiles(self) -> Iterable[Tuple[int, int]]:
        return sorted(self.blocked, key=lambda tile: (tile[1], tile[0]))

    def obstacles(self) -> Iterable[Obstacle]:
        return list(self.placed_obstacles)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[str],
        *,
        tile_size: int | None = None,
        name: str = "untitled",
        wall: str = "#",
    ) -> "TileMap":
        """Build a map from ASCII rows, top row first; ``wall`` marks blocked tiles."""
        blocked = {
            (x, y)
            for y, row in enumerate(rows)
            for x, char in enumerate(row)
            if char == wall
        }
        width = max((len(row) for row in rows), default=0)
        return cls(
            width=width,
            height=len(rows),
            tile_size=tile_size if tile_size is not None else Config.TILE_SIZE,
            name=name,
            blocked=blocked,
        )
