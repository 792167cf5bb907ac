"""Point and rectangle value objects shared by the grid and pathfinder."""

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class Point2D:
    """Immutable 2D point, in pixels or tiles depending on context."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Point2D":
        return Point2D(self.x + dx, self.y + dy)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"x": int(self.x), "y": int(self.y)}


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle with inclusive edges, used for tile ranges."""
    left: int
    top: int
    right: int
    bottom: int

    def __contains__(self, point: Tuple[int, int]) -> bool:
        x, y = point
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1

    def tiles(self) -> Iterator[Tuple[int, int]]:
        """Iterate (x, y) pairs row by row."""
        for y in range(self.top, self.bottom + 1):
            for x in range(self.left, self.right + 1):
                yield (x, y)
