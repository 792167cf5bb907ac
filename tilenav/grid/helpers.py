"""Rendering helpers for grid snapshots."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..shapes import Point2D
from .schemas import GridSnapshot, TileSnapshot
from .tile_state import OccupantKind

_DEFAULT_TILE_SYMBOLS: Dict[str, str] = {
    "free": ".",
    "obstacle": "#",
    "path": "*",
}


def get_visible_tiles(
    grid: GridSnapshot,
    center: Tuple[int, int],
    *,
    radius: int,
) -> Dict[Tuple[int, int], TileSnapshot]:
    """Return tiles within ``radius`` of ``center`` (clipped to the map), free ones included."""

    radius = max(int(radius), 0)
    cx, cy = center
    visible: Dict[Tuple[int, int], TileSnapshot] = {}

    for y in range(max(0, cy - radius), min(grid.height - 1, cy + radius) + 1):
        for x in range(max(0, cx - radius), min(grid.width - 1, cx + radius) + 1):
            visible[(x, y)] = grid.tile(x, y)

    return visible


def render_occupancy(
    grid: GridSnapshot,
    *,
    center: Optional[Tuple[int, int]] = None,
    radius: Optional[int] = None,
    path: Optional[Iterable[Point2D]] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> str:
    """Render occupancy as one character per tile, top row first.

    Actors are drawn with the first letter of their id (upper-cased) unless
    ``symbols`` maps the actor id to something else. Waypoints from ``path``
    (pixel coordinates) are overlaid on free tiles. Pass ``center`` and
    ``radius`` to render only a window around a tile.
    """

    mapping = {**_DEFAULT_TILE_SYMBOLS}
    if symbols:
        mapping.update(symbols)

    if center is None:
        center = (grid.width // 2, grid.height // 2)
        radius = max(grid.width, grid.height)
    visible = get_visible_tiles(grid, center, radius=radius or 0)

    path_tiles: Set[Tuple[int, int]] = set()
    for point in path or ():
        path_tiles.add((point.x // grid.tile_size, point.y // grid.tile_size))

    xs = sorted({x for x, _ in visible})
    ys = sorted({y for _, y in visible})
    lines: List[str] = []
    for y in ys:
        row_chars: List[str] = []
        for x in xs:
            tile = visible[(x, y)]
            if tile.kind is OccupantKind.ACTOR and tile.occupant_id:
                row_chars.append(mapping.get(tile.occupant_id, tile.occupant_id[0].upper()))
            elif tile.kind is OccupantKind.OBSTACLE:
                row_chars.append(mapping["obstacle"])
            elif (x, y) in path_tiles:
                row_chars.append(mapping["path"])
            else:
                row_chars.append(mapping["free"])
        lines.append("".join(row_chars))

    return "\n".join(lines)
