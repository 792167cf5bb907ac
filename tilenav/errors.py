"""Exceptions raised by the grid for load-time failures and invariant violations.

Expected "no" answers (occupied area, unreachable goal) are never raised;
they come back as ``False`` or an unreachable ``PathResult``.
"""

from __future__ import annotations

from typing import List


class TilenavError(Exception):
    """Base class for tilenav errors."""


class MapLoadError(TilenavError):
    """Raised when a map's geometry is malformed or too large to precompute."""

    def __init__(self, *, map_name: str, problems: List[str]) -> None:
        self.map_name = map_name
        self.problems = problems
        message_lines = [f"Map '{map_name}' could not be loaded:"]
        for problem in problems:
            message_lines.append(f"  - {problem}")
        message_lines.extend(
            [
                "\nRemediation tips:",
                "  - Check the map's width, height and tile_size are positive integers",
                "  - Make sure every blocked tile and obstacle lies inside the map",
                "  - Raise TILENAV_MAX_PRECOMPUTE_TILES for very large maps",
            ]
        )
        super().__init__("\n".join(message_lines))


class GridNotInitializedError(TilenavError):
    """Raised when the grid or pathfinder is used before a map is set."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: no map has been set on the grid.\n\n"
            "Call EntityGrid.set_map() before querying occupancy or paths."
        )


class MovementProtocolError(TilenavError):
    """Raised when begin/end/abort movement calls are not correctly paired."""

    def __init__(self, *, actor_id: str, reason: str) -> None:
        self.actor_id = actor_id
        self.reason = reason
        super().__init__(
            f"Movement protocol violated by actor '{actor_id}': {reason}\n\n"
            "Every successful begin_movement() must be followed by exactly one "
            "end_movement() or abort_movement() with the same destination."
        )
