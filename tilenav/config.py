"""
Tilenav Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Grid configuration loaded from environment variables."""

    # Default pixel size of a movement tile for maps that do not set one
    TILE_SIZE: int = int(os.getenv("TILENAV_TILE_SIZE", "32"))

    # All-pairs precomputation is O(V^3) time and O(V^2) memory, so very
    # large maps are rejected at load time instead of stalling the game loop.
    MAX_PRECOMPUTE_TILES: int = int(os.getenv("TILENAV_MAX_PRECOMPUTE_TILES", "1024"))

    # Logging
    DEBUG_GRID: bool = _env_flag("TILENAV_DEBUG_GRID")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are unusable."""
        if cls.TILE_SIZE <= 0:
            raise ValueError(
                f"TILENAV_TILE_SIZE must be a positive pixel count, got {cls.TILE_SIZE}"
            )
        if cls.MAX_PRECOMPUTE_TILES <= 0:
            raise ValueError(
                "TILENAV_MAX_PRECOMPUTE_TILES must be positive. "
                "Raise it to allow larger maps (memory grows with the square of the tile count)."
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Tilenav Configuration:",
            f"  Tile Size: {cls.TILE_SIZE}px",
            f"  Max Precompute Tiles: {cls.MAX_PRECOMPUTE_TILES}",
            f"  Debug Grid: {cls.DEBUG_GRID}",
        ]
        return "\n".join(lines)
