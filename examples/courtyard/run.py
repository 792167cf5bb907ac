"""
Courtyard Crossing

Two villagers cross a small courtyard to opposite corners. Each one plans a
route around the walls and around the other, reserves one tile at a time,
and waits a tick whenever the other got there first.

Run: python examples/courtyard/run.py
"""

from tilenav import Actor, Config, EntityGrid, PathWalker, Point2D, TileMap, WalkStatus
from tilenav.logging_utils import log_info, log_success

TILE = 16
COURTYARD = [
    "##########",
    "#........#",
    "#..##....#",
    "#........#",
    "#....##..#",
    "#........#",
    "##########",
]
MAX_TICKS = 200


def main() -> None:
    Config.validate()
    grid = EntityGrid(TileMap.from_rows(COURTYARD, tile_size=TILE, name="courtyard"))

    alice = Actor("alice", width=TILE, height=TILE)
    bob = Actor("bob", width=TILE, height=TILE)
    grid.add_actor(alice, Point2D(1 * TILE, 1 * TILE))
    grid.add_actor(bob, Point2D(8 * TILE, 5 * TILE))

    walkers = {
        "alice": PathWalker(grid, alice, Point2D(8 * TILE, 4 * TILE), speed=4),
        "bob": PathWalker(grid, bob, Point2D(1 * TILE, 2 * TILE), speed=4),
    }
    grid.draw()

    statuses = {name: WalkStatus.MOVING for name in walkers}
    for tick in range(1, MAX_TICKS + 1):
        for name, walker in walkers.items():
            if statuses[name] is not WalkStatus.ARRIVED:
                statuses[name] = walker.step()
        if all(status is WalkStatus.ARRIVED for status in statuses.values()):
            log_success(f"Both villagers arrived after {tick} ticks")
            break
    else:
        log_info(f"Stopped after {MAX_TICKS} ticks: {statuses}")

    grid.draw()


if __name__ == "__main__":
    main()
