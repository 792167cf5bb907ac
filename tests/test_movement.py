"""Tests for the two-phase movement protocol and movement helpers."""

import pytest

from tilenav import (
    Actor,
    Direction,
    EntityGrid,
    MovementProtocolError,
    Point2D,
    TileMap,
)

TILE = 16


def _grid(rows):
    return EntityGrid(TileMap.from_rows(rows, tile_size=TILE))


def _placed(grid, actor_id, x, y, *, tiles_wide=1, tiles_high=1, facing=Direction.DOWN):
    actor = Actor(actor_id, width=tiles_wide * TILE, height=tiles_high * TILE, facing=facing)
    assert grid.add_actor(actor, Point2D(x * TILE, y * TILE))
    return actor


def test_begin_then_end_moves_occupancy():
    grid = _grid(["....", "...."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)

    assert grid.begin_movement(alice, dst) is True
    # Both tiles are held while the move is in flight
    assert grid.actor_tiles(alice) == {(0, 0), (1, 0)}
    assert grid.state_at(1, 0).actor is alice

    alice.position = dst
    grid.end_movement(alice, src, dst)

    assert grid.state_at(0, 0).is_free
    assert grid.state_at(1, 0).actor is alice
    assert grid.actor_tiles(alice) == {(1, 0)}


def test_begin_denied_leaves_grid_unchanged():
    grid = _grid(["....", "...."])
    alice = _placed(grid, "alice", 0, 0)
    _placed(grid, "bob", 1, 0)
    before = grid.snapshot()

    assert grid.begin_movement(alice, Point2D(TILE, 0)) is False
    assert grid.snapshot() == before

    # No pending movement was recorded, so a new begin is allowed
    assert grid.begin_movement(alice, Point2D(0, TILE)) is True


def test_reservation_is_visible_to_actors_stepped_later_in_the_tick():
    grid = _grid(["..."])
    alice = _placed(grid, "alice", 0, 0)
    bob = _placed(grid, "bob", 2, 0)

    assert grid.begin_movement(alice, Point2D(TILE, 0)) is True
    assert grid.begin_movement(bob, Point2D(TILE, 0)) is False
    assert grid.state_at(1, 0).actor is alice


def test_wide_actor_may_move_into_its_own_tiles():
    grid = _grid(["....", "...."])
    cart = _placed(grid, "cart", 0, 0, tiles_wide=2, tiles_high=2)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)

    assert grid.begin_movement(cart, dst)
    cart.position = dst
    grid.end_movement(cart, src, dst)

    assert grid.actor_tiles(cart) == {(1, 0), (2, 0), (1, 1), (2, 1)}
    assert grid.state_at(0, 0).is_free and grid.state_at(0, 1).is_free


def test_abort_before_moving_releases_destination():
    grid = _grid(["..."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)
    before = grid.snapshot()

    assert grid.begin_movement(alice, dst)
    grid.abort_movement(alice, src, dst)

    assert grid.snapshot() == before
    assert grid.actor_tiles(alice) == {(0, 0)}


def test_abort_partway_keeps_tiles_under_the_actor():
    grid = _grid(["...."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)

    assert grid.begin_movement(alice, dst)
    alice.position = Point2D(8, 0)
    grid.abort_movement(alice, src, dst)

    assert grid.actor_tiles(alice) == {(0, 0), (1, 0)}
    assert grid.state_at(0, 0).actor is alice
    assert grid.state_at(1, 0).actor is alice

    # Nearly arrived: only the destination tile is still covered
    assert grid.begin_movement(alice, dst)
    alice.position = dst
    grid.abort_movement(alice, src, dst)
    assert grid.actor_tiles(alice) == {(1, 0)}
    assert grid.state_at(0, 0).is_free


def test_abort_halfway_through_a_diagonal_claims_swept_corners():
    grid = _grid(["...", "..."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, TILE)

    assert grid.begin_movement(alice, dst)
    alice.position = Point2D(8, 8)
    grid.abort_movement(alice, src, dst)

    assert alice.position == Point2D(8, 8)
    assert grid.actor_tiles(alice) == {(0, 0), (1, 0), (0, 1), (1, 1)}
    for tile in grid.actor_tiles(alice):
        assert grid.state_at(*tile).actor is alice
    bob = Actor("bob", width=TILE, height=TILE)
    assert grid.add_actor(bob, Point2D(TILE, 0)) is False


def test_abort_diagonal_returns_to_source_when_a_corner_is_taken():
    grid = _grid(["..", ".."])
    alice = _placed(grid, "alice", 0, 0)
    bob = _placed(grid, "bob", 1, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, TILE)

    assert grid.begin_movement(alice, dst)
    alice.position = Point2D(8, 8)
    grid.abort_movement(alice, src, dst)

    assert alice.position == src
    assert grid.actor_tiles(alice) == {(0, 0)}
    assert grid.state_at(1, 0).actor is bob
    assert grid.state_at(1, 1).is_free
    assert grid.state_at(0, 1).is_free


def test_abort_from_outside_source_and_destination_is_rejected():
    grid = _grid(["....."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)
    assert grid.begin_movement(alice, dst)

    alice.position = Point2D(4 * TILE, 0)
    with pytest.raises(MovementProtocolError):
        grid.abort_movement(alice, src, dst)


def test_protocol_pairing_errors():
    grid = _grid(["...."])
    alice = _placed(grid, "alice", 0, 0)
    src, dst = Point2D(0, 0), Point2D(TILE, 0)

    with pytest.raises(MovementProtocolError):
        grid.end_movement(alice, src, dst)
    with pytest.raises(MovementProtocolError):
        grid.abort_movement(alice, src, dst)

    assert grid.begin_movement(alice, dst)
    with pytest.raises(MovementProtocolError):
        grid.begin_movement(alice, Point2D(2 * TILE, 0))
    with pytest.raises(MovementProtocolError) as excinfo:
        grid.end_movement(alice, src, Point2D(2 * TILE, 0))
    assert excinfo.value.actor_id == "alice"
    with pytest.raises(MovementProtocolError):
        grid.change_actor_location(alice, Point2D(3 * TILE, 0))

    # The pending movement can still be resolved
    alice.position = dst
    grid.end_movement(alice, src, dst)
    assert grid.actor_tiles(alice) == {(1, 0)}


def test_movement_requires_actor_on_grid():
    grid = _grid(["...."])
    stranger = Actor("stranger", width=TILE, height=TILE)

    with pytest.raises(MovementProtocolError):
        grid.begin_movement(stranger, Point2D(TILE, 0))


def test_remove_actor_drops_pending_reservation():
    grid = _grid(["...."])
    alice = _placed(grid, "alice", 0, 0)
    assert grid.begin_movement(alice, Point2D(TILE, 0))

    grid.remove_actor(alice)

    assert grid.is_area_free(Point2D(0, 0), 2 * TILE, TILE)
    # Re-adding starts with a clean protocol state
    assert grid.add_actor(alice, Point2D(0, 0))
    assert grid.begin_movement(alice, Point2D(TILE, 0))


def test_each_tile_has_at_most_one_actor_after_many_moves():
    grid = _grid(["....", "....", "...."])
    actors = [_placed(grid, name, x, 1) for name, x in (("a", 0), ("b", 1), ("c", 3))]
    requests = [
        (actors[0], Point2D(TILE, TILE)),       # taken by b
        (actors[1], Point2D(2 * TILE, TILE)),   # free
        (actors[2], Point2D(2 * TILE, TILE)),   # reserved by b this tick
        (actors[0], Point2D(0, 0)),             # free
    ]
    granted = []
    for actor, dst in requests:
        if grid.begin_movement(actor, dst):
            granted.append((actor, Point2D(actor.position.x, actor.position.y), dst))
    for actor, src, dst in granted:
        actor.position = dst
        grid.end_movement(actor, src, dst)

    holders = {}
    for actor in actors:
        for tile in grid.actor_tiles(actor):
            assert tile not in holders
            holders[tile] = actor
            assert grid.state_at(*tile).actor is actor
    assert holders == {(0, 0): actors[0], (2, 1): actors[1], (3, 1): actors[2]}


def test_get_adjacent_actor_uses_facing():
    grid = _grid(["....", "...."])
    alice = _placed(grid, "alice", 0, 0, facing=Direction.RIGHT)
    bob = _placed(grid, "bob", 1, 0)

    assert grid.get_adjacent_actor(alice) is bob

    alice.facing = Direction.DOWN
    assert grid.get_adjacent_actor(alice) is None

    # Looking off the edge of the map
    alice.facing = Direction.LEFT
    assert grid.get_adjacent_actor(alice) is None

    bob.facing = Direction.LEFT
    assert grid.get_adjacent_actor(bob) is alice


def test_get_adjacent_actor_ignores_obstacles():
    grid = _grid(["..."])
    alice = _placed(grid, "alice", 0, 0, facing=Direction.RIGHT)
    assert grid.add_obstacle(Point2D(TILE, 0), TILE, TILE)

    assert grid.get_adjacent_actor(alice) is None


def test_move_to_closest_point_stops_at_obstacle():
    grid = _grid(["....#"])
    alice = _placed(grid, "alice", 0, 0)

    moved = grid.move_to_closest_point(alice, 1, 0, 100)

    assert moved == 3 * TILE
    assert alice.position == Point2D(3 * TILE, 0)
    assert grid.actor_tiles(alice) == {(3, 0)}


def test_move_to_closest_point_slides_up_to_the_tile_edge():
    grid = _grid(["....#"])
    alice = Actor("alice", width=TILE, height=TILE)
    assert grid.add_actor(alice, Point2D(4, 0))

    moved = grid.move_to_closest_point(alice, 5, 0, 100)

    assert moved == 44
    assert alice.position == Point2D(3 * TILE, 0)
    assert grid.actor_tiles(alice) == {(3, 0)}


def test_move_to_closest_point_respects_distance():
    grid = _grid(["....."])
    alice = _placed(grid, "alice", 0, 0)

    assert grid.move_to_closest_point(alice, 1, 0, 20) == 20
    assert alice.position == Point2D(20, 0)
    assert grid.actor_tiles(alice) == {(1, 0), (2, 0)}

    assert grid.move_to_closest_point(alice, 0, 0, 20) == 0
    assert grid.move_to_closest_point(alice, -1, 0, 0) == 0


def test_move_to_closest_point_during_movement_is_rejected():
    grid = _grid(["..."])
    alice = _placed(grid, "alice", 0, 0)
    assert grid.begin_movement(alice, Point2D(TILE, 0))

    with pytest.raises(MovementProtocolError):
        grid.move_to_closest_point(alice, 1, 0, TILE)
