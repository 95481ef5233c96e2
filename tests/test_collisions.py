from __future__ import annotations

import pytest

import collisions
import motion
from models import Block, Bot, Bullet, FallingWall, Pickup


def _gap_wall() -> FallingWall:
    return FallingWall(id="wall_1", y=400.0, gap_start=350.0, gap_width=100.0, thickness=20.0)


def test_player_inside_gap_survives(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 400.0, 410.0
    world.walls = [_gap_wall()]
    assert collisions.find_eliminations(world, now=1.0) == []


def test_player_outside_gap_is_eliminated_once(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 100.0, 410.0
    world.walls = [_gap_wall(), FallingWall(id="wall_2", y=405.0, gap_start=0, gap_width=50, thickness=20)]
    world.bots = [Bot(id="bot_1", x=100.0, y=410.0, size=20, speed=0)]
    assert collisions.find_eliminations(world, now=1.0) == ["p1"]


def test_wall_band_edges(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    wall = _gap_wall()
    player.x = 100.0
    player.y = 384.0  # bottom edge at 399, above the band
    assert not collisions.hits_wall(player, wall)
    player.y = 385.0
    assert collisions.hits_wall(player, wall)
    player.y = 435.0  # top edge at 420, touching the band
    assert collisions.hits_wall(player, wall)
    player.y = 436.0
    assert not collisions.hits_wall(player, wall)


def test_player_straddling_gap_edge_is_hit(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 360.0, 410.0  # left edge at 345, gap opens at 350
    assert collisions.hits_wall(player, _gap_wall())


def test_block_collision_uses_nearest_point(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    block = Block(id="block_1", x=100, y=100, width=50, height=50)
    player.x, player.y = 170.0, 125.0
    assert not collisions.hits_wall(player, block)
    player.x = 160.0
    assert collisions.hits_wall(player, block)


def test_ghost_passes_walls_and_shield_blocks_bots(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 100.0, 410.0
    world.walls = [_gap_wall()]
    player.invisible_until = 5.0
    assert collisions.find_eliminations(world, now=1.0) == []
    assert collisions.find_eliminations(world, now=5.0) == ["p1"]

    world.walls = []
    world.bots = [Bot(id="bot_1", x=110.0, y=410.0, size=20, speed=0)]
    player.shielded_until = 5.0
    assert collisions.find_eliminations(world, now=1.0) == []
    assert collisions.find_eliminations(world, now=6.0) == ["p1"]


def test_bot_overlap_threshold(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 100.0, 100.0
    bot = Bot(id="bot_1", x=125.0, y=100.0, size=20, speed=0)
    assert not collisions.hits_bot(player, bot)
    bot.x = 124.9
    assert collisions.hits_bot(player, bot)


def test_speed_pickup_boosts_then_reverts(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 205.0, 205.0
    world.pickups = [Pickup(id="speed_1", kind="speed", x=200.0, y=200.0, radius=10)]

    hits = collisions.collect_pickups(world, now=10.0)
    assert [(p.id, pid) for p, pid in hits] == [("speed_1", "p1")]
    assert player.speed == pytest.approx(4.5)
    assert world.pickups == []

    motion.expire_effects(world, now=10.0 + world.config.boost_duration)
    assert player.speed == pytest.approx(3.0)


def test_second_speed_pickup_extends_without_stacking(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    first = Pickup(id="a", kind="speed", x=0, y=0, radius=10)
    second = Pickup(id="b", kind="speed", x=0, y=0, radius=10)
    collisions.apply_pickup(world, player, first, now=1.0)
    collisions.apply_pickup(world, player, second, now=3.0)
    assert player.speed == pytest.approx(4.5)
    assert player.boost_until == pytest.approx(3.0 + world.config.boost_duration)


def test_score_and_status_pickups(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    for kind in ("food", "coin"):
        collisions.apply_pickup(world, player, Pickup(id=kind, kind=kind, x=0, y=0, radius=10), now=1.0)
    assert player.collected == 2

    collisions.apply_pickup(world, player, Pickup(id="g", kind="ghost", x=0, y=0, radius=10), now=1.0)
    collisions.apply_pickup(world, player, Pickup(id="s", kind="shield", x=0, y=0, radius=10), now=2.0)
    assert player.invisible_until == pytest.approx(1.0 + world.config.ghost_duration)
    assert player.shielded_until == pytest.approx(2.0 + world.config.shield_duration)


def test_pickup_goes_to_first_touching_player_only(make_world) -> None:
    world = make_world()
    first = world.add_player("a", "first", now=0.0)
    second = world.add_player("b", "second", now=0.0)
    first.x, first.y = 300.0, 300.0
    second.x, second.y = 305.0, 300.0
    world.pickups = [Pickup(id="coin_1", kind="coin", x=302.0, y=300.0, radius=10)]

    collisions.collect_pickups(world, now=1.0)
    assert (first.collected, second.collected) == (1, 0)


def test_collecting_twice_takes_nothing_the_second_time(make_world) -> None:
    world = make_world()
    player = world.add_player("p1", "alice", now=0.0)
    player.x, player.y = 300.0, 300.0
    world.pickups = [
        Pickup(id="food_1", kind="food", x=300.0, y=300.0, radius=10),
        Pickup(id="food_2", kind="food", x=310.0, y=300.0, radius=10),
    ]
    assert len(collisions.collect_pickups(world, now=1.0)) == 2
    assert collisions.collect_pickups(world, now=1.0) == []
    assert player.collected == 2


def test_bullet_hits_bot_after_one_step(make_world) -> None:
    world = make_world()
    world.bullets = [Bullet(id="bullet_1", x=100.0, y=100.0, dx=1.0, dy=0.0, speed=6.0, radius=5)]
    world.bots = [Bot(id="bot_1", x=115.0, y=100.0, size=20, speed=1.5)]

    motion.step(world, now=0.0)
    assert world.bullets[0].x == pytest.approx(106.0)

    report = collisions.resolve(world, now=0.0)
    assert [(b.id, bot.id) for b, bot in report.bot_kills] == [("bullet_1", "bot_1")]
    assert world.bullets == []
    assert world.bots == []


def test_one_bullet_takes_one_bot(make_world) -> None:
    world = make_world()
    world.bullets = [Bullet(id="bullet_1", x=100.0, y=100.0, dx=1.0, dy=0.0, speed=6.0, radius=5)]
    world.bots = [
        Bot(id="bot_1", x=105.0, y=100.0, size=20, speed=0),
        Bot(id="bot_2", x=95.0, y=100.0, size=20, speed=0),
    ]
    kills = collisions.shoot_bots(world)
    assert [bot.id for _, bot in kills] == ["bot_1"]
    assert [bot.id for bot in world.bots] == ["bot_2"]


def test_two_bullets_on_one_bot_spend_only_one(make_world) -> None:
    world = make_world()
    world.bullets = [
        Bullet(id="bullet_1", x=100.0, y=100.0, dx=1.0, dy=0.0, speed=6.0, radius=5),
        Bullet(id="bullet_2", x=101.0, y=100.0, dx=1.0, dy=0.0, speed=6.0, radius=5),
    ]
    world.bots = [Bot(id="bot_1", x=105.0, y=100.0, size=20, speed=0)]
    collisions.shoot_bots(world)
    assert [b.id for b in world.bullets] == ["bullet_2"]
    assert world.bots == []


def test_resolve_reports_every_phase(make_world) -> None:
    world = make_world()
    safe = world.add_player("safe", "safe", now=0.0)
    doomed = world.add_player("doomed", "doomed", now=0.0)
    safe.x, safe.y = 400.0, 250.0
    doomed.x, doomed.y = 100.0, 100.0
    world.pickups = [Pickup(id="coin_1", kind="coin", x=400.0, y=250.0, radius=10)]
    world.bots = [Bot(id="bot_1", x=100.0, y=110.0, size=20, speed=0)]

    report = collisions.resolve(world, now=1.0)
    assert [(p.id, pid) for p, pid in report.collected] == [("coin_1", "safe")]
    assert report.eliminated == ["doomed"]
    assert report.bot_kills == []
