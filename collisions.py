"""Per-tick collision passes.

Each pass scans the world read-only and collects its decisions, then applies
every removal in one go. The passes run in a fixed order: pickups, obstacles,
bots, bullets against bots.
"""
import math
from dataclasses import dataclass, field

from models import COIN, FOOD, GHOST, SHIELD, SPEED, FallingWall


@dataclass
class CollisionReport:
    collected: list = field(default_factory=list)   # [(Pickup, player_id)]
    eliminated: list = field(default_factory=list)  # [player_id]
    bot_kills: list = field(default_factory=list)   # [(Bullet, Bot)]


def _touching(ax, ay, bx, by, reach):
    return math.hypot(ax - bx, ay - by) < reach


def apply_pickup(world, player, pickup, now):
    cfg = world.config
    if pickup.kind in (FOOD, COIN):
        player.collected += 1
    elif pickup.kind == SPEED:
        # A second boost while boosted extends the timer without stacking
        if player.boost_factor == 1.0:
            player.speed *= cfg.speed_boost
            player.boost_factor = cfg.speed_boost
        player.boost_until = now + cfg.boost_duration
    elif pickup.kind == GHOST:
        player.invisible_until = now + cfg.ghost_duration
    elif pickup.kind == SHIELD:
        player.shielded_until = now + cfg.shield_duration


def collect_pickups(world, now):
    """First player touching a pickup takes it."""
    hits = []
    for pickup in world.pickups:
        for player in world.players.values():
            if _touching(player.x, player.y, pickup.x, pickup.y, player.radius + pickup.radius):
                hits.append((pickup, player))
                break

    taken = {pickup.id for pickup, _ in hits}
    world.pickups = [p for p in world.pickups if p.id not in taken]
    for pickup, player in hits:
        apply_pickup(world, player, pickup, now)
    return [(pickup, player.id) for pickup, player in hits]


def hits_wall(player, wall):
    if isinstance(wall, FallingWall):
        in_band = (
            player.y + player.radius >= wall.y
            and player.y - player.radius <= wall.y + wall.thickness
        )
        outside_gap = (
            player.x - player.radius < wall.gap_start
            or player.x + player.radius > wall.gap_start + wall.gap_width
        )
        return in_band and outside_gap

    nearest_x = max(wall.x, min(player.x, wall.x + wall.width))
    nearest_y = max(wall.y, min(player.y, wall.y + wall.height))
    return _touching(player.x, player.y, nearest_x, nearest_y, player.radius)


def hits_bot(player, bot):
    return _touching(player.x, player.y, bot.x, bot.y, player.radius + bot.size / 2)


def _is_knocked_out(world, player, now):
    if not player.is_invisible(now):
        if any(hits_wall(player, wall) for wall in world.walls):
            return True
    if not player.is_shielded(now):
        if any(hits_bot(player, bot) for bot in world.bots):
            return True
    return False


def find_eliminations(world, now):
    """Ids of players caught by an obstacle or a bot, each listed once."""
    return [pid for pid, player in world.players.items() if _is_knocked_out(world, player, now)]


def shoot_bots(world):
    """Each bullet takes out at most one bot, the first it overlaps."""
    kills = []
    dead = set()
    for bullet in world.bullets:
        for bot in world.bots:
            if bot.id in dead:
                continue
            if _touching(bullet.x, bullet.y, bot.x, bot.y, bot.size / 2 + bullet.radius):
                kills.append((bullet, bot))
                dead.add(bot.id)
                break

    spent = {bullet.id for bullet, _ in kills}
    world.bullets = [b for b in world.bullets if b.id not in spent]
    world.bots = [b for b in world.bots if b.id not in dead]
    return kills


def resolve(world, now):
    report = CollisionReport()
    report.collected = collect_pickups(world, now)
    report.eliminated = find_eliminations(world, now)
    report.bot_kills = shoot_bots(world)
    return report
