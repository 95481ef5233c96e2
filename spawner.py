import logging
import math

from config import MAZE
from models import PICKUP_KINDS, Block, Bot, FallingWall, Pickup


logger = logging.getLogger(__name__)


def spawning_allowed(world, now):
    """Spawners stay idle in an empty arena and during the opening delay."""
    if not world.players:
        return False
    return now - world.started_at >= world.config.spawn_delay


def _far_from_players(world, x, y):
    radius = world.config.safe_radius
    return all(math.hypot(p.x - x, p.y - y) >= radius for p in world.players.values())


def _random_position(world, size):
    cfg = world.config
    x = world.rng.random() * (cfg.width - size) + size / 2
    y = world.rng.random() * (cfg.height - size) + size / 2
    return x, y


def find_safe_position(world, size):
    """Return (x, y, safe).

    Tries a bounded number of random placements away from every player and
    settles for the last candidate when none qualifies.
    """
    x = y = None
    for _ in range(max(1, world.config.spawn_attempts)):
        x, y = _random_position(world, size)
        if _far_from_players(world, x, y):
            return x, y, True
    logger.debug('No safe spot for size %s in %s, placing anyway', size, world.session_id)
    return x, y, False


def _block_clear_of_players(world, block):
    radius = world.config.safe_radius
    for p in world.players.values():
        nearest_x = max(block.x, min(p.x, block.x + block.width))
        nearest_y = max(block.y, min(p.y, block.y + block.height))
        if math.hypot(p.x - nearest_x, p.y - nearest_y) < radius:
            return False
    return True


def _place_block(world):
    cfg = world.config
    rng = world.rng
    block = None
    for _ in range(max(1, cfg.spawn_attempts)):
        width = rng.uniform(cfg.block_min, cfg.block_max)
        height = rng.uniform(cfg.block_min, cfg.block_max)
        block = Block(
            id=world.next_id('block'),
            x=rng.uniform(0, cfg.width - width),
            y=rng.uniform(0, cfg.height - height),
            width=width,
            height=height,
        )
        if _block_clear_of_players(world, block):
            return block
    logger.debug('Maze block placed near a player in %s', world.session_id)
    return block


def spawn_obstacle(world, now):
    """Drop one falling wall, or rebuild the whole maze in maze mode.

    Returns the list of obstacles created.
    """
    if not spawning_allowed(world, now):
        return []

    cfg = world.config
    if cfg.obstacle_mode == MAZE:
        world.walls = [_place_block(world) for _ in range(cfg.maze_blocks)]
        return list(world.walls)

    rng = world.rng
    gap_width = rng.uniform(cfg.gap_min, min(cfg.gap_max, cfg.width))
    thickness = rng.uniform(cfg.thickness_min, cfg.thickness_max)
    wall = FallingWall(
        id=world.next_id('wall'),
        y=-thickness,
        gap_start=rng.uniform(0, cfg.width - gap_width),
        gap_width=gap_width,
        thickness=thickness,
    )
    world.walls.append(wall)
    return [wall]


def spawn_enemy(world, now):
    if not spawning_allowed(world, now):
        return None

    cfg = world.config
    x, y, _ = find_safe_position(world, cfg.bot_size)
    bot = Bot(
        id=world.next_id('bot'),
        x=x,
        y=y,
        size=cfg.bot_size,
        speed=cfg.bot_speed * world.speed_multiplier,
    )
    world.bots.append(bot)
    return bot


def spawn_pickup(world, now, kind=None):
    """Place one pickup unless the arena already holds the maximum."""
    if not spawning_allowed(world, now):
        return None

    cfg = world.config
    if len(world.pickups) >= cfg.max_pickups:
        return None

    kind = kind or world.rng.choice(PICKUP_KINDS)
    x, y, _ = find_safe_position(world, cfg.food_size)
    pickup = Pickup(id=world.next_id(kind), kind=kind, x=x, y=y, radius=cfg.food_size)
    world.pickups.append(pickup)
    return pickup


def spawn_wave(world, now):
    """Advance the wave counter and release wave-proportional extra bots."""
    if not spawning_allowed(world, now):
        return []

    world.wave += 1
    count = world.wave * world.config.bots_per_wave
    bots = [spawn_enemy(world, now) for _ in range(count)]
    logger.info('Wave %d in %s: %d bots', world.wave, world.session_id, count)
    return bots
