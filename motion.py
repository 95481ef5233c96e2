import math

from models import FallingWall


DIAGONAL = 1 / math.sqrt(2)


def expire_effects(world, now):
    """Undo timed effects whose expiry has passed."""
    for player in world.players.values():
        if player.boost_factor != 1.0 and not player.is_boosted(now):
            player.speed /= player.boost_factor
            player.boost_factor = 1.0
            player.boost_until = 0


def clamp_player(world, player):
    cfg = world.config
    player.x = max(player.radius, min(cfg.width - player.radius, player.x))
    player.y = max(player.radius, min(cfg.height - player.radius, player.y))


def move_player(world, player, now):
    dx, dy = player.input_dx, player.input_dy
    speed = player.speed
    if world.config.dash_enabled and player.is_dashing(now):
        speed *= world.config.dash_multiplier
    if world.config.normalize_diagonal and dx and dy:
        speed *= DIAGONAL

    player.x += dx * speed
    player.y += dy * speed
    player.input_dx = player.input_dy = 0
    clamp_player(world, player)


def pursuit_target(world, bot):
    """Player a bot chases; ties and the first-player mode follow join order."""
    if not world.players:
        return None
    players = list(world.players.values())
    if not world.config.pursue_nearest:
        return players[0]
    return min(players, key=lambda p: math.hypot(p.x - bot.x, p.y - bot.y))


def move_bot(world, bot):
    target = pursuit_target(world, bot)
    if target is None:
        return
    angle = math.atan2(target.y - bot.y, target.x - bot.x)
    step_x = math.cos(angle) * bot.speed
    bot.x += step_x
    bot.y += math.sin(angle) * bot.speed
    if step_x < 0:
        bot.facing = 'left'
    elif step_x > 0:
        bot.facing = 'right'


def wall_fall_speed(world, now):
    """Still during the grace window, then a linear ramp up to full speed."""
    cfg = world.config
    elapsed = now - world.started_at
    if elapsed < cfg.wall_grace:
        return 0.0
    warmup = 1.0
    if cfg.wall_ramp > 0:
        warmup = min(1.0, (elapsed - cfg.wall_grace) / cfg.wall_ramp)
    return cfg.wall_speed * world.speed_multiplier * warmup


def move_bullet(bullet):
    bullet.x += bullet.dx * bullet.speed
    bullet.y += bullet.dy * bullet.speed


def _on_field(world, x, y, margin=0):
    cfg = world.config
    return -margin <= x <= cfg.width + margin and -margin <= y <= cfg.height + margin


def purge_offscreen(world):
    height = world.config.height
    world.walls = [
        w for w in world.walls
        if not isinstance(w, FallingWall) or w.y <= height
    ]
    world.bullets = [b for b in world.bullets if _on_field(world, b.x, b.y)]
    world.pickups = [p for p in world.pickups if _on_field(world, p.x, p.y)]
    world.bots = [b for b in world.bots if _on_field(world, b.x, b.y, b.size / 2)]


def step(world, now):
    """One motion pass over every mobile entity, then off-field cleanup."""
    expire_effects(world, now)

    for player in world.players.values():
        move_player(world, player, now)

    for bot in world.bots:
        move_bot(world, bot)

    fall = wall_fall_speed(world, now)
    if fall:
        for wall in world.walls:
            if isinstance(wall, FallingWall):
                wall.y += fall

    for bullet in world.bullets:
        move_bullet(bullet)

    purge_offscreen(world)


def apply_speed_ramp(world):
    """Permanently scale the arena and every speed it tracks."""
    factor = world.config.speed_ramp
    world.speed_multiplier *= factor
    for player in world.players.values():
        player.speed *= factor
    for bot in world.bots:
        bot.speed *= factor
    for bullet in world.bullets:
        bullet.speed *= factor
