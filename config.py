import os
from dataclasses import dataclass, replace


ISOLATED = 'isolated'
SHARED = 'shared'

FALLING = 'falling'
MAZE = 'maze'


@dataclass(frozen=True)
class GameConfig:
    port: int = 3000

    # Playfield
    width: int = 800
    height: int = 500

    # Players
    player_radius: float = 15
    player_speed: float = 3
    spawn_offset: float = 10     # gap between spawn point and bottom edge
    name_max_len: int = 15

    # Bullets
    bullet_radius: float = 5
    bullet_speed: float = 6

    # Bots
    bot_size: float = 20
    bot_speed: float = 1.5

    # Pickups
    food_size: float = 10
    max_pickups: int = 8
    speed_boost: float = 1.5
    boost_duration: float = 5.0
    ghost_duration: float = 5.0
    shield_duration: float = 5.0

    # Falling walls
    gap_min: float = 180
    gap_max: float = 250
    thickness_min: float = 15
    thickness_max: float = 30
    wall_speed: float = 2
    wall_grace: float = 3.0      # walls hang still this long after start
    wall_ramp: float = 2.0       # then reach full speed over this window

    # Maze blocks
    maze_blocks: int = 6
    block_min: float = 30
    block_max: float = 120

    # Placement
    safe_radius: float = 100
    spawn_attempts: int = 20
    spawn_delay: float = 3.0

    # Dash
    dash_multiplier: float = 3.0
    dash_duration: float = 0.2
    dash_cooldown: float = 2.0

    # Scheduler periods, seconds
    tick: float = 0.05
    wall_interval: float = 2.0
    maze_interval: float = 15.0
    bot_interval: float = 10.0
    food_interval: float = 7.0
    wave_interval: float = 30.0
    ramp_interval: float = 60.0

    speed_ramp: float = 1.2
    bots_per_wave: int = 1

    # Feature flags
    arena_mode: str = ISOLATED
    obstacle_mode: str = FALLING
    waves_enabled: bool = True
    dash_enabled: bool = True
    pursue_nearest: bool = True
    normalize_diagonal: bool = False

    @property
    def isolated_arenas(self):
        return self.arena_mode == ISOLATED

    @classmethod
    def from_env(cls, environ=None):
        """Build a config from PORT and ARENA_* environment variables."""
        environ = os.environ if environ is None else environ
        base = cls()
        changes = {}

        try:
            changes['port'] = int(environ.get('PORT', base.port))
        except ValueError:
            pass

        mode = environ.get('ARENA_MODE', '').strip().lower()
        if mode in (ISOLATED, SHARED):
            changes['arena_mode'] = mode

        obstacles = environ.get('ARENA_OBSTACLES', '').strip().lower()
        if obstacles in (FALLING, MAZE):
            changes['obstacle_mode'] = obstacles

        for key, field in (('ARENA_WAVES', 'waves_enabled'), ('ARENA_DASH', 'dash_enabled')):
            flag = _parse_flag(environ.get(key))
            if flag is not None:
                changes[field] = flag

        return replace(base, **changes)


def _parse_flag(raw):
    if raw is None:
        return None
    raw = raw.strip().lower()
    if raw in ('1', 'true', 'yes', 'on'):
        return True
    if raw in ('0', 'false', 'no', 'off'):
        return False
    return None


CFG = GameConfig()
