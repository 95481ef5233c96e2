import itertools
import random
import threading
import time
from dataclasses import asdict, dataclass

from config import CFG


FOOD = 'food'
COIN = 'coin'
SPEED = 'speed'
GHOST = 'ghost'
SHIELD = 'shield'

SCORE_KINDS = (FOOD, COIN)
POWER_UP_KINDS = (SPEED, GHOST, SHIELD)
PICKUP_KINDS = SCORE_KINDS + POWER_UP_KINDS


@dataclass
class Player:
    id: str
    name: str
    x: float
    y: float
    radius: float
    speed: float
    joined_at: float
    collected: int = 0
    color: str = '#00ff99'
    # Movement intent, consumed by the next motion step
    input_dx: int = 0
    input_dy: int = 0
    # Status effects expire at these timestamps
    boost_factor: float = 1.0
    boost_until: float = 0
    invisible_until: float = 0
    shielded_until: float = 0
    dashing_until: float = 0
    dash_ready_at: float = 0

    def is_boosted(self, now):
        return now < self.boost_until

    def is_invisible(self, now):
        return now < self.invisible_until

    def is_shielded(self, now):
        return now < self.shielded_until

    def is_dashing(self, now):
        return now < self.dashing_until

    def to_dict(self, now):
        return {
            'id': self.id,
            'username': self.name,
            'x': self.x,
            'y': self.y,
            'radius': self.radius,
            'speed': self.speed,
            'color': self.color,
            'coinsCollected': self.collected,
            'boosted': self.is_boosted(now),
            'invisible': self.is_invisible(now),
            'shielded': self.is_shielded(now),
            'dashing': self.is_dashing(now),
        }


@dataclass
class FallingWall:
    """A horizontal barrier with a single passable gap."""
    id: str
    y: float
    gap_start: float
    gap_width: float
    thickness: float
    color: str = '#ff00ff'

    def to_dict(self):
        data = asdict(self)
        data['kind'] = 'wall'
        data['gapX'] = self.gap_start
        data['gapWidth'] = self.gap_width
        return data


@dataclass
class Block:
    id: str
    x: float
    y: float
    width: float
    height: float
    color: str = '#334455'

    def to_dict(self):
        data = asdict(self)
        data['kind'] = 'block'
        return data


@dataclass
class Bot:
    id: str
    x: float
    y: float
    size: float
    speed: float
    facing: str = 'right'

    def to_dict(self):
        return asdict(self)


@dataclass
class Bullet:
    id: str
    x: float
    y: float
    dx: float
    dy: float
    speed: float
    radius: float
    owner: str = ''

    def to_dict(self):
        return asdict(self)


@dataclass
class Pickup:
    id: str
    kind: str
    x: float
    y: float
    radius: float

    def to_dict(self):
        data = asdict(self)
        data['size'] = self.radius
        return data


class World:
    """One arena: its players, every entity collection and the speed ramp."""

    def __init__(self, session_id, config=CFG, now=None, rng=None):
        now = time.time() if now is None else now
        self.session_id = session_id
        self.config = config
        self.players = {}  # {player_id: Player}
        self.walls = []
        self.bots = []
        self.bullets = []
        self.pickups = []
        self.speed_multiplier = 1.0
        self.wave = 0
        self.started_at = now
        self.rng = rng or random.Random()
        self.lock = threading.RLock()
        self.next_due = {}  # {phase name: timestamp}, owned by the scheduler
        self._ids = itertools.count(1)

    def next_id(self, prefix):
        return f'{prefix}_{next(self._ids)}'

    def spawn_point(self):
        cfg = self.config
        return cfg.width / 2, cfg.height - cfg.player_radius - cfg.spawn_offset

    def add_player(self, player_id, name, now):
        x, y = self.spawn_point()
        player = Player(
            id=player_id,
            name=name,
            x=x,
            y=y,
            radius=self.config.player_radius,
            speed=self.config.player_speed * self.speed_multiplier,
            joined_at=now,
        )
        self.players[player_id] = player
        return player

    def remove_player(self, player_id):
        return self.players.pop(player_id, None)

    def pickups_of(self, kinds):
        return [p for p in self.pickups if p.kind in kinds]

    def snapshot(self, now):
        players = {pid: p.to_dict(now) for pid, p in self.players.items()}
        walls = [w.to_dict() for w in self.walls]
        bots = [b.to_dict() for b in self.bots]
        bullets = [b.to_dict() for b in self.bullets]
        food = [p.to_dict() for p in self.pickups_of((FOOD,))]
        coins = [p.to_dict() for p in self.pickups_of((COIN,))]
        power_ups = [p.to_dict() for p in self.pickups_of(POWER_UP_KINDS)]
        return {
            'players': players,
            'mazeWalls': walls,
            'foodItems': food,
            'bots': bots,
            'bullets': bullets,
            'coins': coins,
            'powerUps': power_ups,
            'gameSpeedMultiplier': self.speed_multiplier,
            'wave': self.wave,
            'width': self.config.width,
            'height': self.config.height,
        }
