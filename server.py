import logging
import math
import os
import time

from flask import Flask, request
from flask_socketio import SocketIO, emit, join_room

from config import GameConfig
from models import Bullet
from scheduler import Broadcaster, TickScheduler
from sessions import SessionRegistry


logger = logging.getLogger(__name__)

config = GameConfig.from_env()

app = Flask(__name__, static_folder='public', static_url_path='')
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'your-secret-key')
socketio = SocketIO(app, logger=False, engineio_logger=False, ping_timeout=60, ping_interval=25)

registry = SessionRegistry(config)

# Per-collection events sent alongside the full updateGame payload
SNAPSHOT_EVENTS = (
    ('updatePlayers', 'players'),
    ('updateWalls', 'mazeWalls'),
    ('updateBots', 'bots'),
    ('updateFood', 'foodItems'),
    ('updateCoins', 'coins'),
    ('updatePowerUps', 'powerUps'),
    ('updateBullets', 'bullets'),
)


class SocketIOBroadcaster(Broadcaster):
    def send_snapshot(self, world, snapshot):
        room = world.session_id
        socketio.emit('updateGame', snapshot, to=room)
        for event, key in SNAPSHOT_EVENTS:
            socketio.emit(event, snapshot[key], to=room)

    def send_knockout(self, player_id, survival_ms):
        socketio.emit('knockedOut', survival_ms, to=player_id)


scheduler = TickScheduler(registry, SocketIOBroadcaster(), config)


def clean_name(raw):
    if isinstance(raw, dict):
        raw = raw.get('name')
    if not isinstance(raw, str):
        return 'Anonymous'
    name = raw.strip()[:config.name_max_len]
    return name or 'Anonymous'


def axis(value):
    """Coerce a move component to -1, 0 or 1."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(value):
        return 0
    return (value > 0) - (value < 0)


def number(value, default):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return value


def aim(data):
    """Unit vector from an `angle` or a `dx`/`dy` pair, None if unusable."""
    if 'angle' in data:
        angle = number(data['angle'], None)
        if angle is None:
            return None
        return math.cos(angle), math.sin(angle)

    dx = number(data.get('dx'), 0.0)
    dy = number(data.get('dy'), 0.0)
    length = math.hypot(dx, dy)
    if length == 0:
        return None
    return dx / length, dy / length


def muzzle(player, data):
    """Bullet origin: the client's point if it lies on the shooter, else the shooter."""
    x = number(data.get('x'), player.x)
    y = number(data.get('y'), player.y)
    if math.hypot(x - player.x, y - player.y) > player.radius:
        return player.x, player.y
    return x, y


# Socket events
@socketio.on('connect')
def handle_connect():
    logger.info('Client connected: %s', request.sid)


@socketio.on('disconnect')
def handle_disconnect():
    logger.info('Client disconnected: %s', request.sid)
    registry.leave(request.sid)


@socketio.on('newPlayer')
def handle_new_player(username=None):
    name = clean_name(username)
    now = time.time()
    world, player = registry.join(request.sid, name, now)
    join_room(world.session_id)
    logger.info('Player %s (%s) joined session %s', name, request.sid, world.session_id)

    with world.lock:
        players = {pid: p.to_dict(now) for pid, p in world.players.items()}
    emit('updatePlayers', players, to=world.session_id)


@socketio.on('move')
def handle_move(data=None):
    world = registry.world_for(request.sid)
    if world is None:
        return
    if not isinstance(data, dict):
        data = {}

    now = time.time()
    with world.lock:
        player = world.players.get(request.sid)
        if player is None:
            return
        player.input_dx = axis(data.get('dx'))
        player.input_dy = axis(data.get('dy'))
        if data.get('dash') is True and config.dash_enabled and now >= player.dash_ready_at:
            player.dashing_until = now + config.dash_duration
            player.dash_ready_at = now + config.dash_cooldown


@socketio.on('shoot')
def handle_shoot(data=None):
    world = registry.world_for(request.sid)
    if world is None or not isinstance(data, dict):
        return
    direction = aim(data)
    if direction is None:
        return

    with world.lock:
        player = world.players.get(request.sid)
        if player is None:
            return
        x, y = muzzle(player, data)
        world.bullets.append(Bullet(
            id=world.next_id('bullet'),
            x=x,
            y=y,
            dx=direction[0],
            dy=direction[1],
            speed=config.bullet_speed * world.speed_multiplier,
            radius=config.bullet_radius,
            owner=request.sid,
        ))
        bullets = [b.to_dict() for b in world.bullets]
    emit('updateBullets', bullets, to=world.session_id)


@app.route('/')
def index():
    return app.send_static_file('index.html')


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logger.info(
        'Arena server on port %d (%s arenas, %s obstacles)',
        config.port, config.arena_mode, config.obstacle_mode,
    )
    scheduler.start(socketio)
    socketio.run(app, host='0.0.0.0', port=config.port, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    main()
