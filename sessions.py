import logging
import threading
import time

from config import CFG
from models import World


logger = logging.getLogger(__name__)

SHARED_SESSION = 'arena'


class SessionRegistry:
    """Owns every World and the connection -> World mapping."""

    def __init__(self, config=CFG, clock=time.time, rng_factory=None):
        self.config = config
        self.clock = clock
        self.rng_factory = rng_factory
        self.lock = threading.RLock()
        self.sessions = {}         # {session_id: World}
        self.player_sessions = {}  # {player_id: session_id}

    def _now(self, now):
        return self.clock() if now is None else now

    def session_id_for(self, player_id):
        if self.config.isolated_arenas:
            return player_id
        return SHARED_SESSION

    def create_session(self, session_id, player_id=None, name='Anonymous', now=None):
        now = self._now(now)
        rng = self.rng_factory() if self.rng_factory else None
        world = World(session_id, self.config, now=now, rng=rng)
        if player_id is not None:
            world.add_player(player_id, name, now)
        with self.lock:
            self.sessions[session_id] = world
            if player_id is not None:
                self.player_sessions[player_id] = session_id
        logger.info('Session %s created', session_id)
        return world

    def get_session(self, session_id):
        with self.lock:
            return self.sessions.get(session_id)

    def destroy_session(self, session_id):
        with self.lock:
            world = self.sessions.pop(session_id, None)
            stale = [pid for pid, sess in self.player_sessions.items() if sess == session_id]
            for pid in stale:
                del self.player_sessions[pid]
        if world is not None:
            logger.info('Session %s destroyed', session_id)
        return world

    def worlds(self):
        with self.lock:
            return list(self.sessions.values())

    def world_for(self, player_id):
        with self.lock:
            session_id = self.player_sessions.get(player_id)
            if session_id is None:
                return None
            return self.sessions.get(session_id)

    def join(self, player_id, name, now=None):
        """Spawn the player, or rename it if it is already in the arena."""
        now = self._now(now)
        session_id = self.session_id_for(player_id)
        while True:
            with self.lock:
                world = self.sessions.get(session_id)
                if world is None:
                    world = self.create_session(session_id, player_id, name, now)
                    return world, world.players[player_id]

            with world.lock:
                # The arena may have been torn down while we waited for it
                if self.get_session(session_id) is not world:
                    continue
                with self.lock:
                    self.player_sessions[player_id] = session_id
                player = world.players.get(player_id)
                if player is not None:
                    player.name = name
                else:
                    player = world.add_player(player_id, name, now)
                return world, player

    def leave(self, player_id):
        """Drop a disconnected player; isolated arenas go with it."""
        with self.lock:
            session_id = self.player_sessions.pop(player_id, None)
            world = self.sessions.get(session_id) if session_id is not None else None
        if world is None:
            return
        with world.lock:
            world.remove_player(player_id)
            if self.config.isolated_arenas:
                self.destroy_session(session_id)

    def eliminate(self, world, player_id, now=None):
        """Remove a knocked-out player; returns survival time in ms or None."""
        now = self._now(now)
        with world.lock:
            player = world.remove_player(player_id)
            if player is None:
                return None
            with self.lock:
                if self.player_sessions.get(player_id) == world.session_id:
                    del self.player_sessions[player_id]
            if self.config.isolated_arenas:
                self.destroy_session(world.session_id)
        survival_ms = int((now - player.joined_at) * 1000)
        logger.info('Player %s (%s) knocked out after %d ms', player.name, player_id, survival_ms)
        return survival_ms
