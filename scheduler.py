import logging
import time

import collisions
import motion
import spawner
from config import CFG, MAZE


logger = logging.getLogger(__name__)


class Broadcaster:
    """Outbound side of the scheduler; the server emits over Socket.IO."""

    def send_snapshot(self, world, snapshot):
        raise NotImplementedError

    def send_knockout(self, player_id, survival_ms):
        raise NotImplementedError


class TickScheduler:
    """Runs each World's phases on their own fixed periods.

    Phases due in the same pass run in order: speed ramp, wave, obstacle,
    bot and pickup spawns, then the fast tick (motion, collisions) followed
    by the snapshot broadcast.
    """

    def __init__(self, registry, broadcaster, config=CFG, clock=time.time):
        self.registry = registry
        self.broadcaster = broadcaster
        self.config = config
        self.clock = clock
        self.running = False

    def phases(self):
        cfg = self.config
        phases = [('ramp', cfg.ramp_interval, self._ramp)]
        if cfg.waves_enabled:
            phases.append(('wave', cfg.wave_interval, spawner.spawn_wave))
        wall_interval = cfg.maze_interval if cfg.obstacle_mode == MAZE else cfg.wall_interval
        phases += [
            ('walls', wall_interval, spawner.spawn_obstacle),
            ('bots', cfg.bot_interval, spawner.spawn_enemy),
            ('pickups', cfg.food_interval, spawner.spawn_pickup),
            ('tick', cfg.tick, self._tick),
        ]
        return phases

    @staticmethod
    def _ramp(world, now):
        if world.players:
            motion.apply_speed_ramp(world)

    @staticmethod
    def _tick(world, now):
        motion.step(world, now)
        return collisions.resolve(world, now)

    def _run_phases(self, world, now):
        report = None
        for name, period, action in self.phases():
            due = world.next_due.get(name)
            if due is None:
                due = now if name == 'tick' else now + period
                world.next_due[name] = due
            if now < due:
                continue
            next_due = due + period
            world.next_due[name] = next_due if next_due > now else now + period
            result = action(world, now)
            if name == 'tick':
                report = result
        return report

    def run_world(self, world, now):
        with world.lock:
            report = self._run_phases(world, now)
            if report is None:
                return None

            knockouts = []
            for player_id in report.eliminated:
                survival_ms = self.registry.eliminate(world, player_id, now)
                if survival_ms is not None:
                    knockouts.append((player_id, survival_ms))

            snapshot = None
            if self.registry.get_session(world.session_id) is world:
                snapshot = world.snapshot(now)

        for player_id, survival_ms in knockouts:
            self.broadcaster.send_knockout(player_id, survival_ms)
        if snapshot is not None:
            self.broadcaster.send_snapshot(world, snapshot)
        return report

    def run_due(self, now=None):
        now = self.clock() if now is None else now
        for world in self.registry.worlds():
            try:
                self.run_world(world, now)
            except Exception:
                logger.exception('Tick failed for session %s', world.session_id)

    def run_forever(self, socketio):
        logger.info('Tick scheduler started (%.0f ms)', self.config.tick * 1000)
        while self.running:
            self.run_due()
            socketio.sleep(self.config.tick)
        logger.info('Tick scheduler stopped')

    def start(self, socketio):
        if self.running:
            return
        self.running = True
        socketio.start_background_task(self.run_forever, socketio)

    def stop(self):
        self.running = False
