from __future__ import annotations

import random
from dataclasses import replace

import pytest

from config import GameConfig
from models import World


@pytest.fixture
def make_world():
    def _make(now: float = 0.0, seed: int = 1, **overrides) -> World:
        config = replace(GameConfig(), **overrides)
        return World("s1", config, now=now, rng=random.Random(seed))

    return _make


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.snapshots: list[tuple[str, dict]] = []
        self.knockouts: list[tuple[str, int]] = []

    def send_snapshot(self, world, snapshot) -> None:
        self.snapshots.append((world.session_id, snapshot))

    def send_knockout(self, player_id, survival_ms) -> None:
        self.knockouts.append((player_id, survival_ms))


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()
