"""Shared test fixtures for Indian Rummy."""

from __future__ import annotations

import pytest

from src.db.memory import InMemoryGameRepository
from src.game.engine import GameEngine
from src.game.models import Player
from src.utils.rng import create_rng


@pytest.fixture
def game_repo():
    return InMemoryGameRepository()


@pytest.fixture
def engine(game_repo):
    return GameEngine(game_repo, create_rng(42))


@pytest.fixture
def two_players():
    return [Player(player_id="p1", name="Alice"), Player(player_id="p2", name="Bob")]


@pytest.fixture
def three_players():
    return [
        Player(player_id="p1", name="Alice"),
        Player(player_id="p2", name="Bob"),
        Player(player_id="p3", name="Chandra"),
    ]
