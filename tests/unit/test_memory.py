"""Tests for the in-memory game repository."""

import pytest

from src.db.memory import VersionConflictError
from src.game.models import GameConfig, GameState
from src.utils.constants import STATUS_FINISHED, STATUS_PLAYING


def make_game(game_id="g1"):
    return GameState(
        game_id=game_id,
        config=GameConfig(),
        players=[],
        active_players=["p1", "p2"],
        scores={"p1": 0, "p2": 0},
    )


class TestInMemoryGameRepository:
    def test_save_and_get(self, game_repo):
        game_repo.save_game(make_game())
        loaded = game_repo.get_game("g1")
        assert loaded.game_id == "g1"
        assert loaded.version == 2

    def test_missing_game(self, game_repo):
        assert game_repo.get_game("nope") is None

    def test_returns_copies(self, game_repo):
        game_repo.save_game(make_game())
        loaded = game_repo.get_game("g1")
        loaded.scores["p1"] = 50
        assert game_repo.get_game("g1").scores["p1"] == 0

    def test_version_conflict(self, game_repo):
        game_repo.save_game(make_game())
        first = game_repo.get_game("g1")
        second = game_repo.get_game("g1")
        game_repo.save_game(first)
        with pytest.raises(ValueError, match="Version conflict"):
            game_repo.save_game(second)

    def test_delete_and_list(self, game_repo):
        game_repo.save_game(make_game("g1"))
        game_repo.save_game(make_game("g2"))
        assert game_repo.list_games() == ["g1", "g2"]
        game_repo.delete_game("g1")
        assert game_repo.list_games() == ["g2"]
        game_repo.delete_game("g1")

    def test_conflict_names_the_game(self, game_repo):
        game_repo.save_game(make_game("g7"))
        stale = game_repo.get_game("g7")
        game_repo.save_game(game_repo.get_game("g7"))
        with pytest.raises(VersionConflictError, match="game g7: expected 2, found 3") as excinfo:
            game_repo.save_game(stale)
        assert excinfo.value.game_id == "g7"

    def test_list_by_status(self, game_repo):
        game_repo.save_game(make_game("g1"))
        finished = make_game("g2")
        finished.status = STATUS_FINISHED
        game_repo.save_game(finished)
        assert game_repo.list_games(STATUS_FINISHED) == ["g2"]
        assert game_repo.list_games(STATUS_PLAYING) == []
        assert game_repo.list_games() == ["g1", "g2"]
