"""Tests for state integrity checker."""

from src.db.memory import InMemoryGameRepository
from src.game.engine import GameEngine
from src.game.integrity import validate_game_integrity
from src.game.models import Card, Player
from src.utils.constants import PHASE_DISCARD, STATUS_ROUND_END
from src.utils.rng import create_rng


def c(code: str) -> Card:
    return Card.from_compact(code)


def _make_started_game(num_players: int = 2):
    eng = GameEngine(InMemoryGameRepository(), create_rng(42))
    players = [Player(player_id=f"p{i + 1}", name=f"P{i + 1}") for i in range(num_players)]
    game = eng.create_game(players)
    return eng.start_round(game.game_id).game


class TestValidateGameIntegrity:
    def test_valid_game_passes(self):
        errors = validate_game_integrity(_make_started_game())
        assert errors == [], f"Unexpected errors: {errors}"

    def test_valid_two_deck_game_passes(self):
        assert validate_game_integrity(_make_started_game(4)) == []

    def test_missing_card_detected(self):
        game = _make_started_game()
        game.current_round.draw_pile.pop()
        errors = validate_game_integrity(game)
        assert any("Total cards" in e for e in errors)

    def test_duplicate_card_detected(self):
        game = _make_started_game()
        rnd = game.current_round
        rnd.draw_pile[0] = rnd.hands["p1"][0]
        errors = validate_game_integrity(game)
        assert any("Duplicate card" in e for e in errors)

    def test_wrong_hand_size_detected(self):
        game = _make_started_game()
        rnd = game.current_round
        rnd.draw_pile.append(rnd.hands["p1"].pop())
        errors = validate_game_integrity(game)
        assert any("must hold 13 cards" in e for e in errors)

    def test_player_to_discard_holds_fourteen(self):
        game = _make_started_game()
        rnd = game.current_round
        rnd.turn_phase = PHASE_DISCARD
        errors = validate_game_integrity(game)
        assert any("must hold 14 cards" in e for e in errors)

    def test_invalid_phase_detected(self):
        game = _make_started_game()
        game.current_round.turn_phase = "meld"
        errors = validate_game_integrity(game)
        assert any("Invalid turn phase" in e for e in errors)

    def test_current_player_out_of_range(self):
        game = _make_started_game()
        game.current_round.current_player_index = 5
        errors = validate_game_integrity(game)
        assert any("out of range" in e for e in errors)

    def test_negative_score_detected(self):
        game = _make_started_game()
        game.scores["p1"] = -5
        errors = validate_game_integrity(game)
        assert any("Negative score" in e for e in errors)

    def test_finished_round_only_checks_scores(self):
        game = _make_started_game()
        game.status = STATUS_ROUND_END
        game.current_round.draw_pile.clear()
        assert validate_game_integrity(game) == []
