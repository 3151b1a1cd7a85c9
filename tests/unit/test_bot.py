"""Tests for the bot decision engine."""

from src.game.bot import BOT_PROFILES, BotContext, get_bot_decision, get_bot_name, should_drop
from src.game.declaration import validate_declaration
from src.game.models import Card
from src.utils.constants import (
    ACTION_DECLARE,
    ACTION_DISCARD,
    ACTION_DRAW,
    ACTION_DROP,
    DIFFICULTY_EASY,
    DIFFICULTY_HARD,
    DIFFICULTY_MEDIUM,
    PHASE_DISCARD,
    PHASE_DRAW,
    SOURCE_DECK,
    SOURCE_DISCARD,
)
from src.utils.rng import create_rng


def c(code: str) -> Card:
    return Card.from_compact(code)


def cards(*codes: str) -> list[Card]:
    return [c(code) for code in codes]


JOKER = c("JK")

# Far from any meld: no pure sequence, no near-runs, 93 points
HOPELESS_HAND = cards("Kh", "9h", "5h", "Qd", "8d", "4d", "Jc", "7c", "3c", "Ks", "9s", "6s", "2s")
# One pure sequence, 54 points of deadwood
ONE_SEQUENCE_HAND = cards("2h", "3h", "4h", "8h", "3d", "6d", "9d", "9c", "Ac", "2s", "4s", "5s", "7s")
READY_HAND = cards("2h", "3h", "4h", "5s", "6s", "7s", "8s", "9c", "9d", "9h", "Kh", "Kd", "Ks")


class TestDrop:
    def test_drops_hopeless_first_turn(self):
        ctx = BotContext(hand=HOPELESS_HAND, is_first_turn=True)
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.action == ACTION_DROP

    def test_hard_bot_drops_too(self):
        ctx = BotContext(hand=HOPELESS_HAND, is_first_turn=True)
        assert get_bot_decision(DIFFICULTY_HARD, ctx).action == ACTION_DROP

    def test_easy_bot_never_drops(self):
        ctx = BotContext(hand=HOPELESS_HAND, is_first_turn=True)
        decision = get_bot_decision(DIFFICULTY_EASY, ctx)
        assert decision.action == ACTION_DRAW
        assert decision.source == SOURCE_DECK

    def test_only_on_first_turn(self):
        ctx = BotContext(hand=HOPELESS_HAND, is_first_turn=False)
        assert get_bot_decision(DIFFICULTY_MEDIUM, ctx).action == ACTION_DRAW

    def test_not_when_penalty_would_eliminate(self):
        ctx = BotContext(
            hand=HOPELESS_HAND, is_first_turn=True,
            current_score=90, pool_limit=101, first_drop_penalty=20,
        )
        assert not should_drop(BOT_PROFILES[DIFFICULTY_MEDIUM], ctx, HOPELESS_HAND)
        assert get_bot_decision(DIFFICULTY_MEDIUM, ctx).action == ACTION_DRAW

    def test_keeps_hand_with_pure_sequence(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND, is_first_turn=True)
        assert get_bot_decision(DIFFICULTY_HARD, ctx).action == ACTION_DRAW


class TestDrawSource:
    def test_takes_joker(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND, top_discard=JOKER)
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.action == ACTION_DRAW
        assert decision.source == SOURCE_DISCARD

    def test_takes_card_extending_pure_sequence(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND, top_discard=c("5h"))
        assert get_bot_decision(DIFFICULTY_MEDIUM, ctx).source == SOURCE_DISCARD

    def test_ignores_useless_card(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND, top_discard=c("Kd"))
        assert get_bot_decision(DIFFICULTY_MEDIUM, ctx).source == SOURCE_DECK

    def test_empty_discard_pile(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND, top_discard=None)
        assert get_bot_decision(DIFFICULTY_HARD, ctx).source == SOURCE_DECK


class TestDiscardPhase:
    def test_declares_when_ready(self):
        ctx = BotContext(hand=[*READY_HAND, c("Qc")], turn_phase=PHASE_DISCARD)
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.action == ACTION_DECLARE
        assert decision.card == c("Qc")
        assert validate_declaration(decision.melds).is_valid

    def test_declares_with_joker_sequence_and_sets(self):
        hand = [*cards("3s", "4s", "5s", "7h", "8h", "2c", "2d", "2s", "Kc", "Kd", "Ks", "Kh"), JOKER]
        ctx = BotContext(hand=[*hand, c("Qc")], turn_phase=PHASE_DISCARD)
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.action == ACTION_DECLARE
        assert decision.card == c("Qc")
        assert validate_declaration(decision.melds).is_valid

    def test_discards_costliest_loose_card(self):
        ctx = BotContext(hand=[*ONE_SEQUENCE_HAND, c("Kd")], turn_phase=PHASE_DISCARD)
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.action == ACTION_DISCARD
        assert decision.card == c("Kd")

    def test_never_returns_card_picked_from_discard(self):
        ctx = BotContext(
            hand=[*ONE_SEQUENCE_HAND, c("Kd")],
            turn_phase=PHASE_DISCARD,
            drawn_from_discard=c("Kd"),
        )
        decision = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert decision.card != c("Kd")
        assert decision.card.rank == 9

    def test_never_discards_joker(self):
        ctx = BotContext(hand=[*ONE_SEQUENCE_HAND, JOKER], turn_phase=PHASE_DISCARD)
        for difficulty in (DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD):
            assert not get_bot_decision(difficulty, ctx).card.is_joker

    def test_hard_bot_reads_discards(self):
        ctx = BotContext(
            hand=[*ONE_SEQUENCE_HAND, c("Kd")],
            turn_phase=PHASE_DISCARD,
            discard_history=cards("Kc", "Ks1"),
        )
        assert get_bot_decision(DIFFICULTY_HARD, ctx).card == c("Kd")


class TestDeterminism:
    def test_same_input_same_decision(self):
        ctx = BotContext(hand=[*ONE_SEQUENCE_HAND, c("Kd")], turn_phase=PHASE_DISCARD)
        first = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        second = get_bot_decision(DIFFICULTY_MEDIUM, ctx)
        assert first.to_dict() == second.to_dict()

    def test_base_thinking_time_without_rng(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND)
        assert get_bot_decision(DIFFICULTY_MEDIUM, ctx).thinking_time == 1500

    def test_thinking_time_within_profile_range(self):
        ctx = BotContext(hand=ONE_SEQUENCE_HAND)
        low, high = BOT_PROFILES[DIFFICULTY_EASY].thinking_time
        decision = get_bot_decision(DIFFICULTY_EASY, ctx, create_rng(3))
        assert low <= decision.thinking_time <= high

    def test_unknown_difficulty_plays_as_medium(self):
        ctx = BotContext(hand=HOPELESS_HAND, is_first_turn=True)
        assert get_bot_decision("grandmaster", ctx).action == ACTION_DROP

    def test_draw_phase_is_default(self):
        assert BotContext(hand=[]).turn_phase == PHASE_DRAW


class TestBotMisc:
    def test_names(self):
        assert get_bot_name(DIFFICULTY_EASY, 0) == "Rookie Raj"
        assert get_bot_name(DIFFICULTY_EASY, 5) == "Rookie Raj 2"
        assert get_bot_name(DIFFICULTY_HARD, 1) == "Master Meera"

    def test_decision_to_dict(self):
        ctx = BotContext(hand=[*ONE_SEQUENCE_HAND, c("Kd")], turn_phase=PHASE_DISCARD)
        d = get_bot_decision(DIFFICULTY_MEDIUM, ctx).to_dict()
        assert d["action"] == ACTION_DISCARD
        assert d["card"]["id"] == "Kd0"
        assert d["melds"] is None
