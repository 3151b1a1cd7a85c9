"""Tests for declaration validation."""

from src.game.declaration import can_declare, get_declaration_hint, validate_declaration
from src.game.models import Card, Meld
from src.game.validator import create_meld
from src.utils.constants import MELD_PURE_SEQUENCE, MELD_SEQUENCE


def c(code: str) -> Card:
    return Card.from_compact(code)


def cards(*codes: str) -> list[Card]:
    return [c(code) for code in codes]


def melds(*groups: list[Card]) -> list[Meld]:
    return [create_meld(group) for group in groups]


JOKER = c("JK")
JOKER2 = c("JK1")

VALID_GROUPS = [
    cards("2h", "3h", "4h"),
    cards("5s", "6s", "7s", "8s"),
    cards("9c", "9d", "9h"),
    cards("Kh", "Kd", "Ks"),
]


class TestValidDeclaration:
    def test_valid(self):
        result = validate_declaration(melds(*VALID_GROUPS))
        assert result.is_valid
        assert result.errors == []
        assert result.has_pure_sequence
        assert result.has_minimum_sequences
        assert result.all_cards_melded
        assert result.deadwood_points == 0
        assert len(result.melds) == 4

    def test_plain_card_groups(self):
        assert validate_declaration(VALID_GROUPS).is_valid

    def test_impure_second_sequence(self):
        groups = [
            cards("2h", "3h", "4h"),
            [c("5s"), JOKER, c("7s"), c("8s")],
            cards("9c", "9d", "9h"),
            cards("Kh", "Kd", "Ks"),
        ]
        assert validate_declaration(groups).is_valid

    def test_sequence_label_promoted(self):
        relabelled = [Meld(MELD_SEQUENCE, tuple(VALID_GROUPS[0])), *melds(*VALID_GROUPS[1:])]
        result = validate_declaration(relabelled)
        assert result.is_valid
        assert result.melds[0].meld_type == MELD_PURE_SEQUENCE

    def test_to_dict(self):
        d = validate_declaration(melds(*VALID_GROUPS)).to_dict()
        assert d["isValid"] is True
        assert len(d["melds"]) == 4


class TestInvalidDeclaration:
    def test_no_pure_sequence(self):
        groups = [
            [c("5h"), JOKER, c("7h")],
            [c("9s"), c("10s"), JOKER2],
            cards("Kc", "Kd", "Kh"),
            cards("2c", "2d", "2h", "2s"),
        ]
        result = validate_declaration(groups)
        assert not result.is_valid
        assert not result.has_pure_sequence
        assert result.has_minimum_sequences
        assert "Declaration must have at least one pure sequence (without jokers)" in result.errors

    def test_sets_need_two_sequences(self):
        groups = [
            cards("2h", "3h", "4h"),
            cards("9c", "9d", "9h"),
            cards("Kh", "Kd", "Ks"),
            cards("5c", "5d", "5h", "5s"),
        ]
        result = validate_declaration(groups)
        assert not result.is_valid
        assert result.has_pure_sequence
        assert not result.has_minimum_sequences
        assert "Sets are not valid without 2 sequences - they count as deadwood" in result.errors
        assert result.deadwood_points == 27 + 30 + 20
        assert len(result.melds) == 1

    def test_invalid_meld(self):
        groups = [*VALID_GROUPS[:3], cards("Kh", "5d", "Qs")]
        result = validate_declaration(groups)
        assert not result.is_valid
        assert "Invalid meld: Kh0, 5d0, Qs0" in result.errors
        assert result.deadwood_points == 25

    def test_extra_deadwood(self):
        groups = [
            cards("2h", "3h", "4h"),
            cards("5s", "6s", "7s"),
            cards("9c", "9d", "9h"),
            cards("Kh", "Kd", "Ks"),
        ]
        result = validate_declaration(groups, extra_deadwood=[c("Qc")])
        assert not result.is_valid
        assert not result.all_cards_melded
        assert result.deadwood_points == 10
        assert "1 cards are not melded (10 points)" in result.errors

    def test_wrong_card_count(self):
        result = validate_declaration(melds(cards("2h", "3h", "4h"), cards("5s", "6s", "7s")))
        assert not result.is_valid
        assert "Expected 13 cards, got 6" in result.errors

    def test_card_used_twice(self):
        groups = [
            cards("2h", "3h", "4h"),
            cards("2h", "3h", "4h", "5h"),
            cards("9c", "9d", "9h"),
            cards("Kh", "Kd", "Ks"),
        ]
        result = validate_declaration(groups)
        assert not result.is_valid
        assert "Card 2h0 is used more than once" in result.errors

    def test_extra_card_repeated(self):
        result = validate_declaration(melds(*VALID_GROUPS), extra_deadwood=[c("Qc"), c("Qc")])
        assert not result.is_valid
        assert len(result.deadwood) == 2
        assert "Card Qc0 is used more than once" in result.errors

    def test_empty(self):
        result = validate_declaration([])
        assert not result.is_valid
        assert not result.has_pure_sequence


class TestCanDeclare:
    def test_declarable_hand(self):
        hand = [card for group in VALID_GROUPS for card in group]
        assert can_declare(hand)

    def test_wrong_size(self):
        hand = [card for group in VALID_GROUPS for card in group]
        assert not can_declare(hand[:12])

    def test_hint_for_ready_hand(self):
        hand = [card for group in VALID_GROUPS for card in group]
        assert get_declaration_hint(hand) == []

    def test_hint_without_pure_sequence(self):
        hand = cards("5h", "9d", "Kc", "2s", "7c", "Jh", "3d", "8s", "Qc", "4h", "10d", "6s", "Ac")
        hints = get_declaration_hint(hand)
        assert "You need at least one pure sequence (no jokers)" in hints
        assert "You need at least 2 sequences (you have 0)" in hints

    def test_hint_empty_hand(self):
        assert get_declaration_hint([]) == []
