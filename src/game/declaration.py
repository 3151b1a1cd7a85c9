"""Declaration validation for Indian Rummy.

A declaration is valid when all 13 cards are melded, at least two melds
are sequences and at least one of those is pure. Sets only count once the
two-sequence requirement is met; otherwise their cards are deadwood.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from src.game.arranger import auto_arrange_hand
from src.game.hand import calculate_deadwood_points, is_well_formed, sanitize_cards
from src.game.models import Card, Meld
from src.game.validator import classify_meld, create_meld
from src.utils.constants import (
    CARDS_PER_PLAYER,
    MELD_PURE_SEQUENCE,
    MELD_SET,
    MIN_PURE_SEQUENCES,
    MIN_SEQUENCES,
)


@dataclass
class DeclarationResult:
    is_valid: bool
    has_pure_sequence: bool
    has_minimum_sequences: bool
    all_cards_melded: bool
    melds: list[Meld] = field(default_factory=list)
    deadwood: list[Card] = field(default_factory=list)
    deadwood_points: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "hasPureSequence": self.has_pure_sequence,
            "hasMinimumSequences": self.has_minimum_sequences,
            "allCardsMelded": self.all_cards_melded,
            "melds": [m.to_dict() for m in self.melds],
            "deadwood": [c.to_dict() for c in self.deadwood],
            "deadwoodPoints": self.deadwood_points,
            "errors": list(self.errors),
        }


def _as_meld(group: Meld | Iterable[Card]) -> Meld | None:
    """Accept a Meld as is, or classify a plain group of cards."""
    if isinstance(group, Meld):
        return group
    return create_meld(list(group or []))


def _group_cards(group: Meld | Iterable[Card]) -> list[Card]:
    cards = group.cards if isinstance(group, Meld) else (group or [])
    return [c for c in cards if is_well_formed(c)]


def validate_declaration(
    melds: Iterable[Meld | Iterable[Card]],
    extra_deadwood: Iterable[Card] = (),
) -> DeclarationResult:
    """Validate a player's declared arrangement.

    Rules:
    1. At least one pure sequence
    2. At least two sequences in total
    3. Sets count only when rule 2 holds, else their cards are deadwood
    4. No deadwood, and exactly 13 cards overall

    Never raises; every problem is reported in ``errors``.
    """
    errors: list[str] = []
    groups = list(melds or [])
    # Repeats are kept so the used-more-than-once check sees them
    extra = [c for c in extra_deadwood or () if is_well_formed(c)]

    valid_sequences: list[Meld] = []
    valid_sets: list[Meld] = []
    invalid_cards: list[Card] = []

    for group in groups:
        meld = _as_meld(group)
        effective = classify_meld(meld) if meld is not None else None
        if effective is None:
            cards = _group_cards(group)
            invalid_cards.extend(cards)
            errors.append(f"Invalid meld: {', '.join(c.id for c in cards)}")
        elif effective == MELD_SET:
            valid_sets.append(meld)
        else:
            valid_sequences.append(
                replace(meld, meld_type=effective, is_pure=effective == MELD_PURE_SEQUENCE)
            )

    pure_count = sum(1 for m in valid_sequences if m.meld_type == MELD_PURE_SEQUENCE)
    has_pure_sequence = pure_count >= MIN_PURE_SEQUENCES
    has_minimum_sequences = len(valid_sequences) >= MIN_SEQUENCES

    final_melds: list[Meld] = list(valid_sequences)
    sets_as_deadwood: list[Card] = []
    if has_minimum_sequences:
        final_melds.extend(valid_sets)
    else:
        for card_set in valid_sets:
            sets_as_deadwood.extend(card_set.cards)
        if valid_sets:
            errors.append("Sets are not valid without 2 sequences - they count as deadwood")

    all_deadwood = extra + invalid_cards + sets_as_deadwood
    deadwood_points = calculate_deadwood_points(all_deadwood)
    all_cards_melded = not all_deadwood

    if not has_pure_sequence:
        errors.append("Declaration must have at least one pure sequence (without jokers)")
    if not has_minimum_sequences:
        errors.append("Declaration must have at least 2 sequences")
    if not all_cards_melded:
        errors.append(f"{len(all_deadwood)} cards are not melded ({deadwood_points} points)")

    all_cards = [c for m in final_melds for c in m.cards] + all_deadwood
    repeated = sorted(card_id for card_id, n in Counter(c.id for c in all_cards).items() if n > 1)
    for card_id in repeated:
        errors.append(f"Card {card_id} is used more than once")

    if len(all_cards) != CARDS_PER_PLAYER:
        errors.append(f"Expected {CARDS_PER_PLAYER} cards, got {len(all_cards)}")

    return DeclarationResult(
        is_valid=has_pure_sequence and has_minimum_sequences and all_cards_melded and not errors,
        has_pure_sequence=has_pure_sequence,
        has_minimum_sequences=has_minimum_sequences,
        all_cards_melded=all_cards_melded,
        melds=final_melds,
        deadwood=all_deadwood,
        deadwood_points=deadwood_points,
        errors=errors,
    )


def can_declare(cards: Iterable[Card]) -> bool:
    """True if a 13-card hand can be arranged into a valid declaration."""
    valid_cards = sanitize_cards(cards)
    if len(valid_cards) != CARDS_PER_PLAYER:
        return False
    return auto_arrange_hand(valid_cards).can_declare


def get_declaration_hint(cards: Iterable[Card]) -> list[str]:
    """Describe what the hand still lacks for a valid declaration."""
    valid_cards = sanitize_cards(cards)
    if not valid_cards:
        return []

    analysis = auto_arrange_hand(valid_cards)
    hints: list[str] = []
    if not analysis.has_pure_sequence:
        hints.append("You need at least one pure sequence (no jokers)")
    if analysis.sequence_count < MIN_SEQUENCES:
        hints.append(
            f"You need at least {MIN_SEQUENCES} sequences (you have {analysis.sequence_count})"
        )
    if analysis.deadwood:
        hints.append(
            f"You have {len(analysis.deadwood)} unmelded cards "
            f"worth {analysis.deadwood_points} points"
        )
    return hints
