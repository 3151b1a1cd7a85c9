"""Meld validation for Indian Rummy.

Classifies groups of cards as pure sequences, sequences (with joker
substitutes) or sets. Printed jokers always act as substitutes; wild jokers
may either stand for themselves or act as substitutes. Nothing here raises:
malformed input is reported as an invalid result.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from itertools import combinations

from src.game.hand import is_well_formed
from src.game.models import Card, Meld
from src.utils.constants import (
    KING,
    MAX_SEQUENCE_SIZE,
    MAX_SET_SIZE,
    MELD_PURE_SEQUENCE,
    MELD_SEQUENCE,
    MELD_SET,
    MIN_MELD_SIZE,
)


@dataclass
class ValidationResult:
    valid: bool
    pure: bool = False
    error: str | None = None


def _assignments(cards: list[Card]) -> Iterator[tuple[list[Card], list[Card]]]:
    """Yield (naturals, substitutes) for every way of using the wild jokers.

    Assignments that keep more wild jokers as natural cards come first, so
    the first yielded split is the one with the fewest substitutes.
    """
    printed = [c for c in cards if c.is_printed_joker]
    wild = [c for c in cards if c.is_wild_joker]
    plain = [c for c in cards if not c.is_joker]
    for keep in range(len(wild), -1, -1):
        for kept in combinations(wild, keep):
            kept_ids = {c.id for c in kept}
            subs = printed + [c for c in wild if c.id not in kept_ids]
            yield plain + list(kept), subs


def _run_fits(naturals: list[Card], num_subs: int) -> bool:
    """True if the naturals plus ``num_subs`` substitutes make one run."""
    if not naturals:
        return False
    suit = naturals[0].suit
    if any(c.suit != suit for c in naturals):
        return False
    ranks = sorted(c.rank for c in naturals)
    if len(ranks) != len(set(ranks)):
        return False
    # Ace is low only, so the span never wraps past the King
    gaps = (ranks[-1] - ranks[0] + 1) - len(ranks)
    return gaps <= num_subs


def _set_fits(naturals: list[Card]) -> bool:
    if not naturals:
        return False
    rank = naturals[0].rank
    if any(c.rank != rank for c in naturals):
        return False
    suits = [c.suit for c in naturals]
    return len(suits) == len(set(suits))


def _sequence_error(cards: list[Card]) -> str:
    plain = [c for c in cards if not c.is_joker]
    if not plain and all(c.is_printed_joker for c in cards):
        return "A sequence cannot be made of jokers only"
    if len({c.suit for c in plain}) > 1:
        return "All cards of a sequence must share a suit"
    ranks = [c.rank for c in plain]
    if len(ranks) != len(set(ranks)):
        return "Duplicate ranks in sequence"
    return "Cards do not form a consecutive run"


def _set_error(cards: list[Card]) -> str:
    plain = [c for c in cards if not c.is_joker]
    if not plain and all(c.is_printed_joker for c in cards):
        return "A set cannot be made of jokers only"
    if len({c.rank for c in plain}) > 1:
        return "All cards of a set must share a rank"
    return "A set cannot repeat a suit"


def is_valid_sequence(cards: Iterable[Card] | None) -> ValidationResult:
    """Validate a sequence (run).

    Rules:
    - 3 to 13 cards, same suit, consecutive ranks
    - Ace is low only: A-2-3 is valid, Q-K-A and K-A-2 are not
    - Jokers fill any gap or extend either end
    - Pure when no card acts as a substitute
    """
    cards = list(cards or [])
    if len(cards) < MIN_MELD_SIZE:
        return ValidationResult(False, error="A sequence needs at least 3 cards")
    if len(cards) > MAX_SEQUENCE_SIZE:
        return ValidationResult(False, error="A sequence cannot exceed 13 cards")
    if not all(is_well_formed(c) for c in cards):
        return ValidationResult(False, error="Malformed card in sequence")

    for naturals, subs in _assignments(cards):
        if _run_fits(naturals, len(subs)):
            return ValidationResult(True, pure=not subs)
    return ValidationResult(False, error=_sequence_error(cards))


def is_valid_set(cards: Iterable[Card] | None) -> ValidationResult:
    """Validate a set.

    Rules:
    - 3 or 4 cards of the same rank
    - No suit repeated among natural cards
    - Jokers stand in for the missing suits, at least one natural card
    """
    cards = list(cards or [])
    if len(cards) < MIN_MELD_SIZE or len(cards) > MAX_SET_SIZE:
        return ValidationResult(False, error="A set needs 3 or 4 cards")
    if not all(is_well_formed(c) for c in cards):
        return ValidationResult(False, error="Malformed card in set")

    for naturals, subs in _assignments(cards):
        if _set_fits(naturals):
            return ValidationResult(True, pure=not subs)
    return ValidationResult(False, error=_set_error(cards))


def get_meld_type(cards: Iterable[Card] | None) -> str | None:
    """Classify cards as a meld type. Sequences are checked before sets."""
    cards = list(cards or [])
    seq = is_valid_sequence(cards)
    if seq.valid:
        return MELD_PURE_SEQUENCE if seq.pure else MELD_SEQUENCE
    if is_valid_set(cards).valid:
        return MELD_SET
    return None


def order_sequence(cards: list[Card]) -> list[Card]:
    """Lay out a valid sequence in rank order with substitutes in place.

    Returns the cards unchanged if they do not form a sequence.
    """
    for naturals, subs in _assignments(cards):
        if not _run_fits(naturals, len(subs)):
            continue
        by_rank = {c.rank: c for c in naturals}
        spare = list(subs)
        low = min(by_rank)
        high = max(by_rank)
        ordered: list[Card] = []
        for rank in range(low, high + 1):
            ordered.append(by_rank[rank] if rank in by_rank else spare.pop(0))
        # Leftover substitutes extend upwards, then downwards from the Ace side
        while spare:
            if high < KING:
                ordered.append(spare.pop(0))
                high += 1
            else:
                ordered.insert(0, spare.pop(0))
        return ordered
    return list(cards)


def create_meld(cards: Iterable[Card] | None) -> Meld | None:
    """Build a Meld from cards, or None if they form no meld."""
    cards = list(cards or [])
    meld_type = get_meld_type(cards)
    if meld_type is None:
        return None
    if meld_type == MELD_SET:
        return Meld(meld_type=MELD_SET, cards=tuple(cards), is_pure=is_valid_set(cards).pure)
    return Meld(
        meld_type=meld_type,
        cards=tuple(order_sequence(cards)),
        is_pure=meld_type == MELD_PURE_SEQUENCE,
    )


def classify_meld(meld: Meld) -> str | None:
    """Effective type of a declared meld, or None if it does not hold up.

    A run declared as ``sequence`` that needs no substitutes is promoted to
    ``pure-sequence``; a run declared ``pure-sequence`` must really be pure.
    """
    cards = list(getattr(meld, "cards", None) or [])
    declared = getattr(meld, "meld_type", None)
    if declared == MELD_SET:
        return MELD_SET if is_valid_set(cards).valid else None
    if declared in (MELD_PURE_SEQUENCE, MELD_SEQUENCE):
        seq = is_valid_sequence(cards)
        if not seq.valid:
            return None
        if seq.pure:
            return MELD_PURE_SEQUENCE
        return None if declared == MELD_PURE_SEQUENCE else MELD_SEQUENCE
    return None


def validate_meld(meld: Meld) -> bool:
    """True if the meld's cards form a meld of its declared type."""
    return classify_meld(meld) is not None
