"""Hand helpers: joker checks, input sanitising, deadwood points, hand mutators."""

from __future__ import annotations

from collections.abc import Iterable

from src.game.models import Card
from src.utils.constants import JOKER_RANK, JOKER_SUIT, JOKER_TYPES, RANKS, SUITS

SUIT_ORDER = {suit: i for i, suit in enumerate(SUITS + [JOKER_SUIT])}


def is_joker(card: Card) -> bool:
    return card.is_joker


def is_well_formed(card: object) -> bool:
    """True if ``card`` is a Card with a recognised suit, rank and joker kind."""
    if not isinstance(card, Card):
        return False
    if card.joker_type not in JOKER_TYPES:
        return False
    if card.suit == JOKER_SUIT:
        return card.rank == JOKER_RANK
    return card.suit in SUITS and card.rank in RANKS


def sanitize_cards(cards: Iterable[object] | None) -> list[Card]:
    """Drop missing, malformed and repeated (same id) cards, keeping order."""
    if not cards:
        return []
    seen: set[str] = set()
    result: list[Card] = []
    for card in cards:
        if not is_well_formed(card):
            continue
        if card.id in seen:
            continue
        seen.add(card.id)
        result.append(card)
    return result


def sort_key(card: Card) -> tuple[int, int, int, int]:
    """Canonical order: suit, rank, deck, index."""
    return (SUIT_ORDER.get(card.suit, len(SUIT_ORDER)), card.rank, card.deck, card.index)


def sort_hand(cards: Iterable[Card]) -> list[Card]:
    return sorted(cards, key=sort_key)


def calculate_deadwood_points(cards: Iterable[Card]) -> int:
    """Sum of card values. Jokers count zero."""
    return sum(card.value for card in cards)


def card_ids(cards: Iterable[Card]) -> list[str]:
    return [card.id for card in cards]


def exclude_cards(cards: Iterable[Card], used: Iterable[Card]) -> list[Card]:
    """Return ``cards`` without any card whose id appears in ``used``."""
    used_ids = {c.id for c in used}
    return [c for c in cards if c.id not in used_ids]


def add_card_to_hand(hand: list[Card], card: Card) -> list[Card]:
    """Return a new hand with ``card`` appended."""
    return [*hand, card]


def remove_card_from_hand(hand: list[Card], card_id: str) -> list[Card]:
    """Return a new hand without the first card whose id is ``card_id``.

    Raises ValueError if the card is not in the hand.
    """
    for i, card in enumerate(hand):
        if card.id == card_id:
            return hand[:i] + hand[i + 1:]
    raise ValueError(f"Card {card_id} not in hand")
