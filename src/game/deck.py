"""Deck operations for Indian Rummy: creation, shuffle, deal, wild joker, draw."""

from __future__ import annotations

import random
from dataclasses import dataclass

from src.game.models import Card
from src.utils.constants import (
    ACE,
    CARDS_PER_PLAYER,
    JOKER_RANK,
    JOKER_SUIT,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PRINTED_JOKERS_PER_DECK,
    RANKS,
    SUITS,
)


@dataclass
class DealResult:
    hands: dict[str, list[Card]]
    draw_pile: list[Card]
    discard_pile: list[Card]
    wild_joker_card: Card | None


def num_decks_for_players(num_players: int) -> int:
    """One deck for a heads-up game, two decks for 3-6 players."""
    if num_players < MIN_PLAYERS or num_players > MAX_PLAYERS:
        raise ValueError(
            f"Players must be between {MIN_PLAYERS} and {MAX_PLAYERS}, got {num_players}"
        )
    return 1 if num_players <= 2 else 2


def create_deck(
    num_decks: int = 1, printed_jokers_per_deck: int = PRINTED_JOKERS_PER_DECK
) -> list[Card]:
    """Create ``num_decks`` x 52 suited cards plus the printed jokers."""
    cards: list[Card] = []
    for deck_num in range(num_decks):
        for suit in SUITS:
            for rank in RANKS:
                cards.append(Card(suit=suit, rank=rank, deck=deck_num))
        for i in range(printed_jokers_per_deck):
            cards.append(Card(suit=JOKER_SUIT, rank=JOKER_RANK, deck=deck_num, index=i))
    return cards


def create_decks(num_players: int) -> list[Card]:
    """Create the unshuffled card pool sized for the table."""
    return create_deck(num_decks_for_players(num_players))


def shuffle_cards(cards: list[Card], rng: random.Random) -> list[Card]:
    """Fisher-Yates shuffle using provided RNG. Returns a new list."""
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def wild_rank_for(cut_card: Card) -> int:
    """Rank made wild by the cut card. A printed joker cut makes Aces wild."""
    if cut_card.suit == JOKER_SUIT:
        return ACE
    return cut_card.rank


def select_wild_joker(stock: list[Card]) -> tuple[Card, int, list[Card]]:
    """Turn up the cut card from the top of the undealt stock.

    Returns (cut_card, wild_rank, rest_of_stock).
    Raises ValueError if the stock is empty.
    """
    if not stock:
        raise ValueError("No card left to cut")
    remaining = list(stock)
    cut_card = remaining.pop(0)
    return cut_card, wild_rank_for(cut_card), remaining


def apply_wild_joker(cards: list[Card], wild_rank: int) -> list[Card]:
    """Return new list where every suited card of ``wild_rank`` is tagged wild."""
    return [
        c.as_wild() if c.suit != JOKER_SUIT and c.rank == wild_rank else c
        for c in cards
    ]


def deal_cards(
    deck: list[Card],
    player_ids: list[str],
    cards_each: int = CARDS_PER_PLAYER,
) -> DealResult:
    """Deal from a shuffled deck.

    Cards go out one at a time, round-robin. The next card is the cut card:
    it stays face up at the bottom of the stock and decides the wild rank.
    The card after it opens the discard pile.
    Raises ValueError if the deck cannot cover the deal.
    """
    needed = cards_each * len(player_ids) + 2
    if len(deck) < needed:
        raise ValueError(f"Deck too small: need {needed} cards, have {len(deck)}")

    remaining = list(deck)
    hands: dict[str, list[Card]] = {pid: [] for pid in player_ids}
    for _ in range(cards_each):
        for pid in player_ids:
            hands[pid].append(remaining.pop(0))

    cut_card, wild_rank, remaining = select_wild_joker(remaining)
    first_discard = remaining.pop(0)

    wild_joker_card = apply_wild_joker([cut_card], wild_rank)[0]
    # Cut card goes under the stock, drawn last
    draw_pile = apply_wild_joker(remaining, wild_rank) + [wild_joker_card]
    hands = {pid: apply_wild_joker(h, wild_rank) for pid, h in hands.items()}
    discard_pile = apply_wild_joker([first_discard], wild_rank)

    return DealResult(
        hands=hands,
        draw_pile=draw_pile,
        discard_pile=discard_pile,
        wild_joker_card=wild_joker_card,
    )


def draw_from_pile(draw_pile: list[Card]) -> tuple[Card, list[Card]]:
    """Draw the top card of the stock.

    Returns (drawn_card, remaining_pile).
    Raises ValueError if the pile is empty.
    """
    if not draw_pile:
        raise ValueError("Draw pile is empty")
    remaining = list(draw_pile)
    card = remaining.pop(0)
    return card, remaining


def draw_from_discard(discard_pile: list[Card]) -> tuple[Card, list[Card]]:
    """Pick up the top card from the discard pile (last element).

    Returns (picked_card, remaining_pile).
    Raises ValueError if pile is empty.
    """
    if not discard_pile:
        raise ValueError("Discard pile is empty")
    remaining = list(discard_pile)
    card = remaining.pop()  # top = last element
    return card, remaining


def discard_card(discard_pile: list[Card], card: Card) -> list[Card]:
    """Return a new discard pile with ``card`` on top."""
    return [*discard_pile, card]


def refill_draw_pile(
    draw_pile: list[Card], discard_pile: list[Card], rng: random.Random
) -> tuple[list[Card], list[Card]]:
    """When the stock runs out, shuffle the discards back in.

    Keeps the top discard as the new discard pile.
    Returns (new_draw_pile, new_discard_pile). A non-empty stock is returned
    unchanged. Raises ValueError if fewer than 2 discards are available.
    """
    if draw_pile:
        return list(draw_pile), list(discard_pile)
    if len(discard_pile) < 2:
        raise ValueError("Not enough cards to reshuffle")
    top = discard_pile[-1]
    new_draw_pile = shuffle_cards(discard_pile[:-1], rng)
    return new_draw_pile, [top]
