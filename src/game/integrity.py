"""State integrity checker for Indian Rummy game state."""

from __future__ import annotations

from collections import Counter

from src.game.deck import num_decks_for_players
from src.game.models import Card, GameState
from src.utils.constants import (
    CARDS_PER_DECK,
    CARDS_PER_PLAYER,
    PHASE_DISCARD,
    PHASE_DRAW,
    PRINTED_JOKERS_PER_DECK,
    STATUS_PLAYING,
)


def validate_game_integrity(game: GameState) -> list[str]:
    """Validate all game state invariants. Returns list of errors (empty = OK).

    Checks:
    1. Total cards = decks x 53 (hands + draw pile + discard pile)
    2. No card id appears twice
    3. Every waiting hand holds 13 cards, the player to act 13 or 14
    4. Current player is still in the round
    5. Turn phase is valid
    6. Scores are non-negative
    """
    errors: list[str] = []

    for pid, score in game.scores.items():
        if score < 0:
            errors.append(f"Negative score for {pid}: {score}")

    rnd = game.current_round
    if game.status != STATUS_PLAYING or rnd is None or rnd.ended:
        # Limited checks outside a live round
        return errors

    # 1. Card conservation
    all_cards: list[Card] = []
    for hand in rnd.hands.values():
        all_cards.extend(hand)
    all_cards.extend(rnd.draw_pile)
    all_cards.extend(rnd.discard_pile)

    expected = num_decks_for_players(len(rnd.hands)) * (CARDS_PER_DECK + PRINTED_JOKERS_PER_DECK)
    if len(all_cards) != expected:
        errors.append(f"Total cards = {len(all_cards)}, expected {expected}")

    # 2. Duplicates
    for card_id, count in Counter(c.id for c in all_cards).items():
        if count > 1:
            errors.append(f"Duplicate card {card_id} (x{count})")

    # 4. Current player
    if not rnd.in_play or not 0 <= rnd.current_player_index < len(rnd.in_play):
        errors.append(f"Current player index {rnd.current_player_index} out of range")
        return errors
    current = rnd.current_player_id

    # 3. Hand sizes
    for pid in rnd.in_play:
        size = len(rnd.hands.get(pid, []))
        if pid == current and rnd.turn_phase == PHASE_DISCARD:
            if size != CARDS_PER_PLAYER + 1:
                errors.append(f"Player {pid} must hold {CARDS_PER_PLAYER + 1} cards, has {size}")
        elif size != CARDS_PER_PLAYER:
            errors.append(f"Player {pid} must hold {CARDS_PER_PLAYER} cards, has {size}")

    # 5. Turn phase
    if rnd.turn_phase not in (PHASE_DRAW, PHASE_DISCARD):
        errors.append(f"Invalid turn phase: {rnd.turn_phase}")

    return errors
