"""Score calculation, elimination and game-end logic for Indian Rummy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from src.game.arranger import auto_arrange_hand
from src.game.hand import sanitize_cards
from src.game.models import Card, RoundResult
from src.utils.constants import (
    MAX_ROUND_POINTS,
    OUTCOME_DROP_FIRST,
    OUTCOME_DROP_MIDDLE,
    OUTCOME_INVALID,
    OUTCOME_VALID,
    POOL_LIMITS,
    VARIANT_DEALS,
    VARIANT_MAX_POINTS,
)


def hand_deadwood_points(hand: Iterable[Card], max_points: int = MAX_ROUND_POINTS) -> int:
    """Points a losing hand is charged: the best arrangement's deadwood, capped at ``max_points``."""
    return min(auto_arrange_hand(sanitize_cards(hand)).deadwood_points, max_points)


def calculate_round_scores(
    hands: Mapping[str, Iterable[Card]],
    winner_id: str,
    outcome: str,
    variant: str,
    first_drop_penalty: int,
    middle_drop_penalty: int,
    invalid_penalty: int,
    max_points: int | None = None,
) -> dict[str, int]:
    """Per-player points for one round.

    ``winner_id`` is the player whose action ended the round: the declarer
    for valid and invalid declarations, the dropping player for drops.

    - valid: declarer 0, everyone else their capped deadwood
    - invalid: declarer pays ``invalid_penalty``, everyone else 0

    Flat penalties are charged as given; only deadwood is capped.
    - drop-first / drop-middle: dropping player pays the flat penalty,
      everyone else 0
    """
    cap = max_points if max_points is not None else VARIANT_MAX_POINTS.get(variant, MAX_ROUND_POINTS)
    flat = {
        OUTCOME_INVALID: invalid_penalty,
        OUTCOME_DROP_FIRST: first_drop_penalty,
        OUTCOME_DROP_MIDDLE: middle_drop_penalty,
    }

    scores: dict[str, int] = {}
    for player_id, hand in hands.items():
        if outcome == OUTCOME_VALID:
            scores[player_id] = 0 if player_id == winner_id else hand_deadwood_points(hand, cap)
        elif outcome in flat:
            scores[player_id] = flat[outcome] if player_id == winner_id else 0
        else:
            raise ValueError(f"Unknown round outcome: {outcome}")
    return scores


def update_cumulative_scores(
    scores: Mapping[str, int], round_scores: Mapping[str, int]
) -> dict[str, int]:
    """Add round points to the running totals. Returns a new dict."""
    updated = dict(scores)
    for player_id, points in round_scores.items():
        updated[player_id] = updated.get(player_id, 0) + max(points, 0)
    return updated


def get_pool_limit(variant: str, pool_limit: int | None = None) -> int | None:
    """Elimination threshold, or None when the variant eliminates nobody."""
    if variant not in POOL_LIMITS:
        return None
    return pool_limit if pool_limit is not None else POOL_LIMITS[variant]


def is_player_eliminated(score: int, variant: str, pool_limit: int | None = None) -> bool:
    """A pool player is out once their total reaches the pool limit."""
    limit = get_pool_limit(variant, pool_limit)
    return limit is not None and score >= limit


def get_active_players(
    player_ids: Iterable[str],
    scores: Mapping[str, int],
    variant: str,
    pool_limit: int | None = None,
) -> list[str]:
    return [
        pid for pid in player_ids
        if not is_player_eliminated(scores.get(pid, 0), variant, pool_limit)
    ]


def should_game_end(
    player_ids: Iterable[str],
    scores: Mapping[str, int],
    round_results: list[RoundResult],
    variant: str,
    number_of_deals: int,
    pool_limit: int | None = None,
) -> bool:
    """Pool ends with one survivor, deals after the fixed deal count.

    Points rummy has no natural end; the caller decides.
    """
    if get_pool_limit(variant, pool_limit) is not None:
        return len(get_active_players(player_ids, scores, variant, pool_limit)) <= 1
    if variant == VARIANT_DEALS:
        return len(round_results) >= number_of_deals
    return False


def determine_game_winner(
    player_ids: Iterable[str],
    scores: Mapping[str, int],
    variant: str,
    pool_limit: int | None = None,
) -> str | None:
    """Lowest total wins; in pool games only survivors are considered.

    Ties go to the earlier seat.
    """
    candidates = list(player_ids)
    if get_pool_limit(variant, pool_limit) is not None:
        candidates = get_active_players(candidates, scores, variant, pool_limit)
    if not candidates:
        return None
    return min(candidates, key=lambda pid: scores.get(pid, 0))
