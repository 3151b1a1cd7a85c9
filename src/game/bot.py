"""Rule-driven bot opponents for Indian Rummy.

A bot turn has two phases. In the draw phase the bot may drop (first turn
only), take the top discard, or draw from the deck. In the discard phase it
either declares, when shedding one card leaves a legal 13-card hand, or
discards the card it needs least.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from src.game.arranger import HandAnalysis, auto_arrange_hand, find_partial_sequences
from src.game.hand import calculate_deadwood_points, exclude_cards, sanitize_cards
from src.game.models import Card, Meld
from src.utils.constants import (
    ACTION_DECLARE,
    ACTION_DISCARD,
    ACTION_DRAW,
    ACTION_DROP,
    CARDS_PER_PLAYER,
    DEFAULT_PENALTIES,
    DIFFICULTY_EASY,
    DIFFICULTY_HARD,
    DIFFICULTY_MEDIUM,
    PHASE_DRAW,
    SOURCE_DECK,
    SOURCE_DISCARD,
    VARIANT_POOL_101,
)

logger = logging.getLogger("rummy.bot")


@dataclass(frozen=True)
class BotProfile:
    pickup_threshold: int  # deadwood drop needed to take the top discard
    drop_threshold: int  # first-turn hand points above which a drop is considered
    min_draws_to_stay: int  # partial runs plus jokers that keep a weak hand in play
    reads_discards: bool
    blunder_rate: float
    thinking_time: tuple[int, int]  # milliseconds


BOT_PROFILES = {
    DIFFICULTY_EASY: BotProfile(
        pickup_threshold=10,
        drop_threshold=200,  # never reached: easy bots never drop
        min_draws_to_stay=0,
        reads_discards=False,
        blunder_rate=0.25,
        thinking_time=(1500, 3000),
    ),
    DIFFICULTY_MEDIUM: BotProfile(
        pickup_threshold=6,
        drop_threshold=75,
        min_draws_to_stay=2,
        reads_discards=False,
        blunder_rate=0.0,
        thinking_time=(1000, 2000),
    ),
    DIFFICULTY_HARD: BotProfile(
        pickup_threshold=3,
        drop_threshold=65,
        min_draws_to_stay=3,
        reads_discards=True,
        blunder_rate=0.0,
        thinking_time=(600, 1400),
    ),
}

BOT_NAMES = {
    DIFFICULTY_EASY: ["Rookie Raj", "Newbie Nina", "Casual Kiran", "Lucky Lata", "Sunny Sam"],
    DIFFICULTY_MEDIUM: ["Steady Sanjay", "Clever Chitra", "Tactical Tara", "Measured Mohan", "Balanced Bina"],
    DIFFICULTY_HARD: ["Shark Shankar", "Master Meera", "Ace Arjun", "Grand Gauri", "Pro Priya"],
}


@dataclass
class BotContext:
    """Read-only view of the round from the bot's seat."""

    hand: list[Card]
    top_discard: Card | None = None
    discard_history: list[Card] = field(default_factory=list)
    turn_phase: str = PHASE_DRAW
    is_first_turn: bool = False
    current_score: int = 0
    pool_limit: int | None = None
    first_drop_penalty: int = DEFAULT_PENALTIES[VARIANT_POOL_101][0]
    drawn_from_discard: Card | None = None


@dataclass
class BotDecision:
    action: str
    source: str | None = None
    card: Card | None = None
    melds: list[Meld] | None = None
    thinking_time: int = 0

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "source": self.source,
            "card": self.card.to_dict() if self.card else None,
            "melds": [m.to_dict() for m in self.melds] if self.melds is not None else None,
            "thinkingTime": self.thinking_time,
        }


def get_bot_name(difficulty: str, index: int) -> str:
    names = BOT_NAMES.get(difficulty, BOT_NAMES[DIFFICULTY_MEDIUM])
    name = names[index % len(names)]
    if index >= len(names):
        name = f"{name} {index // len(names) + 1}"
    return name


def get_bot_decision(
    difficulty: str, context: BotContext, rng: random.Random | None = None
) -> BotDecision:
    """Choose the bot's next action.

    Deterministic when ``rng`` is None: no blunders and a fixed thinking time.
    """
    profile = BOT_PROFILES.get(difficulty, BOT_PROFILES[DIFFICULTY_MEDIUM])
    hand = sanitize_cards(context.hand)

    if context.turn_phase == PHASE_DRAW:
        decision = _decide_draw(profile, context, hand, rng)
    else:
        decision = _decide_discard(profile, context, hand, rng)

    low, high = profile.thinking_time
    decision.thinking_time = rng.randint(low, high) if rng is not None else (low + high) // 2
    logger.debug(
        "Bot (%s) decided %s source=%s card=%s",
        difficulty, decision.action, decision.source,
        decision.card.id if decision.card else None,
    )
    return decision


def _blunders(profile: BotProfile, rng: random.Random | None) -> bool:
    return rng is not None and profile.blunder_rate > 0 and rng.random() < profile.blunder_rate


# --- Draw phase ---


def _decide_draw(
    profile: BotProfile, context: BotContext, hand: list[Card], rng: random.Random | None
) -> BotDecision:
    if context.is_first_turn and should_drop(profile, context, hand):
        return BotDecision(action=ACTION_DROP)

    top = context.top_discard
    if top is not None and not _blunders(profile, rng) and wants_discard(profile, hand, top):
        return BotDecision(action=ACTION_DRAW, source=SOURCE_DISCARD)
    return BotDecision(action=ACTION_DRAW, source=SOURCE_DECK)


def should_drop(profile: BotProfile, context: BotContext, hand: list[Card]) -> bool:
    """Drop a first-turn hand that is far from any legal shape.

    Never drops when the penalty alone would eliminate the bot.
    """
    analysis = auto_arrange_hand(hand)
    if analysis.has_pure_sequence:
        return False
    draws = len(find_partial_sequences(hand)) + sum(1 for c in hand if c.is_joker)
    if draws >= profile.min_draws_to_stay:
        return False
    if calculate_deadwood_points(hand) < profile.drop_threshold:
        return False
    if context.pool_limit is not None:
        if context.current_score + context.first_drop_penalty >= context.pool_limit:
            return False
    return True


def _best_after_discard(cards: list[Card], keep: Card | None = None) -> tuple[Card | None, HandAnalysis]:
    """Best (discard, arrangement) pair for a hand one card over size."""
    best_card: Card | None = None
    best: HandAnalysis | None = None
    for card in cards:
        if keep is not None and card.id == keep.id:
            continue
        analysis = auto_arrange_hand(exclude_cards(cards, [card]))
        if best is None or analysis.deadwood_points < best.deadwood_points:
            best_card, best = card, analysis
    if best is None:
        best = auto_arrange_hand(cards)
    return best_card, best


def wants_discard(profile: BotProfile, hand: list[Card], top: Card) -> bool:
    """Take the top discard if it is a joker, fits a meld, or cuts deadwood."""
    if top.is_joker:
        return True
    current = auto_arrange_hand(hand)
    _, after = _best_after_discard([*hand, top], keep=top)
    if current.deadwood_points - after.deadwood_points >= profile.pickup_threshold:
        return True
    in_meld = any(c.id == top.id for c in after.meld_cards)
    return in_meld and after.deadwood_points < current.deadwood_points


# --- Discard phase ---


def _usefulness(card: Card, hand: list[Card]) -> int:
    """How many near-melds the card takes part in."""
    if card.is_joker:
        return 100
    score = 0
    for other in hand:
        if other.id == card.id or other.is_joker:
            continue
        if other.rank == card.rank and other.suit != card.suit:
            score += 1
        elif other.suit == card.suit and 0 < abs(other.rank - card.rank) <= 2:
            score += 1
    return score


def _safety(card: Card, discard_history: list[Card]) -> int:
    """How strongly the discard history suggests opponents do not need this card."""
    safety = 0
    for seen in discard_history:
        if seen.is_joker:
            continue
        if seen.rank == card.rank:
            safety += 1
        elif seen.suit == card.suit and abs(seen.rank - card.rank) <= 2:
            safety += 1
    return safety


def _decide_discard(
    profile: BotProfile, context: BotContext, hand: list[Card], rng: random.Random | None
) -> BotDecision:
    blocked = context.drawn_from_discard
    candidates = [c for c in hand if blocked is None or c.id != blocked.id] or list(hand)
    if not candidates:
        return BotDecision(action=ACTION_DISCARD)

    options: list[tuple[Card, HandAnalysis]] = []
    for card in candidates:
        rest = exclude_cards(hand, [card])
        analysis = auto_arrange_hand(rest)
        if analysis.can_declare and len(rest) == CARDS_PER_PLAYER:
            return BotDecision(action=ACTION_DECLARE, card=card, melds=list(analysis.melds))
        options.append((card, analysis))

    naturals = [o for o in options if not o[0].is_joker] or options
    if _blunders(profile, rng):
        card, _ = rng.choice(naturals)
        return BotDecision(action=ACTION_DISCARD, card=card)

    def key(option: tuple[Card, HandAnalysis]) -> tuple[int, int, int, int]:
        card, analysis = option
        safety = _safety(card, context.discard_history) if profile.reads_discards else 0
        return (analysis.deadwood_points, _usefulness(card, hand), -card.value, -safety)

    card, _ = min(naturals, key=key)
    return BotDecision(action=ACTION_DISCARD, card=card)
