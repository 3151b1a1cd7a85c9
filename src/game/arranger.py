"""Automatic hand arrangement for Indian Rummy.

Partitions a hand into melds and deadwood, aiming first for a legal
declaration (two sequences, one of them pure, nothing left over) and
otherwise for the lowest deadwood total.

Search outline:
1. Enumerate every pure sequence of the natural cards (maximal runs and all
   their sub-runs of three or more). Wild jokers also stand as themselves.
2. Use each one as an anchor, optionally together with a second pure
   sequence from what is left, and pack the remainder greedily.
3. Sets join once two sequences exist, including a second sequence that
   a joker completed.
4. Stop at the first arrangement that can be declared; otherwise keep the
   one with the fewest deadwood points.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from src.game.hand import (
    calculate_deadwood_points,
    exclude_cards,
    sanitize_cards,
    sort_hand,
)
from src.game.models import Card, Meld
from src.game.validator import create_meld
from src.utils.constants import (
    MAX_SET_SIZE,
    MAX_SEQUENCE_SIZE,
    MELD_PURE_SEQUENCE,
    MELD_SET,
    MIN_MELD_SIZE,
    MIN_PURE_SEQUENCES,
    MIN_SEQUENCES,
)

logger = logging.getLogger("rummy.arranger")

# Runs at least this long may be split in two to reach the sequence minimum
SPLIT_RUN_LENGTH = 6


@dataclass
class HandAnalysis:
    melds: list[Meld]
    deadwood: list[Card]
    deadwood_points: int
    has_pure_sequence: bool
    sequence_count: int
    can_declare: bool

    @property
    def meld_cards(self) -> list[Card]:
        return [card for meld in self.melds for card in meld.cards]

    def to_dict(self) -> dict:
        return {
            "melds": [m.to_dict() for m in self.melds],
            "deadwood": [c.to_dict() for c in self.deadwood],
            "deadwoodPoints": self.deadwood_points,
            "hasPureSequence": self.has_pure_sequence,
            "sequenceCount": self.sequence_count,
            "canDeclare": self.can_declare,
        }


def _count_sequences(melds: Iterable[Meld]) -> int:
    return sum(1 for m in melds if m.is_sequence)


def _count_pure(melds: Iterable[Meld]) -> int:
    return sum(1 for m in melds if m.meld_type == MELD_PURE_SEQUENCE)


def _analysis(melds: list[Meld], deadwood: list[Card]) -> HandAnalysis:
    pure = _count_pure(melds)
    sequences = _count_sequences(melds)
    return HandAnalysis(
        melds=melds,
        deadwood=deadwood,
        deadwood_points=calculate_deadwood_points(deadwood),
        has_pure_sequence=pure >= MIN_PURE_SEQUENCES,
        sequence_count=sequences,
        can_declare=(
            pure >= MIN_PURE_SEQUENCES and sequences >= MIN_SEQUENCES and not deadwood
        ),
    )


def _rank_key(analysis: HandAnalysis) -> tuple[int, int, int, int]:
    # Fewest points first; ties go to the arrangement closer to a declaration
    return (
        analysis.deadwood_points,
        -int(analysis.has_pure_sequence),
        -min(analysis.sequence_count, MIN_SEQUENCES),
        len(analysis.deadwood),
    )


def _group_by_suit(cards: Iterable[Card]) -> dict[str, list[Card]]:
    by_suit: dict[str, list[Card]] = {}
    for card in cards:
        by_suit.setdefault(card.suit, []).append(card)
    for suit_cards in by_suit.values():
        suit_cards.sort(key=lambda c: c.rank)
    return by_suit


def _group_by_rank(cards: Iterable[Card]) -> dict[int, list[Card]]:
    by_rank: dict[int, list[Card]] = {}
    for card in cards:
        by_rank.setdefault(card.rank, []).append(card)
    return by_rank


def _add_sub_runs(run: list[Card], result: list[list[Card]], seen: set[tuple[str, ...]]) -> None:
    """Add a run and every contiguous sub-run of three or more cards."""
    for start in range(len(run) - MIN_MELD_SIZE + 1):
        for end in range(start + MIN_MELD_SIZE, len(run) + 1):
            sub = run[start:end]
            key = tuple(c.id for c in sub)
            if key not in seen:
                seen.add(key)
                result.append(sub)


def find_all_pure_sequences(cards: Iterable[Card]) -> list[list[Card]]:
    """Find every pure sequence that the given natural cards can form.

    Repeated ranks of a suit (multi-deck) take part once; the spare copy
    stays available to later searches.
    """
    sequences: list[list[Card]] = []
    seen: set[tuple[str, ...]] = set()
    for suit_cards in _group_by_suit(c for c in cards if not c.is_joker).values():
        unique: list[Card] = []
        for card in suit_cards:
            if not unique or unique[-1].rank != card.rank:
                unique.append(card)
        if len(unique) < MIN_MELD_SIZE:
            continue

        run = [unique[0]]
        for card in unique[1:]:
            if card.rank == run[-1].rank + 1:
                run.append(card)
                continue
            if len(run) >= MIN_MELD_SIZE:
                _add_sub_runs(run, sequences, seen)
            run = [card]
        if len(run) >= MIN_MELD_SIZE:
            _add_sub_runs(run, sequences, seen)

        # A-2-3 is the only run involving the Ace
        low = {c.rank: c for c in reversed(unique) if c.rank <= 3}
        if len(low) == 3:
            ace_low = [low[1], low[2], low[3]]
            key = tuple(c.id for c in ace_low)
            if key not in seen:
                seen.add(key)
                sequences.append(ace_low)
    return sequences


def find_sets(cards: Iterable[Card]) -> list[list[Card]]:
    """Find natural sets: same rank, distinct suits, three or four cards."""
    sets: list[list[Card]] = []
    for rank_cards in _group_by_rank(c for c in cards if not c.is_joker).values():
        seen_suits: set[str] = set()
        unique: list[Card] = []
        for card in rank_cards:
            if card.suit not in seen_suits:
                seen_suits.add(card.suit)
                unique.append(card)
        if len(unique) >= MIN_MELD_SIZE:
            sets.append(unique[:MAX_SET_SIZE])
    return sets


def find_partial_sequences(cards: Iterable[Card]) -> list[tuple[Card, Card]]:
    """Same-suit natural pairs that one joker or one card turns into a run."""
    pairs: list[tuple[Card, Card]] = []
    for suit_cards in _group_by_suit(c for c in cards if not c.is_joker).values():
        for a, b in zip(suit_cards, suit_cards[1:]):
            if b.rank - a.rank in (1, 2):
                pairs.append((a, b))
    return pairs


def _is_available(cards: list[Card], pool: list[Card]) -> bool:
    pool_ids = {c.id for c in pool}
    return all(c.id in pool_ids for c in cards)


def _complete_sets(
    leftover: list[Card], jokers: list[Card], new_melds: list[Meld]
) -> tuple[list[Card], list[Card]]:
    """Turn same-rank pairs of different suits into sets with one joker."""
    for rank_cards in _group_by_rank(leftover).values():
        if not jokers:
            break
        seen_suits: set[str] = set()
        unique: list[Card] = []
        for card in rank_cards:
            if card.suit not in seen_suits:
                seen_suits.add(card.suit)
                unique.append(card)
        if len(unique) != 2:
            continue
        meld = create_meld([*unique, jokers[0]])
        if meld is not None:
            new_melds.append(meld)
            leftover = exclude_cards(leftover, unique)
            jokers = jokers[1:]
    return leftover, jokers


def _complete_sequences(
    leftover: list[Card], jokers: list[Card], new_melds: list[Meld]
) -> tuple[list[Card], list[Card]]:
    """Close one-card gaps or extend two-card runs with one joker each."""
    for suit_cards in _group_by_suit(leftover).values():
        i = 0
        while i < len(suit_cards) - 1 and jokers:
            a, b = suit_cards[i], suit_cards[i + 1]
            if b.rank - a.rank in (1, 2):
                meld = create_meld([a, b, jokers[0]])
                if meld is not None:
                    new_melds.append(meld)
                    leftover = exclude_cards(leftover, [a, b])
                    jokers = jokers[1:]
                    i += 2
                    continue
            i += 1
    return leftover, jokers


def _complete_singles(
    leftover: list[Card], jokers: list[Card], new_melds: list[Meld]
) -> tuple[list[Card], list[Card]]:
    """Pair the costliest single cards with two jokers each."""
    while len(jokers) >= 2 and leftover:
        card = max(leftover, key=lambda c: c.value)
        meld = create_meld([card, jokers[0], jokers[1]])
        if meld is None:
            break
        new_melds.append(meld)
        leftover = exclude_cards(leftover, [card])
        jokers = jokers[2:]
    return leftover, jokers


def apply_jokers_to_complete(
    cards: list[Card], jokers: list[Card], prioritize_sequences: bool = False
) -> tuple[list[Meld], list[Card], list[Card]]:
    """Use jokers to turn near-melds into melds.

    When sequences are still short, jokers only complete sequences: sets
    would not count anyway. Returns (new_melds, leftover, unused_jokers).
    """
    new_melds: list[Meld] = []
    leftover = list(cards)
    available = list(jokers)

    if not prioritize_sequences:
        leftover, available = _complete_sets(leftover, available, new_melds)
    leftover, available = _complete_sequences(leftover, available, new_melds)
    leftover, available = _complete_singles(leftover, available, new_melds)
    return new_melds, leftover, available


def _absorb_jokers(melds: list[Meld], jokers: list[Card]) -> tuple[list[Meld], list[Card]]:
    """Park leftover jokers inside existing melds so they are not deadwood.

    Sets take them first, then impure sequences, then a pure sequence as
    long as another pure sequence remains.
    """
    melds = list(melds)
    unused: list[Card] = []
    for joker in jokers:
        placed = False
        for target in _absorb_targets(melds):
            meld = create_meld([*melds[target].cards, joker])
            if meld is not None:
                melds[target] = meld
                placed = True
                break
        if not placed:
            unused.append(joker)
    return melds, unused


def _absorb_targets(melds: list[Meld]) -> list[int]:
    sets = [
        i for i, m in enumerate(melds)
        if m.meld_type == MELD_SET and len(m) < MAX_SET_SIZE
    ]
    impure = [
        i for i, m in enumerate(melds)
        if m.is_sequence and not m.is_pure and len(m) < MAX_SEQUENCE_SIZE
    ]
    pure = [
        i for i, m in enumerate(melds)
        if m.meld_type == MELD_PURE_SEQUENCE and len(m) < MAX_SEQUENCE_SIZE
    ]
    if _count_pure(melds) <= MIN_PURE_SEQUENCES:
        pure = []
    return sets + impure + pure


def find_best_arrangement(
    remaining_non_jokers: list[Card], jokers: list[Card], existing_melds: list[Meld]
) -> HandAnalysis:
    """Greedily pack the remaining cards around the melds already chosen.

    While fewer than two sequences are secured, shorter runs are preferred
    and long runs are split, so the hand reaches two sequences. After that,
    longer runs are preferred to leave less deadwood.
    """
    melds = list(existing_melds)
    remaining = list(remaining_non_jokers)

    sequences = find_all_pure_sequences(remaining)
    need_more = _count_sequences(melds) < MIN_SEQUENCES
    sequences.sort(key=len, reverse=not need_more)

    if need_more:
        for long_seq in [s for s in sequences if len(s) >= SPLIT_RUN_LENGTH]:
            if not _is_available(long_seq, remaining):
                continue
            first = create_meld(long_seq[:MIN_MELD_SIZE])
            second = create_meld(long_seq[MIN_MELD_SIZE:])
            if first is not None and second is not None:
                melds.extend([first, second])
                remaining = exclude_cards(remaining, long_seq)

    for seq in sequences:
        if not _is_available(seq, remaining):
            continue
        meld = create_meld(seq)
        if meld is not None:
            melds.append(meld)
            remaining = exclude_cards(remaining, seq)

    # Sets only count once two sequences exist
    if _count_sequences(melds) >= MIN_SEQUENCES:
        for card_set in find_sets(remaining):
            meld = create_meld(card_set)
            if meld is not None:
                melds.append(meld)
                remaining = exclude_cards(remaining, card_set)

    need_sequences = _count_sequences(melds) < MIN_SEQUENCES
    new_melds, remaining, unused_jokers = apply_jokers_to_complete(
        remaining, jokers, prioritize_sequences=need_sequences
    )
    melds.extend(new_melds)

    # A joker-made second sequence lets the sets left behind count
    if need_sequences and _count_sequences(melds) >= MIN_SEQUENCES:
        for card_set in find_sets(remaining):
            meld = create_meld(card_set)
            if meld is not None:
                melds.append(meld)
                remaining = exclude_cards(remaining, card_set)
        if unused_jokers:
            remaining, unused_jokers = _complete_sets(remaining, unused_jokers, melds)

    if unused_jokers:
        melds, unused_jokers = _absorb_jokers(melds, unused_jokers)

    return _analysis(melds, remaining + unused_jokers)


def _pure_candidates(
    non_jokers: list[Card], jokers: list[Card]
) -> Iterator[tuple[Meld, list[Card], list[Card]]]:
    """Yield (pure meld, naturals left, jokers left) for every pure sequence.

    A wild joker may stand as its own card, so it takes part in the search
    as a natural card of its suit and rank.
    """
    originals = {c.id: c for c in [*non_jokers, *jokers]}
    pool = non_jokers + [c.as_natural() for c in jokers if c.is_wild_joker]
    for seq in find_all_pure_sequences(pool):
        meld = create_meld([originals[c.id] for c in seq])
        if meld is None or not meld.is_pure:
            continue
        yield meld, exclude_cards(non_jokers, seq), exclude_cards(jokers, seq)


def _anchor_candidates(
    remaining: list[Card], jokers: list[Card], anchor: Meld
) -> Iterator[HandAnalysis]:
    yield find_best_arrangement(remaining, jokers, [anchor])
    for second, rest, free_jokers in _pure_candidates(remaining, jokers):
        yield find_best_arrangement(rest, free_jokers, [anchor, second])


def auto_arrange_hand(cards: Iterable[Card] | None) -> HandAnalysis:
    """Return the best arrangement found for a hand.

    Malformed or repeated cards are ignored. The result always accounts for
    every remaining card, as meld member or deadwood.
    """
    valid_cards = sort_hand(sanitize_cards(cards))
    if not valid_cards:
        return _analysis([], [])

    jokers = [c for c in valid_cards if c.is_joker]
    non_jokers = [c for c in valid_cards if not c.is_joker]
    anchors = list(_pure_candidates(non_jokers, jokers))

    best = _analysis([], list(valid_cards))
    evaluated = 0
    for anchor, remaining, free_jokers in anchors:
        for result in _anchor_candidates(remaining, free_jokers, anchor):
            evaluated += 1
            if result.can_declare:
                logger.debug(
                    "Declarable arrangement after %d candidates: %d melds",
                    evaluated, len(result.melds),
                )
                return result
            if _rank_key(result) < _rank_key(best):
                best = result

    if not anchors:
        result = find_best_arrangement(non_jokers, jokers, [])
        if _rank_key(result) < _rank_key(best):
            best = result

    logger.debug(
        "Best arrangement after %d candidates: %d melds, %d deadwood points",
        evaluated, len(best.melds), best.deadwood_points,
    )
    return best
