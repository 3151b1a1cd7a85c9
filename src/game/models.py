"""Data models for Indian Rummy game state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace

from src.utils.constants import (
    ACE,
    ACE_POINTS,
    DEFAULT_NUMBER_OF_DEALS,
    DEFAULT_PENALTIES,
    FACE_POINTS,
    JACK,
    JOKER_NONE,
    JOKER_POINTS,
    JOKER_PRINTED,
    JOKER_RANK,
    JOKER_SUIT,
    JOKER_WILD,
    MAX_ROUND_POINTS,
    PHASE_DRAW,
    POOL_LIMITS,
    RANK_NAMES,
    SEQUENCE_TYPES,
    STATUS_SETUP,
    SUIT_SYMBOLS,
    VARIANT_MAX_POINTS,
    VARIANT_POOL_101,
)


@dataclass(frozen=True)
class Card:
    """A single physical playing card.

    Compact encoding examples: "8h0" = 8 of hearts from deck 0,
    "Ks1" = King of spades from deck 1, "JK00" = first printed joker of deck 0.

    Equality and hashing ignore ``joker_type``: a card tagged as wild joker
    for a round is still the same physical card.
    """

    suit: str  # "h", "d", "c", "s", "j"
    rank: int  # 0=printed joker, 1=Ace, 2-10, 11=J, 12=Q, 13=K
    deck: int = 0
    index: int = 0  # tells printed jokers of the same deck apart
    joker_type: str = field(default=JOKER_NONE, compare=False)

    def __post_init__(self) -> None:
        if self.suit == JOKER_SUIT and self.joker_type != JOKER_PRINTED:
            object.__setattr__(self, "joker_type", JOKER_PRINTED)

    @property
    def id(self) -> str:
        return self.compact()

    @property
    def is_joker(self) -> bool:
        return self.joker_type != JOKER_NONE

    @property
    def is_printed_joker(self) -> bool:
        return self.joker_type == JOKER_PRINTED

    @property
    def is_wild_joker(self) -> bool:
        return self.joker_type == JOKER_WILD

    @property
    def value(self) -> int:
        """Deadwood value of this card. Any joker is worth nothing."""
        if self.is_joker:
            return JOKER_POINTS
        if self.rank == ACE:
            return ACE_POINTS
        if self.rank >= JACK:
            return FACE_POINTS
        return self.rank

    def as_wild(self) -> Card:
        """Return this card tagged as a wild joker (printed jokers are unchanged)."""
        if self.is_printed_joker:
            return self
        return replace(self, joker_type=JOKER_WILD)

    def as_natural(self) -> Card:
        if self.is_printed_joker:
            return self
        return replace(self, joker_type=JOKER_NONE)

    def compact(self) -> str:
        """Encode to compact string."""
        if self.suit == JOKER_SUIT:
            return f"JK{self.deck}{self.index}"
        rank_str = RANK_NAMES.get(self.rank, "?")
        return f"{rank_str}{self.suit}{self.deck}"

    @classmethod
    def from_compact(cls, code: str) -> Card:
        """Decode from compact string.

        Formats:
        - "JK", "JK0", "JK01" -> printed joker (deck, index default to 0)
        - "8h0", "Ks1", "Ad0", "10c0" -> suited card with deck index
        - "8h", "Ks", "Ad", "10c" -> suited card, defaults to deck 0
        """
        if code.startswith("JK"):
            digits = code[2:]
            deck = int(digits[0]) if len(digits) >= 1 else 0
            index = int(digits[1:]) if len(digits) >= 2 else 0
            return cls(suit=JOKER_SUIT, rank=JOKER_RANK, deck=deck, index=index)

        # Parse deck index (last char if digit after suit)
        deck = 0
        remaining = code
        if len(remaining) >= 3 and remaining[-1].isdigit() and remaining[-2].isalpha():
            deck = int(remaining[-1])
            remaining = remaining[:-1]

        # Parse suit (last char)
        suit = remaining[-1]
        rank_str = remaining[:-1]

        # Parse rank
        rank_map = {v: k for k, v in RANK_NAMES.items()}
        rank = rank_map[rank_str]

        return cls(suit=suit, rank=rank, deck=deck)

    def display(self) -> str:
        """Unicode display string. Wild jokers are marked with a star."""
        if self.is_printed_joker:
            return SUIT_SYMBOLS[JOKER_SUIT]
        symbol = SUIT_SYMBOLS.get(self.suit, "?")
        mark = "*" if self.is_wild_joker else ""
        return f"{RANK_NAMES.get(self.rank, '?')}{symbol}{mark}"

    def to_dict(self) -> dict:
        """Serialize for storage."""
        return {
            "id": self.id,
            "suit": self.suit,
            "rank": self.rank,
            "deck": self.deck,
            "index": self.index,
            "jokerType": self.joker_type,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Card:
        """Deserialize from storage."""
        return cls(
            suit=d["suit"],
            rank=d["rank"],
            deck=d.get("deck", 0),
            index=d.get("index", 0),
            joker_type=d.get("jokerType", JOKER_NONE),
        )


@dataclass(frozen=True)
class Meld:
    """A group of cards computed from a hand snapshot."""

    meld_type: str  # "pure-sequence", "sequence" or "set"
    cards: tuple[Card, ...]
    is_pure: bool = False

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def is_sequence(self) -> bool:
        return self.meld_type in SEQUENCE_TYPES

    def to_dict(self) -> dict:
        return {
            "type": self.meld_type,
            "cards": [c.to_dict() for c in self.cards],
            "isPure": self.is_pure,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Meld:
        return cls(
            meld_type=d["type"],
            cards=tuple(Card.from_dict(c) for c in d["cards"]),
            is_pure=d.get("isPure", False),
        )


@dataclass
class GameConfig:
    """Variant configuration, passed in by the caller."""

    variant: str = VARIANT_POOL_101
    pool_limit: int | None = POOL_LIMITS[VARIANT_POOL_101]
    number_of_deals: int = DEFAULT_NUMBER_OF_DEALS
    first_drop_penalty: int = DEFAULT_PENALTIES[VARIANT_POOL_101][0]
    middle_drop_penalty: int = DEFAULT_PENALTIES[VARIANT_POOL_101][1]
    invalid_declaration_penalty: int = DEFAULT_PENALTIES[VARIANT_POOL_101][2]
    max_points: int = MAX_ROUND_POINTS

    @classmethod
    def for_variant(cls, variant: str, **overrides) -> GameConfig:
        """Build a config with the default penalties and limits of a variant."""
        first, middle, invalid = DEFAULT_PENALTIES[variant]
        values = {
            "variant": variant,
            "pool_limit": POOL_LIMITS.get(variant),
            "number_of_deals": DEFAULT_NUMBER_OF_DEALS,
            "first_drop_penalty": first,
            "middle_drop_penalty": middle,
            "invalid_declaration_penalty": invalid,
            "max_points": VARIANT_MAX_POINTS[variant],
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict:
        return {
            "variant": self.variant,
            "poolLimit": self.pool_limit,
            "numberOfDeals": self.number_of_deals,
            "firstDropPenalty": self.first_drop_penalty,
            "middleDropPenalty": self.middle_drop_penalty,
            "invalidDeclarationPenalty": self.invalid_declaration_penalty,
            "maxPoints": self.max_points,
        }

    @classmethod
    def from_dict(cls, d: dict) -> GameConfig:
        return cls(
            variant=d["variant"],
            pool_limit=d.get("poolLimit"),
            number_of_deals=d.get("numberOfDeals", DEFAULT_NUMBER_OF_DEALS),
            first_drop_penalty=d["firstDropPenalty"],
            middle_drop_penalty=d["middleDropPenalty"],
            invalid_declaration_penalty=d["invalidDeclarationPenalty"],
            max_points=d.get("maxPoints", MAX_ROUND_POINTS),
        )


@dataclass
class Player:
    """A seat at the practice table."""

    player_id: str
    name: str
    is_bot: bool = False
    difficulty: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.player_id,
            "name": self.name,
            "isBot": self.is_bot,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Player:
        return cls(
            player_id=d["id"],
            name=d["name"],
            is_bot=d.get("isBot", False),
            difficulty=d.get("difficulty"),
        )


@dataclass
class RoundState:
    """State of a single deal."""

    round_number: int
    hands: dict[str, list[Card]]
    draw_pile: list[Card]
    discard_pile: list[Card]
    wild_joker_card: Card | None
    dealer_index: int
    current_player_index: int
    turn_phase: str = PHASE_DRAW
    discard_history: list[Card] = field(default_factory=list)
    # Players still contesting the round, in seating order
    in_play: list[str] = field(default_factory=list)
    # Flat penalties already charged this round (drops, invalid declarations)
    penalties: dict[str, int] = field(default_factory=dict)
    turns_taken: dict[str, int] = field(default_factory=dict)
    drawn_from_discard: Card | None = None
    ended: bool = False

    @property
    def current_player_id(self) -> str:
        return self.in_play[self.current_player_index]

    def to_dict(self) -> dict:
        return {
            "roundNumber": self.round_number,
            "hands": {pid: [c.to_dict() for c in h] for pid, h in self.hands.items()},
            "drawPile": [c.to_dict() for c in self.draw_pile],
            "discardPile": [c.to_dict() for c in self.discard_pile],
            "wildJokerCard": self.wild_joker_card.to_dict() if self.wild_joker_card else None,
            "dealerIndex": self.dealer_index,
            "currentPlayerIndex": self.current_player_index,
            "turnPhase": self.turn_phase,
            "discardHistory": [c.to_dict() for c in self.discard_history],
            "inPlay": list(self.in_play),
            "penalties": dict(self.penalties),
            "turnsTaken": dict(self.turns_taken),
            "drawnFromDiscard": self.drawn_from_discard.to_dict() if self.drawn_from_discard else None,
            "ended": self.ended,
        }

    @classmethod
    def from_dict(cls, d: dict) -> RoundState:
        wild = d.get("wildJokerCard")
        drawn = d.get("drawnFromDiscard")
        return cls(
            round_number=d["roundNumber"],
            hands={pid: [Card.from_dict(c) for c in h] for pid, h in d["hands"].items()},
            draw_pile=[Card.from_dict(c) for c in d["drawPile"]],
            discard_pile=[Card.from_dict(c) for c in d["discardPile"]],
            wild_joker_card=Card.from_dict(wild) if wild else None,
            dealer_index=d["dealerIndex"],
            current_player_index=d["currentPlayerIndex"],
            turn_phase=d.get("turnPhase", PHASE_DRAW),
            discard_history=[Card.from_dict(c) for c in d.get("discardHistory", [])],
            in_play=list(d.get("inPlay", [])),
            penalties=dict(d.get("penalties", {})),
            turns_taken=dict(d.get("turnsTaken", {})),
            drawn_from_discard=Card.from_dict(drawn) if drawn else None,
            ended=d.get("ended", False),
        )


@dataclass
class RoundResult:
    """Outcome of a finished deal."""

    round_number: int
    winner_id: str | None
    outcome: str
    scores: dict[str, int]
    declared_by: str | None = None

    def to_dict(self) -> dict:
        return {
            "roundNumber": self.round_number,
            "winnerId": self.winner_id,
            "outcome": self.outcome,
            "scores": dict(self.scores),
            "declaredBy": self.declared_by,
        }

    @classmethod
    def from_dict(cls, d: dict) -> RoundResult:
        return cls(
            round_number=d["roundNumber"],
            winner_id=d.get("winnerId"),
            outcome=d["outcome"],
            scores=dict(d["scores"]),
            declared_by=d.get("declaredBy"),
        )


@dataclass
class GameState:
    """Complete state of a practice game (one repository row)."""

    game_id: str
    config: GameConfig
    players: list[Player]
    active_players: list[str]
    scores: dict[str, int]
    status: str = STATUS_SETUP
    current_round: RoundState | None = None
    round_results: list[RoundResult] = field(default_factory=list)
    winner: str | None = None
    updated_at: str = ""
    seed: int | None = None
    version: int = 1

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "config": self.config.to_dict(),
            "players": [p.to_dict() for p in self.players],
            "activePlayers": list(self.active_players),
            "scores": dict(self.scores),
            "status": self.status,
            "currentRound": self.current_round.to_dict() if self.current_round else None,
            "roundResults": [r.to_dict() for r in self.round_results],
            "winner": self.winner,
            "updatedAt": self.updated_at,
            "seed": self.seed,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: dict) -> GameState:
        current = d.get("currentRound")
        return cls(
            game_id=d["gameId"],
            config=GameConfig.from_dict(d["config"]),
            players=[Player.from_dict(p) for p in d["players"]],
            active_players=list(d["activePlayers"]),
            scores=dict(d["scores"]),
            status=d.get("status", STATUS_SETUP),
            current_round=RoundState.from_dict(current) if current else None,
            round_results=[RoundResult.from_dict(r) for r in d.get("roundResults", [])],
            winner=d.get("winner"),
            updated_at=d.get("updatedAt", ""),
            seed=d.get("seed"),
            version=d.get("version", 1),
        )

    @staticmethod
    def new_game_id() -> str:
        return str(uuid.uuid4())


