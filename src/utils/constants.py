"""Game constants for Indian Rummy."""

# Suits (compact encoding)
HEARTS = "h"
DIAMONDS = "d"
CLUBS = "c"
SPADES = "s"
JOKER_SUIT = "j"
SUITS = [HEARTS, DIAMONDS, CLUBS, SPADES]

# Suit display symbols
SUIT_SYMBOLS = {
    HEARTS: "♥",
    DIAMONDS: "♦",
    CLUBS: "♣",
    SPADES: "♠",
    JOKER_SUIT: "🃏",
}

# Ranks
JOKER_RANK = 0
ACE = 1
JACK = 11
QUEEN = 12
KING = 13
RANKS = list(range(1, 14))  # 1-13, ace is always low

# Rank display names
RANK_NAMES = {
    1: "A",
    2: "2",
    3: "3",
    4: "4",
    5: "5",
    6: "6",
    7: "7",
    8: "8",
    9: "9",
    10: "10",
    11: "J",
    12: "Q",
    13: "K",
}

# Joker kinds
JOKER_NONE = "none"
JOKER_PRINTED = "printed"
JOKER_WILD = "wild"
JOKER_TYPES = (JOKER_NONE, JOKER_PRINTED, JOKER_WILD)

# Point values (deadwood): Ace=1, face cards=10, jokers=0
ACE_POINTS = 1
FACE_POINTS = 10
JOKER_POINTS = 0

# Meld kinds
MELD_PURE_SEQUENCE = "pure-sequence"
MELD_SEQUENCE = "sequence"
MELD_SET = "set"
SEQUENCE_TYPES = (MELD_PURE_SEQUENCE, MELD_SEQUENCE)

MIN_MELD_SIZE = 3
MAX_SET_SIZE = 4
MAX_SEQUENCE_SIZE = 13

# Deck / deal parameters
CARDS_PER_PLAYER = 13
CARDS_PER_DECK = 52
PRINTED_JOKERS_PER_DECK = 1
MIN_PLAYERS = 2
MAX_PLAYERS = 6

# Declaration requirements
MIN_SEQUENCES = 2
MIN_PURE_SEQUENCES = 1

# Variants
VARIANT_POOL_101 = "pool101"
VARIANT_POOL_201 = "pool201"
VARIANT_DEALS = "deals"
VARIANT_POINTS = "points"
VARIANTS = (VARIANT_POOL_101, VARIANT_POOL_201, VARIANT_DEALS, VARIANT_POINTS)

POOL_LIMITS = {
    VARIANT_POOL_101: 101,
    VARIANT_POOL_201: 201,
}

# Maximum points a losing hand can be charged in one round
MAX_ROUND_POINTS = 80
VARIANT_MAX_POINTS = {
    VARIANT_POOL_101: 80,
    VARIANT_POOL_201: 80,
    VARIANT_DEALS: 80,
    VARIANT_POINTS: 80,
}

# Default penalties per variant: (first drop, middle drop, invalid declaration)
DEFAULT_PENALTIES = {
    VARIANT_POOL_101: (20, 40, 80),
    VARIANT_POOL_201: (25, 50, 80),
    VARIANT_DEALS: (20, 40, 80),
    VARIANT_POINTS: (20, 40, 80),
}
DEFAULT_NUMBER_OF_DEALS = 2

# Round outcomes
OUTCOME_VALID = "valid"
OUTCOME_INVALID = "invalid"
OUTCOME_DROP_FIRST = "drop-first"
OUTCOME_DROP_MIDDLE = "drop-middle"
OUTCOMES = (OUTCOME_VALID, OUTCOME_INVALID, OUTCOME_DROP_FIRST, OUTCOME_DROP_MIDDLE)

# Turn phases
PHASE_DRAW = "draw"
PHASE_DISCARD = "discard"

# Draw sources
SOURCE_DECK = "deck"
SOURCE_DISCARD = "discard"

# Bot actions
ACTION_DRAW = "draw"
ACTION_DISCARD = "discard"
ACTION_DECLARE = "declare"
ACTION_DROP = "drop"

# Bot difficulties
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"
DIFFICULTIES = (DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD)

# Game phases
STATUS_SETUP = "setup"
STATUS_PLAYING = "playing"
STATUS_ROUND_END = "round_end"
STATUS_FINISHED = "finished"
