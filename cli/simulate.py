"""Simulate Indian Rummy games between bots.

Usage: python -m cli.simulate --games 20 --players 3 [--variant pool101]
       [--difficulty medium] [--seed 42] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import time

from src.db.memory import InMemoryGameRepository
from src.game.bot import get_bot_name
from src.game.engine import GameEngine
from src.game.integrity import validate_game_integrity
from src.game.models import GameConfig, Player
from src.utils.constants import (
    DIFFICULTIES,
    DIFFICULTY_MEDIUM,
    MAX_PLAYERS,
    MIN_PLAYERS,
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_ROUND_END,
    VARIANT_POOL_101,
    VARIANTS,
)
from src.utils.rng import create_rng


def make_bots(num_players: int, difficulties: list[str]) -> list[Player]:
    """Seat ``num_players`` bots, cycling through ``difficulties``."""
    players = []
    for i in range(num_players):
        difficulty = difficulties[i % len(difficulties)]
        players.append(Player(
            player_id=f"bot{i + 1}",
            name=get_bot_name(difficulty, i),
            is_bot=True,
            difficulty=difficulty,
        ))
    return players


def simulate_game(
    num_players: int,
    seed: int,
    variant: str = VARIANT_POOL_101,
    difficulties: list[str] | None = None,
    max_turns: int = 3000,
    verbose: bool = False,
    repo: InMemoryGameRepository | None = None,
) -> dict:
    """Simulate one complete game. Returns stats dict.

    Pass ``repo`` to keep every simulated game in one store.
    """
    repo = repo if repo is not None else InMemoryGameRepository()
    engine = GameEngine(repo, create_rng(seed))

    players = make_bots(num_players, difficulties or [DIFFICULTY_MEDIUM])
    game = engine.create_game(players, GameConfig.for_variant(variant), seed=seed)
    result = engine.start_round(game.game_id)
    game = result.game

    turn_count = 0
    drops = 0
    declarations = 0

    while game.status != STATUS_FINISHED and turn_count < max_turns:
        if game.status == STATUS_ROUND_END:
            result = engine.start_round(game.game_id)
            if not result.success:
                return {"error": result.error, "turns": turn_count}
            game = result.game

        if game.status != STATUS_PLAYING:
            break

        errors = validate_game_integrity(game)
        if errors:
            return {"error": f"Integrity: {errors}", "turns": turn_count}

        result = engine.execute_bot_turn(game.game_id)
        if not result.success:
            return {"error": result.error, "turns": turn_count}
        game = result.game
        turn_count += 1

        for event in result.events:
            if event["event"] == "drop":
                drops += 1
            elif event["event"] == "declare":
                declarations += 1

        if verbose and turn_count % 100 == 0:
            print(f"  Turn {turn_count}, round {game.current_round.round_number}")

    if game.status != STATUS_FINISHED:
        return {"error": f"No winner after {max_turns} turns", "turns": turn_count}

    return {
        "winner": game.winner,
        "turns": turn_count,
        "rounds": len(game.round_results),
        "drops": drops,
        "declarations": declarations,
        "scores": dict(game.scores),
        "error": None,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Indian Rummy bot simulator")
    parser.add_argument("--games", type=int, default=20)
    parser.add_argument(
        "--players", type=int, default=3, choices=range(MIN_PLAYERS, MAX_PLAYERS + 1)
    )
    parser.add_argument("--variant", default=VARIANT_POOL_101, choices=VARIANTS)
    parser.add_argument(
        "--difficulty", action="append", choices=DIFFICULTIES,
        help="Bot difficulty; repeat to mix levels around the table",
    )
    parser.add_argument("--max-turns", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")

    base_seed = args.seed if args.seed is not None else int(time.time())
    difficulties = args.difficulty or [DIFFICULTY_MEDIUM]
    print(
        f"Simulating {args.games} {args.variant} games with {args.players} bots "
        f"({', '.join(difficulties)}, base seed: {base_seed})"
    )

    repo = InMemoryGameRepository()
    errors = 0
    wins: dict[str, int] = {}
    total_turns = 0
    total_rounds = 0
    total_drops = 0

    for i in range(args.games):
        result = simulate_game(
            args.players,
            base_seed + i,
            variant=args.variant,
            difficulties=difficulties,
            max_turns=args.max_turns,
            verbose=args.verbose,
            repo=repo,
        )

        if result.get("error"):
            errors += 1
            if args.verbose:
                print(f"  Game {i + 1}: ERROR - {result['error']}")
            continue

        winner = result["winner"] or "none"
        wins[winner] = wins.get(winner, 0) + 1
        total_turns += result["turns"]
        total_rounds += result["rounds"]
        total_drops += result["drops"]
        if args.verbose:
            print(
                f"  Game {i + 1}: winner={winner}, "
                f"turns={result['turns']}, rounds={result['rounds']}"
            )

    completed = args.games - errors
    print("\nResults:")
    print(f"  Games completed: {completed}/{args.games}")
    print(f"  Errors: {errors}")
    finished = repo.list_games(STATUS_FINISHED)
    print(f"  Stored games: {len(repo.list_games())} ({len(finished)} finished)")
    if completed > 0:
        print(f"  Average turns: {total_turns / completed:.1f}")
        print(f"  Average rounds: {total_rounds / completed:.1f}")
        print(f"  Drops: {total_drops}")
        print(f"  Wins: {wins}")


if __name__ == "__main__":
    main()
