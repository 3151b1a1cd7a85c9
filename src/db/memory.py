"""In-memory game repository for tests and the simulation CLI."""

from __future__ import annotations

import copy
import logging

from src.game.models import GameState

logger = logging.getLogger("rummy.db")


class VersionConflictError(ValueError):
    """A game was saved from a stale copy."""

    def __init__(self, game_id: str, expected: int, found: int) -> None:
        super().__init__(
            f"Version conflict on game {game_id}: expected {expected}, found {found}"
        )
        self.game_id = game_id
        self.expected = expected
        self.found = found


class InMemoryGameRepository:
    """Keeps games keyed by id, stored and handed out as deep copies.

    Every save bumps ``version``; saving a copy whose version no longer
    matches the stored one raises VersionConflictError.
    """

    def __init__(self) -> None:
        self._games: dict[str, GameState] = {}

    def get_game(self, game_id: str) -> GameState | None:
        game = self._games.get(game_id)
        return copy.deepcopy(game) if game is not None else None

    def save_game(self, game: GameState) -> None:
        stored = self._games.get(game.game_id)
        if stored is not None and stored.version != game.version:
            logger.warning(
                "Stale save for game %s (version %d, stored %d)",
                game.game_id, game.version, stored.version,
            )
            raise VersionConflictError(game.game_id, game.version, stored.version)
        snapshot = copy.deepcopy(game)
        snapshot.version = game.version + 1
        self._games[game.game_id] = snapshot

    def delete_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)

    def list_games(self, status: str | None = None) -> list[str]:
        """Game ids in save order, optionally only those in ``status``."""
        return [
            game_id for game_id, game in self._games.items()
            if status is None or game.status == status
        ]
