"""Persistence contract the game engine relies on."""

from __future__ import annotations

from typing import Protocol

from src.game.models import GameState


class GameRepository(Protocol):
    """Stores game states with optimistic locking on ``GameState.version``."""

    def get_game(self, game_id: str) -> GameState | None:
        """A private copy of the game, or None if unknown."""
        ...

    def save_game(self, game: GameState) -> None:
        """Store the game and bump its version.

        Raises ValueError (VersionConflictError in the in-memory store) when
        ``game`` was loaded before another save.
        """
        ...

    def delete_game(self, game_id: str) -> None:
        ...

    def list_games(self, status: str | None = None) -> list[str]:
        """Known game ids, optionally filtered by game status."""
        ...
