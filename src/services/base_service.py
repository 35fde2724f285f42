"""
Base Service - Common patterns for services that mutate games

Provides:
- Consistent logging setup
- Serialized access to a single game
- Common status checks
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from src.core.errors import ErrorCode, InvalidPhaseError
from src.core.game_phases import GameStatus
from src.core.models import Game


class BaseGameService:
    """
    Base class for services that read or mutate a game under its lock.

    Every operation looks the game up, takes that game's lock, then looks the
    game up again so a concurrent delete is observed as NotFound.
    """

    def __init__(self, game_repository, concurrency_control):
        """
        Initialize base service.

        Args:
            game_repository: Storage of games
            concurrency_control: Per-game lock provider
        """
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.game_repository = game_repository
        self.concurrency_control = concurrency_control

    @contextmanager
    def game_operation(self, game_id: int) -> Iterator[Game]:
        """Yield the game while holding its lock. The lock is torn down once the game is over."""
        self.game_repository.require_game(game_id)
        try:
            with self.concurrency_control.game_operation(game_id):
                yield self.game_repository.require_game(game_id)
        finally:
            game = self.game_repository.get_game(game_id)
            if game is None or game.status == GameStatus.FINISHED:
                self.concurrency_control.cleanup_game_lock(game_id)

    @contextmanager
    def game_snapshot(self, game_id: int) -> Iterator[Game]:
        """
        Yield the game for a consistent read.

        Finished games are immutable and their lock has been released, so they
        are read without one.
        """
        game = self.game_repository.require_game(game_id)
        if game.status == GameStatus.FINISHED:
            yield game
            return
        with self.game_operation(game_id) as locked_game:
            yield locked_game

    def require_in_progress(self, game: Game) -> None:
        """
        Raises:
            InvalidPhaseError: If the game is in the lobby or already finished
        """
        if game.status == GameStatus.FINISHED:
            raise InvalidPhaseError(ErrorCode.GAME_FINISHED, 'Game has finished', {'game_id': game.game_id})
        if game.status != GameStatus.IN_PROGRESS:
            raise InvalidPhaseError(
                ErrorCode.WRONG_GAME_STATUS,
                'Game not active',
                {'game_id': game.game_id, 'status': game.status.value}
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
