"""
Game Repository for BluffQuiz

Keeps games, their rounds and answer ledgers in memory and hands out identifiers.
Callers hold the owning game's lock while they mutate a returned Game.
"""

import itertools
import logging
import threading
from typing import Dict, List, Optional

from src.core.errors import ErrorCode, NotFoundError
from src.core.game_phases import EndMode, GameStatus
from src.core.models import Answer, Game

logger = logging.getLogger(__name__)


class GameRepository:
    """In-memory storage of games with thread-safe id allocation."""

    def __init__(self):
        self._games: Dict[int, Game] = {}
        self._games_lock = threading.RLock()
        self._game_ids = itertools.count(1)
        self._round_ids = itertools.count(1)
        self._answer_ids = itertools.count(1)

    def create_game(self, created_by: str, total_rounds: int, end_mode: EndMode,
                    target_points: Optional[int] = None) -> Game:
        """
        Create a new game in the lobby.

        Args:
            created_by: User id of the creator
            total_rounds: Round limit of the game
            end_mode: Whether the game ends on rounds or points
            target_points: Score that ends a points-mode game

        Returns:
            The stored Game
        """
        with self._games_lock:
            game = Game(
                game_id=next(self._game_ids),
                created_by=created_by,
                total_rounds=total_rounds,
                end_mode=end_mode,
                target_points=target_points,
            )
            self._games[game.game_id] = game
            logger.info(f"Created game {game.game_id} for {created_by}")
            return game

    def get_game(self, game_id: int) -> Optional[Game]:
        with self._games_lock:
            return self._games.get(game_id)

    def require_game(self, game_id: int) -> Game:
        """
        Get a game or fail.

        Raises:
            NotFoundError: If the game does not exist
        """
        game = self.get_game(game_id)
        if game is None:
            raise NotFoundError(ErrorCode.GAME_NOT_FOUND, f"Game {game_id} not found", {'game_id': game_id})
        return game

    def delete_game(self, game_id: int) -> bool:
        """
        Delete a game together with its rounds, answers and votes.

        Returns:
            True if the game was deleted, False if it didn't exist
        """
        with self._games_lock:
            if game_id in self._games:
                del self._games[game_id]
                logger.info(f"Deleted game {game_id}")
                return True
            return False

    def list_games(self, statuses: Optional[List[GameStatus]] = None) -> List[Game]:
        """List games, newest first, optionally filtered by status."""
        with self._games_lock:
            games = list(self._games.values())
        if statuses is not None:
            games = [g for g in games if g.status in statuses]
        return sorted(games, key=lambda g: (g.created_at, g.game_id), reverse=True)

    def next_round_id(self) -> int:
        with self._games_lock:
            return next(self._round_ids)

    def new_answer(self, round_id: int, author_id: Optional[str], text: str, is_correct: bool) -> Answer:
        with self._games_lock:
            answer_id = next(self._answer_ids)
        return Answer(answer_id=answer_id, round_id=round_id, author_id=author_id,
                      text=text, is_correct=is_correct)
