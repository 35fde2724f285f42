"""
Concurrency Control Service for BluffQuiz

Serializes every mutation of a game behind a lock owned by that game alone.
Games never share a lock, so unrelated games never wait on each other.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict

logger = logging.getLogger(__name__)


class ConcurrencyControlService:
    """Manages per-game locks."""

    def __init__(self):
        # Per-game locks for fine-grained control
        self._game_locks: Dict[int, threading.RLock] = {}
        # Lock for managing game locks themselves
        self._locks_lock = threading.Lock()

    def get_game_lock(self, game_id: int) -> threading.RLock:
        """Get or create the lock for a specific game."""
        with self._locks_lock:
            if game_id not in self._game_locks:
                self._game_locks[game_id] = threading.RLock()
                logger.debug(f"Created lock for game {game_id}")
            return self._game_locks[game_id]

    def cleanup_game_lock(self, game_id: int):
        """Drop the lock of a finished or deleted game."""
        with self._locks_lock:
            if game_id in self._game_locks:
                del self._game_locks[game_id]
                logger.debug(f"Released lock for game {game_id}")

    def has_game_lock(self, game_id: int) -> bool:
        with self._locks_lock:
            return game_id in self._game_locks

    @contextmanager
    def game_operation(self, game_id: int):
        """Context manager for serialized game operations."""
        game_lock = self.get_game_lock(game_id)
        with game_lock:
            yield
