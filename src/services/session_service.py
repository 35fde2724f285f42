"""
Session Service - Manages client sessions and Socket.IO connections.

This service handles:
- Socket ID to caller identity mapping
- Game subscriptions per connection
- Session cleanup on disconnect
"""

import logging
import threading
from typing import Any, Dict, Optional

from src.core.errors import AuthenticationError, ErrorCode
from src.core.models import Actor

logger = logging.getLogger(__name__)

USER_ID_HEADER = 'X-User-Id'
ADMIN_HEADER = 'X-User-Admin'
TRUE_VALUES = ('1', 'true', 'yes', 'on')


def actor_from_headers(headers) -> Actor:
    """
    Build the caller identity from headers set by the authentication layer.

    Raises:
        AuthenticationError: If no user id was supplied
    """
    user_id = (headers.get(USER_ID_HEADER) or '').strip()
    if not user_id:
        raise AuthenticationError(ErrorCode.UNAUTHENTICATED, 'Authentication required')
    is_admin = (headers.get(ADMIN_HEADER) or '').strip().lower() in TRUE_VALUES
    return Actor(user_id=user_id, is_admin=is_admin)


class SessionService:
    """Manages client sessions and Socket.IO connections."""

    def __init__(self):
        """Initialize the session service."""
        # socket_id -> {'actor': Actor, 'games': set of subscribed game ids}
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        logger.info("SessionService initialized")

    def create_session(self, socket_id: str, actor: Actor) -> None:
        """Create or replace the session of a connection.

        Args:
            socket_id: Socket.IO connection ID
            actor: Identity supplied during the handshake
        """
        with self._lock:
            self._sessions[socket_id] = {'actor': actor, 'games': set()}
        logger.debug(f"Created session for {actor.user_id} on socket {socket_id}")

    def get_session(self, socket_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._sessions.get(socket_id)

    def get_actor(self, socket_id: str) -> Actor:
        """Identity of a connection.

        Raises:
            AuthenticationError: If the connection has no session
        """
        session = self.get_session(socket_id)
        if session is None:
            raise AuthenticationError(ErrorCode.UNAUTHENTICATED, 'Authentication required')
        return session['actor']

    def add_subscription(self, socket_id: str, game_id: int) -> bool:
        """Record that a connection follows a game. Returns False without a session."""
        with self._lock:
            session = self._sessions.get(socket_id)
            if session is None:
                return False
            session['games'].add(game_id)
            return True

    def remove_subscription(self, socket_id: str, game_id: int) -> bool:
        with self._lock:
            session = self._sessions.get(socket_id)
            if session is None or game_id not in session['games']:
                return False
            session['games'].discard(game_id)
            return True

    def remove_session(self, socket_id: str) -> Optional[Dict[str, Any]]:
        """Remove a session.

        Returns:
            The removed session info or None if not found
        """
        with self._lock:
            session = self._sessions.pop(socket_id, None)
        if session:
            logger.debug(f"Removed session for {session['actor'].user_id} on socket {socket_id}")
        return session

    def get_sessions_count(self) -> int:
        with self._lock:
            return len(self._sessions)
