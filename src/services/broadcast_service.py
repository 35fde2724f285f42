"""
Broadcast Service - Centralized Socket.IO message broadcasting.

This service handles all Socket.IO emissions in a centralized way:
- Game-wide notifications
- Lobby updates
- Individual client messages
- Error handling so a failed emit never affects game state
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LOBBY_ROOM = 'lobby'


def game_room(game_id: int) -> str:
    """Socket.IO room that subscribers of a game join."""
    return f"game:{game_id}"


class BroadcastService:
    """Centralized service for all Socket.IO broadcasting operations."""

    def __init__(self, socketio):
        """Initialize the broadcast service.

        Args:
            socketio: Flask-SocketIO instance for emitting messages
        """
        self.socketio = socketio

    # Core emission methods

    def emit_to_room(self, event: str, data: Dict[str, Any], room: str) -> bool:
        """Emit an event to every client in a room. Failures are logged, never raised."""
        try:
            self.socketio.emit(event, data, room=room)
            logger.debug(f'Emitted {event} to room {room}')
            return True
        except Exception as e:
            logger.warning(f'Error emitting {event} to room {room}: {e}')
            return False

    def notify(self, game_id: int, event: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """Best-effort notification to the subscribers of a game."""
        data = {'game_id': game_id}
        data.update(payload or {})
        return self.emit_to_room(event, data, game_room(game_id))

    # High-level broadcast methods

    def broadcast_round_changed(self, game_id: int, round_number: int, phase: str) -> bool:
        """Tell clients to reload their round view."""
        return self.notify(game_id, 'round_changed', {'round_number': round_number, 'phase': phase})

    def broadcast_game_finished(self, game_id: int, leaderboard: List[Dict]) -> bool:
        return self.notify(game_id, 'game_finished', {'leaderboard': leaderboard})

    def broadcast_game_started(self, game_id: int, game_summary: Dict[str, Any]) -> bool:
        return self.notify(game_id, 'game_started', {'game': game_summary})

    def broadcast_game_updated(self, game_id: int, game_data: Dict[str, Any]) -> bool:
        """Roster or settings of a game changed."""
        return self.notify(game_id, 'game_updated', {'game': game_data})

    def broadcast_lobby_updated(self, games: List[Dict[str, Any]]) -> bool:
        """Send the list of open games to clients browsing the lobby."""
        return self.emit_to_room('lobby_updated', {'games': games}, LOBBY_ROOM)
