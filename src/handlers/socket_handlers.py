"""
Socket.IO event handlers for BluffQuiz.

Clients connect with the same identity headers as the REST API, subscribe to
the games they follow, and reload their round view when notified.
"""

import logging
from flask import request
from flask_socketio import emit, join_room, leave_room

from src.core.errors import GameError
from src.error_handler import with_error_handling
from src.services.broadcast_service import LOBBY_ROOM, game_room
from src.services.session_service import actor_from_headers

logger = logging.getLogger(__name__)


def register_socket_handlers(socketio_instance, services):
    """Register all socket handlers with the SocketIO instance."""
    game_manager = services['game_manager']
    session_service = services['session_service']
    validation_service = services['validation_service']

    def requested_game_id(data):
        data = validation_service.validate_request_data(data, ['game_id'])
        return validation_service.validate_id(data['game_id'], 'game_id')

    def handle_connect(auth=None):
        """Accept a connection only when the handshake carries an identity."""
        try:
            actor = actor_from_headers(request.headers)
        except GameError as e:
            logger.warning(f'Rejecting connection {request.sid}: {e.message}')
            return False
        session_service.create_session(request.sid, actor)
        logger.info(f'Client connected: {request.sid} as {actor.user_id} '
                    f'({session_service.get_sessions_count()} connected)')
        emit('connected', {'user_id': actor.user_id, 'is_admin': actor.is_admin})

    def handle_disconnect(reason=None):
        session = session_service.remove_session(request.sid)
        if session:
            logger.info(f"Client disconnected: {request.sid} ({session['actor'].user_id})")

    @with_error_handling
    def handle_subscribe_game(data=None):
        """Follow a game's notifications and receive its current state."""
        session_service.get_actor(request.sid)
        game_id = requested_game_id(data)
        game = game_manager.get_game(game_id)
        join_room(game_room(game_id))
        session_service.add_subscription(request.sid, game_id)
        emit('subscribed', {'game_id': game_id, 'game': game})

    @with_error_handling
    def handle_unsubscribe_game(data=None):
        session_service.get_actor(request.sid)
        game_id = requested_game_id(data)
        leave_room(game_room(game_id))
        session_service.remove_subscription(request.sid, game_id)
        emit('unsubscribed', {'game_id': game_id})

    @with_error_handling
    def handle_subscribe_lobby(data=None):
        session_service.get_actor(request.sid)
        join_room(LOBBY_ROOM)
        emit('lobby_updated', {'games': game_manager.list_games()})

    @with_error_handling
    def handle_get_round_state(data=None):
        """Send the caller's view of the current round."""
        actor = session_service.get_actor(request.sid)
        game_id = requested_game_id(data)
        emit('round_state', game_manager.get_round_state(game_id, actor))

    socketio_instance.on_event('connect', handle_connect)
    socketio_instance.on_event('disconnect', handle_disconnect)
    socketio_instance.on_event('subscribe_game', handle_subscribe_game)
    socketio_instance.on_event('unsubscribe_game', handle_unsubscribe_game)
    socketio_instance.on_event('subscribe_lobby', handle_subscribe_lobby)
    socketio_instance.on_event('get_round_state', handle_get_round_state)

    logger.info("Registered socket event handlers")
