"""
Game Lifecycle Service for BluffQuiz

Handles game creation, joining, starting, round-to-round advancement,
termination and deletion.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.config.game_settings import get_game_settings
from src.core.errors import ErrorCode, ForbiddenError, InvalidPhaseError, ValidationError
from src.core.game_phases import EndMode, GameStatus, RoundPhase
from src.core.models import Actor, Game
from src.services.base_service import BaseGameService

logger = logging.getLogger(__name__)


class GameLifecycleService(BaseGameService):
    """Manages the session lifecycle of games."""

    def __init__(self, game_repository, concurrency_control, roster_service, validation_service):
        super().__init__(game_repository, concurrency_control)
        self.roster_service = roster_service
        self.validation_service = validation_service
        self.game_settings = get_game_settings()

    def _require_admin(self, actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise ForbiddenError(ErrorCode.ADMIN_REQUIRED, f"Only administrators can {action}")

    def create_game(self, actor: Actor, total_rounds: Any = None, end_mode: Any = None,
                    target_points: Any = None, display_name: Optional[str] = None) -> Game:
        """
        Create a game in the lobby. The creator joins it with turn order 1.

        Raises:
            ForbiddenError: If the caller is not an administrator
            ValidationError: If the game settings are invalid
        """
        self._require_admin(actor, 'create games')
        total_rounds, mode, target_points = self.validation_service.validate_game_settings(
            total_rounds, end_mode, target_points
        )

        game = self.game_repository.create_game(actor.user_id, total_rounds, mode, target_points)
        with self.game_operation(game.game_id) as locked_game:
            self.roster_service.add_participant(locked_game, actor.user_id, display_name)
            return locked_game

    def join_game(self, game_id: int, actor: Actor, display_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Join a game in the lobby.

        Returns:
            Dict with the participant and whether it was newly added
        """
        with self.game_operation(game_id) as game:
            already_joined = game.is_participant(actor.user_id)
            participant = self.roster_service.add_participant(game, actor.user_id, display_name)
            return {'participant': participant.to_dict(), 'joined': not already_joined}

    def leave_game(self, game_id: int, actor: Actor) -> None:
        with self.game_operation(game_id) as game:
            self.roster_service.remove_participant(game, actor.user_id)

    def start_game(self, game_id: int, actor: Actor) -> Game:
        """
        Move a game from the lobby into round 1.

        Raises:
            ForbiddenError: If the caller is neither the creator nor an administrator
            InvalidPhaseError: If the game has left the lobby
            ValidationError: If too few participants joined
        """
        with self.game_operation(game_id) as game:
            if actor.user_id != game.created_by and not actor.is_admin:
                raise ForbiddenError(ErrorCode.ADMIN_REQUIRED, 'Only the creator or an administrator can start the game')
            if game.status != GameStatus.LOBBY:
                raise InvalidPhaseError(
                    ErrorCode.WRONG_GAME_STATUS,
                    'Game already started',
                    {'status': game.status.value}
                )

            min_players = self.game_settings.min_players_required
            if len(game.participants) < min_players:
                raise ValidationError(
                    ErrorCode.INSUFFICIENT_PLAYERS,
                    f"Need at least {min_players} players to start",
                    {'min_players': min_players, 'player_count': len(game.participants)}
                )

            game.status = GameStatus.IN_PROGRESS
            game.current_round = 1
            game.started_at = datetime.now()
            logger.info(f"Game {game_id} started with {len(game.participants)} players")
            return game

    def _should_finish(self, game: Game) -> bool:
        if game.end_mode == EndMode.POINTS and game.target_points is not None:
            if any(p.score >= game.target_points for p in game.participants):
                return True
        return game.current_round >= game.total_rounds

    def advance_round(self, game_id: int, actor: Actor) -> Game:
        """
        Close the results phase and move to the next round or finish the game.

        Args:
            game_id: ID of the game
            actor: The round's question master or an administrator

        Returns:
            The game, either finished or picking its next round

        Raises:
            InvalidPhaseError: If the game is not in progress or the round has no results yet
            ForbiddenError: If the caller is neither the QM nor an administrator
        """
        with self.game_operation(game_id) as game:
            self.require_in_progress(game)
            round_ = game.current_round_record
            current_phase = round_.phase if round_ else RoundPhase.PICKING
            if current_phase != RoundPhase.RESULTS:
                raise InvalidPhaseError(
                    ErrorCode.WRONG_PHASE,
                    'Round is not finished yet',
                    {'current_phase': current_phase.value}
                )
            if actor.user_id != round_.question_master_id and not actor.is_admin:
                raise ForbiddenError(
                    ErrorCode.NOT_QUESTION_MASTER,
                    'Only the question master or an administrator can advance the round'
                )

            if self._should_finish(game):
                game.status = GameStatus.FINISHED
                game.finished_at = datetime.now()
                logger.info(f"Game {game_id} finished after round {game.current_round}")
            else:
                game.current_round += 1
                logger.info(f"Game {game_id} advanced to round {game.current_round}")
            return game

    def delete_game(self, game_id: int, actor: Actor) -> bool:
        """
        Delete a game together with its rounds and tear down its lock.

        Raises:
            ForbiddenError: If the caller is not an administrator
            NotFoundError: If the game doesn't exist
        """
        self._require_admin(actor, 'delete games')
        with self.game_operation(game_id):
            return self.game_repository.delete_game(game_id)

    def list_games(self) -> List[Game]:
        """Open games, lobby and in progress, newest first."""
        return self.game_repository.list_games([GameStatus.LOBBY, GameStatus.IN_PROGRESS])

    def get_game(self, game_id: int) -> Dict[str, Any]:
        with self.game_snapshot(game_id) as game:
            return game.to_dict()

    def get_leaderboard(self, game_id: int) -> List[Dict]:
        with self.game_snapshot(game_id) as game:
            return self.roster_service.get_leaderboard(game)
