"""
Game Manager for BluffQuiz

Single entry point for every game action. Delegates to the lifecycle and
round services, builds client payloads, and sends realtime notifications
once the game's lock has been released.
"""

import logging
from typing import Any, Dict, List, Optional

from src.core.errors import ErrorCode, ForbiddenError, InvalidPhaseError
from src.core.game_phases import GameStatus, RoundPhase
from src.core.models import Actor

logger = logging.getLogger(__name__)


class GameManager:
    """Coordinates game services and notifications."""

    def __init__(self, lifecycle_service, game_flow_service, roster_service, scoring_service,
                 round_state_presenter, content_manager, validation_service, broadcast_service=None):
        self.lifecycle_service = lifecycle_service
        self.game_flow_service = game_flow_service
        self.roster_service = roster_service
        self.scoring_service = scoring_service
        self.round_state_presenter = round_state_presenter
        self.content_manager = content_manager
        self.validation_service = validation_service
        self.broadcast_service = broadcast_service

    # Notifications

    def _notify_lobby(self):
        if self.broadcast_service:
            self.broadcast_service.broadcast_lobby_updated(self.list_games())

    def _notify_game_updated(self, game_id: int):
        if self.broadcast_service:
            self.broadcast_service.broadcast_game_updated(game_id, self.lifecycle_service.get_game(game_id))

    def _notify_round_changed(self, game_id: int, round_number: int, phase: str):
        if self.broadcast_service:
            self.broadcast_service.broadcast_round_changed(game_id, round_number, phase)

    # Session lifecycle

    def create_game(self, actor: Actor, total_rounds: Any = None, end_mode: Any = None,
                    target_points: Any = None, display_name: Any = None) -> Dict[str, Any]:
        display_name = self.validation_service.validate_display_name(display_name)
        game = self.lifecycle_service.create_game(actor, total_rounds, end_mode, target_points, display_name)
        self._notify_lobby()
        return self.lifecycle_service.get_game(game.game_id)

    def list_games(self) -> List[Dict[str, Any]]:
        return [game.to_summary() for game in self.lifecycle_service.list_games()]

    def get_game(self, game_id: int) -> Dict[str, Any]:
        return self.lifecycle_service.get_game(game_id)

    def join_game(self, game_id: int, actor: Actor, display_name: Any = None) -> Dict[str, Any]:
        display_name = self.validation_service.validate_display_name(display_name)
        result = self.lifecycle_service.join_game(game_id, actor, display_name)
        if result['joined']:
            self._notify_game_updated(game_id)
            self._notify_lobby()
        return result

    def leave_game(self, game_id: int, actor: Actor) -> None:
        self.lifecycle_service.leave_game(game_id, actor)
        self._notify_game_updated(game_id)
        self._notify_lobby()

    def start_game(self, game_id: int, actor: Actor) -> Dict[str, Any]:
        game = self.lifecycle_service.start_game(game_id, actor)
        summary = game.to_summary()
        if self.broadcast_service:
            self.broadcast_service.broadcast_game_started(game_id, summary)
        self._notify_round_changed(game_id, summary['current_round'], RoundPhase.PICKING.value)
        self._notify_lobby()
        return summary

    def delete_game(self, game_id: int, actor: Actor) -> bool:
        deleted = self.lifecycle_service.delete_game(game_id, actor)
        self._notify_lobby()
        return deleted

    def get_leaderboard(self, game_id: int) -> List[Dict]:
        return self.lifecycle_service.get_leaderboard(game_id)

    # Round operations

    def list_available_questions(self, game_id: int, actor: Actor, category: Optional[str] = None) -> List[Dict]:
        """Random unused questions the QM can pick from."""
        with self.game_flow_service.game_snapshot(game_id) as game:
            self.roster_service.require_participant(game, actor.user_id)
            used = game.used_question_ids()
        questions = self.content_manager.list_available(
            game_id,
            category=category,
            excluding=used,
            limit=self.validation_service.game_settings.available_question_limit,
        )
        return [q.to_dict() for q in questions]

    def pick_question(self, game_id: int, actor: Actor, question_id: Any) -> Dict[str, Any]:
        question_id = self.validation_service.validate_id(question_id, 'question_id')
        round_ = self.game_flow_service.pick_question(game_id, actor, question_id)
        self._notify_round_changed(game_id, round_.round_number, round_.phase.value)
        return {'round_id': round_.round_id, 'round_number': round_.round_number, 'phase': round_.phase.value}

    def submit_answer(self, game_id: int, actor: Actor, answer_text: Any) -> Dict[str, Any]:
        answer_text = self.validation_service.validate_answer_text(answer_text)
        result = self.game_flow_service.submit_answer(game_id, actor, answer_text)
        self._notify_round_changed(game_id, result['round_number'], result['phase'])
        return result

    def cast_vote(self, game_id: int, actor: Actor, answer_id: Any) -> Dict[str, Any]:
        answer_id = self.validation_service.validate_id(answer_id, 'answer_id')
        result = self.game_flow_service.cast_vote(game_id, actor, answer_id)
        self._notify_round_changed(game_id, result['round_number'], result['phase'])
        return result

    def advance_round(self, game_id: int, actor: Actor) -> Dict[str, Any]:
        game = self.lifecycle_service.advance_round(game_id, actor)
        summary = game.to_summary()
        if game.status == GameStatus.FINISHED:
            leaderboard = self.get_leaderboard(game_id)
            if self.broadcast_service:
                self.broadcast_service.broadcast_game_finished(game_id, leaderboard)
            self._notify_lobby()
            return {'game': summary, 'finished': True, 'leaderboard': leaderboard}

        self._notify_round_changed(game_id, game.current_round, RoundPhase.PICKING.value)
        return {'game': summary, 'finished': False}

    # Reads

    def get_round_state(self, game_id: int, actor: Actor) -> Dict[str, Any]:
        """
        Round view for one viewer, taken from a consistent snapshot.

        Raises:
            ForbiddenError: If the caller is neither a participant nor an administrator
            InvalidPhaseError: If the game has not started
        """
        with self.game_flow_service.game_snapshot(game_id) as game:
            if not game.is_participant(actor.user_id) and not actor.is_admin:
                raise ForbiddenError(
                    ErrorCode.NOT_A_PARTICIPANT,
                    'You are not a participant of this game',
                    {'game_id': game_id}
                )
            if game.status == GameStatus.LOBBY:
                raise InvalidPhaseError(
                    ErrorCode.WRONG_GAME_STATUS,
                    'Game has not started',
                    {'status': game.status.value}
                )
            return self.round_state_presenter.create_round_state(game, actor.user_id)

    def get_scoring_breakdown(self, game_id: int) -> Dict[str, Any]:
        with self.game_flow_service.game_snapshot(game_id) as game:
            return self.scoring_service.get_scoring_breakdown(game)

    # Questions

    def get_categories(self) -> List[str]:
        return self.content_manager.get_categories()

    def list_questions(self, actor: Actor, category: Optional[str] = None) -> List[Dict]:
        """Question bank. Only administrators see the answers."""
        return [q.to_dict(include_answer=actor.is_admin) for q in self.content_manager.list_questions(category)]

    def add_question(self, actor: Actor, question_text: Any, correct_answer: Any,
                     category: Optional[str] = None) -> Dict[str, Any]:
        if not actor.is_admin:
            raise ForbiddenError(ErrorCode.ADMIN_REQUIRED, 'Only administrators can add questions')
        question_text, correct_answer = self.validation_service.validate_question_fields(question_text, correct_answer)
        question = self.content_manager.add_question(question_text, correct_answer, category, actor.user_id)
        return question.to_dict(include_answer=True)

    def update_question(self, actor: Actor, question_id: int, question_text: Any = None,
                        correct_answer: Any = None, category: Optional[str] = None) -> Dict[str, Any]:
        if not actor.is_admin:
            raise ForbiddenError(ErrorCode.ADMIN_REQUIRED, 'Only administrators can edit questions')
        current = self.content_manager.get_question(question_id)
        question_text, correct_answer = self.validation_service.validate_question_fields(
            current.text if question_text is None else question_text,
            current.correct_answer if correct_answer is None else correct_answer,
        )
        question = self.content_manager.update_question(
            question_id, question_text, correct_answer,
            current.category if category is None else category
        )
        return question.to_dict(include_answer=True)

    def delete_question(self, actor: Actor, question_id: int) -> bool:
        if not actor.is_admin:
            raise ForbiddenError(ErrorCode.ADMIN_REQUIRED, 'Only administrators can delete questions')
        return self.content_manager.delete_question(question_id)

