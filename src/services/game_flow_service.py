"""
Game Flow Service for BluffQuiz

Round state machine: picking -> answering -> voting -> results.
Validates each action against the current phase and the caller, applies it,
and fires the automatic transitions while the game's lock is held.
"""

import logging
from typing import Dict

from src.config.game_settings import get_game_settings
from src.core.errors import ConflictError, ErrorCode, ForbiddenError, InvalidPhaseError, NotFoundError
from src.core.game_phases import RoundPhase
from src.core.models import Actor, Game, Round
from src.services.base_service import BaseGameService

logger = logging.getLogger(__name__)


class GameFlowService(BaseGameService):
    """Manages round phases and player submissions."""

    def __init__(self, game_repository, concurrency_control, roster_service, answer_ledger,
                 scoring_service, content_manager):
        super().__init__(game_repository, concurrency_control)
        self.roster_service = roster_service
        self.answer_ledger = answer_ledger
        self.scoring_service = scoring_service
        self.content_manager = content_manager
        self.game_settings = get_game_settings()

    def _require_round(self, game: Game, phase: RoundPhase) -> Round:
        round_ = game.current_round_record
        if round_ is None:
            raise InvalidPhaseError(
                ErrorCode.WRONG_PHASE,
                f"Not in {phase.value} phase",
                {'current_phase': RoundPhase.PICKING.value}
            )
        if round_.phase != phase:
            raise InvalidPhaseError(
                ErrorCode.WRONG_PHASE,
                f"Not in {phase.value} phase",
                {'current_phase': round_.phase.value}
            )
        return round_

    def voting_quorum(self, round_: Round) -> int:
        """
        Number of votes that closes voting.

        Everyone except the QM votes, less the correct-guessers when they are
        excluded from the quorum.
        """
        quorum = round_.participant_count - 1
        guessers = len(round_.correct_guesser_ids())
        if self.game_settings.exclude_guessers_from_quorum:
            return quorum - guessers
        if guessers:
            logger.warning(
                f"Round {round_.round_id} needs {quorum} votes but {guessers} correct-guessers "
                f"cannot vote; voting will not close on its own"
            )
        return quorum

    def pick_question(self, game_id: int, actor: Actor, question_id: int) -> Round:
        """
        Start the current round with the chosen question.

        Args:
            game_id: ID of the game
            actor: Caller, must be the current question master
            question_id: Question to play

        Returns:
            The new round, in answering phase

        Raises:
            NotFoundError: If the game or question doesn't exist
            InvalidPhaseError: If the game is not in progress
            ForbiddenError: If the caller is not the question master
            ConflictError: If the round already started or the question was used
        """
        with self.game_operation(game_id) as game:
            self.require_in_progress(game)

            question_master = self.roster_service.question_master(game)
            if actor.user_id != question_master.user_id:
                raise ForbiddenError(ErrorCode.NOT_QUESTION_MASTER, 'Not your turn to pick')

            if game.current_round in game.rounds:
                raise ConflictError(
                    ErrorCode.ROUND_ALREADY_STARTED,
                    'Round already started',
                    {'round_number': game.current_round}
                )

            question = self.content_manager.get_question(question_id)
            if question.question_id in game.used_question_ids():
                raise ConflictError(
                    ErrorCode.QUESTION_ALREADY_USED,
                    'Question already played in this game',
                    {'question_id': question_id}
                )

            round_ = Round(
                round_id=self.game_repository.next_round_id(),
                game_id=game.game_id,
                round_number=game.current_round,
                question_id=question.question_id,
                question_text=question.text,
                correct_answer=question.correct_answer,
                question_master_id=question_master.user_id,
                participant_count=len(game.participants),
            )
            self.answer_ledger.add_canonical_answer(round_)
            game.rounds[round_.round_number] = round_

            logger.info(f"Round {round_.round_number} of game {game_id} started with question {question_id}")
            return round_

    def submit_answer(self, game_id: int, actor: Actor, answer_text: str) -> Dict:
        """
        Submit or replace the caller's answer for the current round.

        A submission matching the real answer scores immediately. Once every
        participant except the QM has submitted, voting opens.

        Args:
            game_id: ID of the game
            actor: Submitting participant
            answer_text: Validated, trimmed answer text

        Returns:
            Dict with answer_id, correct, points_awarded and the resulting phase

        Raises:
            NotFoundError: If the game doesn't exist
            InvalidPhaseError: If the round is not in answering phase
            ForbiddenError: If the caller is the QM or not a participant
            ConflictError: If the caller already guessed correctly
        """
        with self.game_operation(game_id) as game:
            self.require_in_progress(game)
            round_ = self._require_round(game, RoundPhase.ANSWERING)
            self.roster_service.require_participant(game, actor.user_id)
            if actor.user_id == round_.question_master_id:
                raise ForbiddenError(ErrorCode.QUESTION_MASTER_CANNOT_ANSWER, 'Question master cannot answer')

            answer, guessed = self.answer_ledger.record_submission(round_, actor.user_id, answer_text)
            points = 0
            if guessed:
                points = self.scoring_service.award_correct_guess(game, round_, actor.user_id)

            if self.answer_ledger.submitter_count(round_) >= round_.participant_count - 1:
                self._advance_to_voting_phase(game, round_)

            return {
                'answer_id': answer.answer_id,
                'round_number': round_.round_number,
                'correct': guessed,
                'points_awarded': points,
                'phase': round_.phase.value,
            }

    def cast_vote(self, game_id: int, actor: Actor, answer_id: int) -> Dict:
        """
        Cast or replace the caller's vote. Voting closes once the quorum is reached.

        Args:
            game_id: ID of the game
            actor: Voting participant
            answer_id: Answer the caller believes is the real one

        Returns:
            Dict with the voted answer_id and the resulting phase

        Raises:
            NotFoundError: If the game or answer doesn't exist
            InvalidPhaseError: If the round is not in voting phase
            ForbiddenError: If the caller is the QM, a correct-guesser or not a participant
            ValidationError: If the answer is the caller's own or not in the pool
        """
        with self.game_operation(game_id) as game:
            self.require_in_progress(game)
            round_ = self._require_round(game, RoundPhase.VOTING)
            self.roster_service.require_participant(game, actor.user_id)
            if actor.user_id == round_.question_master_id:
                raise ForbiddenError(ErrorCode.QUESTION_MASTER_CANNOT_VOTE, 'Question master cannot vote')
            if actor.user_id in round_.correct_guesser_ids():
                raise ForbiddenError(
                    ErrorCode.CORRECT_GUESSER_CANNOT_VOTE,
                    'You already found the correct answer this round'
                )

            self.answer_ledger.record_vote(round_, actor.user_id, answer_id)

            if len(round_.votes) >= self.voting_quorum(round_):
                self._advance_to_results_phase(game, round_)

            return {'answer_id': answer_id, 'round_number': round_.round_number, 'phase': round_.phase.value}

    def _advance_to_voting_phase(self, game: Game, round_: Round) -> None:
        """Open voting; close it straight away when nobody is left to vote."""
        round_.phase = RoundPhase.VOTING
        logger.info(f"Round {round_.round_number} of game {game.game_id} advanced to voting")
        if self.voting_quorum(round_) <= 0:
            logger.info(f"No eligible voters in round {round_.round_number} of game {game.game_id}")
            self._advance_to_results_phase(game, round_)

    def _advance_to_results_phase(self, game: Game, round_: Round) -> None:
        """Score the round, then reveal the results."""
        if round_.phase != RoundPhase.VOTING:
            raise InvalidPhaseError(ErrorCode.WRONG_PHASE, 'Round is not in voting phase')
        self.scoring_service.calculate_round_scores(game, round_)
        round_.phase = RoundPhase.RESULTS
        logger.info(f"Round {round_.round_number} of game {game.game_id} advanced to results")

    def get_current_round(self, game_id: int) -> Round:
        """
        Raises:
            NotFoundError: If the game doesn't exist or the QM is still picking
        """
        with self.game_snapshot(game_id) as game:
            round_ = game.current_round_record
            if round_ is None:
                raise NotFoundError(ErrorCode.ROUND_NOT_FOUND, 'Round has not started yet')
            return round_
