"""
Round State Presenter - Viewer-specific projection of a round.

Decides, per phase and per viewer, which answers a client may see and in
what shape: attributed for the question master, anonymized and deduplicated
for voters, fully revealed once the round has results.
"""

import hashlib
import logging
from typing import Any, Dict, List, Optional

from src.core.game_phases import RoundPhase
from src.core.models import Answer, Game, Round

logger = logging.getLogger(__name__)


class RoundStatePresenter:
    """Centralized service for transforming round state data for clients."""

    def __init__(self, roster_service, answer_ledger):
        """Initialize the round state presenter.

        Args:
            roster_service: Participant roster, for names and QM rotation
            answer_ledger: Answer ledger, for the voting pool
        """
        self.roster_service = roster_service
        self.answer_ledger = answer_ledger

    @staticmethod
    def shuffle_key(round_: Round, answer: Answer) -> str:
        """Stable per-round, per-answer sort key that clients cannot predict."""
        digest = hashlib.md5(f"{round_.shuffle_seed}:{answer.answer_id}".encode('utf-8'))
        return digest.hexdigest()

    def _display_name(self, game: Game, user_id: Optional[str]) -> Optional[str]:
        if user_id is None:
            return None
        participant = game.get_participant(user_id)
        return participant.display_name if participant else None

    def _attributed_answer(self, game: Game, answer: Answer) -> Dict[str, Any]:
        return {
            'id': answer.answer_id,
            'user_id': answer.author_id,
            'display_name': self._display_name(game, answer.author_id),
            'answer_text': answer.text,
            'is_correct': answer.is_correct,
        }

    def create_submissions_for_question_master(self, game: Game, round_: Round) -> List[Dict[str, Any]]:
        """Every participant submission, attributed and flagged, in submission order."""
        submissions = sorted(round_.submitted_answers(), key=lambda a: a.answer_id)
        return [self._attributed_answer(game, a) for a in submissions]

    def create_voting_pool(self, round_: Round, viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Anonymized voting options: the real answer and one entry per distinct bluff.

        Correct guesses are left out. Options are ordered by shuffle_key, which is
        stable across reads of the same round. The viewer's own option is flagged
        so the client can disable it.
        """
        options = self.answer_ledger.voteable_answers(round_)
        options.sort(key=lambda a: self.shuffle_key(round_, a))
        return [
            {
                'id': answer.answer_id,
                'answer_text': answer.text,
                'mine': viewer_id is not None and answer.author_id == viewer_id,
            }
            for answer in options
        ]

    def create_results(self, game: Game, round_: Round) -> List[Dict[str, Any]]:
        """Full reveal ordered by votes received, then correctness."""
        ordered = sorted(
            round_.answers.values(),
            key=lambda a: (-a.votes_received, -int(a.is_correct), a.answer_id)
        )
        results = []
        for answer in ordered:
            item = self._attributed_answer(game, answer)
            item['is_canonical'] = answer.is_canonical
            item['votes_received'] = answer.votes_received
            results.append(item)
        return results

    def project_answers(self, game: Game, round_: Optional[Round], viewer_id: Optional[str]) -> List[Dict[str, Any]]:
        """
        Answers the viewer is entitled to see in the round's current phase.

        Args:
            game: Game owning the round
            round_: Current round, or None while the QM is still picking
            viewer_id: Viewing user, None for an anonymous view

        Returns:
            List of answer payloads
        """
        if round_ is None:
            return []

        is_qm = viewer_id is not None and viewer_id == round_.question_master_id

        if round_.phase == RoundPhase.RESULTS:
            return self.create_results(game, round_)
        if round_.phase == RoundPhase.VOTING:
            if is_qm:
                return self.create_submissions_for_question_master(game, round_)
            return self.create_voting_pool(round_, viewer_id)
        if round_.phase == RoundPhase.ANSWERING and is_qm:
            return self.create_submissions_for_question_master(game, round_)
        return []

    def create_round_state(self, game: Game, viewer_id: Optional[str]) -> Dict[str, Any]:
        """Create the complete round view for one viewer.

        Args:
            game: Game in progress or finished
            viewer_id: Viewing user

        Returns:
            Round state payload for client consumption
        """
        question_master = self.roster_service.question_master(game)
        round_ = game.current_round_record
        is_qm = viewer_id == question_master.user_id

        state: Dict[str, Any] = {
            'game': game.to_summary(),
            'scores': self.roster_service.get_leaderboard(game),
            'round_number': game.current_round,
            'question_master_id': question_master.user_id,
            'qm_name': question_master.display_name,
            'is_question_master': is_qm,
        }

        if round_ is None:
            state.update({
                'status': RoundPhase.PICKING.value,
                'answers': [],
                'answered_count': 0,
                'vote_count': 0,
                'my_answer': None,
                'my_vote': None,
            })
            return state

        show_correct = round_.phase == RoundPhase.RESULTS or is_qm
        my_answer = round_.answer_by_author(viewer_id) if viewer_id else None
        my_vote = round_.votes.get(viewer_id) if viewer_id else None

        state.update({
            'id': round_.round_id,
            'status': round_.phase.value,
            'question_id': round_.question_id,
            'question_text': round_.question_text,
            'answered_count': self.answer_ledger.submitter_count(round_),
            'vote_count': len(round_.votes),
            'answers': self.project_answers(game, round_, viewer_id),
            'my_answer': my_answer.text if my_answer else None,
            'my_answer_correct': bool(my_answer and my_answer.is_correct),
            'my_vote': my_vote.answer_id if my_vote else None,
        })
        if show_correct:
            state['correct_answer'] = round_.canonical_answer.text
        if round_.phase == RoundPhase.RESULTS:
            state['points_awarded'] = dict(round_.points_awarded)
        return state
