"""
Answer Ledger for BluffQuiz

Owns the answers and votes of a round: the canonical answer, player bluffs,
correct-guess detection, duplicate grouping and the vote tally.
Callers hold the game's lock while invoking the mutating methods.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Tuple

from src.core.errors import ConflictError, ErrorCode, NotFoundError, ValidationError
from src.core.models import Answer, Round, Vote

logger = logging.getLogger(__name__)


def normalize_answer_text(text: str) -> str:
    """Comparison form of an answer: trimmed and case-insensitive."""
    return text.strip().casefold()


class AnswerLedger:
    """Manages the answer and vote records of a round."""

    def __init__(self, game_repository):
        self.game_repository = game_repository

    def add_canonical_answer(self, round_: Round) -> Answer:
        """Insert the round's real answer. It has no author and is always correct."""
        answer = self.game_repository.new_answer(round_.round_id, None, round_.correct_answer.strip(), True)
        round_.answers[answer.answer_id] = answer
        return answer

    def matches_canonical(self, round_: Round, text: str) -> bool:
        return normalize_answer_text(text) == normalize_answer_text(round_.canonical_answer.text)

    def record_submission(self, round_: Round, user_id: str, text: str) -> Tuple[Answer, bool]:
        """
        Store a participant's answer, replacing an earlier bluff in place.

        Args:
            round_: Round in its answering phase
            user_id: Submitting participant
            text: Trimmed answer text

        Returns:
            Tuple of (answer, guessed_correctly)

        Raises:
            ConflictError: If the participant already matched the real answer
        """
        is_correct = self.matches_canonical(round_, text)
        answer = round_.answer_by_author(user_id)

        if answer is not None:
            if answer.is_correct:
                raise ConflictError(
                    ErrorCode.ALREADY_GUESSED_CORRECTLY,
                    'You already found the correct answer this round'
                )
            answer.text = text
            answer.is_correct = is_correct
            logger.debug(f"Replaced answer {answer.answer_id} of {user_id} in round {round_.round_id}")
        else:
            answer = self.game_repository.new_answer(round_.round_id, user_id, text, is_correct)
            round_.answers[answer.answer_id] = answer

        return answer, is_correct

    def submitter_count(self, round_: Round) -> int:
        return len(round_.submitted_answers())

    def bluff_groups(self, round_: Round) -> Dict[str, List[Answer]]:
        """
        Group bluffs by normalized text.

        Correct guesses and the canonical answer never join a group. Groups and
        their members keep submission order, so the first member of each group
        is its representative.
        """
        groups: Dict[str, List[Answer]] = OrderedDict()
        for answer in sorted(round_.answers.values(), key=lambda a: a.answer_id):
            if not answer.is_bluff:
                continue
            groups.setdefault(normalize_answer_text(answer.text), []).append(answer)
        return groups

    def voteable_answers(self, round_: Round) -> List[Answer]:
        """The canonical answer plus one representative per distinct bluff text."""
        options = [round_.canonical_answer]
        options.extend(group[0] for group in self.bluff_groups(round_).values())
        return options

    def record_vote(self, round_: Round, voter_id: str, answer_id: int) -> Vote:
        """
        Store a vote, replacing the voter's earlier vote in place.

        Raises:
            NotFoundError: If the answer is not part of this round
            ValidationError: If the answer is the voter's own or was a correct guess
        """
        answer = round_.answers.get(answer_id)
        if answer is None:
            raise NotFoundError(
                ErrorCode.ANSWER_NOT_FOUND,
                f"Answer {answer_id} is not part of this round",
                {'answer_id': answer_id}
            )
        if answer.author_id == voter_id:
            raise ValidationError(ErrorCode.CANNOT_VOTE_OWN_ANSWER, 'Cannot vote for your own answer')
        if answer.is_correct_guess:
            raise ValidationError(
                ErrorCode.INVALID_VOTE_TARGET,
                'That answer is not part of the voting pool',
                {'answer_id': answer_id}
            )

        vote = Vote(voter_id=voter_id, answer_id=answer_id)
        round_.votes[voter_id] = vote
        return vote

    def tally_votes(self, round_: Round) -> None:
        """
        Recompute votes_received for every answer of the round.

        A vote for any member of a duplicate-text group counts for every member,
        so each author of a shared bluff is credited with the group's votes.
        """
        direct: Dict[int, int] = {}
        for vote in round_.votes.values():
            direct[vote.answer_id] = direct.get(vote.answer_id, 0) + 1

        for answer in round_.answers.values():
            answer.votes_received = direct.get(answer.answer_id, 0)

        for group in self.bluff_groups(round_).values():
            group_votes = sum(direct.get(member.answer_id, 0) for member in group)
            for member in group:
                member.votes_received = group_votes
