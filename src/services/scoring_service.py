"""
Scoring Service for BluffQuiz

Handles score calculation for game rounds and the per-participant scoring breakdown.
"""

import logging
from typing import Dict

from src.config.game_settings import get_game_settings
from src.core.models import Game, Round

logger = logging.getLogger(__name__)


class ScoringService:
    """Manages scoring calculation for game rounds."""

    def __init__(self, roster_service, answer_ledger):
        self.roster_service = roster_service
        self.answer_ledger = answer_ledger
        self.game_settings = get_game_settings()

    @property
    def points(self) -> Dict[str, int]:
        return self.game_settings.scoring_points

    def _award(self, game: Game, round_: Round, user_id: str, points: int, round_scores: Dict[str, int]) -> None:
        if points <= 0:
            return
        if self.roster_service.add_points(game, user_id, points):
            round_scores[user_id] = round_scores.get(user_id, 0) + points
            round_.points_awarded[user_id] = round_.points_awarded.get(user_id, 0) + points

    def award_correct_guess(self, game: Game, round_: Round, user_id: str) -> int:
        """
        Award the immediate bonus for matching the real answer during answering.

        Returns:
            Points awarded
        """
        round_scores: Dict[str, int] = {}
        self._award(game, round_, user_id, self.points['correct_guess'], round_scores)
        logger.info(f"{user_id} guessed the answer in round {round_.round_number} of game {game.game_id}")
        return round_scores.get(user_id, 0)

    def calculate_round_scores(self, game: Game, round_: Round) -> Dict[str, int]:
        """
        Tally the votes of a round and award points. Runs at most once per round.

        Args:
            game: Game owning the round
            round_: Round whose voting just closed

        Returns:
            Dict mapping user_id to points earned from the vote
        """
        round_scores: Dict[str, int] = {}
        if round_.scored:
            logger.warning(f"Round {round_.round_id} of game {game.game_id} already scored, skipping")
            return round_scores

        self.answer_ledger.tally_votes(round_)
        canonical = round_.canonical_answer

        # Correct voters: points for each vote on the real answer
        correct_voters = [v.voter_id for v in round_.votes.values() if v.answer_id == canonical.answer_id]
        for voter_id in correct_voters:
            self._award(game, round_, voter_id, self.points['correct_vote'], round_scores)

        # Nobody found the real answer: the question master fooled everyone
        if not correct_voters:
            self._award(game, round_, round_.question_master_id, self.points['qm_bonus'], round_scores)

        # Bluffs: points per vote received, duplicates already propagated by the tally
        for answer in round_.answers.values():
            if answer.is_bluff and answer.votes_received > 0:
                self._award(game, round_, answer.author_id,
                            answer.votes_received * self.points['bluff_vote'], round_scores)

        round_.scored = True
        logger.info(f"Scored round {round_.round_number} of game {game.game_id}: {round_scores}")
        return round_scores

    def get_scoring_breakdown(self, game: Game) -> Dict:
        """
        Count, per participant, the events that earned points across all rounds.

        Derived from the stored answers and votes only, so it can be rebuilt at
        any time without touching scores.
        """
        breakdown = {}
        for participant in self.roster_service.ordered_participants(game):
            breakdown[participant.user_id] = {
                'user_id': participant.user_id,
                'display_name': participant.display_name,
                'correct_guesses': 0,
                'correct_votes': 0,
                'bluff_votes_received': 0,
                'qm_bonuses': 0,
                'points': 0,
                'score': participant.score,
            }

        def entry(user_id):
            return breakdown.get(user_id)

        rounds_scored = 0
        for round_ in sorted(game.rounds.values(), key=lambda r: r.round_number):
            for guesser_id in round_.correct_guesser_ids():
                if entry(guesser_id):
                    entry(guesser_id)['correct_guesses'] += 1

            if not round_.scored:
                continue
            rounds_scored += 1

            canonical_id = round_.canonical_answer.answer_id
            direct: Dict[int, int] = {}
            correct_votes = 0
            for vote in round_.votes.values():
                direct[vote.answer_id] = direct.get(vote.answer_id, 0) + 1
                if vote.answer_id == canonical_id:
                    correct_votes += 1
                    if entry(vote.voter_id):
                        entry(vote.voter_id)['correct_votes'] += 1

            if correct_votes == 0 and entry(round_.question_master_id):
                entry(round_.question_master_id)['qm_bonuses'] += 1

            for group in self.answer_ledger.bluff_groups(round_).values():
                group_votes = sum(direct.get(member.answer_id, 0) for member in group)
                for member in group:
                    if entry(member.author_id):
                        entry(member.author_id)['bluff_votes_received'] += group_votes

        points = self.points
        for item in breakdown.values():
            item['points'] = (
                item['correct_guesses'] * points['correct_guess']
                + item['correct_votes'] * points['correct_vote']
                + item['qm_bonuses'] * points['qm_bonus']
                + item['bluff_votes_received'] * points['bluff_vote']
            )

        return {
            'game_id': game.game_id,
            'rounds_played': len(game.rounds),
            'rounds_scored': rounds_scored,
            'scoring_rules': dict(points),
            'participants': list(breakdown.values()),
        }
