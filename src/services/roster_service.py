"""
Participant Roster Service for BluffQuiz

Handles joining, leaving, turn order, score bookkeeping and question master rotation.
Callers hold the game's lock while invoking the mutating methods.
"""

import logging
from typing import Dict, List, Optional, Sequence

from src.config.game_settings import get_game_settings
from src.core.errors import ConflictError, ErrorCode, ForbiddenError, InvalidPhaseError, NotFoundError
from src.core.game_phases import GameStatus
from src.core.models import Game, Participant

logger = logging.getLogger(__name__)


def question_master_for_round(participants: Sequence[Participant], round_number: int) -> Participant:
    """
    Derive the question master of a round.

    The QM is the participant at position (round_number - 1) mod N in turn
    order, so QM(r) == QM(r + N) for any roster of size N.

    Args:
        participants: The game's participants, in any order
        round_number: 1-based round counter

    Returns:
        The participant acting as QM for that round

    Raises:
        ValueError: If the roster is empty or round_number is not positive
    """
    if not participants:
        raise ValueError("Cannot derive a question master from an empty roster")
    if round_number < 1:
        raise ValueError(f"Round numbers start at 1, got {round_number}")
    ordered = sorted(participants, key=lambda p: p.turn_order)
    return ordered[(round_number - 1) % len(ordered)]


class RosterService:
    """Manages participants within games."""

    def __init__(self):
        self.game_settings = get_game_settings()

    def ordered_participants(self, game: Game) -> List[Participant]:
        return sorted(game.participants, key=lambda p: p.turn_order)

    def question_master(self, game: Game, round_number: Optional[int] = None) -> Participant:
        """QM for the given round number, or for the game's current round."""
        return question_master_for_round(game.participants, round_number or game.current_round)

    def require_participant(self, game: Game, user_id: str) -> Participant:
        """
        Get a participant or fail.

        Raises:
            ForbiddenError: If the user is not part of the game
        """
        participant = game.get_participant(user_id)
        if participant is None:
            raise ForbiddenError(
                ErrorCode.NOT_A_PARTICIPANT,
                'You are not a participant of this game',
                {'game_id': game.game_id}
            )
        return participant

    def add_participant(self, game: Game, user_id: str, display_name: Optional[str] = None) -> Participant:
        """
        Add a user to a game in the lobby. Joining twice returns the existing participant.

        Args:
            game: Game to join
            user_id: Joining user
            display_name: Name shown to other players, defaults to the user id

        Returns:
            The participant record

        Raises:
            InvalidPhaseError: If the game has left the lobby
            ConflictError: If the game is full
        """
        existing = game.get_participant(user_id)
        if existing is not None:
            return existing

        if game.status != GameStatus.LOBBY:
            raise InvalidPhaseError(
                ErrorCode.WRONG_GAME_STATUS,
                'Game is not in lobby',
                {'status': game.status.value}
            )

        max_players = self.game_settings.max_players_per_game
        if len(game.participants) >= max_players:
            raise ConflictError(ErrorCode.GAME_FULL, f"Game {game.game_id} is full", {'max_players': max_players})

        participant = Participant(
            user_id=user_id,
            turn_order=len(game.participants) + 1,
            display_name=display_name or user_id,
        )
        game.participants.append(participant)
        logger.info(f"{user_id} joined game {game.game_id} with turn order {participant.turn_order}")
        return participant

    def remove_participant(self, game: Game, user_id: str) -> None:
        """
        Remove a participant from a game in the lobby.

        Remaining turn orders are packed so they stay 1-based and contiguous.

        Raises:
            InvalidPhaseError: If the game has left the lobby
            ForbiddenError: If the user is the creator
            NotFoundError: If the user is not in the game
        """
        if game.status != GameStatus.LOBBY:
            raise InvalidPhaseError(
                ErrorCode.WRONG_GAME_STATUS,
                'Cannot leave a game in progress',
                {'status': game.status.value}
            )
        if game.created_by == user_id:
            raise ForbiddenError(ErrorCode.CREATOR_CANNOT_LEAVE, 'Creator cannot leave - delete the game instead')

        participant = game.get_participant(user_id)
        if participant is None:
            raise NotFoundError(ErrorCode.NOT_A_PARTICIPANT, 'You are not a participant of this game')

        game.participants.remove(participant)
        for position, remaining in enumerate(self.ordered_participants(game), start=1):
            remaining.turn_order = position
        logger.info(f"{user_id} left game {game.game_id}")

    def add_points(self, game: Game, user_id: str, points: int) -> bool:
        """
        Add points to a participant. Scores never decrease.

        Returns:
            True if the participant exists and was updated
        """
        if points < 0:
            raise ValueError(f"Scores only ever increase, got {points}")
        participant = game.get_participant(user_id)
        if participant is None:
            logger.warning(f"Cannot award {points} points to {user_id}: not in game {game.game_id}")
            return False
        participant.score += points
        return True

    def get_leaderboard(self, game: Game) -> List[Dict]:
        """
        Get the participants sorted by score (highest first).

        Ties keep turn order. Each entry carries a 1-based rank.
        """
        leaderboard = []
        ordered = sorted(game.participants, key=lambda p: (-p.score, p.turn_order))
        for i, participant in enumerate(ordered):
            entry = participant.to_dict()
            entry['rank'] = i + 1
            leaderboard.append(entry)
        return leaderboard
