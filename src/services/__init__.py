"""
Services package for BluffQuiz

Contains the game services, each owning one part of a game's lifecycle.
"""

from .game_repository import GameRepository
from .concurrency_control_service import ConcurrencyControlService
from .roster_service import RosterService
from .answer_ledger import AnswerLedger
from .scoring_service import ScoringService
from .round_state_presenter import RoundStatePresenter
from .game_flow_service import GameFlowService
from .game_lifecycle_service import GameLifecycleService

__all__ = [
    'GameRepository',
    'ConcurrencyControlService',
    'RosterService',
    'AnswerLedger',
    'ScoringService',
    'RoundStatePresenter',
    'GameFlowService',
    'GameLifecycleService'
]
