"""
Game Phase Enumeration

Defines the round phases and game statuses used throughout the application.
"""

from enum import Enum


class RoundPhase(Enum):
    """Round phase enumeration."""
    PICKING = "picking"
    ANSWERING = "answering"
    VOTING = "voting"
    RESULTS = "results"


class GameStatus(Enum):
    """Game status enumeration. Only ever moves forward."""
    LOBBY = "lobby"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class EndMode(Enum):
    """How a game decides it is over."""
    ROUNDS = "rounds"
    POINTS = "points"
