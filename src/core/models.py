"""
Domain models for BluffQuiz

Plain dataclasses for games, participants, rounds, answers, votes and questions.
All mutation happens through the services while the owning game's lock is held.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.core.game_phases import EndMode, GameStatus, RoundPhase


@dataclass(frozen=True)
class Actor:
    """Identity of the caller as supplied by the authentication layer."""
    user_id: str
    is_admin: bool = False


@dataclass
class Question:
    """A trivia question and its real answer."""
    question_id: int
    text: str
    correct_answer: str
    category: Optional[str] = None
    created_by: Optional[str] = None

    def to_dict(self, include_answer: bool = False) -> Dict[str, Any]:
        data = {
            'id': self.question_id,
            'question_text': self.text,
            'category': self.category,
        }
        if include_answer:
            data['correct_answer'] = self.correct_answer
        return data


@dataclass
class Participant:
    user_id: str
    turn_order: int
    display_name: str
    score: int = 0
    joined_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'display_name': self.display_name,
            'turn_order': self.turn_order,
            'score': self.score,
        }


@dataclass
class Answer:
    """
    One row of a round's answer ledger.

    The canonical answer has no author and is always correct. A bluff whose
    text matched the canonical answer is also correct but keeps its author.
    """
    answer_id: int
    round_id: int
    author_id: Optional[str]
    text: str
    is_correct: bool = False
    votes_received: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_canonical(self) -> bool:
        return self.author_id is None

    @property
    def is_bluff(self) -> bool:
        return self.author_id is not None and not self.is_correct

    @property
    def is_correct_guess(self) -> bool:
        return self.author_id is not None and self.is_correct


@dataclass
class Vote:
    voter_id: str
    answer_id: int
    cast_at: datetime = field(default_factory=datetime.now)


@dataclass
class Round:
    """A single round; exists only once its question has been picked."""
    round_id: int
    game_id: int
    round_number: int
    question_id: int
    question_text: str
    correct_answer: str
    question_master_id: str
    participant_count: int
    phase: RoundPhase = RoundPhase.ANSWERING
    answers: Dict[int, Answer] = field(default_factory=dict)
    votes: Dict[str, Vote] = field(default_factory=dict)
    points_awarded: Dict[str, int] = field(default_factory=dict)
    scored: bool = False
    shuffle_seed: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def canonical_answer(self) -> Answer:
        for answer in self.answers.values():
            if answer.is_canonical:
                return answer
        raise LookupError(f"Round {self.round_id} has no canonical answer")

    def answer_by_author(self, user_id: str) -> Optional[Answer]:
        for answer in self.answers.values():
            if answer.author_id == user_id:
                return answer
        return None

    def submitted_answers(self) -> List[Answer]:
        """Participant submissions in submission order, canonical excluded."""
        return [a for a in self.answers.values() if not a.is_canonical]

    def correct_guesser_ids(self) -> List[str]:
        return [a.author_id for a in self.answers.values() if a.is_correct_guess]


@dataclass
class Game:
    game_id: int
    created_by: str
    total_rounds: int
    end_mode: EndMode = EndMode.ROUNDS
    target_points: Optional[int] = None
    status: GameStatus = GameStatus.LOBBY
    current_round: int = 0
    participants: List[Participant] = field(default_factory=list)
    rounds: Dict[int, Round] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def get_participant(self, user_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def is_participant(self, user_id: str) -> bool:
        return self.get_participant(user_id) is not None

    @property
    def current_round_record(self) -> Optional[Round]:
        return self.rounds.get(self.current_round)

    def used_question_ids(self) -> set:
        return {r.question_id for r in self.rounds.values()}

    def to_summary(self) -> Dict[str, Any]:
        return {
            'id': self.game_id,
            'status': self.status.value,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'end_mode': self.end_mode.value,
            'target_points': self.target_points,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat(),
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'player_count': len(self.participants),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_summary()
        data['players'] = [p.to_dict() for p in sorted(self.participants, key=lambda p: p.turn_order)]
        return data
