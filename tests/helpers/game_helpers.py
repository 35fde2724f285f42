"""
Game helpers for unit and integration tests.
Provides a question file, wired services, and shortcuts for playing rounds.
"""

from typing import Dict, Any, List, Optional
from unittest.mock import Mock

import yaml

from src.core.models import Actor


TEST_CATEGORIES = ['Geography', 'Science', 'History']

TEST_QUESTIONS = [
    {'id': 1, 'question': 'What is the capital of France?', 'answer': 'Paris', 'category': 'Geography'},
    {'id': 2, 'question': 'What is the capital of Italy?', 'answer': 'Rome', 'category': 'Geography'},
    {'id': 3, 'question': 'Which planet spins backwards?', 'answer': 'Venus', 'category': 'Science'},
    {'id': 4, 'question': 'Which country won the first football World Cup?', 'answer': 'Uruguay', 'category': 'History'},
    {'id': 5, 'question': 'How many stomachs does a cow have?', 'answer': 'Four', 'category': 'Science'},
]


def write_questions_file(directory, categories=None, questions=None) -> str:
    """
    Write a questions YAML file into a directory.

    Args:
        directory: pathlib.Path, usually pytest's tmp_path
        categories: Category list, defaults to TEST_CATEGORIES
        questions: Question items, defaults to TEST_QUESTIONS

    Returns:
        str: Path of the written file
    """
    path = directory / 'questions.yaml'
    data = {
        'categories': TEST_CATEGORIES if categories is None else categories,
        'questions': TEST_QUESTIONS if questions is None else questions,
    }
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding='utf-8')
    return str(path)


def admin(user_id: str = 'admin') -> Actor:
    return Actor(user_id=user_id, is_admin=True)


def player(user_id: str) -> Actor:
    return Actor(user_id=user_id)


def build_services(questions_path: str, broadcast_service=None) -> Dict[str, Any]:
    """
    Wire the game services by hand, the same way the container does.

    Args:
        questions_path: YAML file to load questions from
        broadcast_service: Notifier, a Mock by default

    Returns:
        dict: Services keyed by name
    """
    from src.content_manager import ContentManager
    from src.game_manager import GameManager
    from src.services.answer_ledger import AnswerLedger
    from src.services.concurrency_control_service import ConcurrencyControlService
    from src.services.game_flow_service import GameFlowService
    from src.services.game_lifecycle_service import GameLifecycleService
    from src.services.game_repository import GameRepository
    from src.services.roster_service import RosterService
    from src.services.round_state_presenter import RoundStatePresenter
    from src.services.scoring_service import ScoringService
    from src.services.validation_service import ValidationService

    content_manager = ContentManager(questions_path)
    content_manager.load_questions_from_yaml()

    game_repository = GameRepository()
    concurrency_control = ConcurrencyControlService()
    roster_service = RosterService()
    validation_service = ValidationService()
    answer_ledger = AnswerLedger(game_repository)
    scoring_service = ScoringService(roster_service, answer_ledger)
    presenter = RoundStatePresenter(roster_service, answer_ledger)
    game_flow_service = GameFlowService(
        game_repository, concurrency_control, roster_service,
        answer_ledger, scoring_service, content_manager
    )
    lifecycle_service = GameLifecycleService(
        game_repository, concurrency_control, roster_service, validation_service
    )
    if broadcast_service is None:
        broadcast_service = Mock()
    game_manager = GameManager(
        lifecycle_service, game_flow_service, roster_service, scoring_service,
        presenter, content_manager, validation_service, broadcast_service
    )

    return {
        'content_manager': content_manager,
        'game_repository': game_repository,
        'concurrency_control': concurrency_control,
        'roster_service': roster_service,
        'validation_service': validation_service,
        'answer_ledger': answer_ledger,
        'scoring_service': scoring_service,
        'round_state_presenter': presenter,
        'game_flow_service': game_flow_service,
        'lifecycle_service': lifecycle_service,
        'broadcast_service': broadcast_service,
        'game_manager': game_manager,
    }


def start_game(game_manager, player_ids: List[str], total_rounds: int = 3,
               end_mode: str = 'rounds', target_points: Optional[int] = None) -> int:
    """
    Create a game as an administrator, join everyone, and start it.

    The first id becomes the creator and holds turn order 1, so it is the QM
    of round 1.

    Returns:
        int: The game id
    """
    creator = admin(player_ids[0])
    game = game_manager.create_game(creator, total_rounds=total_rounds, end_mode=end_mode,
                                    target_points=target_points)
    for user_id in player_ids[1:]:
        game_manager.join_game(game['id'], player(user_id))
    game_manager.start_game(game['id'], creator)
    return game['id']


def play_round(game_manager, game_id: int, question_id: int) -> str:
    """
    Play the current round to results.

    Every non-QM participant submits a distinct bluff, then votes for the real
    answer, so each of them earns the correct-vote points.

    Returns:
        str: User id of the round's question master
    """
    question_master = game_manager.get_round_state(game_id, admin('observer'))['question_master_id']
    game_manager.pick_question(game_id, player(question_master), question_id)
    correct_answer = game_manager.get_round_state(game_id, player(question_master))['correct_answer']

    others = [p['user_id'] for p in game_manager.get_game(game_id)['players'] if p['user_id'] != question_master]
    for user_id in others:
        game_manager.submit_answer(game_id, player(user_id), f"Not {correct_answer} says {user_id}")
    for user_id in others:
        game_manager.cast_vote(game_id, player(user_id), answer_id_for(game_manager, game_id, user_id, correct_answer))
    return question_master


def answer_id_for(game_manager, game_id: int, viewer_id: str, text: str) -> int:
    """Id of the voting option with the given text, as seen by a viewer."""
    state = game_manager.get_round_state(game_id, player(viewer_id))
    for option in state['answers']:
        if option['answer_text'].strip().casefold() == text.strip().casefold():
            return option['id']
    raise AssertionError(f"No option {text!r} visible to {viewer_id}: {state['answers']}")
