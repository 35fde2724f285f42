"""
Content Manager for BluffQuiz

Question store: loads the category taxonomy and trivia questions from a YAML
file, validates them, and serves questions to the round state machine.
"""

import yaml
import random
import itertools
import threading
from typing import Any, Dict, Iterable, List, Optional
import logging

from src.core.errors import ErrorCode, NotFoundError, ValidationError
from src.core.models import Question

logger = logging.getLogger(__name__)


class ContentValidationError(Exception):
    """Raised when YAML content validation fails."""
    pass


class ContentManager:
    """Manages loading, validation and lookup of trivia questions."""

    def __init__(self, yaml_file_path: str = "questions.yaml"):
        """
        Initialize ContentManager with path to YAML file.

        Args:
            yaml_file_path: Path to the YAML file containing categories and questions
        """
        self.yaml_file_path = yaml_file_path
        self.categories: List[str] = []
        self.questions: Dict[int, Question] = {}
        self._question_ids = itertools.count(1)  # never reissued, even after a delete
        self._lock = threading.RLock()
        self._loaded = False

    def load_questions_from_yaml(self) -> None:
        """
        Load categories and questions from the YAML file.

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ContentValidationError: If YAML structure is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        try:
            with open(self.yaml_file_path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)

            self.validate_yaml_structure(data)
            with self._lock:
                self.categories = list(data['categories'])
                self.questions = self._parse_questions(data['questions'])
                self._question_ids = itertools.count(max(self.questions, default=0) + 1)
                self._loaded = True
            logger.info(f"Successfully loaded {len(self.questions)} questions from {self.yaml_file_path}")

        except FileNotFoundError:
            logger.error(f"YAML file not found: {self.yaml_file_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            raise
        except ContentValidationError as e:
            logger.error(f"Content validation error: {e}")
            raise

    def validate_yaml_structure(self, data: Any) -> None:
        """
        Validate the structure of loaded YAML data.

        Args:
            data: Parsed YAML data to validate

        Raises:
            ContentValidationError: If structure is invalid
        """
        if not isinstance(data, dict):
            raise ContentValidationError("YAML root must be a dictionary")

        for key in ('categories', 'questions'):
            if key not in data:
                raise ContentValidationError(f"YAML must contain '{key}' key")
            if not isinstance(data[key], list):
                raise ContentValidationError(f"'{key}' must be a list")

        categories = data['categories']
        if not categories:
            raise ContentValidationError("'categories' list cannot be empty")
        for i, category in enumerate(categories):
            if not isinstance(category, str) or not category.strip():
                raise ContentValidationError(f"Category {i} must be a non-empty string")
        if len(set(categories)) != len(categories):
            raise ContentValidationError("Categories must be unique")

        seen_ids = set()
        for i, item in enumerate(data['questions']):
            if not isinstance(item, dict):
                raise ContentValidationError(f"Question item {i} must be a dictionary")

            missing_fields = {'question', 'answer'} - set(item.keys())
            if missing_fields:
                raise ContentValidationError(f"Question item {i} missing required fields: {missing_fields}")

            for key in ('question', 'answer'):
                if not isinstance(item[key], str) or not item[key].strip():
                    raise ContentValidationError(f"Question item {i} '{key}' must be a non-empty string")

            category = item.get('category')
            if category is not None and category not in categories:
                raise ContentValidationError(f"Question item {i} has unknown category: {category}")

            if 'id' in item:
                if not isinstance(item['id'], int) or item['id'] < 1:
                    raise ContentValidationError(f"Question item {i} 'id' must be a positive integer")
                if item['id'] in seen_ids:
                    raise ContentValidationError(f"Duplicate question id: {item['id']}")
                seen_ids.add(item['id'])

    def _parse_questions(self, items: List[Dict]) -> Dict[int, Question]:
        """Build Question objects, numbering the ones without an explicit id."""
        questions: Dict[int, Question] = {}
        explicit_ids = {item['id'] for item in items if 'id' in item}
        next_id = 1
        for item in items:
            question_id = item.get('id')
            if question_id is None:
                while next_id in explicit_ids or next_id in questions:
                    next_id += 1
                question_id = next_id
            questions[question_id] = Question(
                question_id=question_id,
                text=item['question'].strip(),
                correct_answer=item['answer'].strip(),
                category=item.get('category'),
            )
        return questions

    def is_loaded(self) -> bool:
        return self._loaded

    def get_categories(self) -> List[str]:
        return list(self.categories)

    def get_question_count(self) -> int:
        with self._lock:
            return len(self.questions)

    def validate_category(self, category: Optional[str]) -> Optional[str]:
        """
        Check a category against the configured taxonomy.

        Raises:
            ValidationError: If the category is not part of the taxonomy
        """
        if category is None or category == '':
            return None
        if category not in self.categories:
            raise ValidationError(ErrorCode.INVALID_CATEGORY, 'Invalid category', {'category': category})
        return category

    def get_question(self, question_id: int) -> Question:
        """
        Get a question by id.

        Raises:
            NotFoundError: If no question has that id
        """
        with self._lock:
            question = self.questions.get(question_id)
        if question is None:
            raise NotFoundError(
                ErrorCode.QUESTION_NOT_FOUND,
                f"Question {question_id} not found",
                {'question_id': question_id}
            )
        return question

    def list_questions(self, category: Optional[str] = None) -> List[Question]:
        """All questions, newest first, optionally filtered by category."""
        self.validate_category(category)
        with self._lock:
            questions = list(self.questions.values())
        if category:
            questions = [q for q in questions if q.category == category]
        return sorted(questions, key=lambda q: q.question_id, reverse=True)

    def list_available(self, game_id: int, category: Optional[str] = None,
                       excluding: Iterable[int] = (), limit: Optional[int] = None) -> List[Question]:
        """
        Random selection of questions not yet used in a game.

        Args:
            game_id: Game asking, for logging
            category: Optional category filter
            excluding: Question ids already used
            limit: Maximum number of questions returned

        Returns:
            List of Question objects in random order
        """
        excluded = set(excluding)
        candidates = [q for q in self.list_questions(category) if q.question_id not in excluded]
        if limit is not None and len(candidates) > limit:
            candidates = random.sample(candidates, limit)
        else:
            random.shuffle(candidates)
        logger.debug(f"Offering {len(candidates)} questions to game {game_id}")
        return candidates

    def add_question(self, text: str, correct_answer: str, category: Optional[str] = None,
                     created_by: Optional[str] = None) -> Question:
        """
        Add a question to the store.

        Raises:
            ValidationError: If text or answer is empty or the category is unknown
        """
        if not text or not isinstance(text, str) or not text.strip() \
                or not correct_answer or not isinstance(correct_answer, str) or not correct_answer.strip():
            raise ValidationError(ErrorCode.MISSING_DATA, 'Question text and correct answer are required')
        category = self.validate_category(category)

        with self._lock:
            question_id = next(self._question_ids)
            question = Question(
                question_id=question_id,
                text=text.strip(),
                correct_answer=correct_answer.strip(),
                category=category,
                created_by=created_by,
            )
            self.questions[question_id] = question
        logger.info(f"Added question {question_id} in category {category}")
        return question

    def update_question(self, question_id: int, text: str, correct_answer: str,
                        category: Optional[str] = None) -> Question:
        """
        Replace the text, answer and category of a question.

        Rounds already played keep the text they were created with.

        Raises:
            NotFoundError: If no question has that id
            ValidationError: If the category is unknown
        """
        category = self.validate_category(category)
        with self._lock:
            question = self.get_question(question_id)
            question.text = text.strip()
            question.correct_answer = correct_answer.strip()
            question.category = category
        logger.info(f"Updated question {question_id}")
        return question

    def delete_question(self, question_id: int) -> bool:
        """
        Raises:
            NotFoundError: If no question has that id
        """
        with self._lock:
            self.get_question(question_id)
            del self.questions[question_id]
        logger.info(f"Deleted question {question_id}")
        return True
