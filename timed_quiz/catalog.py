"""
Quiz catalog: read access to quiz definitions and admin-only management.
"""
import dataclasses
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .auth import AuthProvider
from .exceptions import PermissionDeniedError, QuizNotFoundError
from .models import Difficulty, Question, Quiz, User


class QuizCatalog(ABC):
    """Read access to quiz definitions."""

    @abstractmethod
    async def list_quizzes(self) -> List[Quiz]:
        """Return all quizzes, newest first."""

    @abstractmethod
    async def get_by_id(self, quiz_id: str) -> Optional[Quiz]:
        """Return the quiz with the given id, or None."""


class InMemoryQuizCatalog(QuizCatalog):
    """Catalog backed by a dictionary keyed by quiz id."""

    def __init__(self, quizzes: Sequence[Quiz] = ()):
        self.logger = logging.getLogger(__name__)
        self._quizzes: Dict[str, Quiz] = {quiz.id: quiz for quiz in quizzes}

    async def list_quizzes(self) -> List[Quiz]:
        return sorted(self._quizzes.values(), key=lambda quiz: quiz.created_at, reverse=True)

    async def get_by_id(self, quiz_id: str) -> Optional[Quiz]:
        return self._quizzes.get(quiz_id)

    def put(self, quiz: Quiz) -> None:
        self._quizzes[quiz.id] = quiz

    def remove(self, quiz_id: str) -> bool:
        return self._quizzes.pop(quiz_id, None) is not None

    def __contains__(self, quiz_id: str) -> bool:
        return quiz_id in self._quizzes

    def __len__(self) -> int:
        return len(self._quizzes)


def quiz_from_dict(data: Dict[str, Any], default_id: Optional[str] = None) -> Quiz:
    """
    Build a Quiz from its JSON representation.

    Raises:
        KeyError, TypeError, ValueError: If the data is malformed
    """
    questions = [
        Question(
            id=str(question_data.get("id", index)),
            text=question_data["question"],
            options=tuple(question_data["options"]),
            correct_answer=question_data["correct_answer"]
        )
        for index, question_data in enumerate(data["questions"])
    ]

    optional_dates = {}
    for key in ("created_at", "updated_at"):
        if data.get(key):
            optional_dates[key] = datetime.fromisoformat(data[key])

    return Quiz(
        id=str(data.get("id") or default_id),
        title=data["title"],
        description=data.get("description"),
        questions=tuple(questions),
        time_limit=data["time_limit"],
        difficulty=Difficulty(data.get("difficulty", Difficulty.MEDIUM.value)),
        category=data.get("category", "General"),
        is_published=bool(data.get("is_published", False)),
        created_by=data.get("created_by"),
        **optional_dates
    )


def quiz_to_dict(quiz: Quiz) -> Dict[str, Any]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "time_limit": quiz.time_limit,
        "difficulty": quiz.difficulty.value,
        "category": quiz.category,
        "is_published": quiz.is_published,
        "created_by": quiz.created_by,
        "created_at": quiz.created_at.isoformat(),
        "updated_at": quiz.updated_at.isoformat(),
        "questions": [
            {
                "id": question.id,
                "question": question.text,
                "options": list(question.options),
                "correct_answer": question.correct_answer
            }
            for question in quiz.questions
        ]
    }


class JsonQuizCatalog(InMemoryQuizCatalog):
    """
    Catalog loaded from a directory of JSON quiz files, one quiz per file.

    Invalid files are skipped and reported through get_load_errors().
    put() and remove() write through to the directory.
    """

    MAX_FILE_SIZE = 10 * 1024 * 1024

    def __init__(self, quiz_directory: str = "./quizzes/"):
        """
        Initialize the catalog with a quiz directory path.

        Args:
            quiz_directory: Path to directory containing JSON quiz files
        """
        super().__init__()
        self.quiz_directory = Path(quiz_directory)
        self.load_errors: List[str] = []
        # Quiz id -> file it was loaded from; file names need not match ids
        self._source_paths: Dict[str, Path] = {}

    def load_quiz_files(self) -> Dict[str, Quiz]:
        """
        Load all JSON files from the quiz directory.

        Returns:
            Dictionary mapping quiz ids to loaded quizzes
        """
        self._quizzes.clear()
        self.load_errors.clear()
        self._source_paths.clear()

        if not self.quiz_directory.exists():
            self.logger.warning(f"Quiz directory {self.quiz_directory} does not exist")
            self.load_errors.append(f"Quiz directory not found: {self.quiz_directory}")
            return dict(self._quizzes)

        try:
            json_files = sorted(self.quiz_directory.glob("*.json"))
        except OSError as e:
            self.load_errors.append(f"System error scanning {self.quiz_directory}: {e}")
            return dict(self._quizzes)

        if not json_files:
            self.logger.warning(f"No JSON files found in {self.quiz_directory}")
            self.load_errors.append(f"No quiz files found in {self.quiz_directory}")
            return dict(self._quizzes)

        successful_loads = 0
        for json_file in json_files:
            load_result = self._load_quiz_file_safely(json_file)
            if load_result['success']:
                successful_loads += 1
            else:
                self.load_errors.append(f"{json_file.name}: {load_result['error']}")

        self.logger.info(f"Successfully loaded {successful_loads} quiz files")
        if self.load_errors:
            self.logger.warning(f"Encountered {len(self.load_errors)} loading errors")

        return dict(self._quizzes)

    def check_quiz_structure(self, data: Any) -> Optional[str]:
        """
        Check that JSON data has the expected quiz structure.

        Expected structure:
        {
            "title": str,
            "time_limit": int,      # seconds, positive
            "difficulty": str,      # optional, Easy | Medium | Hard
            "questions": [
                {
                    "question": str,
                    "options": [str, str, ...],
                    "correct_answer": int
                }
            ]
        }

        Returns:
            Description of the first problem found, or None if the data is valid
        """
        if not isinstance(data, dict):
            return "Quiz data must be a JSON object"

        for key in ("title", "time_limit", "questions"):
            if key not in data:
                return f"Quiz data must contain a '{key}' key"

        if not isinstance(data["title"], str) or not data["title"].strip():
            return "'title' must be a non-empty string"

        time_limit = data["time_limit"]
        if isinstance(time_limit, bool) or not isinstance(time_limit, int) or time_limit <= 0:
            return "'time_limit' must be a positive integer"

        difficulty = data.get("difficulty", Difficulty.MEDIUM.value)
        if difficulty not in [level.value for level in Difficulty]:
            return f"Unknown difficulty '{difficulty}'"

        questions = data["questions"]
        if not isinstance(questions, list) or not questions:
            return "'questions' must be a non-empty array"

        for i, question_data in enumerate(questions):
            if not isinstance(question_data, dict):
                return f"Question {i} must be an object"
            if not isinstance(question_data.get("question"), str):
                return f"Question {i} 'question' field must be a string"

            options = question_data.get("options")
            if not isinstance(options, list) or len(options) < 2:
                return f"Question {i} must have at least two options"

            correct = question_data.get("correct_answer")
            if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
                return f"Question {i} 'correct_answer' must index one of its options"

        return None

    def validate_quiz_structure(self, data: Any) -> bool:
        problem = self.check_quiz_structure(data)
        if problem:
            self.logger.error(problem)
            return False
        return True

    def _load_quiz_file_safely(self, json_file: Path) -> Dict[str, Any]:
        try:
            file_size = json_file.stat().st_size
            if file_size > self.MAX_FILE_SIZE:
                return {
                    'success': False,
                    'error': f"File too large ({file_size / 1024 / 1024:.1f}MB)"
                }

            with open(json_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            problem = self.check_quiz_structure(data)
            if problem:
                return {'success': False, 'error': problem}

            quiz = quiz_from_dict(data, default_id=json_file.stem)

        except json.JSONDecodeError as e:
            return {'success': False, 'error': f"Invalid JSON: {e}"}
        except PermissionError:
            return {'success': False, 'error': "Permission denied"}
        except OSError as e:
            return {'success': False, 'error': f"System error: {e}"}
        except (KeyError, TypeError, ValueError) as e:
            return {'success': False, 'error': f"Invalid quiz data: {e}"}

        if quiz.id in self._quizzes:
            return {'success': False, 'error': f"Duplicate quiz id '{quiz.id}'"}

        self._quizzes[quiz.id] = quiz
        self._source_paths[quiz.id] = json_file
        self.logger.info(f"Loaded quiz '{quiz.id}' with {quiz.question_count} questions")
        return {'success': True}

    def _quiz_path(self, quiz_id: str) -> Path:
        return self._source_paths.get(quiz_id, self.quiz_directory / f"{quiz_id}.json")

    def put(self, quiz: Quiz) -> None:
        self.quiz_directory.mkdir(parents=True, exist_ok=True)
        path = self._quiz_path(quiz.id)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(quiz_to_dict(quiz), f, indent=2, ensure_ascii=False)
        self._source_paths[quiz.id] = path
        super().put(quiz)

    def remove(self, quiz_id: str) -> bool:
        path = self._quiz_path(quiz_id)
        if path.exists():
            os.remove(path)
        self._source_paths.pop(quiz_id, None)
        return super().remove(quiz_id)

    def get_load_errors(self) -> List[str]:
        return self.load_errors.copy()

    def has_load_errors(self) -> bool:
        return len(self.load_errors) > 0

    def get_loading_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the last load operation.

        Returns:
            Dictionary with loading statistics and status
        """
        return {
            'total_quizzes': len(self._quizzes),
            'published_quizzes': sum(1 for quiz in self._quizzes.values() if quiz.is_published),
            'has_errors': self.has_load_errors(),
            'error_count': len(self.load_errors),
            'errors': self.get_load_errors(),
            'quiz_directory': str(self.quiz_directory),
            'available_quizzes': list(self._quizzes.keys())
        }


class CatalogManager:
    """Create, update and delete quizzes. Every operation requires an admin."""

    PROTECTED_FIELDS = ("id", "created_by", "created_at", "updated_at")

    def __init__(self, catalog: InMemoryQuizCatalog, auth: AuthProvider):
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog
        self.auth = auth

    def _require_admin(self) -> User:
        user = self.auth.current_user()
        if user is None:
            raise PermissionDeniedError("User not authenticated")
        if not user.is_admin:
            self.logger.warning(f"User {user.id} attempted catalog management without admin role")
            raise PermissionDeniedError("Permission denied")
        return user

    async def create_quiz(
        self,
        title: str,
        questions: Sequence[Question],
        time_limit: int,
        difficulty: Difficulty = Difficulty.MEDIUM,
        category: str = "General",
        description: Optional[str] = None,
        is_published: bool = False
    ) -> Quiz:
        """
        Create and store a new quiz.

        Raises:
            PermissionDeniedError: If the current user is not an admin
            ValueError: If the quiz data is invalid
        """
        user = self._require_admin()
        quiz = Quiz(
            id=uuid.uuid4().hex,
            title=title,
            questions=tuple(questions),
            time_limit=time_limit,
            difficulty=difficulty,
            category=category,
            description=description,
            is_published=is_published,
            created_by=user.id
        )
        self.catalog.put(quiz)
        self.logger.info(f"User {user.id} created quiz {quiz.id} '{quiz.title}'")
        return quiz

    async def update_quiz(self, quiz_id: str, **changes: Any) -> Quiz:
        """
        Replace a quiz with an updated copy.

        Sessions already holding the old quiz keep seeing the old version.

        Raises:
            PermissionDeniedError: If the current user is not an admin
            QuizNotFoundError: If no quiz has the given id
            ValueError: If a protected or unknown field is changed
        """
        user = self._require_admin()
        existing = await self.catalog.get_by_id(quiz_id)
        if existing is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")

        protected = [name for name in changes if name in self.PROTECTED_FIELDS]
        if protected:
            raise ValueError(f"Cannot change protected fields: {', '.join(protected)}")

        known_fields = {f.name for f in dataclasses.fields(Quiz)}
        unknown = [name for name in changes if name not in known_fields]
        if unknown:
            raise ValueError(f"Unknown quiz fields: {', '.join(unknown)}")

        updated = dataclasses.replace(existing, updated_at=datetime.now(), **changes)
        self.catalog.put(updated)
        self.logger.info(f"User {user.id} updated quiz {quiz_id}: {', '.join(changes) or 'no fields'}")
        return updated

    async def delete_quiz(self, quiz_id: str) -> None:
        """
        Remove a quiz from the catalog.

        Raises:
            PermissionDeniedError: If the current user is not an admin
            QuizNotFoundError: If no quiz has the given id
        """
        user = self._require_admin()
        if not self.catalog.remove(quiz_id):
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        self.logger.info(f"User {user.id} deleted quiz {quiz_id}")
