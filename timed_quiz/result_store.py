"""
Persistence of finished quiz attempts.
"""
import asyncio
import json
import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List

from .exceptions import ResultStoreError
from .models import QuizResult, StoredResult


class ResultStore(ABC):
    """Storage backend for quiz results."""

    @abstractmethod
    async def insert(self, result: QuizResult, user_id: str) -> StoredResult:
        """Persist a result for a user and return the stored record."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[StoredResult]:
        """Return a user's results, newest first."""


def _newest_first(results: List[StoredResult]) -> List[StoredResult]:
    return sorted(results, key=lambda stored: stored.result.completed_at, reverse=True)


class InMemoryResultStore(ResultStore):
    """Result store that keeps everything in a list."""

    def __init__(self):
        self._results: List[StoredResult] = []

    async def insert(self, result: QuizResult, user_id: str) -> StoredResult:
        stored = StoredResult(id=uuid.uuid4().hex, user_id=user_id, result=result)
        self._results.append(stored)
        return stored

    async def list_for_user(self, user_id: str) -> List[StoredResult]:
        return _newest_first([stored for stored in self._results if stored.user_id == user_id])

    def __len__(self) -> int:
        return len(self._results)


def stored_result_to_dict(stored: StoredResult) -> Dict[str, Any]:
    result = stored.result
    return {
        'id': stored.id,
        'user_id': stored.user_id,
        'quiz_id': result.quiz_id,
        'answers': list(result.answers),
        'score': result.score,
        'total_questions': result.total_questions,
        'time_spent': result.time_spent,
        'completed_at': result.completed_at.isoformat()
    }


def stored_result_from_dict(data: Dict[str, Any]) -> StoredResult:
    result = QuizResult(
        quiz_id=data['quiz_id'],
        answers=tuple(data['answers']),
        score=data['score'],
        total_questions=data['total_questions'],
        time_spent=data['time_spent'],
        completed_at=datetime.fromisoformat(data['completed_at'])
    )
    return StoredResult(id=data['id'], user_id=data['user_id'], result=result)


class JsonResultStore(ResultStore):
    """
    Result store backed by a single JSON file.

    The whole file is read and rewritten on every insert. File access runs
    in a worker thread via asyncio.to_thread. Writes go to a temporary file
    that replaces the results file only once fully written; a failed write
    leaves earlier results intact. Any I/O or decode failure is raised as
    ResultStoreError.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.logger = logging.getLogger(__name__)
        # Serializes read-modify-write across worker threads
        self._file_lock = threading.Lock()

    def _read_all(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.file_path):
            return []

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in results file {self.file_path}: {e}")
            raise ResultStoreError(f"Results file is corrupted: {e}") from e
        except OSError as e:
            self.logger.error(f"Failed to read results file {self.file_path}: {e}")
            raise ResultStoreError(f"Could not read results: {e}") from e

        if not isinstance(data, list):
            raise ResultStoreError("Results file must contain a list of results")
        return data

    def _write_all(self, records: List[Dict[str, Any]]) -> None:
        temp_path = self.file_path + '.tmp'
        try:
            directory = os.path.dirname(self.file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.file_path)
        except OSError as e:
            self.logger.error(f"Failed to write results file {self.file_path}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise ResultStoreError(f"Could not save result: {e}") from e

    def _append(self, record: Dict[str, Any]) -> None:
        with self._file_lock:
            records = self._read_all()
            records.append(record)
            self._write_all(records)

    async def insert(self, result: QuizResult, user_id: str) -> StoredResult:
        stored = StoredResult(id=uuid.uuid4().hex, user_id=user_id, result=result)
        await asyncio.to_thread(self._append, stored_result_to_dict(stored))
        self.logger.debug(f"Stored result {stored.id} in {self.file_path}")
        return stored

    def _load_for_user(self, user_id: str) -> List[StoredResult]:
        with self._file_lock:
            records = self._read_all()
        try:
            return [
                stored_result_from_dict(record)
                for record in records
                if record.get('user_id') == user_id
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ResultStoreError(f"Malformed result record: {e}") from e

    async def list_for_user(self, user_id: str) -> List[StoredResult]:
        return _newest_first(await asyncio.to_thread(self._load_for_user, user_id))
