"""
Unit tests for the ResultSubmitter.
"""
import unittest
from unittest.mock import AsyncMock

from timed_quiz.auth import StaticAuthProvider
from timed_quiz.exceptions import PermissionDeniedError, ResultStoreError, SubmissionError
from timed_quiz.models import User
from timed_quiz.result_store import InMemoryResultStore
from timed_quiz.submitter import ResultSubmitter
from tests.test_fixtures import TestFixtures, async_test


class TestResultSubmitter(unittest.TestCase):
    """Test cases for submitting results on behalf of the current user."""

    def setUp(self):
        self.store = InMemoryResultStore()
        self.auth = StaticAuthProvider(User(id="user-1"))
        self.submitter = ResultSubmitter(self.store, self.auth)
        self.result = TestFixtures.create_sample_result()

    @async_test
    async def test_submit_stores_result_for_user(self):
        stored = await self.submitter.submit(self.result)

        self.assertEqual(stored.user_id, "user-1")
        self.assertIs(stored.result, self.result)
        self.assertEqual(await self.store.list_for_user("user-1"), [stored])

    @async_test
    async def test_submit_without_user_is_denied(self):
        self.auth.sign_out()
        self.store.insert = AsyncMock()

        with self.assertRaises(PermissionDeniedError) as context:
            await self.submitter.submit(self.result)

        self.assertEqual(str(context.exception), "User not authenticated")
        self.store.insert.assert_not_awaited()

    @async_test
    async def test_store_failure_becomes_submission_error(self):
        store_error = ResultStoreError("connection lost")
        self.store.insert = AsyncMock(side_effect=store_error)

        with self.assertRaises(SubmissionError) as context:
            await self.submitter.submit(self.result)

        self.assertIs(context.exception.__cause__, store_error)

    @async_test
    async def test_each_submit_inserts(self):
        """Test that the submitter itself does not deduplicate."""
        await self.submitter.submit(self.result)
        await self.submitter.submit(self.result)

        self.assertEqual(len(self.store), 2)


if __name__ == '__main__':
    unittest.main()
