"""
Unit tests for quiz catalogs and the CatalogManager.
"""
import json
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from timed_quiz.auth import StaticAuthProvider
from timed_quiz.catalog import (
    CatalogManager,
    InMemoryQuizCatalog,
    JsonQuizCatalog,
    quiz_from_dict,
    quiz_to_dict,
)
from timed_quiz.exceptions import PermissionDeniedError, QuizNotFoundError
from timed_quiz.models import Difficulty, User
from tests.test_fixtures import TestFixtures, async_test


class TestInMemoryQuizCatalog(unittest.TestCase):

    @async_test
    async def test_list_newest_first(self):
        now = datetime.now()
        old = TestFixtures.create_sample_quiz(quiz_id="old", created_at=now - timedelta(days=2))
        new = TestFixtures.create_sample_quiz(quiz_id="new", created_at=now)
        catalog = InMemoryQuizCatalog([old, new])

        quizzes = await catalog.list_quizzes()

        self.assertEqual([quiz.id for quiz in quizzes], ["new", "old"])

    @async_test
    async def test_get_by_id(self):
        quiz = TestFixtures.create_sample_quiz()
        catalog = InMemoryQuizCatalog([quiz])

        self.assertIs(await catalog.get_by_id("quiz-1"), quiz)
        self.assertIsNone(await catalog.get_by_id("missing"))

    def test_put_and_remove(self):
        catalog = InMemoryQuizCatalog()
        catalog.put(TestFixtures.create_sample_quiz())

        self.assertIn("quiz-1", catalog)
        self.assertTrue(catalog.remove("quiz-1"))
        self.assertFalse(catalog.remove("quiz-1"))
        self.assertEqual(len(catalog), 0)


class TestJsonQuizCatalog(unittest.TestCase):
    """Test cases for loading quizzes from JSON files."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.catalog = JsonQuizCatalog(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_load_valid_and_skip_invalid_files(self):
        TestFixtures.create_temp_quiz_files(self.temp_dir)

        loaded = self.catalog.load_quiz_files()

        self.assertEqual(set(loaded), {"geography", "draft"})
        self.assertTrue(self.catalog.has_load_errors())
        errors = self.catalog.get_load_errors()
        self.assertEqual(len(errors), 2)
        self.assertTrue(any(error.startswith("invalid.json") for error in errors))
        self.assertTrue(any("at least two options" in error for error in errors))

    @async_test
    async def test_loaded_quiz_fields(self):
        TestFixtures.create_temp_quiz_files(self.temp_dir)
        self.catalog.load_quiz_files()

        quiz = await self.catalog.get_by_id("geography")

        self.assertEqual(quiz.title, "Capitals")
        self.assertEqual(quiz.time_limit, 90)
        self.assertEqual(quiz.difficulty, Difficulty.MEDIUM)
        self.assertEqual(quiz.created_at, datetime(2024, 3, 1, 10, 0))
        self.assertEqual(quiz.questions[0].options, ("Kyoto", "Tokyo", "Osaka"))
        self.assertEqual(quiz.questions[0].correct_answer, 1)
        self.assertTrue(quiz.is_published)

        draft = await self.catalog.get_by_id("draft")
        self.assertFalse(draft.is_published)

    def test_check_quiz_structure_rejects_invalid_data(self):
        for data in TestFixtures.create_invalid_quiz_json_structures():
            with self.subTest(data=data):
                self.assertIsNotNone(self.catalog.check_quiz_structure(data))
                self.assertFalse(self.catalog.validate_quiz_structure(data))

        self.assertIsNone(self.catalog.check_quiz_structure(TestFixtures.create_valid_quiz_json()))

    def test_empty_directory(self):
        loaded = self.catalog.load_quiz_files()

        self.assertEqual(loaded, {})
        self.assertTrue(self.catalog.has_load_errors())

    def test_missing_directory(self):
        catalog = JsonQuizCatalog(str(Path(self.temp_dir) / "missing"))

        self.assertEqual(catalog.load_quiz_files(), {})
        self.assertIn("not found", catalog.get_load_errors()[0])

    def test_duplicate_ids_are_reported(self):
        for name in ("a.json", "b.json"):
            with open(Path(self.temp_dir) / name, 'w') as f:
                json.dump(TestFixtures.create_valid_quiz_json("same"), f)

        loaded = self.catalog.load_quiz_files()

        self.assertEqual(list(loaded), ["same"])
        self.assertIn("Duplicate quiz id", self.catalog.get_load_errors()[0])

    def test_loading_summary(self):
        TestFixtures.create_temp_quiz_files(self.temp_dir)
        self.catalog.load_quiz_files()

        summary = self.catalog.get_loading_summary()

        self.assertEqual(summary['total_quizzes'], 2)
        self.assertEqual(summary['published_quizzes'], 1)
        self.assertEqual(summary['error_count'], 2)
        self.assertEqual(summary['quiz_directory'], self.temp_dir)

    def test_put_writes_file_that_reloads(self):
        quiz = TestFixtures.create_sample_quiz(quiz_id="written")
        self.catalog.put(quiz)

        self.assertTrue((Path(self.temp_dir) / "written.json").exists())

        reloaded = JsonQuizCatalog(self.temp_dir)
        reloaded.load_quiz_files()
        self.assertIn("written", reloaded)
        self.assertFalse(reloaded.has_load_errors())

        self.assertTrue(self.catalog.remove("written"))
        self.assertFalse((Path(self.temp_dir) / "written.json").exists())

    def write_renamed_quiz_file(self) -> Path:
        """Write the geography quiz to a file whose name differs from its id."""
        path = Path(self.temp_dir) / "geo.json"
        with open(path, 'w') as f:
            json.dump(TestFixtures.create_valid_quiz_json("geography"), f)
        return path

    @async_test
    async def test_delete_removes_file_named_differently_from_id(self):
        path = self.write_renamed_quiz_file()
        self.catalog.load_quiz_files()
        manager = CatalogManager(self.catalog, StaticAuthProvider(User(id="admin-1", role="admin")))

        await manager.delete_quiz("geography")

        self.assertFalse(path.exists())
        reloaded = JsonQuizCatalog(self.temp_dir)
        reloaded.load_quiz_files()
        self.assertIsNone(await reloaded.get_by_id("geography"))

    @async_test
    async def test_update_rewrites_file_named_differently_from_id(self):
        path = self.write_renamed_quiz_file()
        self.catalog.load_quiz_files()
        manager = CatalogManager(self.catalog, StaticAuthProvider(User(id="admin-1", role="admin")))

        await manager.update_quiz("geography", title="World Capitals")

        self.assertEqual([p.name for p in Path(self.temp_dir).glob("*.json")], ["geo.json"])
        reloaded = JsonQuizCatalog(self.temp_dir)
        reloaded.load_quiz_files()
        self.assertFalse(reloaded.has_load_errors())
        self.assertEqual((await reloaded.get_by_id("geography")).title, "World Capitals")
        self.assertTrue(path.exists())

    def test_dict_conversion_preserves_quiz(self):
        quiz = TestFixtures.create_sample_quiz()

        self.assertEqual(quiz_from_dict(quiz_to_dict(quiz)), quiz)


class TestCatalogManager(unittest.TestCase):
    """Test cases for admin-only catalog management."""

    def setUp(self):
        self.catalog = InMemoryQuizCatalog([TestFixtures.create_sample_quiz()])
        self.auth = StaticAuthProvider(User(id="admin-1", role="admin"))
        self.manager = CatalogManager(self.catalog, self.auth)

    @async_test
    async def test_create_quiz(self):
        quiz = await self.manager.create_quiz(
            title="New Quiz",
            questions=TestFixtures.create_sample_questions(),
            time_limit=120,
            difficulty=Difficulty.HARD
        )

        self.assertEqual(quiz.created_by, "admin-1")
        self.assertFalse(quiz.is_published)
        self.assertIs(await self.catalog.get_by_id(quiz.id), quiz)

    @async_test
    async def test_non_admin_is_denied(self):
        self.auth.sign_in(User(id="user-1"))

        with self.assertRaises(PermissionDeniedError) as context:
            await self.manager.delete_quiz("quiz-1")

        self.assertEqual(str(context.exception), "Permission denied")
        self.assertIn("quiz-1", self.catalog)

    @async_test
    async def test_signed_out_is_denied(self):
        self.auth.sign_out()

        with self.assertRaises(PermissionDeniedError):
            await self.manager.create_quiz("Quiz", TestFixtures.create_sample_questions(), 60)

    @async_test
    async def test_update_returns_new_quiz(self):
        original = await self.catalog.get_by_id("quiz-1")

        updated = await self.manager.update_quiz("quiz-1", title="Renamed", is_published=False)

        self.assertEqual(updated.title, "Renamed")
        self.assertFalse(updated.is_published)
        self.assertGreaterEqual(updated.updated_at, original.updated_at)
        self.assertEqual(original.title, "Sample Quiz")
        self.assertIs(await self.catalog.get_by_id("quiz-1"), updated)

    @async_test
    async def test_update_rejects_protected_and_unknown_fields(self):
        with self.assertRaises(ValueError):
            await self.manager.update_quiz("quiz-1", id="other")
        with self.assertRaises(ValueError):
            await self.manager.update_quiz("quiz-1", colour="blue")

    @async_test
    async def test_unknown_quiz(self):
        with self.assertRaises(QuizNotFoundError):
            await self.manager.update_quiz("missing", title="x")
        with self.assertRaises(QuizNotFoundError):
            await self.manager.delete_quiz("missing")

    @async_test
    async def test_delete_quiz(self):
        await self.manager.delete_quiz("quiz-1")

        self.assertIsNone(await self.catalog.get_by_id("quiz-1"))


if __name__ == '__main__':
    unittest.main()
