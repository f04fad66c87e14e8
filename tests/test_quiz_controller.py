"""
Tests for the QuizController: full sessions through the main menu.
"""
import logging
import random
import shutil
import tempfile
import unittest
from pathlib import Path

from quizmaster.models import OutcomeKind
from quizmaster.quiz_controller import QuizController
from quizmaster.session_recorder import SessionRecorder
from tests.test_fixtures import (
    FakeClock, RecordingDisplay, SimulatedCrash, StrategyKeyPoller,
    answer_correctly, make_bank, make_config, never_answer, write_category_file,
)


def crash_during_fifth_question(display):
    """Answer four questions correctly, then die with 6 seconds left on the fifth."""
    if display.last_number < 5:
        return answer_correctly(display)
    if display.countdown_updates and display.countdown_updates[-1] == 6:
        raise SimulatedCrash()
    return None


def skip_first_question(display):
    if display.last_number == 1:
        return "L"
    return answer_correctly(display)


class QuizControllerTestCase(unittest.IsolatedAsyncioTestCase):
    """Temporary game directory with one easy category of 12 questions."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.base = Path(self.temp_dir)
        write_category_file(self.base, "easy.txt", make_bank(12, difficulty=1))
        self.config = make_config(self.base)

        # Suppress logging during tests
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make_controller(self, display, strategy, config=None):
        self.clock = FakeClock()
        return QuizController(
            config or self.config,
            display=display,
            poller=StrategyKeyPoller(display, strategy),
            clock=self.clock,
            rng=random.Random(5),
        )

    @property
    def high_score_lines(self):
        path = self.base / "high_scores.txt"
        return path.read_text(encoding="utf-8").splitlines() if path.exists() else []

    @property
    def session_log(self):
        return (self.base / "quiz_logs.txt").read_text(encoding="utf-8")

    @property
    def progress_path(self):
        return self.base / "save_progress.txt"


class TestFullSessions(QuizControllerTestCase):

    async def test_ten_correct_answers_with_streak_bonuses(self):
        display = RecordingDisplay(ints=[1, 1, 1, 4], texts=["Alice"], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        status = await controller.run()

        self.assertEqual(status, 0)
        self.assertEqual(display.summaries, [(120, 10, 0)])
        self.assertEqual([bonus for _, _, bonus, _ in display.verdicts], [0, 0, 5, 0, 15, 0, 0, 0, 0, 0])
        self.assertEqual(len(self.high_score_lines), 1)
        self.assertTrue(self.high_score_lines[0].startswith("Alice|120|"))
        self.assertIn("Player: Alice | Score: 120 | Correct: 10 | Wrong: 0", self.session_log)
        self.assertFalse(self.progress_path.exists())
        self.assertIn("Goodbye!", display.messages)

    async def test_all_timeouts_on_hard_bank(self):
        write_category_file(self.base, "hard.txt", make_bank(10, difficulty=3))
        config = make_config(self.base, categories=(("Hard", "hard.txt"),))
        display = RecordingDisplay(ints=[1, 1, 3, 4], texts=["Alice"], confirms=[True])
        controller = self.make_controller(display, never_answer, config)

        await controller.run()

        self.assertEqual(display.summaries, [(0, 0, 10)])
        self.assertEqual(len(display.time_ups), 10)
        self.assertTrue(self.high_score_lines[0].startswith("Alice|0|"))
        self.assertIn("Score: -50 | Correct: 0 | Wrong: 10", self.session_log)
        self.assertEqual(self.clock.now(), 100.0)

    async def test_empty_name_plays_as_player(self):
        display = RecordingDisplay(ints=[1, 1, 1, 4], texts=[""], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        await controller.run()

        self.assertTrue(self.high_score_lines[0].startswith("Player|120|"))

    async def test_skip_from_lifeline_menu(self):
        config = make_config(self.base, question_count=3)
        display = RecordingDisplay(ints=[1, 1, 1, 2, 4], texts=["Alice"], confirms=[True])
        controller = self.make_controller(display, skip_first_question, config)

        await controller.run()

        self.assertEqual(display.verdicts[0], (OutcomeKind.SKIPPED, 0, 0, 0))
        self.assertEqual(display.summaries, [(20, 2, 0)])
        self.assertEqual(display.countdown_starts, [10, 10, 10])
        self.assertIn("Answers: 0 ,", self.session_log)


class TestResume(QuizControllerTestCase):

    async def test_crash_then_resume(self):
        display = RecordingDisplay(ints=[1, 1, 1], texts=["Alice"])
        controller = self.make_controller(display, crash_during_fifth_question)

        with self.assertRaises(SimulatedCrash):
            await controller.run()

        lines = self.progress_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines[0], "Alice")
        self.assertEqual(lines[1].split()[:3], ["45", "4", "0"])
        answers = lines[2].split()
        self.assertEqual(len(answers), 5)
        self.assertEqual(answers[4], "0")
        self.assertNotIn("0", answers[:4])
        self.assertEqual(len(lines[3].split()), 5)
        self.assertEqual(lines[4], "6")

        display = RecordingDisplay(ints=[3, 1, 1, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        await controller.run()

        self.assertIn("Found saved progress for player: Alice | Score so far: 45", display.messages)
        self.assertEqual(display.countdown_starts[0], 6)
        self.assertEqual(display.countdown_starts[1:], [10] * 5)
        self.assertEqual([number for _, number, _ in display.questions_shown], [5, 6, 7, 8, 9, 10])
        self.assertEqual(display.summaries, [(125, 10, 0)])
        self.assertTrue(self.high_score_lines[0].startswith("Alice|125|"))
        answers_line = [line for line in self.session_log.splitlines() if line.startswith("Answers:")][0]
        self.assertEqual(len(answers_line[len("Answers: "):].split(" ,")), 10)
        self.assertFalse(self.progress_path.exists())

    async def test_no_saved_progress(self):
        display = RecordingDisplay(ints=[3, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        await controller.run()

        self.assertIn("No saved progress found.", display.messages)
        self.assertEqual(display.summaries, [])

    async def test_malformed_progress_is_ignored(self):
        self.progress_path.write_text("Alice\nnot numbers\n\n\n", encoding="utf-8")
        display = RecordingDisplay(ints=[3, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        await controller.run()

        self.assertIn("No saved progress found.", display.messages)

    async def test_resume_between_questions_uses_default_time(self):
        self.progress_path.write_text("Bob\n25 2 1 1760000000\n1 3 0\n4 5 6\n0\n", encoding="utf-8")
        config = make_config(self.base, question_count=5)
        display = RecordingDisplay(ints=[3, 1, 1, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly, config)

        await controller.run()

        self.assertEqual(display.countdown_starts, [10, 10])
        self.assertEqual([number for _, number, _ in display.questions_shown], [4, 5])
        self.assertEqual(display.summaries, [(45, 4, 1)])


class TestMainMenu(QuizControllerTestCase):

    async def test_exit_needs_confirmation(self):
        display = RecordingDisplay(ints=[4, 4], confirms=[False, True])
        controller = self.make_controller(display, answer_correctly)

        self.assertEqual(await controller.run(), 0)
        self.assertEqual(display.menus.count("main"), 2)
        self.assertEqual(display.prompts.count("Are you sure you want to exit?"), 2)

    async def test_view_high_scores(self):
        recorder = SessionRecorder(self.progress_path, self.base / "high_scores.txt", self.base / "quiz_logs.txt")
        for name, score in (("Ann", 40), ("Ben", 90), ("Cat", 65)):
            recorder.append_high_score(name, score)
        display = RecordingDisplay(ints=[2, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly)

        await controller.run()

        self.assertEqual([entry.name for entry in display.high_score_tables[0]], ["Ben", "Cat", "Ann"])

    async def test_missing_category_returns_to_menu(self):
        config = make_config(self.base, categories=(("Missing", "missing.txt"),))
        display = RecordingDisplay(ints=[1, 1, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly, config)

        await controller.run()

        self.assertEqual(display.errors, ["Could not load questions from missing.txt. Check file and format."])
        self.assertNotIn("Enter your name", display.prompts)
        self.assertEqual(display.summaries, [])

    async def test_malformed_category_returns_to_menu(self):
        (self.base / "bad.txt").write_text("Question?\na\nb\nc\nd\nfirst\n1\n", encoding="utf-8")
        config = make_config(self.base, categories=(("Bad", "bad.txt"),))
        display = RecordingDisplay(ints=[1, 1, 4], confirms=[True])
        controller = self.make_controller(display, answer_correctly, config)

        await controller.run()

        self.assertEqual(len(display.errors), 1)
        self.assertTrue(display.errors[0].startswith("Question file bad.txt is malformed:"))


if __name__ == '__main__':
    unittest.main()
