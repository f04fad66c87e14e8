"""
Tests for the scoring engine.
"""
import unittest

from quizmaster.models import OutcomeKind, QuestionOutcome, Session
from quizmaster.scoring import ScoringEngine
from tests.test_fixtures import make_question


def answered(question, correct=True):
    answer = question.correct_index + 1 if correct else (question.correct_index + 1) % 4 + 1
    return QuestionOutcome(OutcomeKind.ANSWERED, question, answer=answer)


class TestScoringEngine(unittest.TestCase):

    def setUp(self):
        self.scoring = ScoringEngine()
        self.session = Session(player_name="Alice")

    def test_correct_points_by_difficulty(self):
        for difficulty, points in ((1, 10), (2, 15), (3, 20)):
            session = Session(player_name="Alice")
            result = self.scoring.apply(session, answered(make_question(1, difficulty)))

            self.assertEqual(result.delta, points)
            self.assertEqual((session.score, session.correct_count, session.streak), (points, 1, 1))

    def test_wrong_penalty_by_difficulty(self):
        for difficulty, penalty in ((1, 2), (2, 3), (3, 5)):
            session = Session(player_name="Alice", streak=2)
            result = self.scoring.apply(session, answered(make_question(1, difficulty), correct=False))

            self.assertEqual(result.delta, -penalty)
            self.assertEqual((session.score, session.wrong_count, session.streak), (-penalty, 1, 0))

    def test_timeout_penalised_like_wrong_answer(self):
        self.session.streak = 4
        outcome = QuestionOutcome(OutcomeKind.TIMED_OUT, make_question(1, 2))

        result = self.scoring.apply(self.session, outcome)

        self.assertEqual(result.delta, -3)
        self.assertEqual(self.session.wrong_count, 1)
        self.assertEqual(self.session.streak, 0)

    def test_skip_changes_nothing(self):
        self.session.streak = 2
        self.session.score = 30
        outcome = QuestionOutcome(OutcomeKind.SKIPPED, make_question(1, 3))

        result = self.scoring.apply(self.session, outcome)

        self.assertEqual(result.delta, 0)
        self.assertEqual(
            (self.session.score, self.session.correct_count, self.session.wrong_count, self.session.streak),
            (30, 0, 0, 2),
        )

    def test_streak_bonuses_paid_once(self):
        deltas = [self.scoring.apply(self.session, answered(make_question(n))).delta for n in range(10)]

        self.assertEqual(deltas, [10, 10, 15, 10, 25, 10, 10, 10, 10, 10])
        self.assertEqual(self.session.score, 120)
        self.assertEqual(self.session.correct_count, 10)

    def test_streak_restarts_after_wrong_answer(self):
        for n in range(3):
            self.scoring.apply(self.session, answered(make_question(n)))
        self.scoring.apply(self.session, answered(make_question(3), correct=False))
        results = [self.scoring.apply(self.session, answered(make_question(n))) for n in range(4, 7)]

        self.assertEqual(results[-1].streak_bonus, 5)
        self.assertEqual(self.session.score, 35 - 2 + 35)

    def test_all_timeouts_clamp_to_zero(self):
        for n in range(10):
            self.scoring.apply(self.session, QuestionOutcome(OutcomeKind.TIMED_OUT, make_question(n, 3)))

        self.assertEqual(self.session.score, -50)
        self.assertEqual(self.session.final_score, 0)
        self.assertEqual(self.session.wrong_count, 10)


if __name__ == '__main__':
    unittest.main()
