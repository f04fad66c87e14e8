"""
Scoring rules: points by difficulty, penalties, and streak bonuses.
"""
import logging
from dataclasses import dataclass

from .models import OutcomeKind, QuestionOutcome, Session


logger = logging.getLogger(__name__)

CORRECT_POINTS = {1: 10, 2: 15, 3: 20}
WRONG_PENALTIES = {1: 2, 2: 3, 3: 5}
# Bonus paid when the streak reaches exactly this length
STREAK_BONUSES = {3: 5, 5: 15}


@dataclass
class ScoreResult:
    """Effect of one outcome on the session."""
    delta: int
    streak_bonus: int = 0


class ScoringEngine:
    """Folds question outcomes into the running session totals."""

    def apply(self, session: Session, outcome: QuestionOutcome) -> ScoreResult:
        """
        Update score, tallies and streak for one outcome.

        Args:
            session: Session to update in place
            outcome: Outcome of the question just completed

        Returns:
            ScoreResult describing the change
        """
        difficulty = outcome.question.difficulty

        if outcome.kind is OutcomeKind.SKIPPED:
            result = ScoreResult(delta=0)
        elif outcome.is_correct:
            session.streak += 1
            bonus = STREAK_BONUSES.get(session.streak, 0)
            result = ScoreResult(
                delta=CORRECT_POINTS[difficulty] + bonus,
                streak_bonus=bonus,
            )
            session.correct_count += 1
        else:
            # Wrong answer or timed out
            session.streak = 0
            session.wrong_count += 1
            result = ScoreResult(delta=-WRONG_PENALTIES[difficulty])

        session.score += result.delta
        logger.debug(
            f"Scored {outcome.kind.value} at difficulty {difficulty}: {result.delta:+d} "
            f"(score {session.score}, streak {session.streak})"
        )
        return result
