"""
Quiz engine core logic for QuizMaster.
Handles question selection, option shuffling, lifeline effects and timing.
"""
import random
import asyncio
import logging
import math
import time
from typing import List, Optional

from .models import Question, OPTION_COUNT
from .data_manager import BankEmptyError

# Set up logger for question lifecycle events
logger = logging.getLogger(__name__)


class QuizEngineError(Exception):
    """Base exception for quiz engine errors."""
    pass


class NoReplacementAvailableError(QuizEngineError):
    """Raised when the bank holds no question distinct from the current one."""
    pass


class QuestionLifecycleLogger:
    """Structured logging for question lifecycle events."""

    @staticmethod
    def log_question_start(number: int, question: Question, seconds: int) -> None:
        """Log the start of a question countdown."""
        logger.info(
            f"Question lifecycle: START - Question {number}, Difficulty {question.difficulty}, {seconds}s",
            extra={
                'event_type': 'question_start',
                'question_number': number,
                'bank_index': question.bank_index,
                'difficulty': question.difficulty,
                'seconds': seconds,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_countdown_update(number: int, remaining_time: int) -> None:
        """Log countdown ticks (throttled to avoid spam)."""
        if remaining_time % 5 == 0 or remaining_time <= 3:
            logger.debug(
                f"Question lifecycle: UPDATE - Question {number}, Remaining {remaining_time}s",
                extra={
                    'event_type': 'countdown_update',
                    'question_number': number,
                    'remaining_time': remaining_time,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_state_transition(number: int, from_state: str, to_state: str, reason: str = None) -> None:
        """Log state machine transitions."""
        logger.info(
            f"Question lifecycle: STATE_TRANSITION - Question {number}, {from_state} -> {to_state}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'question_state_transition',
                'question_number': number,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_lifeline(number: int, lifeline: str, applied: bool, detail: str) -> None:
        """Log a lifeline being applied or refused."""
        logger.info(
            f"Question lifecycle: LIFELINE - Question {number}, {lifeline} "
            f"{'APPLIED' if applied else 'REFUSED'}: {detail}",
            extra={
                'event_type': 'lifeline_applied' if applied else 'lifeline_refused',
                'question_number': number,
                'lifeline': lifeline,
                'detail': detail,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_question_completed(number: int, outcome: str, answer: int, remaining_time: int) -> None:
        """Log question completion."""
        logger.info(
            f"Question lifecycle: COMPLETED - Question {number}, Outcome {outcome}, "
            f"Answer {answer}, Remaining {remaining_time}s",
            extra={
                'event_type': 'question_completed',
                'question_number': number,
                'outcome': outcome,
                'answer': answer,
                'remaining_time': remaining_time,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_question_error(number: int, error_type: str, error_message: str, operation: str) -> None:
        """Log errors absorbed while a question is running."""
        logger.error(
            f"Question lifecycle: ERROR - Question {number}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'question_error',
                'question_number': number,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class SystemClock:
    """Wall clock used by the countdown: seconds plus a cooperative sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class QuestionTimer:
    """
    Countdown for a single question, expressed as an absolute deadline.

    The timer can be paused while the lifeline menu is open; resuming
    rebuilds the deadline from the remaining seconds captured at pause time.
    """

    def __init__(self, clock, question_number: int = 0):
        """Initialize the timer."""
        self._clock = clock
        self._question_number = question_number
        self._end_time = 0.0
        self._remaining_time = 0
        self._is_paused = False

    def start(self, seconds: int) -> None:
        """Set the deadline ``seconds`` from now and run the countdown."""
        self._remaining_time = max(0, seconds)
        self._end_time = self._clock.now() + self._remaining_time
        self._is_paused = False

    def pause(self) -> int:
        """
        Pause the countdown.

        Returns:
            Whole seconds left at the moment of pausing
        """
        if not self._is_paused:
            self._remaining_time = self._seconds_left()
            self._is_paused = True
            QuestionLifecycleLogger.log_state_transition(
                self._question_number, "counting", "paused", f"{self._remaining_time}s left"
            )
        return self._remaining_time

    def resume(self) -> None:
        """Resume the countdown from the remaining seconds."""
        if self._is_paused:
            QuestionLifecycleLogger.log_state_transition(
                self._question_number, "paused", "counting", f"{self._remaining_time}s left"
            )
        self.start(self._remaining_time)

    def add_time(self, seconds: int) -> int:
        """
        Extend the remaining time.

        Returns:
            New remaining seconds
        """
        self._remaining_time = self.remaining_time + seconds
        if not self._is_paused:
            self._end_time = self._clock.now() + self._remaining_time
        return self._remaining_time

    def _seconds_left(self) -> int:
        return max(0, math.ceil(self._end_time - self._clock.now()))

    @property
    def end_time(self) -> float:
        return self._end_time

    @property
    def expired(self) -> bool:
        """True once the deadline has passed while counting."""
        return not self._is_paused and self._clock.now() >= self._end_time

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def remaining_time(self) -> int:
        """Get remaining time in seconds."""
        if self._is_paused:
            return self._remaining_time
        return self._seconds_left()


class QuizEngine:
    """Selects questions and applies option-level lifeline effects."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the quiz engine.

        Args:
            rng: Random source, injected so tests can seed it
        """
        self._rng = rng or random.Random()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def select_questions(self, bank: List[Question], difficulty: int, count: int = 10) -> List[Question]:
        """
        Select and order questions for a quiz.

        Questions matching the difficulty form the pool; if fewer than
        ``count`` match, the whole bank is used instead. The pool is
        shuffled, the first ``count`` kept, and each kept question is a
        fresh copy with its options shuffled.

        Args:
            bank: Every question in the category
            difficulty: Chosen difficulty, 1 to 3
            count: Number of questions in a full quiz

        Returns:
            List of selected questions, ``min(count, len(pool))`` long

        Raises:
            BankEmptyError: If the bank is empty
        """
        if not bank:
            raise BankEmptyError("Cannot select questions from an empty bank")

        pool = self.filter_by_difficulty(bank, difficulty)
        if len(pool) < count:
            logger.info(
                f"Only {len(pool)} questions at difficulty {difficulty}, using all {len(bank)} questions"
            )
            pool = list(bank)

        selected = self.limit_question_count(self.shuffle_questions(pool), count)

        questions = []
        for question in selected:
            copy = question.fresh_copy()
            self.shuffle_options(copy)
            questions.append(copy)
        return questions

    def filter_by_difficulty(self, bank: List[Question], difficulty: int) -> List[Question]:
        return [question for question in bank if question.difficulty == difficulty]

    def shuffle_questions(self, questions: List[Question]) -> List[Question]:
        """
        Shuffle questions randomly.

        Args:
            questions: List of questions to shuffle

        Returns:
            New list with questions in random order
        """
        shuffled = questions.copy()
        self._rng.shuffle(shuffled)
        return shuffled

    def limit_question_count(self, questions: List[Question], count: int) -> List[Question]:
        """
        Limit the number of questions to the specified count.

        Note:
            If count is greater than available questions, returns all questions.
            If count is less than 1, returns empty list.
        """
        if count < 1:
            return []

        return questions[:count]

    def shuffle_options(self, question: Question) -> Question:
        """
        Permute the four options and follow the correct answer to its new slot.

        Visibility is reset so every option is shown.
        """
        order = list(range(OPTION_COUNT))
        self._rng.shuffle(order)

        question.options = [question.original_options[i] for i in order]
        question.correct_index = order.index(question.original_correct_index)
        question.visible = [True] * OPTION_COUNT
        return question

    def apply_fifty_fifty(self, question: Question) -> List[int]:
        """
        Hide all but the correct option and one random wrong option.

        Returns:
            The two visible indices in ascending order
        """
        wrong = [i for i in range(OPTION_COUNT) if i != question.correct_index]
        kept_wrong = self._rng.choice(wrong)

        question.visible = [i in (question.correct_index, kept_wrong) for i in range(OPTION_COUNT)]
        return question.visible_indices()

    def replace_question(self, bank: List[Question], current: Question) -> Question:
        """
        Draw a different question from the bank.

        Args:
            bank: Every question in the category
            current: Question being replaced

        Returns:
            Fresh copy of a question whose text differs from ``current``,
            with shuffled options and every option visible

        Raises:
            NoReplacementAvailableError: If no such question exists
        """
        candidates = [question for question in bank if question.text != current.text]
        if not candidates:
            raise NoReplacementAvailableError(
                f"No question distinct from {current.text!r} among {len(bank)} questions"
            )

        replacement = self._rng.choice(candidates).fresh_copy()
        return self.shuffle_options(replacement)
