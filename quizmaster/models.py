"""
Core data models for the QuizMaster terminal quiz.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple
import time


OPTION_COUNT = 4
DEFAULT_PLAYER_NAME = "Player"


@dataclass
class Question:
    """
    A single multiple-choice question.

    ``text``, ``original_options``, ``original_correct_index`` and
    ``difficulty`` never change once loaded. ``options``, ``correct_index``
    and ``visible`` describe how the question is currently presented and are
    rewritten by the option shuffler and the 50/50 lifeline.
    """
    text: str
    original_options: Tuple[str, ...]
    original_correct_index: int
    difficulty: int
    bank_index: int = -1
    options: List[str] = field(default_factory=list)
    correct_index: int = -1
    visible: List[bool] = field(default_factory=lambda: [True] * OPTION_COUNT)

    def __post_init__(self):
        self.original_options = tuple(self.original_options)
        if not self.options:
            self.options = list(self.original_options)
            self.correct_index = self.original_correct_index

    @property
    def correct_option(self) -> str:
        """Text of the correct option."""
        return self.options[self.correct_index]

    def is_correct(self, answer: int) -> bool:
        """Check a 1-based answer against the current option order."""
        return answer - 1 == self.correct_index

    def visible_indices(self) -> List[int]:
        """Indices of the options currently shown, ascending."""
        return [i for i, shown in enumerate(self.visible) if shown]

    def fresh_copy(self) -> "Question":
        """Copy with original option order and every option visible."""
        return Question(
            text=self.text,
            original_options=self.original_options,
            original_correct_index=self.original_correct_index,
            difficulty=self.difficulty,
            bank_index=self.bank_index,
        )


class Lifeline(Enum):
    """One-shot helpers, numbered as in the lifeline menu."""
    FIFTY_FIFTY = 1
    SKIP = 2
    REPLACE = 3
    EXTRA_TIME = 4

    @property
    def label(self) -> str:
        return _LIFELINE_LABELS[self]


_LIFELINE_LABELS = {
    Lifeline.FIFTY_FIFTY: "50/50",
    Lifeline.SKIP: "Skip",
    Lifeline.REPLACE: "Replace",
    Lifeline.EXTRA_TIME: "ExtraTime",
}


@dataclass
class LifelineState:
    """Availability of each lifeline for one session."""
    fifty_fifty: bool = True
    skip: bool = True
    replace: bool = True
    extra_time: bool = True

    def is_available(self, lifeline: Lifeline) -> bool:
        return getattr(self, lifeline.name.lower())

    def consume(self, lifeline: Lifeline) -> bool:
        """
        Mark a lifeline as used.

        Returns:
            False if the lifeline had already been used, True otherwise
        """
        if not self.is_available(lifeline):
            return False
        setattr(self, lifeline.name.lower(), False)
        return True

    def refund(self, lifeline: Lifeline) -> None:
        setattr(self, lifeline.name.lower(), True)

    def available(self) -> List[Lifeline]:
        return [lifeline for lifeline in Lifeline if self.is_available(lifeline)]


class OutcomeKind(Enum):
    """Terminal states of the per-question state machine."""
    ANSWERED = "answered"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"


@dataclass
class QuestionOutcome:
    """Result of running one question."""
    kind: OutcomeKind
    question: Question
    answer: int = 0
    remaining_seconds: int = 0

    @property
    def is_correct(self) -> bool:
        return self.kind is OutcomeKind.ANSWERED and self.question.is_correct(self.answer)


@dataclass
class QuizSettings:
    """Configuration settings for a quiz session."""
    question_count: int = 10
    timer_duration: int = 10
    extra_time: int = 10
    poll_interval: float = 0.1


@dataclass
class Session:
    """A single player's run through one category."""
    player_name: str
    category: str = ""
    difficulty: int = 1
    score: int = 0
    correct_count: int = 0
    wrong_count: int = 0
    streak: int = 0
    question_indices: List[int] = field(default_factory=list)
    answers: List[int] = field(default_factory=list)
    remaining_seconds_for_current: int = 0
    start_timestamp: int = field(default_factory=lambda: int(time.time()))
    lifelines: LifelineState = field(default_factory=LifelineState)
    questions: List[Question] = field(default_factory=list)

    def __post_init__(self):
        self.player_name = (self.player_name or "").strip() or DEFAULT_PLAYER_NAME

    def begin_question(self, question: Question) -> None:
        """Open an answer slot for the question about to be presented."""
        self.question_indices.append(question.bank_index)
        self.answers.append(0)

    def record_outcome(self, outcome: QuestionOutcome) -> None:
        """Fill the open answer slot; Replace may have changed the question."""
        if not self.answers:
            self.begin_question(outcome.question)
        self.question_indices[-1] = outcome.question.bank_index
        self.answers[-1] = outcome.answer if outcome.kind is OutcomeKind.ANSWERED else 0

    @property
    def completed_count(self) -> int:
        return len(self.answers)

    @property
    def final_score(self) -> int:
        """Score shown to the player and written to the high-score file."""
        return max(0, self.score)
