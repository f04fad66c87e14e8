"""
Per-question state machine.

A question starts in RUNNING: the countdown is displayed and the keyboard
is polled without blocking. Pressing ``L`` pauses the countdown and opens
the LIFELINE_MENU, which blocks on a numeric prompt and then returns to
RUNNING unless the chosen lifeline ends the question. Every path ends in
COMPLETED with an Answered, Skipped or TimedOut outcome; the runtime never
raises out of a question.
"""
import logging
from enum import Enum
from typing import Callable, List, Optional

from .models import Lifeline, OutcomeKind, Question, QuestionOutcome, QuizSettings, Session
from .quiz_engine import QuestionLifecycleLogger, QuestionTimer, QuizEngine, NoReplacementAvailableError


logger = logging.getLogger(__name__)

ANSWER_KEYS = ("1", "2", "3", "4")
LIFELINE_KEY = "L"
SKIP_KEY = "S"

ALREADY_USED_MESSAGES = {
    Lifeline.FIFTY_FIFTY: "50/50 already used.",
    Lifeline.SKIP: "Skip already used.",
    Lifeline.REPLACE: "Replace already used.",
    Lifeline.EXTRA_TIME: "Extra Time already used.",
}


class QuestionState(Enum):
    """States of the per-question state machine."""
    RUNNING = "running"
    LIFELINE_MENU = "lifeline_menu"
    COMPLETED = "completed"


class QuestionContext:
    """Mutable state of the question being played."""

    def __init__(self, session: Session, question: Question, bank: List[Question],
                 number: int, total: int, timer: QuestionTimer):
        self.session = session
        self.question = question
        self.bank = bank
        self.number = number
        self.total = total
        self.timer = timer
        self.state = QuestionState.RUNNING
        self.outcome: Optional[QuestionOutcome] = None

    def transition(self, to_state: QuestionState, reason: str = None) -> None:
        QuestionLifecycleLogger.log_state_transition(self.number, self.state.value, to_state.value, reason)
        self.state = to_state

    def complete(self, kind: OutcomeKind, answer: int = 0, remaining: int = 0) -> None:
        self.outcome = QuestionOutcome(
            kind=kind,
            question=self.question,
            answer=answer,
            remaining_seconds=remaining,
        )
        self.transition(QuestionState.COMPLETED, kind.value)


class QuestionRuntime:
    """Drives one question from first render to its outcome."""

    def __init__(self, engine: QuizEngine, poller, clock, display, settings: QuizSettings,
                 checkpoint: Optional[Callable[[Session], object]] = None):
        """
        Args:
            engine: Applies 50/50 and Replace
            poller: Non-blocking key source, used as a context manager
            clock: Provides ``now()`` and ``async sleep()``
            display: Renders the question and runs the lifeline prompt
            settings: Timer duration, extra time and poll interval
            checkpoint: Called with the session whenever the in-progress
                question's remaining time should be persisted
        """
        self.engine = engine
        self.poller = poller
        self.clock = clock
        self.display = display
        self.settings = settings
        self._checkpoint_callback = checkpoint
        self._lifeline_handlers = {
            Lifeline.FIFTY_FIFTY: self._use_fifty_fifty,
            Lifeline.SKIP: self._use_skip,
            Lifeline.REPLACE: self._use_replace,
            Lifeline.EXTRA_TIME: self._use_extra_time,
        }

    async def run(self, session: Session, question: Question, bank: List[Question],
                  number: int = 1, total: int = 1) -> QuestionOutcome:
        """
        Play one question to completion.

        The countdown starts from ``session.remaining_seconds_for_current``
        when it is positive (a resumed question), otherwise from the default
        timer duration. The session field is cleared once consumed and is 0
        again when the question completes.

        Returns:
            The question's outcome, carrying the question actually played
        """
        seconds = session.remaining_seconds_for_current
        if seconds <= 0:
            seconds = self.settings.timer_duration
        session.remaining_seconds_for_current = 0

        timer = QuestionTimer(self.clock, number)
        timer.start(seconds)
        ctx = QuestionContext(session, question, bank, number, total, timer)
        QuestionLifecycleLogger.log_question_start(number, question, seconds)
        self._checkpoint(ctx, seconds)

        while ctx.state is not QuestionState.COMPLETED:
            if ctx.state is QuestionState.RUNNING:
                await self._run_countdown(ctx)
            else:
                self._run_lifeline_menu(ctx)

        session.remaining_seconds_for_current = 0
        outcome = ctx.outcome
        QuestionLifecycleLogger.log_question_completed(
            number, outcome.kind.value, outcome.answer, outcome.remaining_seconds
        )
        return outcome

    # ------------------------------------------------------------------
    # RUNNING
    # ------------------------------------------------------------------

    async def _run_countdown(self, ctx: QuestionContext) -> None:
        self.display.show_question(ctx.question, ctx.number, ctx.total, ctx.session.lifelines)
        shown = ctx.timer.remaining_time

        with self.poller, self.display.countdown(shown) as countdown:
            while ctx.state is QuestionState.RUNNING:
                # Input is checked before the deadline, so a key wins a tie
                key = self.poller.poll()
                if key is not None:
                    self._handle_key(ctx, key)
                    if ctx.state is not QuestionState.RUNNING:
                        break

                remaining = ctx.timer.remaining_time
                if remaining != shown:
                    shown = remaining
                    countdown.update(remaining)
                    QuestionLifecycleLogger.log_countdown_update(ctx.number, remaining)
                    self._checkpoint(ctx, remaining)

                if ctx.timer.expired:
                    ctx.complete(OutcomeKind.TIMED_OUT)
                    break

                await self.clock.sleep(self.settings.poll_interval)

        if ctx.outcome is not None and ctx.outcome.kind is OutcomeKind.TIMED_OUT:
            self.display.show_time_up(ctx.question)

    def _handle_key(self, ctx: QuestionContext, key: str) -> None:
        key = key.upper()

        if key in ANSWER_KEYS:
            ctx.complete(OutcomeKind.ANSWERED, answer=int(key), remaining=ctx.timer.remaining_time)

        elif key == LIFELINE_KEY:
            remaining = ctx.timer.pause()
            ctx.transition(QuestionState.LIFELINE_MENU, f"{remaining}s left")
            self._checkpoint(ctx, remaining)

        elif key == SKIP_KEY:
            if ctx.session.lifelines.consume(Lifeline.SKIP):
                QuestionLifecycleLogger.log_lifeline(ctx.number, Lifeline.SKIP.label, True, "quick skip")
                self.display.notice("Quick skip used. Moving to next question.")
                ctx.complete(OutcomeKind.SKIPPED)
            else:
                QuestionLifecycleLogger.log_lifeline(ctx.number, Lifeline.SKIP.label, False, "already used")
                self.display.notice(ALREADY_USED_MESSAGES[Lifeline.SKIP])

    # ------------------------------------------------------------------
    # LIFELINE_MENU
    # ------------------------------------------------------------------

    def _run_lifeline_menu(self, ctx: QuestionContext) -> None:
        self.display.show_lifeline_menu(ctx.session.lifelines, self.settings.extra_time)
        choice = self.display.ask_int("Enter your choice (1-4) or 0 to cancel", 0, 4)

        if choice == 0:
            self.display.notice("Lifeline cancelled. Resuming timer.")
        else:
            lifeline = Lifeline(choice)
            if ctx.session.lifelines.is_available(lifeline):
                self._lifeline_handlers[lifeline](ctx)
            else:
                QuestionLifecycleLogger.log_lifeline(ctx.number, lifeline.label, False, "already used")
                self.display.notice(ALREADY_USED_MESSAGES[lifeline])

        if ctx.state is QuestionState.LIFELINE_MENU:
            ctx.timer.resume()
            ctx.transition(QuestionState.RUNNING, "lifeline menu closed")
            self._checkpoint(ctx, ctx.timer.remaining_time)

    def _use_fifty_fifty(self, ctx: QuestionContext) -> None:
        ctx.session.lifelines.consume(Lifeline.FIFTY_FIFTY)
        visible = self.engine.apply_fifty_fifty(ctx.question)
        QuestionLifecycleLogger.log_lifeline(
            ctx.number, Lifeline.FIFTY_FIFTY.label, True, f"visible options {[i + 1 for i in visible]}"
        )
        self.display.notice("50/50 used. Two wrong options removed. Resuming timer.")

    def _use_skip(self, ctx: QuestionContext) -> None:
        ctx.session.lifelines.consume(Lifeline.SKIP)
        QuestionLifecycleLogger.log_lifeline(ctx.number, Lifeline.SKIP.label, True, "from menu")
        self.display.notice("Question skipped. Moving to next question.")
        ctx.complete(OutcomeKind.SKIPPED)

    def _use_replace(self, ctx: QuestionContext) -> None:
        ctx.session.lifelines.consume(Lifeline.REPLACE)
        try:
            replacement = self.engine.replace_question(ctx.bank, ctx.question)
        except NoReplacementAvailableError as e:
            ctx.session.lifelines.refund(Lifeline.REPLACE)
            QuestionLifecycleLogger.log_lifeline(ctx.number, Lifeline.REPLACE.label, False, str(e))
            self.display.notice("No replacement found. Replace is still available.")
            return

        ctx.question = replacement
        if ctx.session.question_indices:
            ctx.session.question_indices[-1] = replacement.bank_index
        QuestionLifecycleLogger.log_lifeline(
            ctx.number, Lifeline.REPLACE.label, True, f"now bank question {replacement.bank_index}"
        )
        self.display.notice("Question replaced. Remaining time preserved.")

    def _use_extra_time(self, ctx: QuestionContext) -> None:
        if ctx.timer.remaining_time <= 0:
            QuestionLifecycleLogger.log_lifeline(ctx.number, Lifeline.EXTRA_TIME.label, False, "question expired")
            self.display.notice("Cannot use Extra Time: question already expired.")
            return

        ctx.session.lifelines.consume(Lifeline.EXTRA_TIME)
        remaining = ctx.timer.add_time(self.settings.extra_time)
        QuestionLifecycleLogger.log_lifeline(
            ctx.number, Lifeline.EXTRA_TIME.label, True, f"{remaining}s remaining"
        )
        self.display.notice(
            f"Extra Time applied. +{self.settings.extra_time}s added. "
            f"New remaining: {remaining}s. Resuming timer."
        )

    # ------------------------------------------------------------------

    def _checkpoint(self, ctx: QuestionContext, remaining: int) -> None:
        """
        Persist the in-progress question's remaining time.

        Nothing is saved at 0 seconds: a snapshot with 0 remaining reads as
        a completed question.
        """
        if remaining <= 0:
            return
        ctx.session.remaining_seconds_for_current = remaining
        if self._checkpoint_callback is None:
            return
        try:
            self._checkpoint_callback(ctx.session)
        except OSError as e:
            QuestionLifecycleLogger.log_question_error(ctx.number, type(e).__name__, str(e), "checkpoint")
