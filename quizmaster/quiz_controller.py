"""
Quiz session controller for QuizMaster.
Runs the main menu and carries a session from category choice to the
high-score file.
"""
import logging
import random
from typing import List, Optional, Tuple

from .models import Question, Session
from .config_manager import ConfigManager
from .data_manager import DataManager, DataManagerError, BankEmptyError, MalformedQuestionFileError
from .display import QuizDisplay
from .question_runtime import QuestionRuntime
from .quiz_engine import QuizEngine, SystemClock
from .scoring import ScoringEngine
from .session_recorder import ProgressSnapshot, SessionRecorder
from .terminal_input import KeyPoller


MENU_START = 1
MENU_HIGH_SCORES = 2
MENU_RESUME = 3
MENU_EXIT = 4


class QuizController:
    """
    Orchestrates quiz sessions for a single player at the terminal.

    Collaborators are injectable so the whole flow can be driven by a
    scripted display, key poller and clock.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        data_manager: Optional[DataManager] = None,
        display: Optional[QuizDisplay] = None,
        poller: Optional[KeyPoller] = None,
        clock: Optional[SystemClock] = None,
        rng: Optional[random.Random] = None,
        recorder: Optional[SessionRecorder] = None,
    ):
        """
        Initialize the quiz controller.

        Args:
            config_manager: Settings and file locations
            data_manager: Loader for category files
            display: Terminal output and prompts
            poller: Non-blocking key source for the countdown
            clock: Time source for the countdown
            rng: Random source shared by selection, shuffling and Replace
            recorder: Progress, high-score and session-log files
        """
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager
        self.settings = config_manager.get_quiz_settings()
        self.data_manager = data_manager or DataManager(config_manager.get_quiz_directory())
        self.display = display or QuizDisplay()
        self.poller = poller or KeyPoller()
        self.clock = clock or SystemClock()
        self.quiz_engine = QuizEngine(rng)
        self.scoring = ScoringEngine()
        self.recorder = recorder or SessionRecorder(
            config_manager.get_progress_file(),
            config_manager.get_high_score_file(),
            config_manager.get_session_log_file(),
        )
        self.runtime = QuestionRuntime(
            self.quiz_engine,
            self.poller,
            self.clock,
            self.display,
            self.settings,
            checkpoint=self.recorder.save_progress,
        )

        self.logger.info(f"QuizController initialized\n{config_manager.get_settings_summary()}")

    async def run(self) -> int:
        """
        Main menu loop.

        Returns:
            Process exit status
        """
        while True:
            self.display.show_main_menu()
            choice = self.display.ask_int("Please select an option (1-4)", MENU_START, MENU_EXIT)

            if choice == MENU_START:
                await self.start_quiz()
            elif choice == MENU_HIGH_SCORES:
                self.show_high_scores()
            elif choice == MENU_RESUME:
                await self.resume_quiz()
            elif self.display.confirm("Are you sure you want to exit?"):
                self.display.message("Goodbye!")
                self.logger.info("QuizMaster exited by player")
                return 0

    # ------------------------------------------------------------------
    # Menu actions
    # ------------------------------------------------------------------

    async def start_quiz(self) -> Optional[Session]:
        """
        Start a new quiz from the category menu.

        Returns:
            The finished session, or None if the category could not be loaded
        """
        category, file_name = self.choose_category()
        bank = self.load_bank(file_name)
        if bank is None:
            return None

        player_name = self.display.ask_text("Enter your name")
        difficulty = self.choose_difficulty()
        session = Session(player_name=player_name, category=category, difficulty=difficulty)
        questions = self.quiz_engine.select_questions(bank, difficulty, self.settings.question_count)

        self.logger.info(
            f"Starting quiz for {session.player_name}: category='{category}', "
            f"difficulty={difficulty}, questions={len(questions)}"
        )
        self.display.wait_for_enter("Quiz starting! Press Enter to start...")
        await self.play_session(session, bank, questions)
        return session

    def show_high_scores(self) -> None:
        self.display.show_high_scores(self.recorder.top_high_scores(5))
        self.display.wait_for_enter("Press Enter to return to main menu...")

    async def resume_quiz(self) -> Optional[Session]:
        """
        Continue from the progress snapshot.

        Name, score, tallies, completed answers and the saved countdown are
        restored; the outstanding questions are drawn afresh from the chosen
        category. Streak and lifelines start over.

        Returns:
            The finished session, or None if there was nothing to resume
        """
        snapshot = self.recorder.load_progress()
        if snapshot is None:
            self.display.message("No saved progress found.")
            self.display.wait_for_enter("Press Enter to return...")
            return None

        self.display.message(
            f"Found saved progress for player: {snapshot.player_name} | Score so far: {snapshot.score}"
        )
        self.display.message(
            f"Questions completed: {snapshot.completed_count}. "
            f"Remaining seconds saved: {snapshot.remaining_seconds_for_current}s (used for the next question)."
        )
        self.display.message("Select the category you played earlier to continue.")

        category, file_name = self.choose_category()
        bank = self.load_bank(file_name)
        if bank is None:
            return None
        difficulty = self.choose_difficulty()

        session = self.session_from_snapshot(snapshot, category, difficulty)
        selected = self.quiz_engine.select_questions(bank, difficulty, self.settings.question_count)
        outstanding = max(0, len(selected) - session.completed_count)
        questions = selected[:outstanding]

        self.logger.info(
            f"Resuming quiz for {session.player_name}: {session.completed_count} completed, "
            f"{outstanding} outstanding, {session.remaining_seconds_for_current}s saved"
        )
        self.display.wait_for_enter("Press Enter to start resumed quiz...")
        await self.play_session(session, bank, questions)
        return session

    # ------------------------------------------------------------------
    # Session flow
    # ------------------------------------------------------------------

    async def play_session(self, session: Session, bank: List[Question], questions: List[Question]) -> Session:
        """
        Run each question, score it and save progress after it.

        Questions already completed in the session (a resumed session) keep
        their slots; numbering continues after them.
        """
        offset = session.completed_count
        total = offset + len(questions)
        session.questions = list(questions)

        for i, question in enumerate(questions):
            session.begin_question(question)
            outcome = await self.runtime.run(session, question, bank, offset + i + 1, total)

            session.questions[i] = outcome.question
            session.record_outcome(outcome)
            result = self.scoring.apply(session, outcome)
            self.display.show_verdict(outcome, result.delta, result.streak_bonus, session.streak)
            self.recorder.save_progress(session)

        self.display.show_summary(session)
        self.recorder.finish_session(session)
        self.display.wait_for_enter("Press Enter to return to menu...")
        return session

    @staticmethod
    def session_from_snapshot(snapshot: ProgressSnapshot, category: str, difficulty: int) -> Session:
        """Rebuild a session from a snapshot, dropping any unfinished question slot."""
        completed = snapshot.completed_count
        remaining = snapshot.remaining_seconds_for_current if snapshot.has_question_in_progress else 0
        return Session(
            player_name=snapshot.player_name,
            category=category,
            difficulty=difficulty,
            score=snapshot.score,
            correct_count=snapshot.correct,
            wrong_count=snapshot.wrong,
            question_indices=snapshot.question_indices[:completed],
            answers=snapshot.answers[:completed],
            remaining_seconds_for_current=remaining,
            start_timestamp=snapshot.start_timestamp,
        )

    # ------------------------------------------------------------------
    # Prompts and loading
    # ------------------------------------------------------------------

    def choose_category(self) -> Tuple[str, str]:
        categories = self.config_manager.get_categories()
        self.display.show_categories(categories)
        choice = self.display.ask_int(f"Enter (1-{len(categories)})", 1, len(categories))
        return categories[choice - 1]

    def choose_difficulty(self) -> int:
        self.display.show_difficulty_menu()
        return self.display.ask_int("Enter (1-3)", 1, 3)

    def load_bank(self, file_name: str) -> Optional[List[Question]]:
        """
        Load a category, reporting failures to the player.

        Returns:
            The question bank, or None if it could not be loaded
        """
        try:
            return self.data_manager.load_category(file_name)
        except DataManagerError as e:
            self.logger.error(f"Failed to load category {file_name}: {e}")
            self.display.error(self._get_user_friendly_error_message(e, file_name))
            self.display.wait_for_enter("Press Enter to return...")
            return None

    def _get_user_friendly_error_message(self, error: Exception, file_name: str) -> str:
        if isinstance(error, MalformedQuestionFileError):
            return f"Question file {file_name} is malformed: {error}"
        if isinstance(error, BankEmptyError):
            return f"Could not load questions from {file_name}. Check file and format."
        return f"An unexpected error occurred while loading {file_name}."
