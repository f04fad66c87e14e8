"""
Terminal rendering and line prompts for QuizMaster, built on rich.
"""
from contextlib import contextmanager
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from .models import Lifeline, LifelineState, Question, QuestionOutcome, OutcomeKind, Session

MASKED_OPTION = "----"
DIFFICULTY_NAMES = {1: "Easy", 2: "Medium", 3: "Hard"}


def format_remaining(seconds: int) -> str:
    """Countdown readout, e.g. ``Time Remaining: 08s``."""
    return f"Time Remaining: {max(0, seconds):02d}s"


def format_lifeline_bar(lifelines: LifelineState) -> str:
    """Available lifelines as ``[1]50/50 [2]Skip ...``."""
    return " ".join(f"[{lifeline.value}]{lifeline.label}" for lifeline in lifelines.available())


def option_lines(question: Question) -> List[str]:
    """Numbered option lines with hidden options masked."""
    return [
        f"{i + 1}. {option if question.visible[i] else MASKED_OPTION}"
        for i, option in enumerate(question.options)
    ]


class CountdownLine:
    """Single overwritable status line showing the seconds left."""

    def __init__(self, live: Live):
        self._live = live

    def update(self, remaining: int) -> None:
        self._live.update(Text(format_remaining(remaining), style="bold yellow"), refresh=True)


class QuizDisplay:
    """Everything the player sees, and the blocking prompts."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def show_main_menu(self) -> None:
        self.console.print(Panel.fit("Welcome to QuizMaster!", style="bold cyan"))
        self.console.print("1. Start Quiz\n2. View High Scores\n3. Resume Saved Quiz\n4. Exit Game")

    def show_categories(self, categories: Sequence[Tuple[str, str]]) -> None:
        self.console.print("\n[bold]Select Category:[/bold]")
        for i, (name, _) in enumerate(categories, start=1):
            self.console.print(f"{i}. {name}")

    def show_difficulty_menu(self) -> None:
        choices = " ".join(f"{level}. {name}" for level, name in DIFFICULTY_NAMES.items())
        self.console.print(f"\n[bold]Choose difficulty:[/bold] {choices}")

    def show_lifeline_menu(self, lifelines: LifelineState, extra_time: int) -> None:
        descriptions = {
            Lifeline.FIFTY_FIFTY: "50/50   (remove two wrong options)",
            Lifeline.SKIP: "Skip    (skip question, no time penalty, moves on)",
            Lifeline.REPLACE: "Replace (replace with another question; remaining time preserved)",
            Lifeline.EXTRA_TIME: f"ExtraTime (+{extra_time}s to remaining time)",
        }
        self.console.print("\n[bold]--- Lifelines menu (timer paused) ---[/bold]")
        for lifeline in Lifeline:
            used = "" if lifelines.is_available(lifeline) else " [dim](used)[/dim]"
            self.console.print(f"{lifeline.value} = {descriptions[lifeline]}{used}")

    # ------------------------------------------------------------------
    # Question
    # ------------------------------------------------------------------

    def show_question(self, question: Question, number: int, total: int, lifelines: LifelineState) -> None:
        body = Text()
        body.append(f"{question.text}\n\n", style="bold")
        body.append("\n".join(option_lines(question)))
        title = f"Question {number}/{total} (Difficulty {question.difficulty})"
        self.console.print()
        self.console.print(Panel(body, title=title, title_align="left"))

        bar = format_lifeline_bar(lifelines)
        self.console.print(f"Lifelines: {bar or 'none left'}", markup=False)
        self.console.print("Press 1-4 to answer immediately, or press L to use a lifeline.")

    @contextmanager
    def countdown(self, remaining: int):
        """Show the countdown line; yields a ``CountdownLine`` to update it."""
        with Live(
            Text(format_remaining(remaining), style="bold yellow"),
            console=self.console,
            auto_refresh=False,
            transient=False,
        ) as live:
            yield CountdownLine(live)

    def show_time_up(self, question: Question) -> None:
        self.console.print(f"[bold red]Time's up![/bold red] Correct answer: {escape(question.correct_option)}")

    def show_verdict(self, outcome: QuestionOutcome, delta: int, streak_bonus: int, streak: int) -> None:
        """Report how a question went and the points it earned."""
        if outcome.kind is not OutcomeKind.ANSWERED:
            self.console.print("Question not answered.")
            return

        if outcome.is_correct:
            self.console.print("[bold green]Correct![/bold green]")
            if streak_bonus:
                label = "Big Streak!" if streak >= 5 else "Streak!"
                self.console.print(f"[magenta]{label} +{streak_bonus} bonus[/magenta]")
            self.console.print(f"Earned {delta - streak_bonus} points.")
        else:
            self.console.print(
                f"[bold red]Wrong![/bold red] Correct answer: {escape(outcome.question.correct_option)}"
            )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def show_summary(self, session: Session) -> None:
        self.console.print(Panel.fit(
            f"Quiz Completed!\n"
            f"Your Final Score: {session.final_score}\n"
            f"Correct: {session.correct_count} Wrong: {session.wrong_count}",
            style="bold green",
        ))

    def show_high_scores(self, entries: Iterable) -> None:
        entries = list(entries)
        if not entries:
            self.console.print("\nNo high scores yet.")
            return

        table = Table(title="High Scores")
        table.add_column("#", justify="right")
        table.add_column("Player")
        table.add_column("Points", justify="right")
        table.add_column("When")
        for rank, entry in enumerate(entries, start=1):
            table.add_row(str(rank), escape(entry.name), str(entry.score), entry.datetime)
        self.console.print(table)

    # ------------------------------------------------------------------
    # Messages and prompts
    # ------------------------------------------------------------------

    def notice(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def message(self, message: str) -> None:
        self.console.print(message, markup=False)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]{escape(message)}[/bold red]")

    def ask_int(self, prompt: str, minimum: int, maximum: int) -> int:
        """Block until the player enters a whole number in range."""
        while True:
            value = IntPrompt.ask(prompt, console=self.console)
            if minimum <= value <= maximum:
                return value
            self.console.print(f"Please enter a number between {minimum} and {maximum}.")

    def ask_text(self, prompt: str) -> str:
        return Prompt.ask(prompt, console=self.console, default="", show_default=False)

    def confirm(self, prompt: str) -> bool:
        answer = Prompt.ask(f"{prompt} (Y/N)", console=self.console, default="", show_default=False)
        return answer.strip()[:1].lower() == "y"

    def wait_for_enter(self, prompt: str) -> None:
        self.console.input(f"{prompt} ")
