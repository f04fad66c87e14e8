"""
Persistence for QuizMaster sessions.

Three plain-text files are maintained:

* the progress snapshot, fully rewritten after every question and removed
  when a session completes::

      <player name>
      <score> <correct> <wrong> <start timestamp>
      <answer> <answer> ...
      <question index> <question index> ...
      <remaining seconds for the current question>

* the high-score file, one ``name|score|datetime`` line per finished quiz;
* the session log, one block per finished quiz.

Writes are best effort: a file that cannot be opened is logged and skipped.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .models import Session


logger = logging.getLogger(__name__)

SESSION_LOG_SEPARATOR = "-" * 31


class RecorderError(Exception):
    """Base exception for session recorder errors."""
    pass


class MalformedProgressFileError(RecorderError):
    """Raised when a progress snapshot cannot be parsed."""
    pass


@dataclass
class ProgressSnapshot:
    """Contents of the progress file."""
    player_name: str
    score: int = 0
    correct: int = 0
    wrong: int = 0
    start_timestamp: int = 0
    answers: List[int] = field(default_factory=list)
    question_indices: List[int] = field(default_factory=list)
    remaining_seconds_for_current: int = 0

    @classmethod
    def from_session(cls, session: Session) -> "ProgressSnapshot":
        return cls(
            player_name=session.player_name,
            score=session.score,
            correct=session.correct_count,
            wrong=session.wrong_count,
            start_timestamp=session.start_timestamp,
            answers=list(session.answers),
            question_indices=list(session.question_indices),
            remaining_seconds_for_current=session.remaining_seconds_for_current,
        )

    @property
    def has_question_in_progress(self) -> bool:
        """A saved countdown means the last slot belongs to an unfinished question."""
        return self.remaining_seconds_for_current > 0 and len(self.answers) > 0

    @property
    def completed_count(self) -> int:
        return len(self.answers) - (1 if self.has_question_in_progress else 0)


@dataclass
class HighScoreEntry:
    """One line of the high-score file."""
    name: str
    score: int
    datetime: str


def timestamp_string(when: Optional[datetime] = None) -> str:
    """Human-readable timestamp, e.g. ``Sat Oct 17 19:20:00 2026``."""
    return (when or datetime.now()).ctime()


def format_progress(snapshot: ProgressSnapshot) -> str:
    """Serialize a snapshot to the five-line progress format."""
    lines = [
        snapshot.player_name,
        f"{snapshot.score} {snapshot.correct} {snapshot.wrong} {snapshot.start_timestamp}",
        " ".join(str(answer) for answer in snapshot.answers),
        " ".join(str(index) for index in snapshot.question_indices),
        str(snapshot.remaining_seconds_for_current),
    ]
    return "\n".join(lines) + "\n"


def _parse_int_list(line: str, what: str) -> List[int]:
    try:
        return [int(token) for token in line.split()]
    except ValueError:
        raise MalformedProgressFileError(f"Invalid {what} line: {line!r}") from None


def parse_progress(text: str) -> ProgressSnapshot:
    """
    Parse the progress format.

    The fifth line is optional; when it is missing, negative or not a
    number the saved countdown is treated as 0.

    Raises:
        MalformedProgressFileError: If any required line is missing or invalid
    """
    lines = text.splitlines()
    if len(lines) < 4:
        raise MalformedProgressFileError(f"Expected at least 4 lines, found {len(lines)}")

    player_name = lines[0].strip()
    if not player_name:
        raise MalformedProgressFileError("Missing player name")

    totals = _parse_int_list(lines[1], "totals")
    if len(totals) < 4:
        raise MalformedProgressFileError(f"Expected 4 totals, found {len(totals)}")
    score, correct, wrong, start_timestamp = totals[:4]

    answers = _parse_int_list(lines[2], "answers")
    if any(not 0 <= answer <= 4 for answer in answers):
        raise MalformedProgressFileError(f"Answers must be between 0 and 4: {lines[2]!r}")

    question_indices = _parse_int_list(lines[3], "question indices")
    # Never report more answers than questions
    answers = answers[:len(question_indices)]

    remaining = 0
    if len(lines) > 4:
        try:
            remaining = max(0, int(lines[4].strip()))
        except ValueError:
            remaining = 0

    return ProgressSnapshot(
        player_name=player_name,
        score=score,
        correct=correct,
        wrong=wrong,
        start_timestamp=start_timestamp,
        answers=answers,
        question_indices=question_indices,
        remaining_seconds_for_current=remaining,
    )


def format_high_score(entry: HighScoreEntry) -> str:
    name = entry.name.replace("|", "/").replace("\n", " ")
    return f"{name}|{entry.score}|{entry.datetime}"


def parse_high_score(line: str) -> Optional[HighScoreEntry]:
    """Parse one high-score line; returns None for lines without two separators."""
    parts = line.rstrip("\r\n").split("|", 2)
    if len(parts) < 3:
        return None
    name, score_text, when = parts
    try:
        score = int(score_text)
    except ValueError:
        score = 0
    return HighScoreEntry(name=name, score=score, datetime=when)


def format_session_log(session: Session, when: Optional[datetime] = None) -> str:
    """One session-log block, terminated by a dashed separator."""
    return (
        f"Player: {session.player_name} | Score: {session.score} | "
        f"Correct: {session.correct_count} | Wrong: {session.wrong_count} | "
        f"Time: {timestamp_string(when)}\n"
        f"Questions indices: {' ,'.join(str(i) for i in session.question_indices)}\n"
        f"Answers: {' ,'.join(str(a) for a in session.answers)}\n"
        f"{SESSION_LOG_SEPARATOR}\n"
    )


class SessionRecorder:
    """Reads and writes the progress, high-score and session-log files."""

    def __init__(self, progress_file, high_score_file, session_log_file):
        self.progress_file = Path(progress_file)
        self.high_score_file = Path(high_score_file)
        self.session_log_file = Path(session_log_file)

    def save_progress(self, session: Session) -> bool:
        """
        Rewrite the progress snapshot from the session.

        Returns:
            True if the snapshot was written, False if the write failed
        """
        content = format_progress(ProgressSnapshot.from_session(session))
        try:
            with open(self.progress_file, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.warning(f"Could not save progress to {self.progress_file}: {e}")
            return False
        logger.debug(
            f"Saved progress: {len(session.answers)} answers, "
            f"{session.remaining_seconds_for_current}s on current question"
        )
        return True

    def load_progress(self) -> Optional[ProgressSnapshot]:
        """
        Load the progress snapshot.

        Returns:
            The snapshot, or None when the file is absent, unreadable or malformed
        """
        try:
            with open(self.progress_file, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read progress file {self.progress_file}: {e}")
            return None

        try:
            return parse_progress(text)
        except MalformedProgressFileError as e:
            logger.warning(f"Ignoring malformed progress file {self.progress_file}: {e}")
            return None

    def clear_progress(self) -> None:
        try:
            self.progress_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove progress file {self.progress_file}: {e}")

    def append_high_score(self, name: str, score: int, when: Optional[datetime] = None) -> bool:
        entry = HighScoreEntry(name=name, score=score, datetime=timestamp_string(when))
        return self._append(self.high_score_file, format_high_score(entry) + "\n")

    def read_high_scores(self) -> List[HighScoreEntry]:
        """
        Read every high-score entry in the order written.

        Lines that do not contain two ``|`` separators are skipped.
        """
        try:
            with open(self.high_score_file, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Could not read high scores from {self.high_score_file}: {e}")
            return []

        entries = []
        for line in lines:
            if not line.strip():
                continue
            entry = parse_high_score(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def top_high_scores(self, limit: int = 5) -> List[HighScoreEntry]:
        """Best entries first; ties keep the order they were written."""
        return sorted(self.read_high_scores(), key=lambda entry: entry.score, reverse=True)[:limit]

    def append_session_log(self, session: Session, when: Optional[datetime] = None) -> bool:
        return self._append(self.session_log_file, format_session_log(session, when))

    def finish_session(self, session: Session, when: Optional[datetime] = None) -> None:
        """
        Record a completed session.

        The high-score entry gets the displayed (clamped) score; the session
        log keeps the raw score. The progress snapshot is removed last.
        """
        when = when or datetime.now()
        self.append_high_score(session.player_name, session.final_score, when)
        self.append_session_log(session, when)
        self.clear_progress()
        logger.info(
            f"Session finished for {session.player_name}: score {session.score} "
            f"(displayed {session.final_score}), {session.correct_count} correct, "
            f"{session.wrong_count} wrong"
        )

    def _append(self, path: Path, text: str) -> bool:
        try:
            with open(path, 'a', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            logger.warning(f"Could not append to {path}: {e}")
            return False
        return True
