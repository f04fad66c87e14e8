"""
Data manager for category question files.

A category file is plain text. Each question occupies seven lines: the
question text, four options, the 1-based index of the correct option and
the difficulty (1, 2 or 3). A blank line may separate questions.
"""
import logging
from typing import Dict, Iterable, List
from pathlib import Path

from .models import Question, OPTION_COUNT


VALID_DIFFICULTIES = (1, 2, 3)


class DataManagerError(Exception):
    """Base exception for question bank loading errors."""
    pass


class BankEmptyError(DataManagerError):
    """Raised when a category file is missing or holds no questions."""
    pass


class MalformedQuestionFileError(DataManagerError):
    """Raised when a question record is truncated or has invalid numbers."""
    pass


def _parse_int_field(value: str, field_name: str, line_number: int, source: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise MalformedQuestionFileError(
            f"{source}, line {line_number}: {field_name} must be an integer, got {value.strip()!r}"
        ) from None


def parse_questions(lines: Iterable[str], source: str = "<questions>") -> List[Question]:
    """
    Parse category file lines into Question objects.

    Args:
        lines: Lines of the category file, with or without line endings
        source: Name used in error messages

    Returns:
        Questions in file order, each tagged with its bank index

    Raises:
        MalformedQuestionFileError: If a record is truncated or invalid
    """
    rows = [line.rstrip("\r\n") for line in lines]
    questions: List[Question] = []
    pos = 0

    while pos < len(rows):
        # Skip blank separators between records
        if not rows[pos].strip():
            pos += 1
            continue

        start = pos
        record = rows[pos:pos + 2 + OPTION_COUNT + 1]
        if len(record) < 2 + OPTION_COUNT + 1:
            raise MalformedQuestionFileError(
                f"{source}, line {start + 1}: question record is truncated"
            )

        text = record[0].strip()
        options = tuple(option.strip() for option in record[1:1 + OPTION_COUNT])
        correct = _parse_int_field(record[1 + OPTION_COUNT], "correct option", start + 2 + OPTION_COUNT, source)
        difficulty = _parse_int_field(record[2 + OPTION_COUNT], "difficulty", start + 3 + OPTION_COUNT, source)

        if not 1 <= correct <= OPTION_COUNT:
            raise MalformedQuestionFileError(
                f"{source}, line {start + 2 + OPTION_COUNT}: correct option must be 1-{OPTION_COUNT}, got {correct}"
            )
        if difficulty not in VALID_DIFFICULTIES:
            raise MalformedQuestionFileError(
                f"{source}, line {start + 3 + OPTION_COUNT}: difficulty must be 1, 2 or 3, got {difficulty}"
            )

        questions.append(Question(
            text=text,
            original_options=options,
            original_correct_index=correct - 1,
            difficulty=difficulty,
            bank_index=len(questions),
        ))
        pos += len(record)

    return questions


class DataManager:
    """Loads and caches question banks from category files."""

    def __init__(self, quiz_directory: str = "./categories/"):
        """
        Initialize DataManager with the category directory path.

        Args:
            quiz_directory: Path to directory containing category files
        """
        self.quiz_directory = Path(quiz_directory)
        self.loaded_banks: Dict[str, List[Question]] = {}
        self.logger = logging.getLogger(__name__)

    def load_category(self, file_name: str) -> List[Question]:
        """
        Load the question bank for one category.

        Args:
            file_name: Category file name, relative to the quiz directory

        Returns:
            List of Question objects in file order

        Raises:
            BankEmptyError: If the file is missing, unreadable or empty
            MalformedQuestionFileError: If a record cannot be parsed
        """
        if file_name in self.loaded_banks:
            return self.loaded_banks[file_name]

        file_path = self.quiz_directory / file_name
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except FileNotFoundError:
            error_msg = f"Could not load questions from {file_path}: file not found"
            self.logger.error(error_msg)
            raise BankEmptyError(error_msg) from None
        except OSError as e:
            error_msg = f"Could not load questions from {file_path}: {e}"
            self.logger.error(error_msg)
            raise BankEmptyError(error_msg) from e

        try:
            questions = parse_questions(lines, source=file_path.name)
        except MalformedQuestionFileError as e:
            self.logger.error(str(e))
            raise

        if not questions:
            error_msg = f"Could not load questions from {file_path}: file is empty"
            self.logger.error(error_msg)
            raise BankEmptyError(error_msg)

        self.loaded_banks[file_name] = questions
        self.logger.info(f"Loaded category '{file_name}' with {len(questions)} questions")
        return questions

