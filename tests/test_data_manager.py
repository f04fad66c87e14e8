"""
Unit tests for DataManager class and the category file parser.
"""
import shutil
import tempfile
import unittest
from pathlib import Path

from quizmaster.data_manager import (
    DataManager, BankEmptyError, MalformedQuestionFileError, parse_questions,
)
from tests.test_fixtures import make_bank, write_category_file


RECORD = [
    "What is 2+2?",
    "3",
    "4",
    "5",
    "22",
    "2",
    "1",
]


class TestParseQuestions(unittest.TestCase):
    """Test cases for the category file format."""

    def test_single_record(self):
        """Test a record without a trailing separator."""
        questions = parse_questions(RECORD)

        self.assertEqual(len(questions), 1)
        question = questions[0]
        self.assertEqual(question.text, "What is 2+2?")
        self.assertEqual(question.original_options, ("3", "4", "5", "22"))
        self.assertEqual(question.original_correct_index, 1)
        self.assertEqual(question.correct_option, "4")
        self.assertEqual(question.difficulty, 1)
        self.assertEqual(question.bank_index, 0)

    def test_records_with_and_without_separators(self):
        """Test blank separator lines are optional."""
        second = ["Capital of France?", "Rome", "Paris", "Berlin", "Madrid", "2", "3"]
        lines = RECORD + [""] + second + RECORD

        questions = parse_questions(line + "\n" for line in lines)

        self.assertEqual([q.text for q in questions], ["What is 2+2?", "Capital of France?", "What is 2+2?"])
        self.assertEqual([q.bank_index for q in questions], [0, 1, 2])
        self.assertEqual(questions[1].difficulty, 3)

    def test_windows_line_endings(self):
        """Test CRLF files parse like LF files."""
        questions = parse_questions(line + "\r\n" for line in RECORD)
        self.assertEqual(questions[0].original_options[3], "22")

    def test_truncated_record(self):
        """Test a record cut short raises with its line number."""
        with self.assertRaises(MalformedQuestionFileError) as ctx:
            parse_questions(RECORD + [""] + RECORD[:4], source="maths.txt")

        self.assertIn("maths.txt, line 9", str(ctx.exception))

    def test_non_integer_correct_index(self):
        """Test a non-numeric correct option line."""
        lines = RECORD[:5] + ["two"] + RECORD[6:]
        with self.assertRaises(MalformedQuestionFileError) as ctx:
            parse_questions(lines)

        self.assertIn("line 6", str(ctx.exception))

    def test_correct_index_out_of_range(self):
        """Test a correct option outside 1-4."""
        with self.assertRaises(MalformedQuestionFileError):
            parse_questions(RECORD[:5] + ["5"] + RECORD[6:])

    def test_invalid_difficulty(self):
        """Test a difficulty outside 1-3."""
        with self.assertRaises(MalformedQuestionFileError):
            parse_questions(RECORD[:6] + ["4"])
        with self.assertRaises(MalformedQuestionFileError):
            parse_questions(RECORD[:6] + ["hard"])

    def test_empty_input(self):
        """Test blank input yields no questions."""
        self.assertEqual(parse_questions(["", "  ", ""]), [])


class TestDataManager(unittest.TestCase):
    """Test cases for DataManager functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.data_manager = DataManager(self.temp_dir)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_load_category(self):
        """Test loading a category file."""
        write_category_file(self.temp_dir, "easy.txt", make_bank(12))

        questions = self.data_manager.load_category("easy.txt")

        self.assertEqual(len(questions), 12)
        self.assertEqual(questions[5].text, "Question 5?")
        self.assertEqual(questions[5].original_correct_index, 1)

    def test_load_category_is_cached(self):
        """Test a category is read from disk only once."""
        path = write_category_file(self.temp_dir, "easy.txt", make_bank(3))
        first = self.data_manager.load_category("easy.txt")
        path.unlink()

        self.assertIs(self.data_manager.load_category("easy.txt"), first)

    def test_missing_file_is_bank_empty(self):
        """Test a missing file raises BankEmptyError."""
        with self.assertRaises(BankEmptyError) as ctx:
            self.data_manager.load_category("missing.txt")

        self.assertIn("file not found", str(ctx.exception))

    def test_empty_file_is_bank_empty(self):
        """Test an empty file raises BankEmptyError."""
        Path(self.temp_dir, "empty.txt").write_text("\n\n", encoding="utf-8")

        with self.assertRaises(BankEmptyError):
            self.data_manager.load_category("empty.txt")

    def test_malformed_file(self):
        """Test a malformed file raises and is not cached."""
        Path(self.temp_dir, "bad.txt").write_text("\n".join(RECORD[:5] + ["x", "1"]), encoding="utf-8")

        with self.assertRaises(MalformedQuestionFileError):
            self.data_manager.load_category("bad.txt")
        self.assertNotIn("bad.txt", self.data_manager.loaded_banks)

    def test_shipped_categories_parse(self):
        """Test the sample category files that ship with the game."""
        categories_dir = Path(__file__).resolve().parent.parent / "categories"
        data_manager = DataManager(str(categories_dir))

        for file_name in ("science.txt", "sports.txt", "history.txt", "computer.txt", "iq.txt"):
            questions = data_manager.load_category(file_name)
            self.assertGreaterEqual(len(questions), 10, file_name)
            self.assertEqual({q.difficulty for q in questions}, {1, 2, 3}, file_name)


if __name__ == '__main__':
    unittest.main()
