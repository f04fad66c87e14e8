"""QuizMaster: a timed multiple-choice quiz for the terminal."""

__version__ = "0.1.0"
