"""Resumable kanji flashcard quizzes."""

__version__ = "0.1.0"
