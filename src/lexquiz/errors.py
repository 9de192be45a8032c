"""Error conditions raised by the quiz engine.

None of these are fatal: every caller has a safe fallback (no question, a
simpler question type, or a friendly empty state).
"""
from typing import Optional


class LexQuizError(Exception):
    """Base class for all quiz engine errors."""


class InsufficientVocabulary(LexQuizError):
    """The collection is too small to build 4-option questions."""

    def __init__(self, size: int, required: int):
        super().__init__(f"Vocabulary has {size} words, at least {required} are required")
        self.size = size
        self.required = required


class NothingDue(LexQuizError):
    """No word is due for review right now."""


class DeliveryFailed(LexQuizError):
    """The presentation surface is absent or did not acknowledge the question."""

    def __init__(self, surface_id: Optional[str], reason: str):
        super().__init__(f"Delivery to surface {surface_id!r} failed: {reason}")
        self.surface_id = surface_id
        self.reason = reason


class MalformedItem(LexQuizError):
    """A word lacks the fields a requested question type needs."""

    def __init__(self, headword: str, question_type: str):
        super().__init__(f"Word {headword!r} cannot produce a {question_type!r} question")
        self.headword = headword
        self.question_type = question_type


class PersistenceFailed(LexQuizError):
    """Reading from or writing to the store failed."""


class WordNotFound(LexQuizError):
    """The word a question was asked about is no longer saved."""

    def __init__(self, headword: str):
        super().__init__(f"Word {headword!r} not found")
        self.headword = headword
