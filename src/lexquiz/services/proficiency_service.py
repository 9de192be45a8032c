"""Proficiency levels and review intervals."""
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Dict, Optional, Set, Tuple

from lexquiz.models.quiz_models import AnswerResult, Question
from lexquiz.models.vocabulary_models import VocabularyItem


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LadderPolicy:
    """Fixed ladder of review intervals.

    Levels below ``len(steps)`` use the listed interval; higher levels grow
    weekly: ``(level - tail_offset) * 7`` days.
    """
    name: str
    steps: Tuple[timedelta, ...]
    tail_offset: int = 0

    def interval_for(self, level: int) -> timedelta:
        if level < 0:
            raise ValueError(f"Level cannot be negative: {level}")
        if level < len(self.steps):
            return self.steps[level]
        return timedelta(days=(level - self.tail_offset) * 7)


# Explicit sessions: 1, 3, 7, 14 days, then level * 7 days
SESSION_LADDER = LadderPolicy(
    name="session",
    steps=(timedelta(days=1), timedelta(days=3), timedelta(days=7), timedelta(days=14)),
)

# Ambient quizzes: short relearning steps first, then (level - 3) * 7 days.
# Level 0 is 1 minute on purpose so a missed word comes back in the next quizzes.
AMBIENT_LADDER = LadderPolicy(
    name="ambient",
    steps=(timedelta(minutes=1), timedelta(minutes=10), timedelta(days=1), timedelta(days=3)),
    tail_offset=3,
)


def interval_for(level: int, ladder: LadderPolicy = SESSION_LADDER) -> timedelta:
    """Get the review interval for a proficiency level."""
    return ladder.interval_for(level)


def advance(
    item: VocabularyItem,
    correct: bool,
    ladder: LadderPolicy = SESSION_LADDER,
    now: Optional[datetime] = None,
) -> VocabularyItem:
    """Return a copy of ``item`` moved one step up the ladder, or back to 0 on a miss."""
    now = now or datetime.now(UTC)
    new_level = item.proficiency_level + 1 if correct else 0
    return replace(
        item,
        proficiency_level=new_level,
        next_review_at=now + ladder.interval_for(new_level),
    )


class PracticeSession:
    """One explicit practice session.

    Words are levelled from the level they had when first answered in the
    session, so any number of correct answers lifts a word by one level at
    most. A miss pins the word at level 0 for the rest of the session.
    Never persisted.
    """

    def __init__(self, ladder: LadderPolicy = SESSION_LADDER):
        self.ladder = ladder
        self.failed_headwords: Set[str] = set()
        self.start_levels: Dict[str, int] = {}
        self.answered = 0
        self.score = 0

    def answer(
        self,
        question: Question,
        given_answer: Optional[str],
        item: VocabularyItem,
        now: Optional[datetime] = None,
    ) -> AnswerResult:
        """Check an answer and compute the updated word."""
        correct = question.check(given_answer)
        start_level = self.start_levels.setdefault(item.headword, item.proficiency_level)
        self.answered += 1
        if correct:
            self.score += 1
        else:
            self.failed_headwords.add(item.headword)

        if correct and item.headword in self.failed_headwords:
            logger.debug("Keeping %s at level 0 after an earlier miss this session", item.headword)
            updated = advance(item, False, self.ladder, now)
        else:
            updated = advance(replace(item, proficiency_level=start_level), correct, self.ladder, now)
        return AnswerResult(correct=correct, updated_item=updated)
