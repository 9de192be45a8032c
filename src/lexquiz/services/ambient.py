"""Decisions of the ambient quiz flow.

Everything here works on explicit values: settings, history and progress go
in and their updated versions come out. Reading and writing the store is
left to ``AmbientService``.
"""
import logging
import random
from datetime import UTC, datetime, timedelta
from typing import Optional, Sequence

from lexquiz.config import settings
from lexquiz.models.quiz_models import AmbientAnswerResult, AmbientQuiz, Question
from lexquiz.models.vocabulary_models import (
    PracticeHistory,
    ScheduleSettings,
    TypeProgress,
    VocabularyItem,
    find_item,
)
from lexquiz.services.practice_history import pick_ambient_target
from lexquiz.services.question_generator import QuestionGenerator
from lexquiz.services.type_progress import apply_ambient_answer, choose_ambient_type


logger = logging.getLogger(__name__)


def cooldown_for(frequency_minutes: int) -> timedelta:
    """Get the minimum time between two ambient quizzes.

    The test frequency value stands for a short fixed cooldown instead of a
    number of minutes.
    """
    if frequency_minutes == settings.ambient.test_frequency:
        return timedelta(seconds=settings.ambient.test_cooldown_seconds)
    return timedelta(minutes=frequency_minutes)


def is_ambient_due(schedule: ScheduleSettings, vocabulary_size: int, now: Optional[datetime] = None) -> bool:
    """Check whether an ambient quiz may interrupt the user now."""
    now = now or datetime.now(UTC)
    if not schedule.enabled:
        return False
    if vocabulary_size < settings.learning.min_vocabulary:
        logger.debug("Ambient check skipped: only %d words saved", vocabulary_size)
        return False
    if schedule.snooze_until is not None and now < schedule.snooze_until:
        logger.debug("Ambient check skipped: snoozed until %s", schedule.snooze_until)
        return False
    if schedule.last_triggered_at is not None:
        if now < schedule.last_triggered_at + cooldown_for(schedule.frequency_minutes):
            return False
    return True


def check_ambient_due(
    schedule: ScheduleSettings,
    history: PracticeHistory,
    vocabulary: Sequence[VocabularyItem],
    now: Optional[datetime] = None,
    generator: Optional[QuestionGenerator] = None,
    progress: Optional[TypeProgress] = None,
    rng: Optional[random.Random] = None,
) -> Optional[AmbientQuiz]:
    """Build the next ambient question if one is due, else None."""
    now = now or datetime.now(UTC)
    if not is_ambient_due(schedule, len(vocabulary), now):
        return None

    generator = generator or QuestionGenerator(rng)
    item, updated_history = pick_ambient_target(vocabulary, history, now, rng or generator.rng)
    question_type = choose_ambient_type(item, progress or TypeProgress(), generator, rng)
    question = generator.generate(item, vocabulary, question_type)
    logger.info("Ambient quiz ready: %s (%s)", item.headword, question.type.value)
    return AmbientQuiz(question=question, history=updated_history)


def answer_ambient_question(
    question: Question,
    given_answer: Optional[str],
    vocabulary: Sequence[VocabularyItem],
    history: PracticeHistory,
    type_progress: TypeProgress,
    generator: Optional[QuestionGenerator] = None,
    now: Optional[datetime] = None,
) -> AmbientAnswerResult:
    """Check an ambient answer and compute the updated word and progress."""
    generator = generator or QuestionGenerator()
    item = find_item(vocabulary, question.headword)
    correct = question.check(given_answer)
    updated_item, updated_progress = apply_ambient_answer(
        item, question.type, correct, type_progress, generator, now
    )
    return AmbientAnswerResult(
        correct=correct,
        updated_item=updated_item,
        updated_history=history,
        updated_type_progress=updated_progress,
    )


def snooze(schedule: ScheduleSettings, minutes: int, now: Optional[datetime] = None) -> ScheduleSettings:
    """Pause ambient quizzes for ``minutes``."""
    if minutes < 0:
        raise ValueError(f"Snooze minutes cannot be negative: {minutes}")
    now = now or datetime.now(UTC)
    return schedule.with_changes(snooze_until=now + timedelta(minutes=minutes))


def disable(schedule: ScheduleSettings) -> ScheduleSettings:
    """Turn ambient quizzes off."""
    return schedule.with_changes(enabled=False)


def enable(schedule: ScheduleSettings, frequency_minutes: Optional[int] = None) -> ScheduleSettings:
    """Turn ambient quizzes on, optionally changing how often they appear."""
    if frequency_minutes is None:
        return schedule.with_changes(enabled=True, snooze_until=None)
    if frequency_minutes < 0:
        raise ValueError(f"Frequency cannot be negative: {frequency_minutes}")
    return schedule.with_changes(enabled=True, snooze_until=None, frequency_minutes=frequency_minutes)
