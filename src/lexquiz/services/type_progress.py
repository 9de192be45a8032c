"""Tracking which question types a word has passed in the ambient flow."""
import logging
import random
from datetime import datetime
from typing import Optional, Tuple

from lexquiz.models.quiz_models import QuestionType
from lexquiz.models.vocabulary_models import TypeProgress, VocabularyItem
from lexquiz.services.proficiency_service import AMBIENT_LADDER, LadderPolicy, advance
from lexquiz.services.question_generator import QuestionGenerator


logger = logging.getLogger(__name__)


def remaining_types(
    item: VocabularyItem, progress: TypeProgress, generator: QuestionGenerator
) -> Tuple[QuestionType, ...]:
    """Get the ambient question types the word has not passed in this cycle."""
    completed = progress.completed_for(item.headword)
    return tuple(qtype for qtype in generator.ambient_types(item) if qtype.value not in completed)


def choose_ambient_type(
    item: VocabularyItem,
    progress: TypeProgress,
    generator: QuestionGenerator,
    rng: Optional[random.Random] = None,
) -> QuestionType:
    """Pick a question type the word still has to pass.

    When every type has been passed the cycle starts over with all of them.
    """
    rng = rng or generator.rng
    remaining = remaining_types(item, progress, generator)
    if not remaining:
        remaining = tuple(generator.ambient_types(item))
    return rng.choice(remaining)


def apply_ambient_answer(
    item: VocabularyItem,
    question_type: QuestionType,
    correct: bool,
    progress: TypeProgress,
    generator: QuestionGenerator,
    now: Optional[datetime] = None,
    ladder: LadderPolicy = AMBIENT_LADDER,
) -> Tuple[VocabularyItem, TypeProgress]:
    """Record an ambient answer.

    A miss wipes the word's partial progress and resets it to level 0. A hit
    marks the type as passed; once every applicable type is passed the word
    moves up one level and a new cycle begins.
    """
    if not correct:
        logger.debug("Resetting %s after a missed %s question", item.headword, question_type.value)
        return advance(item, False, ladder, now), progress.clear(item.headword)

    progress = progress.mark_completed(item.headword, question_type.value)
    applicable = {qtype.value for qtype in generator.ambient_types(item)}
    if applicable <= progress.completed_for(item.headword):
        logger.info("%s passed every question type, advancing", item.headword)
        return advance(item, True, ladder, now), progress.clear(item.headword)
    return item, progress
