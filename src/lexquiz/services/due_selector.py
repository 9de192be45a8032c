"""Selection of the words due for an explicit session."""
import logging
import random
from datetime import UTC, datetime
from typing import List, Optional, Sequence

from lexquiz.config import settings
from lexquiz.errors import InsufficientVocabulary, NothingDue
from lexquiz.models.quiz_models import DueMode, DueSelection
from lexquiz.models.vocabulary_models import VocabularyItem


logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, UTC)


def due_items(items: Sequence[VocabularyItem], now: datetime) -> List[VocabularyItem]:
    """Get the words whose review time has passed or that were never reviewed."""
    return [item for item in items if item.is_due(now)]


def require_pool(items: Sequence[VocabularyItem], min_pool: Optional[int] = None) -> None:
    """Raise InsufficientVocabulary if the collection is too small to quiz on."""
    min_pool = settings.learning.min_vocabulary if min_pool is None else min_pool
    if len(items) < min_pool:
        raise InsufficientVocabulary(len(items), min_pool)


def select_due(
    items: Sequence[VocabularyItem],
    mode: DueMode = DueMode.STRICT,
    now: Optional[datetime] = None,
    session_size: Optional[int] = None,
    min_pool: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> DueSelection:
    """Choose up to ``session_size`` words for a session.

    Raises:
        InsufficientVocabulary: fewer than ``min_pool`` words are saved.
        NothingDue: no word qualifies in the requested mode.
    """
    now = now or datetime.now(UTC)
    rng = rng or random.Random()
    session_size = settings.learning.session_size if session_size is None else session_size
    require_pool(items, min_pool)

    due = due_items(items, now)
    rng.shuffle(due)
    selected = due[:session_size]
    filler: List[VocabularyItem] = []

    if mode == DueMode.REVIEW_AHEAD and len(selected) < session_size:
        # Only words that were never mastered may be reviewed early
        filler = sorted(
            (item for item in items if not item.is_due(now) and item.proficiency_level == 0),
            key=lambda item: item.next_review_at or _EPOCH,
        )[: session_size - len(selected)]

    logger.info(
        "Selected %d due and %d filler words (mode: %s, collection: %d)",
        len(selected),
        len(filler),
        mode.value,
        len(items),
    )
    if not selected and not filler:
        raise NothingDue("No words are due for review")
    return DueSelection(items=selected + filler, filler_count=len(filler))
