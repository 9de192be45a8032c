"""Picking the word for an ambient quiz without repeating it too often."""
import logging
import random
from datetime import UTC, datetime
from typing import List, Optional, Sequence, Tuple

from lexquiz.config import settings
from lexquiz.models.vocabulary_models import PracticeHistory, VocabularyItem
from lexquiz.services.due_selector import due_items


logger = logging.getLogger(__name__)


def today_key(now: datetime) -> str:
    """ISO date used as the key of the daily serve counts."""
    return now.astimezone(UTC).date().isoformat()


def pick_ambient_target(
    pool: Sequence[VocabularyItem],
    history: PracticeHistory,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    daily_cap: Optional[int] = None,
    keep_days: Optional[int] = None,
) -> Tuple[VocabularyItem, PracticeHistory]:
    """Pick a word for the next ambient quiz and return the updated history.

    Due words are preferred (the whole pool when nothing is due). The word
    served last and words already served ``daily_cap`` times today are
    skipped; when that leaves nothing, the last served word is let back in,
    and then both rules are dropped.
    """
    if not pool:
        raise ValueError("Cannot pick a word from an empty pool")
    now = now or datetime.now(UTC)
    rng = rng or random.Random()
    daily_cap = settings.learning.daily_serve_cap if daily_cap is None else daily_cap
    keep_days = settings.learning.history_days if keep_days is None else keep_days
    day = today_key(now)

    candidates = due_items(pool, now) or list(pool)

    def under_cap(item: VocabularyItem) -> bool:
        return history.count_for(item.headword, day) < daily_cap

    eligible: List[VocabularyItem] = [
        item for item in candidates
        if item.headword != history.last_served_headword and under_cap(item)
    ]
    if not eligible:
        logger.info("Repetition filter too aggressive, allowing the last served word again")
        eligible = [item for item in candidates if under_cap(item)]
    if not eligible:
        logger.info("Every candidate reached the daily cap, ignoring repetition rules")
        eligible = candidates

    item = rng.choice(eligible)
    return item, history.record_served(item.headword, day, keep_days)
