"""Service for managing the saved word collection."""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import List, Optional, Protocol

from lexquiz.config import settings
from lexquiz.models.vocabulary_models import VocabularyItem
from lexquiz.services.due_selector import due_items
from lexquiz.store import StateRepository


logger = logging.getLogger(__name__)


class EntrySource(Protocol):
    """Dictionary lookup producing ready-to-save words."""

    async def fetch_entry(self, word: str) -> Optional[VocabularyItem]:
        """Look up a word; None when the dictionary has no entry."""
        ...


@dataclass
class VocabularyStats:
    """Dashboard numbers of a collection."""
    total: int
    due: int
    mastered: int


class VocabularyService:
    """Service for adding, removing and summarizing saved words."""

    def __init__(self, repository: StateRepository, entry_source: Optional[EntrySource] = None):
        """Initialize the service with the state repository."""
        self.repository = repository
        self.entry_source = entry_source

    async def save_word(self, word: str) -> Optional[VocabularyItem]:
        """Look up a word and save it. Returns None when the lookup found nothing."""
        if self.entry_source is None:
            raise ValueError("No dictionary source configured")
        item = await self.entry_source.fetch_entry(word.strip().lower())
        if item is None:
            logger.info("No dictionary entry for %s", word)
            return None
        return await self.add_item(item)

    async def add_item(self, item: VocabularyItem) -> VocabularyItem:
        """Save a word unless its headword is already saved."""
        vocabulary = await self.repository.load_vocabulary()
        for saved in vocabulary:
            if saved.headword == item.headword:
                logger.info("Word %s is already saved", item.headword)
                return saved
        vocabulary.append(item)
        await self.repository.save_vocabulary(vocabulary)
        logger.info("Saved word %s (%d words)", item.headword, len(vocabulary))
        return item

    async def delete_word(self, headword: str) -> bool:
        """Remove a word. Returns False if it was not saved."""
        vocabulary = await self.repository.load_vocabulary()
        remaining = [item for item in vocabulary if item.headword != headword]
        if len(remaining) == len(vocabulary):
            return False
        await self.repository.save_vocabulary(remaining)
        logger.info("Deleted word %s", headword)
        return True

    async def search(self, query: str) -> List[VocabularyItem]:
        """Find saved words by headword, newest first."""
        vocabulary = await self.repository.load_vocabulary()
        query = query.strip().lower()
        return [item for item in reversed(vocabulary) if query in item.headword.lower()]

    async def get_stats(self, now: Optional[datetime] = None) -> VocabularyStats:
        """Count saved, due and mastered words."""
        now = now or datetime.now(UTC)
        vocabulary = await self.repository.load_vocabulary()
        return VocabularyStats(
            total=len(vocabulary),
            due=len(due_items(vocabulary, now)),
            mastered=sum(1 for item in vocabulary if item.proficiency_level >= settings.learning.mastered_level),
        )
