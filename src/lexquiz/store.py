"""Key-value persistence for vocabulary and practice state."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lexquiz.config import settings
from lexquiz.errors import PersistenceFailed
from lexquiz.models.models import StoreRecord
from lexquiz.models.vocabulary_models import (
    PracticeHistory,
    ScheduleSettings,
    TypeProgress,
    VocabularyItem,
)
from lexquiz.monitoring import store_errors, store_operations


logger = logging.getLogger(__name__)

# Store keys
VOCABULARY_KEY = "vocabulary"
HISTORY_KEY = "randomHistory"
TYPE_PROGRESS_KEY = "typeProgress"
SCHEDULE_KEY = "randomPractice"


class KeyValueStore(ABC):
    """Asynchronous key-value store. Values are replaced whole, last write wins."""

    @abstractmethod
    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Get the stored values for ``keys``; missing keys are left out."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    async def set(self, record: Dict[str, Any]) -> None:
        """Store every key of ``record``."""
        raise NotImplementedError("Subclasses must implement this method")


class SQLAlchemyStore(KeyValueStore):
    """Key-value store kept in the ``store_records`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize the store with a session factory."""
        self.session_factory = session_factory

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        keys = list(keys)
        store_operations.labels(operation_type="get").inc()
        db = self.session_factory()
        try:
            rows = db.query(StoreRecord).filter(StoreRecord.key.in_(keys)).all()
            return {row.key: row.value for row in rows}
        except SQLAlchemyError as e:
            store_errors.labels(operation_type="get").inc()
            logger.error("Failed to read %s from store: %s", keys, str(e))
            raise PersistenceFailed(f"Failed to read {keys}") from e
        finally:
            db.close()

    async def set(self, record: Dict[str, Any]) -> None:
        store_operations.labels(operation_type="set").inc()
        db = self.session_factory()
        try:
            for key, value in record.items():
                row = db.get(StoreRecord, key)
                if row is None:
                    db.add(StoreRecord(key=key, value=value))
                else:
                    row.value = value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            store_errors.labels(operation_type="set").inc()
            logger.error("Failed to write %s to store: %s", list(record), str(e))
            raise PersistenceFailed(f"Failed to write {list(record)}") from e
        finally:
            db.close()


class StateRepository:
    """Typed access to the records kept in the store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def load_vocabulary(self) -> List[VocabularyItem]:
        data = await self.store.get([VOCABULARY_KEY])
        return [VocabularyItem.from_dict(entry) for entry in data.get(VOCABULARY_KEY) or []]

    async def save_vocabulary(self, vocabulary: List[VocabularyItem]) -> None:
        await self.store.set({VOCABULARY_KEY: [item.to_dict() for item in vocabulary]})

    async def save_item(self, item: VocabularyItem) -> None:
        """Replace one word in the collection (full read-modify-write)."""
        vocabulary = await self.load_vocabulary()
        if all(saved.headword != item.headword for saved in vocabulary):
            logger.warning("Word %s is no longer saved, not updating it", item.headword)
            return
        await self.save_vocabulary(
            [item if saved.headword == item.headword else saved for saved in vocabulary]
        )

    async def load_history(self) -> PracticeHistory:
        data = await self.store.get([HISTORY_KEY])
        return PracticeHistory.from_dict(data.get(HISTORY_KEY))

    async def load_type_progress(self) -> TypeProgress:
        data = await self.store.get([TYPE_PROGRESS_KEY])
        return TypeProgress.from_dict(data.get(TYPE_PROGRESS_KEY))

    async def load_schedule(self) -> ScheduleSettings:
        data = await self.store.get([SCHEDULE_KEY])
        return ScheduleSettings.from_dict(data.get(SCHEDULE_KEY), settings.ambient.default_frequency)

    async def save_schedule(self, schedule: ScheduleSettings) -> None:
        await self.store.set({SCHEDULE_KEY: schedule.to_dict()})

    async def save_state(
        self,
        history: Optional[PracticeHistory] = None,
        type_progress: Optional[TypeProgress] = None,
        schedule: Optional[ScheduleSettings] = None,
    ) -> None:
        """Write the given practice records together."""
        record: Dict[str, Any] = {}
        if history is not None:
            record[HISTORY_KEY] = history.to_dict()
        if type_progress is not None:
            record[TYPE_PROGRESS_KEY] = type_progress.to_dict()
        if schedule is not None:
            record[SCHEDULE_KEY] = schedule.to_dict()
        if record:
            await self.store.set(record)
