"""Models for saved words and the practice state kept next to them."""
import logging
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Union

from lexquiz.errors import WordNotFound


logger = logging.getLogger(__name__)


def to_millis(value: Optional[datetime]) -> Optional[int]:
    """Convert a datetime to epoch milliseconds as stored in the records."""
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def from_timestamp(value: Union[int, float, str, None]) -> Optional[datetime]:
    """Parse a stored timestamp (epoch milliseconds or ISO string)."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        return datetime.fromtimestamp(value / 1000, UTC)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class Example:
    """Example sentence for a sense."""
    text: str
    pattern: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Union[str, Dict[str, Any]]) -> "Example":
        if isinstance(data, str):
            return cls(text=data)
        return cls(
            text=data.get("text") or "",
            pattern=data.get("pattern"),
            label=data.get("label"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        if self.pattern:
            data["pattern"] = self.pattern
        if self.label:
            data["label"] = self.label
        return data


@dataclass
class Sense:
    """One definition of a word with its examples."""
    definition: str
    examples: List[Example] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sense":
        return cls(
            definition=data.get("definition") or "",
            examples=[Example.from_dict(example) for example in data.get("examples") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "definition": self.definition,
            "examples": [example.to_dict() for example in self.examples],
        }


@dataclass
class Phonetic:
    """Pronunciation of a word in one dialect."""
    dialect: Optional[str] = None  # e.g. "BrE", "NAmE"
    ipa: Optional[str] = None
    audio_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Phonetic":
        return cls(
            dialect=data.get("type") or None,
            ipa=data.get("ipa") or None,
            audio_url=data.get("audioUrl") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.dialect, "ipa": self.ipa, "audioUrl": self.audio_url}


class DistractorSource(Protocol):
    """What the question generator needs from the other words of the pool."""

    @property
    def headword(self) -> str: ...

    @property
    def primary_definition(self) -> Optional[str]: ...

    @property
    def primary_ipa(self) -> Optional[str]: ...


@dataclass
class VocabularyItem:
    """A saved word with its spaced repetition state."""
    headword: str
    part_of_speech: str = ""
    senses: List[Sense] = field(default_factory=list)
    phonetics: List[Phonetic] = field(default_factory=list)
    proficiency_level: int = 0
    next_review_at: Optional[datetime] = None  # None means never reviewed

    @property
    def primary_definition(self) -> Optional[str]:
        for sense in self.senses:
            if sense.definition:
                return sense.definition
        return None

    @property
    def primary_ipa(self) -> Optional[str]:
        for phonetic in self.phonetics:
            if phonetic.ipa:
                return phonetic.ipa
        return None

    @property
    def primary_audio_url(self) -> Optional[str]:
        for phonetic in self.phonetics:
            if phonetic.audio_url:
                return phonetic.audio_url
        return None

    @property
    def examples(self) -> List[Example]:
        return [example for sense in self.senses for example in sense.examples]

    def is_due(self, now: datetime) -> bool:
        """Check if the word should be reviewed at ``now``."""
        return self.next_review_at is None or self.next_review_at <= now

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyItem":
        """Create an item from a stored record."""
        return cls(
            headword=data["headword"],
            part_of_speech=data.get("pos") or "",
            senses=[Sense.from_dict(sense) for sense in data.get("senses") or []],
            phonetics=[Phonetic.from_dict(phonetic) for phonetic in data.get("phonetics") or []],
            proficiency_level=int(data.get("srsLevel") or 0),
            next_review_at=from_timestamp(data.get("nextReview")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored record format."""
        return {
            "headword": self.headword,
            "pos": self.part_of_speech,
            "senses": [sense.to_dict() for sense in self.senses],
            "phonetics": [phonetic.to_dict() for phonetic in self.phonetics],
            "srsLevel": self.proficiency_level,
            "nextReview": to_millis(self.next_review_at),
        }


@dataclass
class PracticeHistory:
    """Anti-repetition state of the ambient flow."""
    last_served_headword: Optional[str] = None
    daily_serve_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def count_for(self, headword: str, day: str) -> int:
        """Get how many times a word was served on ``day`` (ISO date)."""
        return self.daily_serve_counts.get(day, {}).get(headword, 0)

    def record_served(self, headword: str, day: str, keep_days: int) -> "PracticeHistory":
        """Return a new history with ``headword`` served once more on ``day``."""
        counts = {date: dict(record) for date, record in self.daily_serve_counts.items()}
        today = counts.setdefault(day, {})
        today[headword] = today.get(headword, 0) + 1

        # Bounded memory: drop everything but today once too many dates pile up
        if len(counts) > keep_days:
            logger.debug("Pruning serve history to %s (had %d dates)", day, len(counts))
            counts = {day: counts[day]}

        return PracticeHistory(last_served_headword=headword, daily_serve_counts=counts)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PracticeHistory":
        if not data:
            return cls()
        return cls(
            last_served_headword=data.get("lastWord"),
            daily_serve_counts={
                day: {headword: int(count) for headword, count in record.items()}
                for day, record in (data.get("dailyCounts") or {}).items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"lastWord": self.last_served_headword, "dailyCounts": self.daily_serve_counts}


@dataclass
class TypeProgress:
    """Question types answered correctly per word since its last full cycle."""
    completed: Dict[str, Set[str]] = field(default_factory=dict)

    def completed_for(self, headword: str) -> Set[str]:
        return set(self.completed.get(headword, set()))

    def mark_completed(self, headword: str, question_type: str) -> "TypeProgress":
        completed = {key: set(value) for key, value in self.completed.items()}
        completed.setdefault(headword, set()).add(question_type)
        return TypeProgress(completed=completed)

    def clear(self, headword: str) -> "TypeProgress":
        completed = {key: set(value) for key, value in self.completed.items() if key != headword}
        return TypeProgress(completed=completed)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, List[str]]]) -> "TypeProgress":
        if not data:
            return cls()
        return cls(completed={headword: set(types) for headword, types in data.items()})

    def to_dict(self) -> Dict[str, List[str]]:
        return {headword: sorted(types) for headword, types in self.completed.items()}


@dataclass
class ScheduleSettings:
    """Persisted ambient practice schedule."""
    enabled: bool = False
    frequency_minutes: int = 30
    last_triggered_at: Optional[datetime] = None
    snooze_until: Optional[datetime] = None

    def with_changes(self, **changes: Any) -> "ScheduleSettings":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default_frequency: int = 30) -> "ScheduleSettings":
        if not data:
            return cls(frequency_minutes=default_frequency)
        return cls(
            enabled=bool(data.get("enabled", False)),
            frequency_minutes=int(data.get("frequency", default_frequency)),
            last_triggered_at=from_timestamp(data.get("lastTriggered")),
            snooze_until=from_timestamp(data.get("snoozeUntil")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "frequency": self.frequency_minutes,
            "lastTriggered": to_millis(self.last_triggered_at),
            "snoozeUntil": to_millis(self.snooze_until),
        }


def find_item(vocabulary: Sequence[VocabularyItem], headword: str) -> VocabularyItem:
    """Get a saved word by headword.

    Raises:
        WordNotFound: the word was deleted meanwhile.
    """
    for item in vocabulary:
        if item.headword == headword:
            return item
    raise WordNotFound(headword)
