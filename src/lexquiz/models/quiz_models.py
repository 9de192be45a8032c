"""Models for quiz-related data structures."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from lexquiz.models.vocabulary_models import PracticeHistory, TypeProgress, VocabularyItem


class QuestionType(Enum):
    """Available question types."""
    MEANING = "meaning"  # Choose the definition of a word
    SPELLING = "spelling"  # Type the word for a definition
    IPA = "ipa"  # Choose the pronunciation of a word
    AUDIO_WORD = "audio-word"  # Listen and choose the word
    AUDIO_MEANING = "audio-meaning"  # Listen and choose the definition
    FILL_BLANK = "fill_blank"  # Complete an example sentence


class SelectionStatus(Enum):
    """Outcome of picking words for an explicit session."""
    READY = "ready"
    INSUFFICIENT = "insufficient"
    NOTHING_DUE = "nothing_due"


class DueMode(Enum):
    """How strictly the due set is computed."""
    STRICT = "strict"
    REVIEW_AHEAD = "review_ahead"


@dataclass
class Question:
    """A generated question. Ephemeral, never persisted."""
    type: QuestionType
    headword: str
    prompt: str
    correct_answer: str
    options: List[str] = field(default_factory=list)  # empty for free-text types
    header_text: str = ""
    audio_url: Optional[str] = None
    context: Optional[str] = None

    @property
    def is_free_text(self) -> bool:
        return not self.options

    def check(self, given_answer: Optional[str]) -> bool:
        """Check an answer: exact option match, or case-insensitive for typed answers."""
        if given_answer is None:
            return False
        if self.is_free_text:
            return given_answer.strip().casefold() == self.correct_answer.strip().casefold()
        return given_answer == self.correct_answer

    def to_dict(self) -> Dict[str, Any]:
        """Payload sent to presentation surfaces."""
        return {
            "type": self.type.value,
            "headword": self.headword,
            "prompt": self.prompt,
            "correctAnswer": self.correct_answer,
            "options": list(self.options),
            "headerText": self.header_text,
            "audioUrl": self.audio_url,
            "context": self.context,
        }


@dataclass
class DueSelection:
    """Words picked for an explicit session."""
    items: List[VocabularyItem]
    filler_count: int = 0  # trailing items that are not due yet (review ahead)


@dataclass
class SessionQuestions:
    """Questions of an explicit session, or why there are none."""
    status: SelectionStatus
    questions: List[Question] = field(default_factory=list)
    review_ahead: bool = False


@dataclass
class AnswerResult:
    """Result of answering a session question."""
    correct: bool
    updated_item: VocabularyItem


@dataclass
class AmbientQuiz:
    """A question picked by the ambient flow with the history it implies."""
    question: Question
    history: PracticeHistory


@dataclass
class AmbientAnswerResult:
    """Result of answering an ambient question."""
    correct: bool
    updated_item: VocabularyItem
    updated_history: PracticeHistory
    updated_type_progress: TypeProgress
