"""Question types and the generator that builds them."""
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, final

from lexquiz.errors import MalformedItem
from lexquiz.models.quiz_models import Question, QuestionType
from lexquiz.models.vocabulary_models import DistractorSource, Example, Sense, VocabularyItem


logger = logging.getLogger(__name__)

OPTION_COUNT = 4
BLANK = "_______"
NO_DEFINITION = "No definition"
NO_IPA = "/.../"
NO_WORD = "something"


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


def headword_pattern(headword: str) -> re.Pattern:
    """Case-insensitive pattern matching every occurrence of a headword."""
    return re.compile(re.escape(headword), re.IGNORECASE)


class BaseQuestionBuilder(ABC):
    """Base class for all question types."""

    """Fields and methods that must be implemented by subclasses."""
    type: Optional[QuestionType] = None
    priority: int = 0
    header_text: str = ""

    @abstractmethod
    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        """Internal method to build the question. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        """Determine if this question type can be built for the given word."""
        return False

    """Fields and methods that must not be overridden by subclasses."""

    @final
    def __init__(self, rng: random.Random):
        self.rng = rng

    @final
    def build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        """Build a question for ``item`` using the rest of ``pool`` for distractors."""
        if not self.is_applicable(item):
            raise MalformedItem(item.headword, self.type.value)
        others = [other for other in pool if other.headword != item.headword]
        question = self._build(item, others)
        logger.debug("Built %s question for %s", self.type.value, item.headword)
        return question

    @final
    def _options(self, correct: str, candidates: Iterable[Optional[str]], placeholder: str) -> List[str]:
        """Pick 3 distinct distractors, pad with placeholders, and shuffle in the answer."""
        unique: List[str] = []
        for candidate in candidates:
            if candidate and candidate != correct and candidate not in unique:
                unique.append(candidate)
        distractors = self.rng.sample(unique, min(len(unique), OPTION_COUNT - 1))

        number = 1
        while len(distractors) < OPTION_COUNT - 1:
            filler = placeholder if number == 1 else f"{placeholder} ({number})"
            number += 1
            if filler != correct and filler not in distractors:
                distractors.append(filler)

        options = [correct] + distractors
        self.rng.shuffle(options)
        return options


class MeaningQuestion(BaseQuestionBuilder):
    """Choose the definition of a word."""
    type = QuestionType.MEANING
    priority = 1
    header_text = "Choose the correct meaning"

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return True

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        correct = item.primary_definition or NO_DEFINITION
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=item.headword,
            correct_answer=correct,
            options=self._options(correct, (other.primary_definition for other in pool), NO_DEFINITION),
            header_text=self.header_text,
            audio_url=item.primary_audio_url,
        )


class SpellingQuestion(BaseQuestionBuilder):
    """Type the word for its definition."""
    type = QuestionType.SPELLING
    priority = 2
    header_text = "Type the word for"

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return True

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=item.primary_definition or NO_DEFINITION,
            correct_answer=item.headword,
            header_text=self.header_text,
            context=item.part_of_speech or None,
        )


class IpaQuestion(BaseQuestionBuilder):
    """Choose the pronunciation of a word."""
    type = QuestionType.IPA
    priority = 3
    header_text = "Choose the correct pronunciation"

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return any(phonetic.ipa and phonetic.audio_url for phonetic in item.phonetics)

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        phonetic = next(p for p in item.phonetics if p.ipa and p.audio_url)
        correct = f"/{phonetic.ipa}/"
        candidates = (f"/{other.primary_ipa}/" for other in pool if other.primary_ipa)
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=item.headword,
            correct_answer=correct,
            options=self._options(correct, candidates, NO_IPA),
            header_text=self.header_text,
            audio_url=phonetic.audio_url,
        )


class AudioWordQuestion(BaseQuestionBuilder):
    """Listen and choose the word."""
    type = QuestionType.AUDIO_WORD
    priority = 4
    header_text = "Listen and choose the word"

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return item.primary_audio_url is not None

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=self.header_text,
            correct_answer=item.headword,
            options=self._options(item.headword, (other.headword for other in pool), NO_WORD),
            header_text=self.header_text,
            audio_url=item.primary_audio_url,
        )


class AudioMeaningQuestion(BaseQuestionBuilder):
    """Listen and choose the definition."""
    type = QuestionType.AUDIO_MEANING
    priority = 5
    header_text = "Listen and choose the meaning"

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return item.primary_audio_url is not None

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        correct = item.primary_definition or NO_DEFINITION
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=self.header_text,
            correct_answer=correct,
            options=self._options(correct, (other.primary_definition for other in pool), NO_DEFINITION),
            header_text=self.header_text,
            audio_url=item.primary_audio_url,
        )


class FillBlankQuestion(BaseQuestionBuilder):
    """Complete an example sentence with the word."""
    type = QuestionType.FILL_BLANK
    priority = 6
    header_text = "Fill in the blank"

    @staticmethod
    def _usable_examples(item: VocabularyItem) -> List[Tuple[Sense, Example]]:
        pattern = headword_pattern(item.headword)
        return [
            (sense, example)
            for sense in item.senses
            for example in sense.examples
            if example.text and pattern.search(example.text)
        ]

    @classmethod
    def is_applicable(cls, item: VocabularyItem) -> bool:
        return bool(item.headword) and bool(cls._usable_examples(item))

    def _build(self, item: VocabularyItem, pool: Sequence[DistractorSource]) -> Question:
        sense, example = self.rng.choice(self._usable_examples(item))
        prompt = headword_pattern(item.headword).sub(BLANK, example.text)
        return Question(
            type=self.type,
            headword=item.headword,
            prompt=prompt,
            correct_answer=item.headword,
            options=self._options(item.headword, (other.headword for other in pool), NO_WORD),
            header_text=self.header_text,
            context=sense.definition or None,
        )


class QuestionGenerator:
    """Builds questions of every registered type."""

    # Question types the ambient flow cycles through
    AMBIENT_TYPES = (QuestionType.MEANING, QuestionType.IPA, QuestionType.FILL_BLANK)
    FALLBACK_TYPE = QuestionType.MEANING

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.builders: Dict[QuestionType, BaseQuestionBuilder] = {}
        for builder_class in sorted(get_all_subclasses(BaseQuestionBuilder), key=lambda cls: cls.priority):
            if builder_class.type is None:
                continue
            self.builders[builder_class.type] = builder_class(self.rng)

    def applicable_types(self, item: VocabularyItem) -> List[QuestionType]:
        """Get every question type the word supports, in priority order."""
        return [qtype for qtype, builder in self.builders.items() if builder.is_applicable(item)]

    def ambient_types(self, item: VocabularyItem) -> List[QuestionType]:
        """Get the question types the ambient flow uses for the word."""
        return [qtype for qtype in self.applicable_types(item) if qtype in self.AMBIENT_TYPES]

    def generate(
        self,
        target: VocabularyItem,
        pool: Sequence[DistractorSource],
        type_hint: Optional[QuestionType] = None,
    ) -> Question:
        """Build one question, of ``type_hint`` when the word supports it."""
        if type_hint is None:
            type_hint = self.rng.choice(self.applicable_types(target))
        try:
            return self.builders[type_hint].build(target, pool)
        except MalformedItem as e:
            logger.warning("%s, falling back to %s", e, self.FALLBACK_TYPE.value)
            return self.builders[self.FALLBACK_TYPE].build(target, pool)

    def generate_all(self, target: VocabularyItem, pool: Sequence[DistractorSource]) -> List[Question]:
        """Build one question of every type the word supports."""
        return [self.builders[qtype].build(target, pool) for qtype in self.applicable_types(target)]

    def generate_session(
        self, items: Sequence[VocabularyItem], pool: Sequence[DistractorSource]
    ) -> List[Question]:
        """Build all questions for the selected words and shuffle them together."""
        questions = [question for item in items for question in self.generate_all(item, pool)]
        self.rng.shuffle(questions)
        logger.info("Generated %d questions for %d words", len(questions), len(items))
        return questions
