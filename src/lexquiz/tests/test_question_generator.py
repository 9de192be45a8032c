"""Tests for question generation."""
from datetime import timedelta

import pytest

from lexquiz.errors import MalformedItem
from lexquiz.models.quiz_models import QuestionType
from lexquiz.models.vocabulary_models import Example, Phonetic, Sense, VocabularyItem
from lexquiz.services.question_generator import (
    BLANK,
    NO_DEFINITION,
    NO_WORD,
    FillBlankQuestion,
    IpaQuestion,
    QuestionGenerator,
    headword_pattern,
)


@pytest.fixture
def generator(rng) -> QuestionGenerator:
    return QuestionGenerator(rng)


def assert_valid_options(question) -> None:
    assert len(question.options) == 4
    assert len(set(question.options)) == 4
    assert question.options.count(question.correct_answer) == 1


def test_builders_registered_in_priority_order(generator) -> None:
    assert list(generator.builders) == [
        QuestionType.MEANING,
        QuestionType.SPELLING,
        QuestionType.IPA,
        QuestionType.AUDIO_WORD,
        QuestionType.AUDIO_MEANING,
        QuestionType.FILL_BLANK,
    ]


def test_applicable_types_full_item(generator, make_item) -> None:
    assert generator.applicable_types(make_item()) == list(QuestionType)


def test_applicable_types_bare_item(generator) -> None:
    """Test that a word without audio or examples gets text questions only."""
    item = VocabularyItem(headword="bare", senses=[Sense(definition="plain")])

    assert generator.applicable_types(item) == [QuestionType.MEANING, QuestionType.SPELLING]
    assert generator.ambient_types(item) == [QuestionType.MEANING]


def test_ipa_needs_audio(make_item) -> None:
    """Test that an IPA question requires a phonetic with both IPA and audio."""
    assert IpaQuestion.is_applicable(make_item(with_audio=False)) is False
    assert IpaQuestion.is_applicable(make_item()) is True


@pytest.mark.parametrize(
    "question_type",
    [
        QuestionType.MEANING,
        QuestionType.IPA,
        QuestionType.AUDIO_WORD,
        QuestionType.AUDIO_MEANING,
        QuestionType.FILL_BLANK,
    ],
)
def test_multiple_choice_options(generator, vocabulary, question_type) -> None:
    """Test that every multiple choice question has 4 distinct options with one correct."""
    for item in vocabulary:
        question = generator.generate(item, vocabulary, question_type)
        assert question.type == question_type
        assert question.headword == item.headword
        assert_valid_options(question)


def test_target_never_used_as_distractor(generator, vocabulary) -> None:
    target = vocabulary[0]
    question = generator.generate(target, vocabulary, QuestionType.AUDIO_WORD)

    assert question.correct_answer == target.headword
    assert question.options.count(target.headword) == 1


def test_meaning_question(generator, vocabulary) -> None:
    target = vocabulary[0]
    question = generator.generate(target, vocabulary, QuestionType.MEANING)

    assert question.prompt == "apple"
    assert question.correct_answer == target.primary_definition
    other_definitions = {item.primary_definition for item in vocabulary[1:]}
    assert set(question.options) - {question.correct_answer} <= other_definitions


def test_spelling_question(generator, vocabulary) -> None:
    target = vocabulary[1]
    question = generator.generate(target, vocabulary, QuestionType.SPELLING)

    assert question.is_free_text
    assert question.options == []
    assert question.prompt == target.primary_definition
    assert question.correct_answer == "pear"
    assert question.context == "noun"
    assert question.check("  PEAR ") is True
    assert question.check("pears") is False


def test_ipa_question_wraps_in_slashes(generator, vocabulary) -> None:
    target = vocabulary[0]
    question = generator.generate(target, vocabulary, QuestionType.IPA)

    assert question.correct_answer == f"/{target.primary_ipa}/"
    assert question.audio_url == target.primary_audio_url
    assert all(option.startswith("/") and option.endswith("/") for option in question.options)


def test_fill_blank_hides_headword(generator) -> None:
    """Test that the blank replaces every occurrence of the word, whatever its case."""
    target = VocabularyItem(
        headword="run",
        senses=[
            Sense(definition="move fast", examples=[Example(text="Run! I said run, and he RUN off.")]),
        ],
    )
    pool = [target] + [
        VocabularyItem(headword=word, senses=[Sense(definition=f"{word} meaning")])
        for word in ("walk", "jump", "swim")
    ]

    question = generator.generate(target, pool, QuestionType.FILL_BLANK)

    assert question.prompt == f"{BLANK}! I said {BLANK}, and he {BLANK} off."
    assert headword_pattern("run").search(question.prompt) is None
    assert question.context == "move fast"
    assert set(question.options) == {"run", "walk", "jump", "swim"}


def test_fill_blank_needs_matching_example() -> None:
    item = VocabularyItem(
        headword="apple",
        senses=[Sense(definition="fruit", examples=[Example(text="A red fruit.")])],
    )
    assert FillBlankQuestion.is_applicable(item) is False


def test_placeholders_pad_small_pool(generator) -> None:
    """Test that missing distractors are replaced with distinct placeholders."""
    target = VocabularyItem(headword="apple", senses=[Sense(definition="a fruit")])
    pool = [target, VocabularyItem(headword="pear")]

    meaning = generator.generate(target, pool, QuestionType.MEANING)

    assert_valid_options(meaning)
    assert NO_DEFINITION in meaning.options
    assert sum(option.startswith(NO_DEFINITION) for option in meaning.options) == 3


def test_placeholder_equal_to_answer(generator) -> None:
    """Test that a word without a definition still gets 4 distinct options."""
    target = VocabularyItem(headword="apple")
    pool = [target] + [VocabularyItem(headword=word) for word in ("pear", "plum", "fig")]

    question = generator.generate(target, pool, QuestionType.MEANING)

    assert question.correct_answer == NO_DEFINITION
    assert_valid_options(question)


def test_duplicate_distractors_collapsed(generator) -> None:
    target = VocabularyItem(
        headword="apple",
        senses=[Sense(definition="fruit", examples=[Example(text="An apple a day.")])],
    )
    pool = [target] + [VocabularyItem(headword="pear") for _ in range(3)]

    question = generator.generate(target, pool, QuestionType.FILL_BLANK)

    assert_valid_options(question)
    assert "pear" in question.options
    assert NO_WORD in question.options


def test_unsupported_type_falls_back_to_meaning(generator, caplog) -> None:
    """Test that asking for a type the word lacks data for gives a meaning question."""
    target = VocabularyItem(headword="apple", senses=[Sense(definition="fruit")])
    pool = [target] + [VocabularyItem(headword=w, senses=[Sense(definition=w)]) for w in ("a1", "b2", "c3")]

    question = generator.generate(target, pool, QuestionType.IPA)

    assert question.type == QuestionType.MEANING
    assert "falling back" in caplog.text


def test_build_raises_malformed_item(generator) -> None:
    target = VocabularyItem(headword="apple", phonetics=[Phonetic(ipa="ˈæp.əl")])
    with pytest.raises(MalformedItem) as exc_info:
        generator.builders[QuestionType.IPA].build(target, [target])
    assert exc_info.value.question_type == "ipa"


def test_generate_without_hint_picks_applicable_type(generator, vocabulary) -> None:
    target = VocabularyItem(headword="apple", senses=[Sense(definition="fruit")])
    for _ in range(10):
        question = generator.generate(target, vocabulary + [target])
        assert question.type in (QuestionType.MEANING, QuestionType.SPELLING)


def test_generate_all(generator, vocabulary) -> None:
    questions = generator.generate_all(vocabulary[0], vocabulary)
    assert [question.type for question in questions] == list(QuestionType)


def test_generate_session(generator, vocabulary) -> None:
    """Test that a session has every applicable question for every selected word."""
    selected = vocabulary[:2]

    questions = generator.generate_session(selected, vocabulary)

    assert len(questions) == 2 * len(QuestionType)
    assert {question.headword for question in questions} == {"apple", "pear"}


def test_question_payload(generator, vocabulary) -> None:
    payload = generator.generate(vocabulary[0], vocabulary, QuestionType.MEANING).to_dict()

    assert payload["type"] == "meaning"
    assert payload["headword"] == "apple"
    assert len(payload["options"]) == 4
    assert payload["headerText"] == "Choose the correct meaning"


def test_not_due_pool_still_provides_distractors(generator, make_item, now) -> None:
    target = make_item("apple")
    pool = [target] + [make_item(next_review_at=now + timedelta(days=9)) for _ in range(3)]

    assert_valid_options(generator.generate(target, pool, QuestionType.MEANING))
