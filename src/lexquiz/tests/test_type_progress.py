"""Tests for per-word question type progress."""
from datetime import timedelta

import pytest

from lexquiz.models.quiz_models import QuestionType
from lexquiz.models.vocabulary_models import Sense, TypeProgress, VocabularyItem
from lexquiz.services.question_generator import QuestionGenerator
from lexquiz.services.type_progress import apply_ambient_answer, choose_ambient_type, remaining_types


@pytest.fixture
def generator(rng) -> QuestionGenerator:
    return QuestionGenerator(rng)


def test_ambient_types_exclude_spelling(generator, make_item) -> None:
    assert generator.ambient_types(make_item()) == [
        QuestionType.MEANING,
        QuestionType.IPA,
        QuestionType.FILL_BLANK,
    ]


def test_remaining_types(generator, make_item) -> None:
    item = make_item("apple")
    progress = TypeProgress(completed={"apple": {"meaning"}})

    assert remaining_types(item, progress, generator) == (QuestionType.IPA, QuestionType.FILL_BLANK)


def test_choose_only_remaining(generator, make_item, rng) -> None:
    """Test that a type already passed is not asked again in the same cycle."""
    item = make_item("apple")
    progress = TypeProgress(completed={"apple": {"meaning", "ipa"}})

    for _ in range(10):
        assert choose_ambient_type(item, progress, generator, rng) == QuestionType.FILL_BLANK


def test_choose_restarts_full_cycle(generator, make_item, rng) -> None:
    item = make_item("apple")
    progress = TypeProgress(completed={"apple": {"meaning", "ipa", "fill_blank"}})

    chosen = {choose_ambient_type(item, progress, generator, rng) for _ in range(30)}

    assert chosen == {QuestionType.MEANING, QuestionType.IPA, QuestionType.FILL_BLANK}


def test_correct_answer_marks_type(generator, make_item, now) -> None:
    """Test that a correct answer records the type without changing the level."""
    item = make_item("apple", level=2, next_review_at=now)

    updated, progress = apply_ambient_answer(item, QuestionType.MEANING, True, TypeProgress(), generator, now)

    assert updated == item
    assert progress.completed_for("apple") == {"meaning"}


def test_all_types_passed_advances(generator, make_item, now) -> None:
    """Test that passing the last remaining type levels the word up and starts a new cycle."""
    item = make_item("apple", level=2, next_review_at=now)
    progress = TypeProgress(completed={"apple": {"meaning", "ipa"}, "pear": {"ipa"}})

    updated, progress = apply_ambient_answer(item, QuestionType.FILL_BLANK, True, progress, generator, now)

    assert updated.proficiency_level == 3
    assert updated.next_review_at == now + timedelta(days=3)
    assert progress.completed_for("apple") == set()
    assert progress.completed_for("pear") == {"ipa"}


def test_miss_resets_level_and_progress(generator, make_item, now) -> None:
    """Test that a miss clears partial progress and sends the word back to level 0."""
    item = make_item("apple", level=4, next_review_at=now)
    progress = TypeProgress(completed={"apple": {"meaning", "ipa"}})

    updated, progress = apply_ambient_answer(item, QuestionType.FILL_BLANK, False, progress, generator, now)

    assert updated.proficiency_level == 0
    assert updated.next_review_at == now + timedelta(minutes=1)
    assert progress.completed_for("apple") == set()


def test_word_with_only_meaning_advances_immediately(generator, now) -> None:
    item = VocabularyItem(headword="bare", senses=[Sense(definition="plain")])

    updated, progress = apply_ambient_answer(item, QuestionType.MEANING, True, TypeProgress(), generator, now)

    assert updated.proficiency_level == 1
    assert updated.next_review_at == now + timedelta(minutes=10)
    assert progress.completed == {}


def test_type_progress_round_trip() -> None:
    progress = TypeProgress.from_dict({"apple": ["meaning", "ipa"]})
    assert progress.to_dict() == {"apple": ["ipa", "meaning"]}
