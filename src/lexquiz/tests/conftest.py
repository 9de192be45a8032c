"""Test configuration."""
import os
import random
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest
from dotenv import load_dotenv
from faker import Faker
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from lexquiz.models.base import init_db
from lexquiz.models.vocabulary_models import Example, Phonetic, Sense, VocabularyItem
from lexquiz.store import SQLAlchemyStore, StateRepository

fake = Faker()


@pytest.fixture
def now() -> datetime:
    """Fixed point in time for scheduling tests."""
    return datetime(2024, 5, 17, 12, 0, tzinfo=UTC)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator."""
    return random.Random(1234)


@pytest.fixture
def make_item() -> Callable[..., VocabularyItem]:
    """Factory for fully populated words."""

    def factory(
        headword: Optional[str] = None,
        level: int = 0,
        next_review_at: Optional[datetime] = None,
        with_audio: bool = True,
        with_example: bool = True,
    ) -> VocabularyItem:
        headword = headword or fake.unique.word()
        examples = [Example(text=f"She said {headword} twice.")] if with_example else []
        phonetics = [
            Phonetic(
                dialect="BrE",
                ipa=fake.unique.lexify("??????"),
                audio_url=f"https://audio.example.com/{headword}.mp3" if with_audio else None,
            )
        ]
        return VocabularyItem(
            headword=headword,
            part_of_speech="noun",
            senses=[Sense(definition=fake.unique.sentence(), examples=examples)],
            phonetics=phonetics,
            proficiency_level=level,
            next_review_at=next_review_at,
        )

    return factory


@pytest.fixture
def vocabulary(make_item, now) -> List[VocabularyItem]:
    """Five words: two due, three scheduled in the future."""
    return [
        make_item("apple", next_review_at=now - timedelta(minutes=1)),
        make_item("pear", next_review_at=now - timedelta(days=2)),
        make_item("plum", level=2, next_review_at=now + timedelta(days=3)),
        make_item("fig", level=1, next_review_at=now + timedelta(days=1)),
        make_item("lime", level=3, next_review_at=now + timedelta(days=7)),
    ]


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def store(session_factory) -> SQLAlchemyStore:
    return SQLAlchemyStore(session_factory)


@pytest.fixture
def repository(store) -> StateRepository:
    return StateRepository(store)
