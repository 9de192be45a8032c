"""Explicit practice sessions."""
import logging
from datetime import UTC, datetime
from typing import Optional, Sequence, Tuple

from lexquiz.errors import InsufficientVocabulary, NothingDue
from lexquiz.models.quiz_models import (
    AnswerResult,
    DueMode,
    Question,
    SelectionStatus,
    SessionQuestions,
)
from lexquiz.models.vocabulary_models import VocabularyItem, find_item
from lexquiz.monitoring import answers, questions_generated
from lexquiz.services.due_selector import select_due
from lexquiz.services.proficiency_service import PracticeSession
from lexquiz.services.question_generator import QuestionGenerator
from lexquiz.store import StateRepository


logger = logging.getLogger(__name__)


def get_session_questions(
    vocabulary: Sequence[VocabularyItem],
    review_ahead: bool = False,
    now: Optional[datetime] = None,
    generator: Optional[QuestionGenerator] = None,
) -> SessionQuestions:
    """Build the questions of a session, or report why there are none."""
    now = now or datetime.now(UTC)
    generator = generator or QuestionGenerator()
    mode = DueMode.REVIEW_AHEAD if review_ahead else DueMode.STRICT
    try:
        selection = select_due(vocabulary, mode, now, rng=generator.rng)
    except InsufficientVocabulary as e:
        logger.info("No session: %s", str(e))
        return SessionQuestions(status=SelectionStatus.INSUFFICIENT, review_ahead=review_ahead)
    except NothingDue:
        logger.info("No session: nothing is due")
        return SessionQuestions(status=SelectionStatus.NOTHING_DUE, review_ahead=review_ahead)

    questions = generator.generate_session(selection.items, vocabulary)
    return SessionQuestions(status=SelectionStatus.READY, questions=questions, review_ahead=review_ahead)


def answer_session_question(
    session: PracticeSession,
    question: Question,
    given_answer: Optional[str],
    vocabulary: Sequence[VocabularyItem],
    now: Optional[datetime] = None,
) -> AnswerResult:
    """Check a session answer against the current state of its word."""
    item = find_item(vocabulary, question.headword)
    return session.answer(question, given_answer, item, now)


class SessionService:
    """Service for running explicit practice sessions against the store."""

    def __init__(self, repository: StateRepository, generator: Optional[QuestionGenerator] = None):
        """Initialize the service with the state repository."""
        self.repository = repository
        self.generator = generator or QuestionGenerator()

    async def start(
        self, review_ahead: bool = False, now: Optional[datetime] = None
    ) -> Tuple[PracticeSession, SessionQuestions]:
        """Start a session over the saved words."""
        vocabulary = await self.repository.load_vocabulary()
        result = get_session_questions(vocabulary, review_ahead, now, self.generator)
        for question in result.questions:
            questions_generated.labels(question_type=question.type.value, flow="session").inc()
        return PracticeSession(), result

    async def answer(
        self,
        session: PracticeSession,
        question: Question,
        given_answer: Optional[str],
        now: Optional[datetime] = None,
    ) -> AnswerResult:
        """Answer a session question and persist the updated word."""
        vocabulary = await self.repository.load_vocabulary()
        result = answer_session_question(session, question, given_answer, vocabulary, now)
        await self.repository.save_item(result.updated_item)
        answers.labels(
            question_type=question.type.value, flow="session", correct=str(result.correct).lower()
        ).inc()
        logger.info(
            "Session answer for %s: %s (score %d/%d)",
            question.headword,
            "correct" if result.correct else "incorrect",
            session.score,
            session.answered,
        )
        return result
