"""Service running the ambient quiz flow against the store and surfaces."""
import logging
from datetime import UTC, datetime
from typing import Optional

from lexquiz.errors import DeliveryFailed
from lexquiz.models.quiz_models import AmbientAnswerResult, Question
from lexquiz.monitoring import ambient_checks, answers, deliveries, questions_generated
from lexquiz.services import ambient
from lexquiz.services.question_generator import QuestionGenerator
from lexquiz.store import StateRepository
from lexquiz.surfaces import SurfaceRegistry


logger = logging.getLogger(__name__)


class AmbientService:
    """Service for delivering and answering ambient quizzes."""

    def __init__(
        self,
        repository: StateRepository,
        surfaces: SurfaceRegistry,
        generator: Optional[QuestionGenerator] = None,
    ):
        """Initialize the service with the state repository and surfaces."""
        self.repository = repository
        self.surfaces = surfaces
        self.generator = generator or QuestionGenerator()

    async def check_and_deliver(self, trigger: str = "tick", now: Optional[datetime] = None) -> Optional[Question]:
        """Deliver an ambient question to the foreground surface if one is due.

        ``lastTriggeredAt`` and the serve history are only written once the
        surface acknowledged the question; a failed delivery is discarded.
        """
        now = now or datetime.now(UTC)
        vocabulary = await self.repository.load_vocabulary()
        schedule = await self.repository.load_schedule()
        history = await self.repository.load_history()
        progress = await self.repository.load_type_progress()

        quiz = ambient.check_ambient_due(
            schedule, history, vocabulary, now, self.generator, progress
        )
        if quiz is None:
            ambient_checks.labels(trigger=trigger, outcome="not_due").inc()
            return None

        surface = self.surfaces.active()
        try:
            if surface is None:
                raise DeliveryFailed(None, "no active surface")
            if not await surface.deliver(quiz.question):
                raise DeliveryFailed(surface.surface_id, "not acknowledged")
        except DeliveryFailed as e:
            logger.warning("Discarding ambient quiz for %s: %s", quiz.question.headword, str(e))
            deliveries.labels(outcome="failed").inc()
            ambient_checks.labels(trigger=trigger, outcome="delivery_failed").inc()
            return None

        # Re-read right before writing to keep the lost-update window small
        schedule = await self.repository.load_schedule()
        await self.repository.save_state(
            history=quiz.history,
            schedule=schedule.with_changes(last_triggered_at=now),
        )
        deliveries.labels(outcome="delivered").inc()
        ambient_checks.labels(trigger=trigger, outcome="delivered").inc()
        questions_generated.labels(question_type=quiz.question.type.value, flow="ambient").inc()
        return quiz.question

    async def answer(
        self, question: Question, given_answer: Optional[str], now: Optional[datetime] = None
    ) -> AmbientAnswerResult:
        """Check an ambient answer and persist the word and type progress."""
        vocabulary = await self.repository.load_vocabulary()
        history = await self.repository.load_history()
        progress = await self.repository.load_type_progress()

        result = ambient.answer_ambient_question(
            question, given_answer, vocabulary, history, progress, self.generator, now
        )
        await self.repository.save_item(result.updated_item)
        await self.repository.save_state(type_progress=result.updated_type_progress)

        answers.labels(
            question_type=question.type.value, flow="ambient", correct=str(result.correct).lower()
        ).inc()
        logger.info(
            "Ambient answer for %s (%s): %s, level %d",
            question.headword,
            question.type.value,
            "correct" if result.correct else "incorrect",
            result.updated_item.proficiency_level,
        )
        return result

    async def snooze_ambient(self, minutes: int, now: Optional[datetime] = None) -> None:
        """Pause ambient quizzes and dismiss the question on screen."""
        schedule = await self.repository.load_schedule()
        await self.repository.save_schedule(ambient.snooze(schedule, minutes, now))
        await self.surfaces.dismiss_all()
        logger.info("Ambient practice snoozed for %d minutes", minutes)

    async def disable_ambient(self) -> None:
        """Turn ambient quizzes off and dismiss the question on screen."""
        schedule = await self.repository.load_schedule()
        await self.repository.save_schedule(ambient.disable(schedule))
        await self.surfaces.dismiss_all()
        logger.info("Ambient practice disabled")

    async def enable_ambient(self, frequency_minutes: Optional[int] = None) -> None:
        """Turn ambient quizzes on."""
        schedule = await self.repository.load_schedule()
        schedule = ambient.enable(schedule, frequency_minutes)
        await self.repository.save_schedule(schedule)
        logger.info("Ambient practice enabled every %d minutes", schedule.frequency_minutes)
