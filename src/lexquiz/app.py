"""Main application wiring the quiz engine to Telegram."""
import logging
from typing import Optional

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from lexquiz.bot import (
    handle_callback,
    handle_message,
    handle_off,
    handle_on,
    handle_practice,
    handle_snooze,
    handle_stats,
)
from lexquiz.config import settings
from lexquiz.models.base import SessionLocal, init_db
from lexquiz.monitoring import start_monitoring
from lexquiz.services.ambient_service import AmbientService
from lexquiz.services.question_generator import QuestionGenerator
from lexquiz.services.scheduler_service import SchedulerService
from lexquiz.services.session_service import SessionService
from lexquiz.services.vocabulary_service import VocabularyService
from lexquiz.store import SQLAlchemyStore, StateRepository
from lexquiz.surfaces import SurfaceRegistry, TelegramSurface


class LexQuizApp:
    """Main application class."""

    def __init__(self):
        """Initialize the application."""
        self.application: Optional[Application] = None
        self.scheduler: Optional[SchedulerService] = None
        self.surfaces = SurfaceRegistry()
        self.running = False
        self.logger = logging.getLogger(__name__)

    def build_application(self, repository: StateRepository) -> Application:
        """Create the Telegram application with handlers and services attached."""
        settings.validate_bot()
        application = Application.builder().token(settings.bot.token).build()

        generator = QuestionGenerator()
        surface = TelegramSurface(application.bot, settings.bot.chat_id)
        self.surfaces.register(surface)
        ambient_service = AmbientService(repository, self.surfaces, generator)
        self.scheduler = SchedulerService(ambient_service)

        application.bot_data.update(
            surface=surface,
            ambient_service=ambient_service,
            session_service=SessionService(repository, generator),
            vocabulary_service=VocabularyService(repository),
            scheduler=self.scheduler,
        )

        # Only the configured chat may drive the quizzes
        chat_filter = filters.Chat(chat_id=settings.bot.chat_id)
        application.add_handler(CommandHandler("practice", handle_practice, filters=chat_filter))
        application.add_handler(CommandHandler("snooze", handle_snooze, filters=chat_filter))
        application.add_handler(CommandHandler("off", handle_off, filters=chat_filter))
        application.add_handler(CommandHandler("on", handle_on, filters=chat_filter))
        application.add_handler(CommandHandler("stats", handle_stats, filters=chat_filter))
        application.add_handler(CallbackQueryHandler(handle_callback))
        application.add_handler(MessageHandler(chat_filter & filters.TEXT & ~filters.COMMAND, handle_message))
        return application

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            init_db()
            repository = StateRepository(SQLAlchemyStore(SessionLocal))
            self.logger.info("Database initialized")

            if settings.monitoring.port:
                start_monitoring(settings.monitoring.port)

            self.application = self.build_application(repository)
            self.logger.info("Application created")

            await self.application.initialize()
            await self.application.start()
            await self.application.updater.start_polling()
            self.logger.info("Application started")

            await self.scheduler.start()
            self.logger.info("Scheduler service started")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if not self.running and self.application is None:
            return

        try:
            if self.scheduler:
                await self.scheduler.stop()
                self.scheduler = None
                self.logger.info("Scheduler service stopped")

            if self.application:
                await self.surfaces.dismiss_all()
                if self.application.updater.running:
                    await self.application.updater.stop()
                if self.application.running:
                    await self.application.stop()
                await self.application.shutdown()
                self.application = None
                self.logger.info("Application stopped")
        finally:
            self.running = False
