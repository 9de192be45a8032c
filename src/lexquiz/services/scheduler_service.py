"""Service for managing scheduled tasks."""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from lexquiz.config import settings
from lexquiz.errors import PersistenceFailed
from lexquiz.models.quiz_models import Question
from lexquiz.services.ambient_service import AmbientService

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for managing scheduled tasks and ambient quiz triggers."""

    def __init__(self, ambient_service: AmbientService, tick_seconds: Optional[float] = None):
        """Initialize the service with the ambient quiz service."""
        self.ambient_service = ambient_service
        self.tick_seconds = tick_seconds or settings.ambient.tick_seconds
        self.tasks: Dict[str, asyncio.Task] = {}
        self.running = False

    async def start(self) -> None:
        """Start the scheduler service."""
        if self.running:
            return

        self.running = True
        logger.info("Starting scheduler service...")

        # Start periodic ambient check task
        self.schedule_task(
            "ambient_checks",
            self.ambient_service.check_and_deliver,
            self.tick_seconds,
            trigger="tick",
        )

    async def stop(self) -> None:
        """Stop the scheduler service."""
        if not self.running:
            return

        self.running = False
        logger.info("Stopping scheduler service...")

        # Cancel all tasks
        for task in self.tasks.values():
            task.cancel()

        # Wait for tasks to complete
        await asyncio.gather(*self.tasks.values(), return_exceptions=True)
        self.tasks.clear()

    async def on_page_load(self) -> Optional[Question]:
        """Check for an ambient quiz after the user navigated somewhere.

        Races with the periodic tick are tolerated: both read then write the
        schedule, so at worst one extra attempt is made.
        """
        try:
            return await self.ambient_service.check_and_deliver(trigger="page_load")
        except PersistenceFailed as e:
            logger.error("Ambient check on page load failed: %s", str(e))
            return None

    def schedule_task(
        self,
        name: str,
        coro: Callable,
        interval: float,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Schedule a new task."""
        if name in self.tasks:
            logger.warning("Task %s already exists", name)
            return

        async def run_task() -> None:
            while self.running:
                try:
                    await coro(*args, **kwargs)
                    await asyncio.sleep(interval)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error("Error in task %s: %s", name, str(e))
                    await asyncio.sleep(interval)

        self.tasks[name] = asyncio.create_task(run_task())
        logger.info("Scheduled task: %s", name)

    def cancel_task(self, name: str) -> None:
        """Cancel a scheduled task."""
        if name not in self.tasks:
            logger.warning("Task %s does not exist", name)
            return

        self.tasks[name].cancel()
        del self.tasks[name]
        logger.info("Cancelled task: %s", name)
