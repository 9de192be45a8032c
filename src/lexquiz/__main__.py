"""Main entry point for the quiz bot."""
import asyncio
import logging
import signal

from lexquiz.app import LexQuizApp
from lexquiz.logging_config import setup_logging


logger = logging.getLogger(__name__)


async def shutdown(sig: signal.Signals, stop_event: asyncio.Event) -> None:
    """Ask the main loop to stop."""
    print()  # Print newline before logging
    logger.info("Received exit signal %s...", sig.name)
    stop_event.set()


async def main() -> None:
    """Run the bot until a termination signal arrives."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: asyncio.create_task(shutdown(s, stop_event))
        )

    app = LexQuizApp()
    try:
        logger.info("Starting bot...")
        await app.start()
        await stop_event.wait()
    finally:
        logger.info("Cleaning up...")
        await app.stop()


def run() -> None:
    """Console script entry point."""
    setup_logging("Starting LexQuiz...")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")


if __name__ == "__main__":
    run()
