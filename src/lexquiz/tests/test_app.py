"""Tests for the main application."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from lexquiz.app import LexQuizApp
from lexquiz.surfaces import TelegramSurface


@pytest_asyncio.fixture
async def app():
    """Create an application with mocked Telegram and scheduler."""
    mock_app = AsyncMock()
    mock_app.updater = AsyncMock()
    mock_app.add_handler = MagicMock()
    mock_app.bot = MagicMock()
    mock_app.bot_data = {}

    mock_builder = MagicMock()
    mock_builder.token.return_value.build.return_value = mock_app

    mock_scheduler = AsyncMock()

    with patch("telegram.ext.Application.builder", return_value=mock_builder), \
            patch("lexquiz.app.SchedulerService", return_value=mock_scheduler):
        yield LexQuizApp()


@pytest.mark.asyncio
async def test_start_stop(app: LexQuizApp) -> None:
    """Test starting and stopping the application."""
    await app.start()

    assert app.running
    mock_app = app.application
    mock_app.initialize.assert_awaited_once()
    mock_app.updater.start_polling.assert_awaited_once()
    app.scheduler.start.assert_awaited_once()
    assert set(mock_app.bot_data) == {
        "surface",
        "ambient_service",
        "session_service",
        "vocabulary_service",
        "scheduler",
    }
    assert isinstance(app.surfaces.active(), TelegramSurface)
    assert mock_app.add_handler.call_count == 7

    scheduler = app.scheduler
    await app.stop()

    assert not app.running
    assert app.application is None
    scheduler.stop.assert_awaited_once()
    mock_app.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_twice(app: LexQuizApp) -> None:
    await app.start()
    application = app.application
    await app.start()
    assert app.application is application
    await app.stop()


@pytest.mark.asyncio
async def test_stop_when_not_running(app: LexQuizApp) -> None:
    await app.stop()
    assert not app.running


@pytest.mark.asyncio
async def test_failed_start_cleans_up(app: LexQuizApp) -> None:
    with patch("lexquiz.app.init_db", side_effect=RuntimeError("no database")):
        with pytest.raises(RuntimeError):
            await app.start()
    assert not app.running
