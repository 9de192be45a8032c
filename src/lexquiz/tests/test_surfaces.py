"""Tests for delivery surfaces."""
from unittest.mock import AsyncMock, Mock

import pytest
from telegram import Bot
from telegram.error import BadRequest, Forbidden, NetworkError

from lexquiz.errors import DeliveryFailed
from lexquiz.models.quiz_models import Question, QuestionType
from lexquiz.surfaces import (
    ANSWER_PREFIX,
    SNOOZE_PREFIX,
    TURN_OFF,
    SurfaceRegistry,
    TelegramSurface,
)

CHAT_ID = 12345


@pytest.fixture
def mock_bot() -> Mock:
    """Create a mock Telegram bot."""
    bot = Mock(spec=Bot)
    bot.send_message = AsyncMock(return_value=Mock(message_id=77))
    bot.delete_message = AsyncMock()
    return bot


@pytest.fixture
def surface(mock_bot: Mock) -> TelegramSurface:
    return TelegramSurface(mock_bot, CHAT_ID)


@pytest.fixture
def question() -> Question:
    return Question(
        type=QuestionType.MEANING,
        headword="apple",
        prompt="apple",
        correct_answer="a round fruit",
        options=["a <red> vehicle", "a round fruit", "a tool", "a song"],
        header_text="Choose the correct meaning",
        audio_url="https://audio.example.com/apple.mp3",
    )


def test_format_question_escapes_html(question: Question) -> None:
    question.prompt = "<apple>"
    text = TelegramSurface.format_question(question)

    assert "&lt;apple&gt;" in text
    assert "Choose the correct meaning" in text
    assert "https://audio.example.com/apple.mp3" in text


def test_build_keyboard(question: Question) -> None:
    """Test that answers come first, followed by snooze and turn-off rows."""
    keyboard = TelegramSurface.build_keyboard(question).inline_keyboard

    answers = [row[0] for row in keyboard[:4]]
    assert [button.text for button in answers] == question.options
    assert [button.callback_data for button in answers] == [f"{ANSWER_PREFIX}{i}" for i in range(4)]
    assert [button.callback_data for button in keyboard[4]] == [
        f"{SNOOZE_PREFIX}30",
        f"{SNOOZE_PREFIX}60",
        f"{SNOOZE_PREFIX}180",
    ]
    assert keyboard[5][0].callback_data == TURN_OFF


@pytest.mark.asyncio
async def test_deliver(surface: TelegramSurface, mock_bot: Mock, question: Question) -> None:
    assert await surface.deliver(question) is True

    mock_bot.send_message.assert_awaited_once()
    kwargs = mock_bot.send_message.call_args.kwargs
    assert kwargs["chat_id"] == CHAT_ID
    assert kwargs["parse_mode"] == "HTML"
    assert surface.pending is question
    assert surface.message_id == 77


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [Forbidden("bot was blocked by the user"), BadRequest("chat not found"), NetworkError("timed out")],
)
async def test_deliver_failure(surface: TelegramSurface, mock_bot: Mock, question: Question, error) -> None:
    """Test that Telegram errors become delivery failures and nothing is left pending."""
    mock_bot.send_message.side_effect = error

    with pytest.raises(DeliveryFailed) as exc_info:
        await surface.deliver(question)

    assert exc_info.value.surface_id == f"telegram:{CHAT_ID}"
    assert surface.pending is None


@pytest.mark.asyncio
async def test_resolve_answer(surface: TelegramSurface, question: Question) -> None:
    await surface.deliver(question)

    assert surface.resolve_answer(f"{ANSWER_PREFIX}1") == (question, "a round fruit")
    # The question can only be answered once
    assert surface.resolve_answer(f"{ANSWER_PREFIX}1") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("data", [f"{ANSWER_PREFIX}9", f"{ANSWER_PREFIX}x", TURN_OFF])
async def test_resolve_invalid_answer(surface: TelegramSurface, question: Question, data: str) -> None:
    await surface.deliver(question)
    assert surface.resolve_answer(data) is None
    assert surface.pending is question


@pytest.mark.asyncio
async def test_dismiss(surface: TelegramSurface, mock_bot: Mock, question: Question) -> None:
    await surface.deliver(question)

    await surface.dismiss()

    mock_bot.delete_message.assert_awaited_once_with(chat_id=CHAT_ID, message_id=77)
    assert surface.pending is None


@pytest.mark.asyncio
async def test_dismiss_tolerates_errors(surface: TelegramSurface, mock_bot: Mock, question: Question) -> None:
    mock_bot.delete_message.side_effect = BadRequest("message to delete not found")
    await surface.deliver(question)

    await surface.dismiss()

    assert surface.message_id is None


@pytest.mark.asyncio
async def test_dismiss_without_question(surface: TelegramSurface, mock_bot: Mock) -> None:
    await surface.dismiss()
    mock_bot.delete_message.assert_not_awaited()


def test_registry(surface: TelegramSurface) -> None:
    registry = SurfaceRegistry()
    assert registry.active() is None

    registry.register(surface, activate=False)
    assert registry.active() is None

    registry.activate(surface.surface_id)
    assert registry.active() is surface

    registry.unregister(surface.surface_id)
    assert registry.active() is None


def test_registry_activate_unknown() -> None:
    with pytest.raises(ValueError):
        SurfaceRegistry().activate("telegram:1")
