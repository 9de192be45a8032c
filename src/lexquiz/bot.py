"""Telegram handlers for ambient quizzes and practice sessions."""
import html
import logging
from typing import Any, Dict, List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import CallbackContext

from lexquiz.errors import LexQuizError, WordNotFound
from lexquiz.models.quiz_models import AnswerResult, Question, SelectionStatus
from lexquiz.services.ambient_service import AmbientService
from lexquiz.services.scheduler_service import SchedulerService
from lexquiz.services.session_service import SessionService
from lexquiz.services.vocabulary_service import VocabularyService
from lexquiz.surfaces import ANSWER_PREFIX, SNOOZE_PREFIX, TURN_OFF, TelegramSurface


logger = logging.getLogger(__name__)

SESSION_PREFIX = "session_"

MSG_EXPIRED = "This question has expired."
MSG_REMOVED = "This word is no longer saved."
MSG_INSUFFICIENT = "🧠 Keep saving words!\nYou need at least 4 saved words to unlock practice quizzes."
MSG_NOTHING_DUE = (
    "✅ <b>All Caught Up!</b>\nYou have no words due for review right now.\n\n"
    "Send /practice ahead to review ahead."
)


def _services(context: CallbackContext) -> Dict[str, Any]:
    return context.application.bot_data


def format_feedback(correct: bool, question: Question) -> str:
    """Result text shown after an answer."""
    if correct:
        return f"✅ <b>Excellent!</b>\n\n<b>{html.escape(question.headword)}</b>"
    return (
        "❌ <b>Needs Review</b>\n\n"
        f"<b>Correct answer:</b>\n{html.escape(question.correct_answer)}"
    )


def session_keyboard(question: Question) -> Optional[InlineKeyboardMarkup]:
    """Answer buttons of a session question; None for typed answers."""
    if question.is_free_text:
        return None
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(option, callback_data=f"{SESSION_PREFIX}{index}")]
        for index, option in enumerate(question.options)
    ])


async def handle_callback(update: Update, context: CallbackContext) -> None:
    """Handle ambient answers, snooze and turn-off buttons, and session answers."""
    query = update.callback_query
    await query.answer()
    data = query.data or ""
    services = _services(context)
    ambient_service: AmbientService = services["ambient_service"]
    surface: TelegramSurface = services["surface"]

    # Buttons of messages forwarded to other chats must not touch the practice state
    if update.effective_chat is None or update.effective_chat.id != surface.chat_id:
        logger.warning("Ignoring button press from chat %s", getattr(update.effective_chat, "id", None))
        return

    try:
        if data.startswith(SNOOZE_PREFIX):
            minutes = int(data[len(SNOOZE_PREFIX):])
            await ambient_service.snooze_ambient(minutes)
            await query.message.chat.send_message(f"⏰ Snoozed for {minutes} minutes.")
        elif data == TURN_OFF:
            await ambient_service.disable_ambient()
            await query.message.chat.send_message("🔕 Random practice is off. Send /on to turn it back on.")
        elif data.startswith(ANSWER_PREFIX):
            resolved = surface.resolve_answer(data)
            if resolved is None:
                await query.edit_message_text(MSG_EXPIRED)
                return
            question, answer = resolved
            try:
                result = await ambient_service.answer(question, answer)
            except WordNotFound as e:
                logger.warning("Ambient answer dropped: %s", str(e))
                await query.edit_message_text(MSG_REMOVED)
                return
            await query.edit_message_text(format_feedback(result.correct, question), parse_mode="HTML")
        elif data.startswith(SESSION_PREFIX):
            await _answer_session(update, context, data)
    except LexQuizError as e:
        logger.error("Failed to handle callback %s: %s", data, str(e))
        await query.message.chat.send_message("⚠️ Something went wrong, please try again.")


async def _answer_session(update: Update, context: CallbackContext, data: str) -> None:
    query = update.callback_query
    current: Optional[Question] = context.user_data.get("session_question")
    if current is None:
        await query.edit_message_text(MSG_EXPIRED)
        return
    try:
        index = int(data[len(SESSION_PREFIX):])
        answer = current.options[index]
    except (ValueError, IndexError):
        await query.edit_message_text(MSG_EXPIRED)
        return
    result = await _record_session_answer(context, current, answer)
    await query.edit_message_text(
        format_feedback(result.correct, current) if result else MSG_REMOVED, parse_mode="HTML"
    )
    await _send_next_session_question(query.message.chat, context)


async def _record_session_answer(
    context: CallbackContext, question: Question, answer: str
) -> Optional[AnswerResult]:
    """Answer a session question; None when its word was deleted meanwhile."""
    session_service: SessionService = _services(context)["session_service"]
    try:
        return await session_service.answer(context.user_data["session"], question, answer)
    except WordNotFound as e:
        logger.warning("Session answer dropped: %s", str(e))
        return None


async def _send_next_session_question(chat, context: CallbackContext) -> None:
    questions: List[Question] = context.user_data.get("session_questions") or []
    if not questions:
        session = context.user_data.pop("session", None)
        context.user_data.pop("session_question", None)
        if session is not None:
            await chat.send_message(
                f"🎉 <b>Session Complete!</b>\nScore: {session.score} / {session.answered}\n\n"
                "Come back later for more scheduled reviews.",
                parse_mode="HTML",
            )
        return
    question = questions.pop(0)
    context.user_data["session_question"] = question
    await chat.send_message(
        TelegramSurface.format_question(question),
        parse_mode="HTML",
        reply_markup=session_keyboard(question),
    )


async def handle_practice(update: Update, context: CallbackContext) -> None:
    """Start an explicit practice session. ``/practice ahead`` reviews ahead."""
    session_service: SessionService = _services(context)["session_service"]
    review_ahead = bool(context.args) and context.args[0].lower() == "ahead"
    session, result = await session_service.start(review_ahead=review_ahead)

    if result.status == SelectionStatus.INSUFFICIENT:
        await update.message.reply_text(MSG_INSUFFICIENT)
        return
    if result.status == SelectionStatus.NOTHING_DUE:
        await update.message.reply_text(MSG_NOTHING_DUE, parse_mode="HTML")
        return

    context.user_data["session"] = session
    context.user_data["session_questions"] = list(result.questions)
    header = "📚 Extra Practice" if review_ahead else "📚 Practice"
    await update.message.reply_text(f"{header}: {len(result.questions)} questions")
    await _send_next_session_question(update.message.chat, context)


async def handle_message(update: Update, context: CallbackContext) -> None:
    """Typed answers during a session; any other message counts as activity."""
    current: Optional[Question] = context.user_data.get("session_question")
    if current is not None and current.is_free_text:
        try:
            result = await _record_session_answer(context, current, update.message.text)
        except LexQuizError as e:
            logger.error("Failed to record typed answer: %s", str(e))
            await update.message.reply_text("⚠️ Something went wrong, please try again.")
            return
        await update.message.reply_text(
            format_feedback(result.correct, current) if result else MSG_REMOVED, parse_mode="HTML"
        )
        await _send_next_session_question(update.message.chat, context)
        return

    scheduler: SchedulerService = _services(context)["scheduler"]
    await scheduler.on_page_load()


async def handle_snooze(update: Update, context: CallbackContext) -> None:
    """``/snooze <minutes>``"""
    ambient_service: AmbientService = _services(context)["ambient_service"]
    try:
        minutes = int(context.args[0]) if context.args else 30
        await ambient_service.snooze_ambient(minutes)
    except ValueError:
        await update.message.reply_text("Usage: /snooze <minutes>")
        return
    await update.message.reply_text(f"⏰ Snoozed for {minutes} minutes.")


async def handle_off(update: Update, context: CallbackContext) -> None:
    """``/off``"""
    ambient_service: AmbientService = _services(context)["ambient_service"]
    await ambient_service.disable_ambient()
    await update.message.reply_text("🔕 Random practice is off.")


async def handle_on(update: Update, context: CallbackContext) -> None:
    """``/on [minutes]``"""
    ambient_service: AmbientService = _services(context)["ambient_service"]
    try:
        frequency = int(context.args[0]) if context.args else None
        await ambient_service.enable_ambient(frequency)
    except ValueError:
        await update.message.reply_text("Usage: /on [minutes]")
        return
    await update.message.reply_text("🔔 Random practice is on.")


async def handle_stats(update: Update, context: CallbackContext) -> None:
    """``/stats``"""
    vocabulary_service: VocabularyService = _services(context)["vocabulary_service"]
    stats = await vocabulary_service.get_stats()
    await update.message.reply_text(
        "📊 <b>Your Progress</b>\n"
        f"• Total Words: {stats.total}\n"
        f"• Due for Review: {stats.due}\n"
        f"• Mastered: {stats.mastered}",
        parse_mode="HTML",
    )
