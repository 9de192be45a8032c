"""Presentation surfaces that ambient questions are delivered to."""
import html
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, Forbidden, TelegramError

from lexquiz.errors import DeliveryFailed
from lexquiz.models.quiz_models import Question


logger = logging.getLogger(__name__)

ANSWER_PREFIX = "ambient_"
SNOOZE_PREFIX = "snooze_"
TURN_OFF = "practice_off"
SNOOZE_CHOICES = (30, 60, 180)  # minutes


class DeliverySurface(ABC):
    """A place where a question can be shown to the user."""

    def __init__(self, surface_id: str):
        self.surface_id = surface_id

    @abstractmethod
    async def deliver(self, question: Question) -> bool:
        """Show the question; return True once the surface acknowledged it.

        Raises:
            DeliveryFailed: the surface is gone or did not respond.
        """
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    async def dismiss(self) -> None:
        """Remove the question currently shown, if any."""
        raise NotImplementedError("Subclasses must implement this method")


class SurfaceRegistry:
    """Known surfaces and which one is in the foreground."""

    def __init__(self):
        self.surfaces: Dict[str, DeliverySurface] = {}
        self.active_id: Optional[str] = None

    def register(self, surface: DeliverySurface, activate: bool = True) -> None:
        self.surfaces[surface.surface_id] = surface
        if activate:
            self.active_id = surface.surface_id
        logger.info("Registered surface %s", surface.surface_id)

    def unregister(self, surface_id: str) -> None:
        if surface_id not in self.surfaces:
            logger.warning("Surface %s is not registered", surface_id)
            return
        del self.surfaces[surface_id]
        if self.active_id == surface_id:
            self.active_id = None
        logger.info("Unregistered surface %s", surface_id)

    def activate(self, surface_id: str) -> None:
        if surface_id not in self.surfaces:
            raise ValueError(f"Surface {surface_id} is not registered")
        self.active_id = surface_id

    def active(self) -> Optional[DeliverySurface]:
        """Get the foreground surface, if there is one."""
        if self.active_id is None:
            return None
        return self.surfaces.get(self.active_id)

    async def dismiss_all(self) -> None:
        for surface in list(self.surfaces.values()):
            await surface.dismiss()


class TelegramSurface(DeliverySurface):
    """Delivers ambient questions to a Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int):
        super().__init__(surface_id=f"telegram:{chat_id}")
        self.bot = bot
        self.chat_id = chat_id
        self.pending: Optional[Question] = None
        self.message_id: Optional[int] = None

    @staticmethod
    def format_question(question: Question) -> str:
        """Render the question text as Telegram HTML."""
        text = f"🧠 <b>Quick Vocabulary Check</b>\n\n{html.escape(question.header_text)}:\n\n"
        text += f"<b>{html.escape(question.prompt)}</b>"
        if question.context:
            text += f"\n<i>{html.escape(question.context)}</i>"
        if question.audio_url:
            text += f'\n\n🔊 <a href="{html.escape(question.audio_url)}">Listen</a>'
        return text

    @staticmethod
    def build_keyboard(question: Question) -> InlineKeyboardMarkup:
        """Answer buttons followed by snooze and turn-off buttons."""
        buttons: List[List[InlineKeyboardButton]] = [
            [InlineKeyboardButton(option, callback_data=f"{ANSWER_PREFIX}{index}")]
            for index, option in enumerate(question.options)
        ]
        buttons.append([
            InlineKeyboardButton(f"⏰ {minutes}m" if minutes < 60 else f"⏰ {minutes // 60}h",
                                 callback_data=f"{SNOOZE_PREFIX}{minutes}")
            for minutes in SNOOZE_CHOICES
        ])
        buttons.append([InlineKeyboardButton("🔕 Turn off random practice", callback_data=TURN_OFF)])
        return InlineKeyboardMarkup(buttons)

    async def deliver(self, question: Question) -> bool:
        try:
            message = await self.bot.send_message(
                chat_id=self.chat_id,
                text=self.format_question(question),
                parse_mode="HTML",
                reply_markup=self.build_keyboard(question),
            )
        except (Forbidden, BadRequest) as e:
            # The chat is gone or blocked the bot
            raise DeliveryFailed(self.surface_id, str(e)) from e
        except TelegramError as e:
            raise DeliveryFailed(self.surface_id, f"Telegram error: {e}") from e

        if message is None:
            return False
        self.pending = question
        self.message_id = message.message_id
        logger.info("Delivered %s question for %s to chat %d", question.type.value, question.headword, self.chat_id)
        return True

    async def dismiss(self) -> None:
        if self.message_id is None:
            self.pending = None
            return
        message_id = self.message_id
        self.pending = None
        self.message_id = None
        try:
            await self.bot.delete_message(chat_id=self.chat_id, message_id=message_id)
        except TelegramError as e:
            logger.warning("Could not remove question message %d: %s", message_id, str(e))

    def resolve_answer(self, callback_data: str) -> Optional[Tuple[Question, str]]:
        """Map an answer button press to the pending question and chosen option."""
        if self.pending is None or not callback_data.startswith(ANSWER_PREFIX):
            return None
        try:
            index = int(callback_data[len(ANSWER_PREFIX):])
        except ValueError:
            return None
        if not 0 <= index < len(self.pending.options):
            return None
        question = self.pending
        self.pending = None
        self.message_id = None
        return question, question.options[index]
