"""
Global fallback handler, included LAST in the dispatcher.

Catches any callback query that no other router handled, e.g. buttons
of a form that was lost on restart (MemoryStorage is wiped on redeploy)
or pressed in the wrong step.
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from nuopen_bot.config import settings
from nuopen_bot.keyboards import main_menu

logger = logging.getLogger(__name__)
router = Router(name="fallback")


@router.callback_query()
async def cq_fallback(callback: CallbackQuery, state: FSMContext) -> None:
    await callback.answer("⚠️ This button is outdated. Please start again.", show_alert=True)
    await state.clear()
    try:
        await callback.message.edit_text(
            "🔄 <b>Session reset.</b> Return to the main menu:",
            parse_mode=ParseMode.HTML,
            reply_markup=main_menu(settings.enabled_modes),
        )
    except TelegramBadRequest as exc:
        logger.debug("Fallback could not edit message: %s", exc)
