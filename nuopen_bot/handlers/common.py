"""
Common handlers: /start, /cancel, main menu routing.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from aiogram.utils.text_decorations import html_decoration as hd

from nuopen_bot.config import settings
from nuopen_bot.keyboards import MainMenuCb, main_menu
from nuopen_bot.schema import Mode

logger = logging.getLogger(__name__)
router = Router(name="common")


def welcome_text(first_name: str) -> str:
    modes = ", ".join(Mode.LABELS[m].lower() for m in settings.enabled_modes) or "closed"
    return (
        f"👋 Welcome to <b>NUOPEN</b> registration, {hd.quote(first_name)}!\n\n"
        f"Register a team of 1–3 participants for the programming contest.\n"
        f"Open tracks: <b>{modes}</b>\n\n"
        f"💡 <b>Before proceeding</b>\n"
        f"Make sure that you uploaded the CV and University/School verification "
        f"of <b>ALL MEMBERS</b> to Google Drive and made them public.\n\n"
        f"Your answers are kept only until the form is submitted or the bot restarts."
    )


# ── /start ────────────────────────────────────────────────────────────────────

@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer(
        welcome_text(message.from_user.first_name),
        parse_mode=ParseMode.HTML,
        reply_markup=main_menu(settings.enabled_modes),
    )


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext) -> None:
    had_form = await state.get_state() is not None
    await state.clear()
    await message.answer(
        "🗑 Registration cancelled." if had_form else "Nothing to cancel.",
        reply_markup=main_menu(settings.enabled_modes),
    )


# ── Main menu callback ────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "main"))
async def cq_main_menu(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "🏠 <b>NUOPEN</b> registration\n\nChoose an action:",
        parse_mode=ParseMode.HTML,
        reply_markup=main_menu(settings.enabled_modes),
    )
    await callback.answer()

