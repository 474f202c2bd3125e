"""
Accepted teams listing: "Accepted teams" menu entry and /teams.
"""
import asyncio
import logging

import aiohttp
from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from nuopen_bot.keyboards import MainMenuCb, back_to_main
from nuopen_bot.services import RegistrationApi, fetch_accepted_teams, format_accepted_teams

logger = logging.getLogger(__name__)
router = Router(name="teams")

LOAD_ERROR = "⚠️ Could not load the list of accepted teams. Please try again later."


async def _accepted_teams_text(api: RegistrationApi) -> str:
    try:
        teams = await fetch_accepted_teams(api)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Accepted-teams fetch failed: %s", exc)
        return LOAD_ERROR
    return format_accepted_teams(teams)


@router.message(Command("teams"))
async def cmd_teams(message: Message, api: RegistrationApi) -> None:
    await message.answer(
        await _accepted_teams_text(api),
        parse_mode=ParseMode.HTML,
        reply_markup=back_to_main(),
    )


@router.callback_query(MainMenuCb.filter(F.action == "teams"))
async def cq_teams(callback: CallbackQuery, api: RegistrationApi) -> None:
    await callback.answer()
    await callback.message.edit_text(
        await _accepted_teams_text(api),
        parse_mode=ParseMode.HTML,
        reply_markup=back_to_main(),
    )
