"""
NUOPEN: team registration bot for the programming contest.
Entry point: creates the bot, registers routers + middleware, handles graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent

from nuopen_bot.config import settings
from nuopen_bot.middlewares import ServicesMiddleware
from nuopen_bot.services import RegistrationApi, SubmissionPipeline

# ── Handlers ──────────────────────────────────────────────────────────────────
from nuopen_bot.handlers.common import router as common_router
from nuopen_bot.handlers.registration import router as registration_router
from nuopen_bot.handlers.participant import router as participant_router
from nuopen_bot.handlers.teams import router as teams_router
from nuopen_bot.handlers.fallback import router as fallback_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_dispatcher(api: RegistrationApi, pipeline: SubmissionPipeline) -> Dispatcher:
    # Form state is in-memory only: a restart drops every unfinished form
    dp = Dispatcher(storage=MemoryStorage())

    # ── Global error handler: ensures callbacks are always answered ──────────
    @dp.errors()
    async def handle_error(event: ErrorEvent) -> None:
        logger.exception("Unhandled error: %s", event.exception)
        update = event.update
        if update.callback_query:
            try:
                await update.callback_query.answer(
                    "⚠️ Something went wrong. Please try again.", show_alert=True
                )
            except TelegramBadRequest:
                pass  # query already answered or expired

    # ── Global middlewares ────────────────────────────────────────────────────
    dp.update.middleware(ServicesMiddleware(api, pipeline))

    # ── Routers: order matters for handler priority ──────────────────────────
    dp.include_router(common_router)
    dp.include_router(registration_router)
    dp.include_router(participant_router)
    dp.include_router(teams_router)

    # !! Must be last, catches any callback not handled above !!
    dp.include_router(fallback_router)

    return dp


async def main() -> None:
    logger.info(
        "Starting NUOPEN registration bot (forms: %s, API: %s)…",
        ", ".join(settings.enabled_modes) or "none",
        settings.API_BASE_URL,
    )
    if not settings.enabled_modes:
        logger.warning("REGISTRATION_MODES enables no form; only the team listing is available.")

    api = RegistrationApi(settings.register_url, settings.accepted_list_url)
    pipeline = SubmissionPipeline(api)

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher(api, pipeline)

    # ── Graceful shutdown on SIGTERM (Docker / PaaS) ──────────────────────────
    loop = asyncio.get_running_loop()

    def _handle_signal():
        logger.info("Received shutdown signal, stopping…")
        asyncio.ensure_future(dp.stop_polling())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            handle_signals=False,
        )
    finally:
        logger.info("Shutting down…")
        await bot.session.close()
        await api.close()
        logger.info("Shutdown complete.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
