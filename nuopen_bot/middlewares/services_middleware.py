"""
Service injection middleware.
Puts the registration API client and the submission pipeline into every
handler's data dict under keys "api" and "pipeline".
"""
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from nuopen_bot.services import RegistrationApi, SubmissionPipeline


class ServicesMiddleware(BaseMiddleware):
    def __init__(self, api: RegistrationApi, pipeline: SubmissionPipeline) -> None:
        self._api      = api
        self._pipeline = pipeline

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        data["api"]      = self._api
        data["pipeline"] = self._pipeline
        return await handler(event, data)
