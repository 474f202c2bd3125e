"""
Central configuration via pydantic-settings.
All values are read from environment variables / .env file.
"""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from nuopen_bot.schema import Mode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Telegram ──────────────────────────────────────────────────────────────
    BOT_TOKEN: str

    # ── Registration API ──────────────────────────────────────────────────────
    API_BASE_URL: str = "https://api.open.nuacm.kz"
    REGISTER_PATH: str = "/api/register"
    ACCEPTED_LIST_PATH: str = "/api/list/accepted"

    # Raw comma-separated list of deployed forms, e.g. "offline"
    REGISTRATION_MODES: str = "online,offline"

    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────────────────

    @property
    def register_url(self) -> str:
        return self.API_BASE_URL.rstrip("/") + self.REGISTER_PATH

    @property
    def accepted_list_url(self) -> str:
        return self.API_BASE_URL.rstrip("/") + self.ACCEPTED_LIST_PATH

    @property
    def enabled_modes(self) -> list[str]:
        """Parse REGISTRATION_MODES, keeping known modes in declaration order."""
        modes: list[str] = []
        for raw in self.REGISTRATION_MODES.split(","):
            mode = raw.strip().lower()
            if mode in Mode.ALL and mode not in modes:
                modes.append(mode)
        return modes


settings = Settings()
