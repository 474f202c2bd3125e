"""
Unit tests: Settings (config.py).
"""
from __future__ import annotations

import pytest

from nuopen_bot.config import Settings


def _settings(**overrides) -> Settings:
    values = {"BOT_TOKEN": "123:abc"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestEnabledModes:
    @pytest.mark.parametrize("raw, expected", [
        ("online,offline", ["online", "offline"]),
        ("offline", ["offline"]),
        (" Offline , online ", ["offline", "online"]),
        ("offline,offline", ["offline"]),
        ("hybrid,online", ["online"]),
        ("", []),
    ])
    def test_parsing(self, raw: str, expected: list[str]) -> None:
        assert _settings(REGISTRATION_MODES=raw).enabled_modes == expected


class TestEndpoints:
    def test_urls_join_base_and_path(self) -> None:
        s = _settings(API_BASE_URL="https://api.example.org/")
        assert s.register_url == "https://api.example.org/api/register"
        assert s.accepted_list_url == "https://api.example.org/api/list/accepted"

    def test_paths_are_configurable(self) -> None:
        s = _settings(API_BASE_URL="http://localhost:8000", REGISTER_PATH="/v2/teams/")
        assert s.register_url == "http://localhost:8000/v2/teams/"
