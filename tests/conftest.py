"""
Shared pytest fixtures for NUOPEN registration tests.

Sets required environment variables BEFORE any nuopen_bot module is
imported so that pydantic-settings initialisation uses safe test values.
"""
from __future__ import annotations

import os
from typing import Any, Optional

# ── Set env vars before any nuopen_bot import ─────────────────────────────────
os.environ.setdefault("BOT_TOKEN", "123456:test-token-for-pytest")
os.environ.setdefault("API_BASE_URL", "https://api.test.invalid")
os.environ.setdefault("REGISTRATION_MODES", "online,offline")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest


DRIVE_CV   = "https://drive.google.com/file/d/1AbCdEfGh/view"
DRIVE_CERT = "https://drive.google.com/file/d/9ZyXwVuT/view"


def _participant(**overrides: Any) -> dict[str, Any]:
    """A participant record that is valid in both modes (no university)."""
    record: dict[str, Any] = {
        "name":             "Ada",
        "surname":          "Lovelace",
        "age":              20,
        "gender":           "female",
        "email":            "ada.lovelace@gmail.com",
        "university":       None,
        "study_year":       None,
        "major":            None,
        "cv_link":          None,
        "certificate_link": None,
    }
    record.update(overrides)
    return record


def _student(**overrides: Any) -> dict[str, Any]:
    """A participant with a university and every dependent field set."""
    record = _participant(
        university="nu",
        study_year="2",
        major="Computer Science",
        cv_link=DRIVE_CV,
        certificate_link=DRIVE_CERT,
    )
    record.update(overrides)
    return record


@pytest.fixture
def make_participant():
    """Factory fixture: returns a callable that builds a participant dict."""
    return _participant


@pytest.fixture
def make_student():
    return _student


@pytest.fixture
def make_team():
    def _team(*participants: dict, team_name: str = "Alpha", accepted_terms: Any = True) -> dict:
        return {
            "team_name":      team_name,
            "participants":   list(participants) or [_participant()],
            "accepted_terms": accepted_terms,
        }
    return _team


# ── HTTP stubs ────────────────────────────────────────────────────────────────

class StubResponse:
    """Stands in for aiohttp.ClientResponse inside `async with`."""

    def __init__(self, status: int, body: Any = None, raw: Optional[str] = None) -> None:
        self.status = status
        self._body  = body
        self._raw   = raw

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if self._raw is not None:
            raise ValueError(f"not JSON: {self._raw!r}")
        return self._body

    def raise_for_status(self) -> None:
        pass

    async def __aenter__(self) -> "StubResponse":
        return self

    async def __aexit__(self, *exc: Any) -> bool:
        return False


class StubSession:
    """Records requests and replays a canned response or error."""

    def __init__(self, response: Optional[StubResponse] = None, error: Optional[BaseException] = None) -> None:
        self.response = response
        self.error    = error
        self.calls: list[tuple[str, str, Any]] = []
        self.closed   = False

    def _request(self, method: str, url: str, json: Any = None) -> StubResponse:
        self.calls.append((method, url, json))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def post(self, url: str, json: Any = None) -> StubResponse:
        return self._request("POST", url, json)

    def get(self, url: str) -> StubResponse:
        return self._request("GET", url)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_session():
    """Factory fixture: StubSession(response=..., error=...)."""
    return StubSession


@pytest.fixture
def stub_response():
    return StubResponse
