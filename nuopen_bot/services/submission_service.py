"""
Submission pipeline: flatten → transmit → classify.

Flattening
----------
The registration API predates multi-member forms and expects one flat
record per team. Roster slots map onto fixed field prefixes:

    slot 0 → captain_*
    slot 1 → member2_*
    slot 2 → member3_*

and every prefix carries the same family of suffixes (FIELD_MAP). Slots
beyond the roster length are sent with every key present and set to
null, never omitted.

Outcome classification
----------------------
2xx                                → success
400 with {"team_name": [msg, …]}   → conflict, attached to `teamName`
no response (connection, timeout)  → network
anything else                      → server (server `message` or default)
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import aiohttp

from nuopen_bot.schema import Mode, TeamSubmission

logger = logging.getLogger(__name__)

# Roster slot index → wire field prefix
SLOT_PREFIXES: tuple[str, ...] = ("captain", "member2", "member3")

# ParticipantRecord attribute → wire field suffix
FIELD_MAP: tuple[tuple[str, str], ...] = (
    ("name",             "name"),
    ("surname",          "surname"),
    ("email",            "email"),
    ("gender",           "gender"),
    ("age",              "age"),
    ("university",       "uni"),
    ("study_year",       "study_year"),
    ("major",            "major"),
    ("cv_link",          "cv"),
    ("certificate_link", "cert"),
)

DEFAULT_SERVER_ERROR = "Registration failed. Please try again later."
NETWORK_ERROR = (
    "Network error: the registration server could not be reached. "
    "Check your connection and try again."
)


def flatten_team(team: TeamSubmission) -> dict[str, Any]:
    """Build the flat payload expected by the registration endpoint."""
    payload: dict[str, Any] = {
        "team_name":          team.team_name,
        "participation_mode": Mode.WIRE[team.mode],
    }
    for slot, prefix in enumerate(SLOT_PREFIXES):
        member = team.participants[slot] if slot < len(team.participants) else None
        for attr, suffix in FIELD_MAP:
            payload[f"{prefix}_{suffix}"] = getattr(member, attr) if member is not None else None
    return payload


# ─────────────────────────── Outcomes ─────────────────────────────────────────

class OutcomeKind:
    SUCCESS  = "success"
    CONFLICT = "conflict"   # team name taken
    NETWORK  = "network"    # no response reached us
    SERVER   = "server"     # any other HTTP error


@dataclass(frozen=True)
class SubmissionOutcome:
    kind:    str
    message: str
    field:   Optional[str] = None   # form field the message belongs to
    status:  Optional[int] = None   # HTTP status, None for network failures

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS


def classify_response(status: int, body: Any) -> SubmissionOutcome:
    """Map an HTTP response onto a user-facing outcome."""
    if 200 <= status < 300:
        return SubmissionOutcome(
            OutcomeKind.SUCCESS, "Your team has been registered.", status=status
        )

    data = body if isinstance(body, dict) else {}

    if status == 400:
        conflict = data.get("team_name")
        if isinstance(conflict, list) and conflict:
            return SubmissionOutcome(
                OutcomeKind.CONFLICT, str(conflict[0]), field="teamName", status=status
            )
        if isinstance(conflict, str) and conflict:
            return SubmissionOutcome(
                OutcomeKind.CONFLICT, conflict, field="teamName", status=status
            )

    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        message = DEFAULT_SERVER_ERROR
    return SubmissionOutcome(OutcomeKind.SERVER, message, status=status)


def network_failure() -> SubmissionOutcome:
    return SubmissionOutcome(OutcomeKind.NETWORK, NETWORK_ERROR)


# ─────────────────────────── Pipeline ─────────────────────────────────────────

class SubmissionInProgress(Exception):
    """A submission for this form is already in flight."""


class RegistrationTransport(Protocol):
    async def post_registration(self, payload: dict[str, Any]) -> tuple[int, Any]: ...


class SubmissionPipeline:
    """
    Sends validated teams, one in-flight request per form.

    `form_id` identifies the form instance (the Telegram user id in the
    bot). The in-flight mark is set before the first await and cleared
    in a finally block, whatever the outcome. Transport failures always
    come back as an outcome; only SubmissionInProgress is raised.
    """

    def __init__(self, transport: RegistrationTransport) -> None:
        self._transport = transport
        self._in_flight: set[int] = set()

    def is_in_flight(self, form_id: int) -> bool:
        return form_id in self._in_flight

    async def submit(self, form_id: int, team: TeamSubmission) -> SubmissionOutcome:
        if form_id in self._in_flight:
            raise SubmissionInProgress(form_id)

        self._in_flight.add(form_id)
        try:
            payload = flatten_team(team)
            logger.info(
                "Submitting team %r (%s, %d participant(s))",
                team.team_name, team.mode, len(team.participants),
            )
            try:
                status, body = await self._transport.post_registration(payload)
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
                logger.warning("Registration request for %r failed: %s", team.team_name, exc)
                return network_failure()
            except aiohttp.ClientError as exc:
                logger.warning("Registration request for %r broke off: %s", team.team_name, exc)
                return SubmissionOutcome(OutcomeKind.SERVER, DEFAULT_SERVER_ERROR)
            except Exception:
                logger.exception("Unexpected error while registering %r", team.team_name)
                return SubmissionOutcome(OutcomeKind.SERVER, DEFAULT_SERVER_ERROR)

            outcome = classify_response(status, body)
            if outcome.ok:
                logger.info("Team %r registered (HTTP %d)", team.team_name, status)
            else:
                logger.warning(
                    "Team %r rejected: %s (HTTP %d)", team.team_name, outcome.kind, status
                )
            return outcome
        finally:
            self._in_flight.discard(form_id)
