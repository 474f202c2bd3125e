"""
Unit tests: Submission pipeline (submission_service.py).

  - flatten_team: slot → prefix mapping, explicit nulls for empty slots
  - classify_response: success / conflict / server outcomes
  - SubmissionPipeline: transport errors, in-flight guard and cleanup

The transport is replaced with in-process stubs; no network access.
"""
from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import pytest

from nuopen_bot.schema import Mode, TeamSubmission, build_schema
from nuopen_bot.services.submission_service import (
    DEFAULT_SERVER_ERROR,
    FIELD_MAP,
    NETWORK_ERROR,
    SLOT_PREFIXES,
    OutcomeKind,
    SubmissionInProgress,
    SubmissionPipeline,
    classify_response,
    flatten_team,
)


def _team(mode: str, *participants: dict, team_name: str = "Alpha") -> TeamSubmission:
    data = {"team_name": team_name, "participants": list(participants), "accepted_terms": True}
    return build_schema(mode).parse_team(data)


def _slot_keys(prefix: str) -> list[str]:
    return [f"{prefix}_{suffix}" for _, suffix in FIELD_MAP]


# ─────────────────────────── Flatten ──────────────────────────────────────────

class TestFlatten:
    def test_key_set_is_fixed(self, make_participant) -> None:
        payload = flatten_team(_team(Mode.ONLINE, make_participant()))
        expected = {"team_name", "participation_mode"}
        for prefix in SLOT_PREFIXES:
            expected.update(_slot_keys(prefix))
        assert set(payload) == expected
        assert len(payload) == 2 + 3 * len(FIELD_MAP)

    def test_single_participant_leaves_members_null(self, make_participant) -> None:
        payload = flatten_team(_team(Mode.ONLINE, make_participant()))
        assert payload["captain_name"] == "Ada"
        assert payload["captain_surname"] == "Lovelace"
        assert payload["captain_email"] == "ada.lovelace@gmail.com"
        for key in _slot_keys("member2") + _slot_keys("member3"):
            assert key in payload
            assert payload[key] is None

    def test_three_participants_fill_every_slot(self, make_participant, make_student) -> None:
        team = _team(
            Mode.ONLINE,
            make_participant(),
            make_student(name="Grace", surname="Hopper", email="grace@nu.edu.kz"),
            make_participant(name="Barbara", surname="Liskov", age=30, gender="female"),
        )
        payload = flatten_team(team)

        assert payload["participation_mode"] == "on"
        assert payload["captain_name"] == "Ada"
        assert payload["member2_name"] == "Grace"
        assert payload["member2_uni"] == "nu"
        assert payload["member2_study_year"] == "2"
        assert payload["member2_major"] == "Computer Science"
        assert payload["member2_cv"].startswith("https://drive.google.com/")
        assert payload["member2_cert"].startswith("https://drive.google.com/")
        assert payload["member3_name"] == "Barbara"
        assert payload["member3_age"] == 30

    def test_offline_mode_on_the_wire(self, make_participant) -> None:
        payload = flatten_team(_team(Mode.OFFLINE, make_participant()))
        assert payload["participation_mode"] == "off"

    def test_offline_alpha_example(self, make_participant) -> None:
        payload = flatten_team(_team(Mode.OFFLINE, make_participant(age=16)))
        assert payload["team_name"] == "Alpha"
        assert payload["captain_age"] == 16
        assert payload["captain_uni"] is None
        assert payload["captain_cert"] is None
        assert all(payload[k] is None for k in _slot_keys("member2") + _slot_keys("member3"))

    def test_blank_optional_fields_sent_as_null(self, make_participant) -> None:
        payload = flatten_team(_team(Mode.ONLINE, make_participant(major="", cv_link="  ")))
        assert payload["captain_major"] is None
        assert payload["captain_cv"] is None


# ─────────────────────────── Classification ───────────────────────────────────

class TestClassifyResponse:
    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_2xx_is_success(self, status: int) -> None:
        outcome = classify_response(status, None)
        assert outcome.ok
        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.status == status

    def test_duplicate_team_name_is_a_field_error(self) -> None:
        outcome = classify_response(400, {"team_name": ["team with this team name already exists."]})
        assert outcome.kind == OutcomeKind.CONFLICT
        assert outcome.field == "teamName"
        assert outcome.message == "team with this team name already exists."
        assert not outcome.ok

    def test_400_with_server_message(self) -> None:
        outcome = classify_response(400, {"message": "Captain email is already registered"})
        assert outcome.kind == OutcomeKind.SERVER
        assert outcome.field is None
        assert outcome.message == "Captain email is already registered"

    def test_empty_team_name_list_is_not_a_conflict(self) -> None:
        outcome = classify_response(400, {"team_name": []})
        assert outcome.kind == OutcomeKind.SERVER
        assert outcome.message == DEFAULT_SERVER_ERROR

    def test_team_name_error_on_other_status_is_generic(self) -> None:
        outcome = classify_response(409, {"team_name": ["taken"]})
        assert outcome.kind == OutcomeKind.SERVER

    @pytest.mark.parametrize("body", [None, "Internal Server Error", [], {"message": "  "}])
    def test_5xx_falls_back_to_default_message(self, body: Any) -> None:
        outcome = classify_response(500, body)
        assert outcome.kind == OutcomeKind.SERVER
        assert outcome.message == DEFAULT_SERVER_ERROR
        assert outcome.status == 500


# ─────────────────────────── Pipeline ─────────────────────────────────────────

class _StubTransport:
    def __init__(self, result: Any = (201, {"id": 1}), error: BaseException | None = None) -> None:
        self.result   = result
        self.error    = error
        self.payloads: list[dict] = []
        self.release  = asyncio.Event()
        self.release.set()

    async def post_registration(self, payload: dict) -> tuple[int, Any]:
        self.payloads.append(payload)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


class TestSubmissionPipeline:
    async def test_success_clears_in_flight_flag(self, make_participant) -> None:
        transport = _StubTransport((201, {"id": 7}))
        pipeline = SubmissionPipeline(transport)

        outcome = await pipeline.submit(42, _team(Mode.OFFLINE, make_participant()))

        assert outcome.ok
        assert pipeline.is_in_flight(42) is False
        assert transport.payloads[0]["team_name"] == "Alpha"
        assert transport.payloads[0]["member3_name"] is None

    async def test_conflict_outcome(self, make_participant) -> None:
        transport = _StubTransport((400, {"team_name": ["team with this team name already exists."]}))
        outcome = await SubmissionPipeline(transport).submit(1, _team(Mode.ONLINE, make_participant()))
        assert outcome.kind == OutcomeKind.CONFLICT
        assert outcome.field == "teamName"

    @pytest.mark.parametrize("error", [
        aiohttp.ClientConnectionError("connection refused"),
        aiohttp.ServerDisconnectedError(),
        asyncio.TimeoutError(),
    ])
    async def test_no_response_is_a_network_failure(self, error: BaseException, make_participant) -> None:
        pipeline = SubmissionPipeline(_StubTransport(error=error))
        outcome = await pipeline.submit(5, _team(Mode.ONLINE, make_participant()))
        assert outcome.kind == OutcomeKind.NETWORK
        assert outcome.message == NETWORK_ERROR
        assert outcome.status is None
        assert pipeline.is_in_flight(5) is False

    async def test_other_client_error_is_a_server_failure(self, make_participant) -> None:
        pipeline = SubmissionPipeline(_StubTransport(error=aiohttp.ClientPayloadError("truncated")))
        outcome = await pipeline.submit(5, _team(Mode.ONLINE, make_participant()))
        assert outcome.kind == OutcomeKind.SERVER
        assert outcome.message == DEFAULT_SERVER_ERROR

    async def test_network_and_server_messages_differ(self) -> None:
        assert NETWORK_ERROR != DEFAULT_SERVER_ERROR

    async def test_duplicate_submit_refused_while_in_flight(self, make_participant) -> None:
        transport = _StubTransport((201, None))
        transport.release.clear()
        pipeline = SubmissionPipeline(transport)
        team = _team(Mode.ONLINE, make_participant())

        first = asyncio.create_task(pipeline.submit(9, team))
        await asyncio.sleep(0)
        assert pipeline.is_in_flight(9) is True

        with pytest.raises(SubmissionInProgress):
            await pipeline.submit(9, team)

        transport.release.set()
        outcome = await first
        assert outcome.ok
        assert pipeline.is_in_flight(9) is False
        assert len(transport.payloads) == 1

    async def test_forms_do_not_block_each_other(self, make_participant) -> None:
        transport = _StubTransport((201, None))
        transport.release.clear()
        pipeline = SubmissionPipeline(transport)
        team = _team(Mode.ONLINE, make_participant())

        first = asyncio.create_task(pipeline.submit(1, team))
        second = asyncio.create_task(pipeline.submit(2, team))
        await asyncio.sleep(0)
        assert pipeline.is_in_flight(1) and pipeline.is_in_flight(2)

        transport.release.set()
        assert (await first).ok and (await second).ok

    async def test_unexpected_error_becomes_server_failure(self, make_participant) -> None:
        pipeline = SubmissionPipeline(_StubTransport(error=RuntimeError("bug")))
        outcome = await pipeline.submit(3, _team(Mode.ONLINE, make_participant()))
        assert outcome.kind == OutcomeKind.SERVER
        assert outcome.message == DEFAULT_SERVER_ERROR
        assert pipeline.is_in_flight(3) is False
