"""
Unit tests: Roster manager (roster.py).

Roster size stays within [1, 3], the captain slot can never be removed,
and new slots start at the mode's minimum age.
"""
from __future__ import annotations

import pytest

from nuopen_bot.roster import PARTICIPANT_FIELDS, Roster, blank_participant
from nuopen_bot.schema import Mode


class TestBlankParticipant:
    @pytest.mark.parametrize("mode, age", [(Mode.ONLINE, 0), (Mode.OFFLINE, 16)])
    def test_age_defaults_to_mode_floor(self, mode: str, age: int) -> None:
        assert blank_participant(mode)["age"] == age

    def test_optional_fields_start_empty(self) -> None:
        record = blank_participant(Mode.OFFLINE)
        assert set(record) == set(PARTICIPANT_FIELDS)
        for field in ("gender", "university", "study_year", "major", "cv_link", "certificate_link"):
            assert record[field] is None


class TestRosterBounds:
    def test_new_roster_has_a_captain(self) -> None:
        roster = Roster(Mode.ONLINE)
        assert len(roster) == 1
        assert roster.captain == blank_participant(Mode.ONLINE)

    def test_add_up_to_three(self) -> None:
        roster = Roster(Mode.OFFLINE)
        assert roster.add_participant() is True
        assert roster.add_participant() is True
        assert len(roster) == 3
        assert roster[2]["age"] == 16

    def test_fourth_add_is_a_noop(self) -> None:
        roster = Roster(Mode.ONLINE)
        roster.add_participant()
        roster.add_participant()
        before = roster.to_state()
        assert roster.can_add is False
        assert roster.add_participant() is False
        assert roster.to_state() == before

    def test_captain_cannot_be_removed(self) -> None:
        roster = Roster(Mode.ONLINE)
        roster.add_participant()
        assert roster.can_remove(0) is False
        assert roster.remove_participant(0) is False
        assert len(roster) == 2

    def test_remove_member(self) -> None:
        roster = Roster(Mode.ONLINE)
        roster.update(0, name="Ada")
        roster.add_participant()
        roster.update(1, name="Grace")
        roster.add_participant()
        roster.update(2, name="Barbara")

        assert roster.remove_participant(1) is True
        assert [p["name"] for p in roster.participants] == ["Ada", "Barbara"]

    @pytest.mark.parametrize("index", [-1, 3, 7])
    def test_out_of_range_remove_is_a_noop(self, index: int) -> None:
        roster = Roster(Mode.ONLINE)
        roster.add_participant()
        assert roster.remove_participant(index) is False
        assert len(roster) == 2

    def test_single_slot_roster_cannot_shrink(self) -> None:
        roster = Roster(Mode.ONLINE)
        assert roster.remove_participant(0) is False
        assert len(roster) == 1

    def test_oversized_input_is_clamped(self) -> None:
        roster = Roster(Mode.ONLINE, [blank_participant(Mode.ONLINE) for _ in range(5)])
        assert len(roster) == 3

    def test_empty_input_gets_a_captain(self) -> None:
        assert len(Roster(Mode.OFFLINE, [])) == 1


class TestRosterState:
    def test_round_trip_through_fsm_data(self) -> None:
        roster = Roster(Mode.OFFLINE)
        roster.update(0, name="Ada", surname="Lovelace")
        roster.add_participant()

        restored = Roster.from_state({"mode": Mode.OFFLINE, "roster": roster.to_state()})
        assert restored.mode == Mode.OFFLINE
        assert restored.to_state() == roster.to_state()

    def test_state_is_a_copy(self) -> None:
        roster = Roster(Mode.ONLINE)
        state = roster.to_state()
        state[0]["name"] = "Mallory"
        assert roster.captain["name"] == ""

    def test_update_rejects_unknown_fields(self) -> None:
        with pytest.raises(KeyError):
            Roster(Mode.ONLINE).update(0, nickname="ada")
