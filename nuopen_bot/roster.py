"""
Roster of a team being registered.

Slot 0 is the captain and can never be removed; the roster always holds
between MIN_PARTICIPANTS and MAX_PARTICIPANTS records. Records are plain
dicts so the roster can be stored in aiogram FSM data as-is.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from nuopen_bot.schema import MAX_PARTICIPANTS, MIN_PARTICIPANTS, min_age

logger = logging.getLogger(__name__)

PARTICIPANT_FIELDS = (
    "name", "surname", "age", "gender", "email",
    "university", "study_year", "major", "cv_link", "certificate_link",
)


def blank_participant(mode: str) -> dict[str, Any]:
    """Fresh slot: age at the mode's floor, every other field empty."""
    record: dict[str, Any] = {
        "name":             "",
        "surname":          "",
        "age":              min_age(mode),
        "gender":           None,
        "email":            "",
        "university":       None,
        "study_year":       None,
        "major":            None,
        "cv_link":          None,
        "certificate_link": None,
    }
    return record


class Roster:
    """Ordered, bounded list of participant records for one form."""

    def __init__(self, mode: str, participants: Optional[Iterable[dict]] = None) -> None:
        self.mode = mode
        self._participants: list[dict[str, Any]] = [dict(p) for p in participants or []]
        if not self._participants:
            self._participants.append(blank_participant(mode))
        del self._participants[MAX_PARTICIPANTS:]

    # ── State round-trip ──────────────────────────────────────────────────────

    @classmethod
    def from_state(cls, data: dict[str, Any]) -> "Roster":
        return cls(data["mode"], data.get("roster"))

    def to_state(self) -> list[dict[str, Any]]:
        return [dict(p) for p in self._participants]

    # ── Queries ───────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._participants)

    def __getitem__(self, index: int) -> dict[str, Any]:
        return self._participants[index]

    @property
    def participants(self) -> list[dict[str, Any]]:
        return list(self._participants)

    @property
    def captain(self) -> dict[str, Any]:
        return self._participants[0]

    @property
    def can_add(self) -> bool:
        return len(self._participants) < MAX_PARTICIPANTS

    def can_remove(self, index: int) -> bool:
        return (
            index != 0
            and 0 <= index < len(self._participants)
            and len(self._participants) > MIN_PARTICIPANTS
        )

    # ── Mutations ─────────────────────────────────────────────────────────────

    def add_participant(self) -> bool:
        """Append a blank slot. No-op once the roster is full."""
        if not self.can_add:
            return False
        self._participants.append(blank_participant(self.mode))
        return True

    def remove_participant(self, index: int) -> bool:
        """Drop slot `index`. No-op for the captain or an out-of-range index."""
        if not self.can_remove(index):
            logger.debug("Refused to remove roster slot %d (size %d)", index, len(self))
            return False
        del self._participants[index]
        return True

    def update(self, index: int, **fields: Any) -> None:
        unknown = set(fields) - set(PARTICIPANT_FIELDS)
        if unknown:
            raise KeyError(f"Unknown participant fields: {sorted(unknown)}")
        self._participants[index].update(fields)
