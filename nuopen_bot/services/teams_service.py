"""
Accepted-teams listing.

The remote listing keeps the legacy `captian_*` spelling for captain
fields; AcceptedTeam exposes it under readable attribute names.
"""
from __future__ import annotations

import logging
from typing import Optional

from aiogram.utils.text_decorations import html_decoration
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nuopen_bot.services.registration_api import RegistrationApi

logger = logging.getLogger(__name__)


class AcceptedTeam(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    team_name: str
    captain_name: Optional[str] = Field(default=None, alias="captian_name")
    captain_surname: Optional[str] = Field(default=None, alias="captian_surname")
    member2_name: Optional[str] = None
    member2_surname: Optional[str] = None
    member3_name: Optional[str] = None
    member3_surname: Optional[str] = None

    def members(self) -> list[tuple[str, Optional[str]]]:
        """(surname, name) pairs of the members present, captain first."""
        pairs = [
            (self.captain_name, self.captain_surname),
            (self.member2_name, self.member2_surname),
            (self.member3_name, self.member3_surname),
        ]
        return [(surname or "", name) for name, surname in pairs if name]

    def roster_line(self) -> str:
        """e.g. "Lovelace A., Hopper G." """
        return ", ".join(
            f"{surname} {name[0]}.".strip() for surname, name in self.members()
        )


def parse_accepted_teams(items: list[dict]) -> list[AcceptedTeam]:
    teams: list[AcceptedTeam] = []
    for item in items:
        try:
            teams.append(AcceptedTeam.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed accepted-team entry: %s", exc)
    return teams


async def fetch_accepted_teams(api: RegistrationApi) -> list[AcceptedTeam]:
    return parse_accepted_teams(await api.get_accepted_teams())


def format_accepted_teams(teams: list[AcceptedTeam], mode_label: str = "offline") -> str:
    lines = [
        f"🏆 <b>Accepted teams: {mode_label}</b>",
        f"<i>{len(teams)} teams</i>",
        "",
    ]
    for i, team in enumerate(teams, 1):
        roster = team.roster_line()
        lines.append(f"{i}. <b>{html_decoration.quote(team.team_name)}</b>")
        if roster:
            lines.append(f"    {html_decoration.quote(roster)}")
    return "\n".join(lines)
