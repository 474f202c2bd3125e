from nuopen_bot.services.registration_api import RegistrationApi
from nuopen_bot.services.submission_service import (
    FIELD_MAP, SLOT_PREFIXES,
    OutcomeKind, SubmissionOutcome, SubmissionInProgress, SubmissionPipeline,
    classify_response, flatten_team, network_failure,
)
from nuopen_bot.services.teams_service import (
    AcceptedTeam, fetch_accepted_teams, format_accepted_teams, parse_accepted_teams,
)

__all__ = [
    # http
    "RegistrationApi",
    # submission
    "FIELD_MAP", "SLOT_PREFIXES",
    "OutcomeKind", "SubmissionOutcome", "SubmissionInProgress", "SubmissionPipeline",
    "classify_response", "flatten_team", "network_failure",
    # listing
    "AcceptedTeam", "fetch_accepted_teams", "format_accepted_teams", "parse_accepted_teams",
]
