"""
Validation schema for team registration: Pydantic v2 models plus
cross-field rules.

build_schema(mode) returns a TeamSchema: a pure validator for single
participant records and for whole team submissions. Validation runs in
two passes:

  1. field checks   : ParticipantRecord / _TeamShell models; the
                      participation mode reaches the age check through
                      the validation context.
  2. conditional    : CONDITIONAL_RULES, evaluated per participant;
                      a rule is skipped when its field already failed.

Failures are reported as FieldError(path, message) with paths such as
``teamName`` or ``participants[1].major``; at most one message per path.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

# ─────────────────────────── Constants ────────────────────────────────────────

class Mode:
    ONLINE  = "online"
    OFFLINE = "offline"

    ALL = (ONLINE, OFFLINE)

    LABELS = {
        ONLINE:  "Online",
        OFFLINE: "Offline",
    }

    # `participation_mode` value expected by the registration API
    WIRE = {
        ONLINE:  "on",
        OFFLINE: "off",
    }


MIN_AGE = {
    Mode.ONLINE:  0,
    Mode.OFFLINE: 16,
}
MAX_AGE = 40

MIN_NAME_LEN      = 3
MIN_SURNAME_LEN   = 3
MAX_SURNAME_LEN   = 40
MIN_TEAM_NAME_LEN = 2

MIN_PARTICIPANTS = 1
MAX_PARTICIPANTS = 3

TRUSTED_LINK_PREFIX = "https://drive.google.com/"

GENDERS = ("male", "female", "prefer not to say")
UNIVERSITIES = ("nu", "aitu", "kbtu", "sdu", "school", "other")
STUDY_YEARS = ("found", "1", "2", "3", "4", "grad", "school")

# Python attribute → path segment shown to the user
_PATH_NAMES = {
    "team_name":        "teamName",
    "accepted_terms":   "acceptedTerms",
    "study_year":       "studyYear",
    "cv_link":          "cvLink",
    "certificate_link": "certificateLink",
}

_url_adapter: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


def min_age(mode: str) -> int:
    """Lowest accepted participant age for a participation mode."""
    try:
        return MIN_AGE[mode]
    except KeyError:
        raise ValueError(f"Unknown participation mode: {mode!r}") from None


# ─────────────────────────── Errors ───────────────────────────────────────────

class FieldError(NamedTuple):
    path: str
    message: str


class TeamValidationError(Exception):
    """Raised by TeamSchema.parse_team; carries every field failure."""

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("; ".join(f"{e.path}: {e.message}" for e in errors))
        self.errors = errors


def _fail(kind: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(kind, message)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def field_path(prefix: str, loc: tuple) -> str:
    """Render a pydantic error location as ``participants[1].studyYear``."""
    parts: list[str] = [prefix] if prefix else []
    for item in loc:
        if isinstance(item, int):
            if parts:
                parts[-1] = f"{parts[-1]}[{item}]"
            else:
                parts.append(f"[{item}]")
        else:
            parts.append(_PATH_NAMES.get(item, item))
    return ".".join(parts)


def _collect(exc: ValidationError, prefix: str = "") -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[str] = set()
    for err in exc.errors():
        path = field_path(prefix, err["loc"])
        if path in seen:
            continue
        seen.add(path)
        errors.append(FieldError(path, err["msg"]))
    return errors


# ─────────────────────────── Field checks ─────────────────────────────────────

class ParticipantRecord(BaseModel):
    """
    One roster slot after field-level validation.

    Attributes
    ----------
    name             : at least 3 characters
    surname          : 3–40 characters
    age              : min_age(mode)–40, mode taken from the validation context
    gender           : one of GENDERS
    email            : syntactically valid address
    university       : one of UNIVERSITIES, or None
    study_year       : one of STUDY_YEARS, or None
    major            : free text, or None
    cv_link          : Google Drive URL, or None
    certificate_link : Google Drive URL, or None
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", validate_default=True)
    surname: str = Field(default="", validate_default=True)
    age: Optional[int] = Field(default=None, validate_default=True)
    gender: Optional[str] = Field(default=None, validate_default=True)
    email: str = Field(default="", validate_default=True)
    university: Optional[str] = None
    study_year: Optional[str] = None
    major: Optional[str] = None
    cv_link: Optional[str] = None
    certificate_link: Optional[str] = None

    @field_validator(
        "university", "study_year", "major", "cv_link", "certificate_link",
        mode="before",
    )
    @classmethod
    def empty_as_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) < MIN_NAME_LEN:
            raise _fail("name_too_short", "Name must contain at least 3 characters")
        return v

    @field_validator("surname")
    @classmethod
    def validate_surname(cls, v: str) -> str:
        if len(v) < MIN_SURNAME_LEN:
            raise _fail("surname_too_short", "Surname must contain at least 3 characters")
        if len(v) > MAX_SURNAME_LEN:
            raise _fail("surname_too_long", "Surname must contain at most 40 characters")
        return v

    @field_validator("age", mode="before")
    @classmethod
    def whole_number_age(cls, v: Any) -> Any:
        # No lax coercion: True would pass as 1 and 16.0 as 16
        if v is not None and (isinstance(v, bool) or not isinstance(v, int)):
            raise _fail("age_type", "Age must be a whole number")
        return v

    @field_validator("age")
    @classmethod
    def validate_age(cls, v: Optional[int], info: ValidationInfo) -> int:
        if v is None:
            raise _fail("age_missing", "Please enter the age")
        # Without a context the stricter offline floor applies
        mode = (info.context or {}).get("mode", Mode.OFFLINE)
        floor = min_age(mode)
        if v < floor:
            raise _fail("age_too_low", f"Too young: minimum {floor}")
        if v > MAX_AGE:
            raise _fail("age_too_high", f"Too old: maximum {MAX_AGE}")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v: Any) -> str:
        v = _blank_to_none(v)
        if v not in GENDERS:
            raise _fail("gender", "Please select your gender")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        try:
            _, email = validate_email(v)
        except PydanticCustomError:
            raise _fail("email", "Please enter a valid email address") from None
        # validate_email also accepts "Name <addr>" and returns only addr
        if email.lower() != v.lower():
            raise _fail("email", "Please enter a valid email address")
        return email

    @field_validator("university")
    @classmethod
    def validate_university(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in UNIVERSITIES:
            raise _fail("university", "Please select your University/School")
        return v

    @field_validator("study_year")
    @classmethod
    def validate_study_year(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in STUDY_YEARS:
            raise _fail("study_year", "Please select your year of study")
        return v

    @field_validator("cv_link", "certificate_link")
    @classmethod
    def validate_drive_link(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.startswith(TRUSTED_LINK_PREFIX):
            raise _fail(
                "untrusted_link",
                "Link must be a public Google Drive URL (https://drive.google.com/...)",
            )
        try:
            _url_adapter.validate_python(v)
        except ValidationError:
            raise _fail("url", "Please enter a valid URL") from None
        return v


class _TeamShell(BaseModel):
    """Team-level fields; participants are checked one by one afterwards."""

    model_config = ConfigDict(str_strip_whitespace=True)

    team_name: str = Field(default="", validate_default=True)
    participants: list[Any] = Field(default_factory=list, validate_default=True)
    accepted_terms: bool = Field(default=False, validate_default=True)

    @field_validator("team_name")
    @classmethod
    def validate_team_name(cls, v: str) -> str:
        if len(v) < MIN_TEAM_NAME_LEN:
            raise _fail("team_name_too_short", "Team name must contain at least 2 characters")
        return v

    @field_validator("participants")
    @classmethod
    def validate_roster_size(cls, v: list[Any]) -> list[Any]:
        if not MIN_PARTICIPANTS <= len(v) <= MAX_PARTICIPANTS:
            raise _fail("roster_size", "A team must have from 1 to 3 participants")
        return v

    @field_validator("accepted_terms", mode="before")
    @classmethod
    def validate_terms(cls, v: Any) -> bool:
        if v is not True:
            raise _fail("terms", "You must accept the terms to register")
        return v


class TeamSubmission(BaseModel):
    """A fully validated team, ready to be flattened and sent."""

    team_name: str
    mode: str
    participants: list[ParticipantRecord]
    accepted_terms: bool = True


# ─────────────────────────── Conditional rules ────────────────────────────────

@dataclass(frozen=True)
class ConditionalRule:
    """Requirement on `field` that holds only under a cross-field predicate."""

    field: str
    message: str
    violated: Callable[[Mapping, str], bool]


def _has_university(record: Mapping) -> bool:
    return _blank_to_none(record.get("university")) is not None


def _is_missing(record: Mapping, field: str) -> bool:
    return _blank_to_none(record.get(field)) is None


CONDITIONAL_RULES: tuple[ConditionalRule, ...] = (
    ConditionalRule(
        field="study_year",
        message="Please select your year of study",
        violated=lambda r, mode: _has_university(r) and _is_missing(r, "study_year"),
    ),
    ConditionalRule(
        field="major",
        message="Please enter your major",
        violated=lambda r, mode: _has_university(r) and _is_missing(r, "major"),
    ),
    ConditionalRule(
        field="certificate_link",
        message="University/School verification document is required for offline participants",
        violated=lambda r, mode: (
            mode == Mode.OFFLINE
            and _has_university(r)
            and _is_missing(r, "certificate_link")
        ),
    ),
)


# ─────────────────────────── Schema ───────────────────────────────────────────

class TeamSchema:
    """Validator bound to one participation mode. Holds no mutable state."""

    def __init__(self, mode: str) -> None:
        self.min_age = min_age(mode)
        self.mode = mode

    def _check_participant(
        self, data: Any, prefix: str = ""
    ) -> tuple[Optional[ParticipantRecord], list[FieldError]]:
        if not isinstance(data, Mapping):
            return None, [FieldError(prefix or "participant", "Invalid participant record")]

        record: Optional[ParticipantRecord] = None
        errors: list[FieldError] = []
        try:
            record = ParticipantRecord.model_validate(data, context={"mode": self.mode})
        except ValidationError as exc:
            errors.extend(_collect(exc, prefix))

        failed = {e.path for e in errors}
        for rule in CONDITIONAL_RULES:
            path = field_path(prefix, (rule.field,))
            if path not in failed and rule.violated(data, self.mode):
                errors.append(FieldError(path, rule.message))

        return (None if errors else record), errors

    def _check_team(self, data: Any) -> tuple[Optional[TeamSubmission], list[FieldError]]:
        if not isinstance(data, Mapping):
            return None, [FieldError("team", "Invalid team submission")]

        errors: list[FieldError] = []
        shell: Optional[_TeamShell] = None
        participants = data.get("participants")
        try:
            shell = _TeamShell.model_validate(data)
            participants = shell.participants
        except ValidationError as exc:
            errors.extend(_collect(exc))

        records: list[ParticipantRecord] = []
        # The shell accepts any sequence as the roster; strings are not rosters
        if isinstance(participants, Sequence) and not isinstance(participants, (str, bytes)):
            for i, raw in enumerate(participants):
                record, participant_errors = self._check_participant(raw, f"participants[{i}]")
                errors.extend(participant_errors)
                if record is not None:
                    records.append(record)

        if errors or shell is None:
            return None, errors

        team = TeamSubmission(
            team_name=shell.team_name,
            mode=self.mode,
            participants=records,
        )
        return team, []

    # ── Public API ────────────────────────────────────────────────────────────

    def participant_errors(self, data: Any, prefix: str = "") -> list[FieldError]:
        return self._check_participant(data, prefix)[1]

    def field_errors(self, data: Any, field: str) -> list[FieldError]:
        """Errors of a single participant field, for validating one edit at a time."""
        path = field_path("", (field,))
        return [e for e in self.participant_errors(data) if e.path == path]

    def team_errors(self, data: Any) -> list[FieldError]:
        return self._check_team(data)[1]

    def is_valid(self, data: Any) -> bool:
        return not self.team_errors(data)

    def parse_team(self, data: Any) -> TeamSubmission:
        team, errors = self._check_team(data)
        if errors:
            raise TeamValidationError(errors)
        return team  # type: ignore[return-value]


def build_schema(mode: str) -> TeamSchema:
    """Build the validator for a participation mode ("online" / "offline")."""
    return TeamSchema(mode)
