"""
Participant editing FSM handler.

Flow (one roster slot):
  name → surname → age → gender → email → university
       → [study year → major]          only with a university
       → CV link → certificate link    skippable unless required
       → back to the roster overview

Every answer is validated on its own against the form's schema; the
user re-enters a field until it passes.
"""
import logging
from typing import Any, Optional

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import StateFilter, or_f
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from aiogram.utils.text_decorations import html_decoration as hd

from nuopen_bot.handlers.registration import show_roster
from nuopen_bot.keyboards import (
    ChoiceCb, RosterCb, SkipCb,
    GENDER_LABELS, STUDY_YEAR_LABELS, UNIVERSITY_LABELS,
    cancel_registration_kb, gender_kb, skip_kb, study_year_kb, university_kb,
)
from nuopen_bot.roster import PARTICIPANT_FIELDS, Roster
from nuopen_bot.schema import MAX_AGE, TRUSTED_LINK_PREFIX, build_schema
from nuopen_bot.states import ParticipantStates, RegistrationStates

logger = logging.getLogger(__name__)
router = Router(name="participant")

FIELD_STATES: dict[str, State] = {
    "name":             ParticipantStates.enter_name,
    "surname":          ParticipantStates.enter_surname,
    "age":              ParticipantStates.enter_age,
    "gender":           ParticipantStates.choose_gender,
    "email":            ParticipantStates.enter_email,
    "university":       ParticipantStates.choose_university,
    "study_year":       ParticipantStates.choose_study_year,
    "major":            ParticipantStates.enter_major,
    "cv_link":          ParticipantStates.enter_cv_link,
    "certificate_link": ParticipantStates.enter_certificate,
}
STATE_FIELDS: dict[str, str] = {s.state: f for f, s in FIELD_STATES.items()}

TEXT_FIELDS  = ("name", "surname", "age", "email", "major", "cv_link", "certificate_link")
CHOICE_FIELDS = ("gender", "university", "study_year")
SKIPPABLE_FIELDS = ("cv_link", "certificate_link")

# Only asked when a university is selected
UNIVERSITY_FIELDS = ("study_year", "major")

PROMPTS = {
    "name":             "Enter the participant's <b>first name</b>:",
    "surname":          "Enter the participant's <b>surname</b>:",
    "age":              "Enter the participant's <b>age</b> (up to {max_age}):",
    "gender":           "Select the participant's <b>gender</b>:",
    "email":            "Enter the participant's <b>email</b>:",
    "university":       "Select the participant's <b>University/School</b>:",
    "study_year":       "Select the <b>year of study</b>:",
    "major":            "Enter the <b>major</b>:",
    "cv_link":          "Send a public Google Drive link to the <b>CV</b> ({prefix}…):",
    "certificate_link": (
        "Send a public Google Drive link to the <b>University/School verification</b> "
        "document ({prefix}…):"
    ),
}


def next_field(record: dict[str, Any], field: str) -> Optional[str]:
    """Field asked after `field`, or None when the slot is complete."""
    following = PARTICIPANT_FIELDS[PARTICIPANT_FIELDS.index(field) + 1:]
    for candidate in following:
        if candidate in UNIVERSITY_FIELDS and not record.get("university"):
            continue
        return candidate
    return None


def _display(field: str, value: Any) -> str:
    labels = {
        "gender":     GENDER_LABELS,
        "university": UNIVERSITY_LABELS,
        "study_year": STUDY_YEAR_LABELS,
    }.get(field, {})
    return hd.quote(str(labels.get(value, value)))


def _field_kb(field: str, required: bool) -> InlineKeyboardMarkup:
    if field == "gender":
        return gender_kb()
    if field == "university":
        return university_kb()
    if field == "study_year":
        return study_year_kb()
    if field in SKIPPABLE_FIELDS and not required:
        return skip_kb(field)
    return cancel_registration_kb()


async def _ask(message: Message, state: FSMContext, field: str, warning: str = "") -> None:
    data = await state.get_data()
    roster = Roster.from_state(data)
    idx = data["editing"]
    record = roster[idx]

    required = bool(
        build_schema(roster.mode).field_errors({**record, field: None}, field)
    )
    role = "👑 Captain" if idx == 0 else f"👤 Member {idx + 1}"
    text = f"{role}\n\n" + PROMPTS[field].format(max_age=MAX_AGE, prefix=TRUSTED_LINK_PREFIX)
    current = record.get(field)
    if current not in (None, ""):
        text += f"\n<i>Current: {_display(field, current)}</i>"
    if warning:
        text = f"⚠️ {hd.quote(warning)}\n\n" + text

    await state.set_state(FIELD_STATES[field])
    await message.answer(text, parse_mode=ParseMode.HTML, reply_markup=_field_kb(field, required))


async def _store(message: Message, state: FSMContext, field: str, value: Any) -> None:
    """Validate one answer, save it and move on to the next field."""
    data = await state.get_data()
    roster = Roster.from_state(data)
    idx = data["editing"]

    record = {**roster[idx], field: value}
    if field == "university" and not value:
        record.update(study_year=None, major=None)

    errors = build_schema(roster.mode).field_errors(record, field)
    if errors:
        await _ask(message, state, field, warning=errors[0].message)
        return

    roster.update(idx, **record)
    await state.update_data(roster=roster.to_state())

    nxt = next_field(record, field)
    if nxt is None:
        await state.update_data(editing=None)
        await show_roster(message, state, notice="✅ Participant saved.\n\n")
        return
    await _ask(message, state, nxt)


# ── Entry: edit a slot from the roster overview ───────────────────────────────

@router.callback_query(RosterCb.filter(F.action == "edit"), RegistrationStates.roster)
async def cq_edit_participant(
    callback: CallbackQuery, callback_data: RosterCb, state: FSMContext
) -> None:
    roster = Roster.from_state(await state.get_data())
    if not 0 <= callback_data.idx < len(roster):
        await callback.answer("This participant no longer exists.", show_alert=True)
        return

    await state.update_data(editing=callback_data.idx)
    await callback.answer()
    await _ask(callback.message, state, "name")


# ── Text answers ──────────────────────────────────────────────────────────────

@router.message(StateFilter(*(FIELD_STATES[f] for f in TEXT_FIELDS)))
async def msg_participant_field(message: Message, state: FSMContext) -> None:
    field = STATE_FIELDS[await state.get_state()]
    raw = message.text.strip() if message.text else ""

    value: Any = raw
    if field == "age":
        try:
            value = int(raw)
        except ValueError:
            await _ask(message, state, field, warning="Age must be a whole number")
            return

    await _store(message, state, field, value)


# ── Inline choices ────────────────────────────────────────────────────────────

@router.callback_query(ChoiceCb.filter(), StateFilter(*(FIELD_STATES[f] for f in CHOICE_FIELDS)))
async def cq_participant_choice(
    callback: CallbackQuery, callback_data: ChoiceCb, state: FSMContext
) -> None:
    field = STATE_FIELDS[await state.get_state()]
    if callback_data.field != field:
        await callback.answer("This button is outdated.", show_alert=True)
        return

    value = None if callback_data.value == "none" else callback_data.value
    await callback.answer()
    await _store(callback.message, state, field, value)


@router.message(StateFilter(*(FIELD_STATES[f] for f in CHOICE_FIELDS)))
async def msg_choice_hint(message: Message, state: FSMContext) -> None:
    """Catch accidental text input during a button-only step."""
    field = STATE_FIELDS[await state.get_state()]
    await _ask(message, state, field, warning="Please pick one of the buttons")


@router.callback_query(SkipCb.filter(), StateFilter(*(FIELD_STATES[f] for f in SKIPPABLE_FIELDS)))
async def cq_skip_field(callback: CallbackQuery, callback_data: SkipCb, state: FSMContext) -> None:
    field = STATE_FIELDS[await state.get_state()]
    if callback_data.field != field:
        await callback.answer("This button is outdated.", show_alert=True)
        return

    await callback.answer()
    await _store(callback.message, state, field, None)


@router.callback_query(
    or_f(ChoiceCb.filter(), SkipCb.filter(), RosterCb.filter()),
    StateFilter(ParticipantStates, RegistrationStates),
)
async def cq_stale_step_button(callback: CallbackQuery) -> None:
    """Buttons of an earlier step: keep the form, just refuse the press."""
    await callback.answer("This button belongs to another step.", show_alert=True)
