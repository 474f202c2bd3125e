"""
Team registration FSM handler.

Flow:
  main menu → pick form (online / offline) → team name → roster overview
            → fill participants (participant.py) → accept terms
            → confirm → submit → outcome
"""
import logging
from typing import Any, Optional

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from aiogram.utils.text_decorations import html_decoration as hd

from nuopen_bot.config import settings
from nuopen_bot.keyboards import (
    ModeCb, RosterCb,
    UNIVERSITY_LABELS,
    cancel_registration_kb, main_menu, roster_kb, submit_kb, terms_kb,
)
from nuopen_bot.roster import Roster
from nuopen_bot.schema import MAX_PARTICIPANTS, FieldError, Mode, TeamValidationError, build_schema
from nuopen_bot.services import OutcomeKind, SubmissionInProgress, SubmissionOutcome, SubmissionPipeline
from nuopen_bot.states import RegistrationStates

logger = logging.getLogger(__name__)
router = Router(name="registration")


# ── Helpers ───────────────────────────────────────────────────────────────────

def team_input(data: dict[str, Any]) -> dict[str, Any]:
    """Form state → the structure TeamSchema validates."""
    return {
        "team_name":      data.get("team_name", ""),
        "participants":   data.get("roster", []),
        "accepted_terms": data.get("accepted_terms", False),
    }


def format_errors(errors: list[FieldError]) -> str:
    return "\n".join(
        f"• <code>{hd.quote(e.path)}</code>: {hd.quote(e.message)}" for e in errors
    )


def roster_text(data: dict[str, Any]) -> str:
    roster = Roster.from_state(data)
    lines = [
        f"📝 <b>{Mode.LABELS[roster.mode]} registration</b>",
        f"🏷 Team: <b>{hd.quote(data.get('team_name', ''))}</b>",
        f"👥 Participants: {len(roster)}/{MAX_PARTICIPANTS}",
        "",
    ]
    for i, p in enumerate(roster.participants):
        role = "👑" if i == 0 else "👤"
        name = f"{p['name']} {p['surname']}".strip() or "<i>not filled in</i>"
        if p["name"] or p["surname"]:
            name = hd.quote(name)
        uni = UNIVERSITY_LABELS.get(p.get("university") or "", "—")
        lines.append(f"{role} {name} · {p['age']} y.o. · {uni}")
    lines.append("")
    lines.append("Tap a participant to fill in or edit their details.")
    return "\n".join(lines)


def summary_text(data: dict[str, Any]) -> str:
    roster = Roster.from_state(data)
    lines = [
        "📋 <b>Check your registration:</b>",
        "",
        f"🏷 Team: <b>{hd.quote(data['team_name'])}</b>",
        f"🌐 Mode: {Mode.LABELS[roster.mode]}",
        "",
    ]
    for i, p in enumerate(roster.participants):
        role = "👑 Captain" if i == 0 else f"👤 Member {i + 1}"
        lines.append(f"{role}: <b>{hd.quote(p['name'])} {hd.quote(p['surname'])}</b>")
        lines.append(f"    {p['age']} y.o. · {hd.quote(p['email'])}")
        if p.get("university"):
            lines.append(f"    {UNIVERSITY_LABELS.get(p['university'], p['university'])}")
    return "\n".join(lines)


async def safe_edit(
    message: Message, text: str, reply_markup: Optional[InlineKeyboardMarkup] = None
) -> None:
    """Edit in place, falling back to a new message when Telegram refuses."""
    try:
        await message.edit_text(text, parse_mode=ParseMode.HTML, reply_markup=reply_markup)
    except TelegramBadRequest as exc:
        logger.debug("edit_text refused (%s), sending a new message", exc)
        await message.answer(text, parse_mode=ParseMode.HTML, reply_markup=reply_markup)


async def show_roster(
    message: Message, state: FSMContext, *, edit: bool = False, notice: str = ""
) -> None:
    data = await state.get_data()
    await state.set_state(RegistrationStates.roster)
    text = notice + roster_text(data)
    kb = roster_kb(Roster.from_state(data))
    if edit:
        await safe_edit(message, text, kb)
    else:
        await message.answer(text, parse_mode=ParseMode.HTML, reply_markup=kb)


# ── Entry: pick a form ────────────────────────────────────────────────────────

@router.callback_query(ModeCb.filter())
async def cq_open_form(callback: CallbackQuery, callback_data: ModeCb, state: FSMContext) -> None:
    mode = callback_data.mode
    if mode not in settings.enabled_modes:
        await callback.answer("This registration form is closed.", show_alert=True)
        return

    await state.clear()
    await state.set_data({
        "mode":           mode,
        "roster":         Roster(mode).to_state(),
        "accepted_terms": False,
    })
    await state.set_state(RegistrationStates.enter_team_name)
    await safe_edit(
        callback.message,
        f"📝 <b>{Mode.LABELS[mode]} registration</b>\n\n"
        f"Enter your <b>team name</b>. This is your public display name:",
        cancel_registration_kb(),
    )
    await callback.answer()


# ── Step 1: team name ─────────────────────────────────────────────────────────

@router.message(RegistrationStates.enter_team_name)
async def msg_team_name(message: Message, state: FSMContext) -> None:
    name = message.text.strip() if message.text else ""
    data = await state.get_data()
    schema = build_schema(data["mode"])
    errors = [e for e in schema.team_errors({**team_input(data), "team_name": name}) if e.path == "teamName"]
    if errors:
        await message.answer(
            f"⚠️ {hd.quote(errors[0].message)}. Enter the team name again:",
            parse_mode=ParseMode.HTML,
            reply_markup=cancel_registration_kb(),
        )
        return

    await state.update_data(team_name=name)
    await show_roster(message, state)


# ── Step 2: roster overview ───────────────────────────────────────────────────

@router.callback_query(RosterCb.filter(F.action == "add"), RegistrationStates.roster)
async def cq_add_participant(callback: CallbackQuery, state: FSMContext) -> None:
    roster = Roster.from_state(await state.get_data())
    if not roster.add_participant():
        await callback.answer(f"A team has at most {MAX_PARTICIPANTS} participants.", show_alert=True)
        return

    await state.update_data(roster=roster.to_state())
    await show_roster(callback.message, state, edit=True)
    await callback.answer("Participant added")


@router.callback_query(RosterCb.filter(F.action == "remove"), RegistrationStates.roster)
async def cq_remove_participant(
    callback: CallbackQuery, callback_data: RosterCb, state: FSMContext
) -> None:
    roster = Roster.from_state(await state.get_data())
    if not roster.remove_participant(callback_data.idx):
        await callback.answer("The captain cannot be removed.", show_alert=True)
        return

    await state.update_data(roster=roster.to_state())
    await show_roster(callback.message, state, edit=True)
    await callback.answer("Participant removed")


@router.callback_query(RosterCb.filter(F.action == "done"), RegistrationStates.roster)
async def cq_roster_done(callback: CallbackQuery, state: FSMContext) -> None:
    data = await state.get_data()
    schema = build_schema(data["mode"])
    # Terms are asked for on the next step
    errors = schema.team_errors({**team_input(data), "accepted_terms": True})
    if errors:
        await callback.answer("Some fields need fixing.")
        await show_roster(
            callback.message, state, edit=True,
            notice=f"⚠️ <b>Please fix:</b>\n{format_errors(errors)}\n\n",
        )
        return

    await state.set_state(RegistrationStates.accept_terms)
    await safe_edit(
        callback.message,
        "📜 <b>Before submitting</b>\n\n"
        "Make sure the CV and University/School verification of <b>ALL MEMBERS</b> "
        "are uploaded to Google Drive and shared publicly.\n\n"
        "By registering you agree to the contest rules and to the processing "
        "of the data above by the organizers.",
        terms_kb(),
    )
    await callback.answer()


@router.callback_query(
    RosterCb.filter(F.action == "back"),
    StateFilter(RegistrationStates.accept_terms, RegistrationStates.confirm),
)
async def cq_back_to_roster(callback: CallbackQuery, state: FSMContext) -> None:
    await show_roster(callback.message, state, edit=True)
    await callback.answer()


# ── Step 3: terms ─────────────────────────────────────────────────────────────

@router.callback_query(F.data == "reg_terms", RegistrationStates.accept_terms)
async def cq_accept_terms(callback: CallbackQuery, state: FSMContext) -> None:
    await state.update_data(accepted_terms=True)
    await state.set_state(RegistrationStates.confirm)
    await safe_edit(callback.message, summary_text(await state.get_data()), submit_kb())
    await callback.answer()


# ── Step 4: submit ────────────────────────────────────────────────────────────

@router.callback_query(F.data == "reg_submit", RegistrationStates.confirm)
async def cq_submit(
    callback: CallbackQuery,
    state: FSMContext,
    pipeline: SubmissionPipeline,
) -> None:
    data = await state.get_data()
    schema = build_schema(data["mode"])
    try:
        team = schema.parse_team(team_input(data))
    except TeamValidationError as exc:
        await callback.answer("Some fields need fixing.")
        await show_roster(
            callback.message, state, edit=True,
            notice=f"⚠️ <b>Please fix:</b>\n{format_errors(exc.errors)}\n\n",
        )
        return

    form_id = callback.from_user.id
    if pipeline.is_in_flight(form_id):
        await callback.answer("⏳ Your registration is already being submitted.", show_alert=True)
        return

    # Parks the form: the submit button only reacts in `confirm`
    await state.set_state(RegistrationStates.submitting)
    try:
        await callback.answer("⏳ Submitting…")
        await safe_edit(callback.message, "⏳ <b>Submitting your registration…</b>")
        try:
            outcome = await pipeline.submit(form_id, team)
        except SubmissionInProgress:
            logger.info("Duplicate submit for form %d ignored", form_id)
            return
        if await state.get_state() != RegistrationStates.submitting.state:
            # /cancel or /start arrived while the request was in flight
            await _report_detached_outcome(callback.message, data, outcome)
            return
        await _report_outcome(callback.message, state, data, outcome)
    finally:
        if await state.get_state() == RegistrationStates.submitting.state:
            await state.set_state(RegistrationStates.confirm)


@router.callback_query(F.data == "reg_submit", RegistrationStates.submitting)
async def cq_submit_busy(callback: CallbackQuery) -> None:
    await callback.answer("⏳ Your registration is already being submitted.", show_alert=True)


async def _report_detached_outcome(
    message: Message, data: dict[str, Any], outcome: SubmissionOutcome
) -> None:
    """Outcome of a submit whose form was discarded meanwhile: report only."""
    if outcome.ok:
        text = f"🎉 <b>Team {hd.quote(data['team_name'])} is registered!</b>"
    else:
        text = (
            f"❌ <b>Registration of {hd.quote(data['team_name'])} failed</b>\n"
            f"{hd.quote(outcome.message)}\n\n"
            f"The form was cancelled; start a new registration from the menu."
        )
    await message.answer(
        text,
        parse_mode=ParseMode.HTML,
        reply_markup=main_menu(settings.enabled_modes),
    )


async def _report_outcome(
    message: Message,
    state: FSMContext,
    data: dict[str, Any],
    outcome: SubmissionOutcome,
) -> None:
    if outcome.ok:
        await state.clear()
        await message.answer(
            f"🎉 <b>Team {hd.quote(data['team_name'])} is registered!</b>\n\n"
            f"The organizers will contact your captain by email.",
            parse_mode=ParseMode.HTML,
            reply_markup=main_menu(settings.enabled_modes),
        )
        return

    if outcome.kind == OutcomeKind.CONFLICT and outcome.field == "teamName":
        # Roster is kept; only the team name has to change
        await state.set_state(RegistrationStates.enter_team_name)
        await message.answer(
            f"⚠️ <b>Team name</b>: {hd.quote(outcome.message)}\n\n"
            f"Enter a different team name:",
            parse_mode=ParseMode.HTML,
            reply_markup=cancel_registration_kb(),
        )
        return

    await state.set_state(RegistrationStates.confirm)
    if outcome.kind == OutcomeKind.NETWORK:
        text = f"🌐 {hd.quote(outcome.message)}"
    else:
        text = f"❌ <b>Registration failed</b>\n{hd.quote(outcome.message)}"
    await message.answer(
        text + "\n\nYour form is kept, you can submit again.",
        parse_mode=ParseMode.HTML,
        reply_markup=submit_kb(),
    )
