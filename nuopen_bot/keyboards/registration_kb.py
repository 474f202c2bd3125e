"""
Keyboards for the team registration FSM flow.
"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from nuopen_bot.keyboards.callbacks import ChoiceCb, MainMenuCb, RosterCb, SkipCb
from nuopen_bot.roster import Roster
from nuopen_bot.schema import GENDERS, STUDY_YEARS, UNIVERSITIES

GENDER_LABELS = {
    "male":              "👨 Male",
    "female":            "👩 Female",
    "prefer not to say": "🤐 Prefer not to say",
}

UNIVERSITY_LABELS = {
    "nu":     "Nazarbayev University",
    "aitu":   "Astana IT University",
    "kbtu":   "KBTU",
    "sdu":    "SDU",
    "school": "School",
    "other":  "Other",
}

STUDY_YEAR_LABELS = {
    "found":  "Foundation",
    "1":      "1st year",
    "2":      "2nd year",
    "3":      "3rd year",
    "4":      "4th year",
    "grad":   "Graduate",
    "school": "School",
}


def _cancel_row(builder: InlineKeyboardBuilder) -> None:
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()))


def cancel_registration_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    _cancel_row(builder)
    return builder.as_markup()


def roster_kb(roster: Roster) -> InlineKeyboardMarkup:
    """
    Roster overview. "Add" is only offered while the roster is not full,
    "Remove" never for the captain.
    """
    builder = InlineKeyboardBuilder()
    for i, p in enumerate(roster.participants):
        role  = "👑 Captain" if i == 0 else f"👤 Member {i + 1}"
        label = f"{p['name']} {p['surname']}".strip() or "— empty —"
        buttons = [
            InlineKeyboardButton(
                text=f"✏️ {role}: {label}",
                callback_data=RosterCb(action="edit", idx=i).pack(),
            )
        ]
        if roster.can_remove(i):
            buttons.append(
                InlineKeyboardButton(
                    text="➖", callback_data=RosterCb(action="remove", idx=i).pack()
                )
            )
        builder.row(*buttons)

    if roster.can_add:
        builder.row(
            InlineKeyboardButton(text="➕ Add participant", callback_data=RosterCb(action="add").pack())
        )
    builder.row(
        InlineKeyboardButton(text="➡️ Continue", callback_data=RosterCb(action="done").pack())
    )
    _cancel_row(builder)
    return builder.as_markup()


def _choice_kb(field: str, options: tuple, labels: dict, allow_none: bool = False) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for code in options:
        builder.button(text=labels.get(code, code), callback_data=ChoiceCb(field=field, value=code))
    builder.adjust(2)
    if allow_none:
        builder.row(
            InlineKeyboardButton(
                text="🚫 Not a student", callback_data=ChoiceCb(field=field, value="none").pack()
            )
        )
    _cancel_row(builder)
    return builder.as_markup()


def gender_kb() -> InlineKeyboardMarkup:
    return _choice_kb("gender", GENDERS, GENDER_LABELS)


def university_kb() -> InlineKeyboardMarkup:
    return _choice_kb("university", UNIVERSITIES, UNIVERSITY_LABELS, allow_none=True)


def study_year_kb() -> InlineKeyboardMarkup:
    return _choice_kb("study_year", STUDY_YEARS, STUDY_YEAR_LABELS)


def skip_kb(field: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="⏭ Skip", callback_data=SkipCb(field=field).pack()))
    _cancel_row(builder)
    return builder.as_markup()


def terms_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="✅ I accept", callback_data="reg_terms"))
    builder.row(
        InlineKeyboardButton(text="🔙 Back to roster", callback_data=RosterCb(action="back").pack())
    )
    _cancel_row(builder)
    return builder.as_markup()


def submit_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🚀 Submit", callback_data="reg_submit"))
    builder.row(
        InlineKeyboardButton(text="✏️ Edit", callback_data=RosterCb(action="back").pack())
    )
    _cancel_row(builder)
    return builder.as_markup()
