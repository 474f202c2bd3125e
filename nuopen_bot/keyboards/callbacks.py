"""
Centralized CallbackData factories.
Telegram limits callback_data to 64 bytes, so all prefixes are kept short.
"""
from aiogram.filters.callback_data import CallbackData


class MainMenuCb(CallbackData, prefix="mm"):
    action: str           # main | teams


class ModeCb(CallbackData, prefix="mode"):
    mode: str             # online | offline, picks which form is opened


class RosterCb(CallbackData, prefix="ros"):
    action: str           # edit | add | remove | done
    idx: int = 0          # roster slot


class ChoiceCb(CallbackData, prefix="pick"):
    field: str            # gender | university | study_year
    value: str            # option code, "none" for no selection


class SkipCb(CallbackData, prefix="skip"):
    field: str            # cv_link | certificate_link
