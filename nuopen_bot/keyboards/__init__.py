from nuopen_bot.keyboards.callbacks import (
    MainMenuCb,
    ModeCb,
    RosterCb,
    ChoiceCb,
    SkipCb,
)
from nuopen_bot.keyboards.main_menu import main_menu, back_to_main
from nuopen_bot.keyboards.registration_kb import (
    GENDER_LABELS,
    UNIVERSITY_LABELS,
    STUDY_YEAR_LABELS,
    cancel_registration_kb,
    roster_kb,
    gender_kb,
    university_kb,
    study_year_kb,
    skip_kb,
    terms_kb,
    submit_kb,
)

__all__ = [
    # callbacks
    "MainMenuCb", "ModeCb", "RosterCb", "ChoiceCb", "SkipCb",
    # main menu
    "main_menu", "back_to_main",
    # registration
    "GENDER_LABELS", "UNIVERSITY_LABELS", "STUDY_YEAR_LABELS",
    "cancel_registration_kb", "roster_kb",
    "gender_kb", "university_kb", "study_year_kb", "skip_kb",
    "terms_kb", "submit_kb",
]
