from aiogram.fsm.state import State, StatesGroup


class RegistrationStates(StatesGroup):
    """FSM for the team-level part of the registration form."""
    enter_team_name = State()   # Text input: team name
    roster          = State()   # Roster overview: edit / add / remove slots
    accept_terms    = State()   # Consent acknowledgment
    confirm         = State()   # Summary → submit
    submitting      = State()   # Request in flight, submit disabled


class ParticipantStates(StatesGroup):
    """FSM for filling in one roster slot."""
    enter_name        = State()
    enter_surname     = State()
    enter_age         = State()
    choose_gender     = State()   # Inline choice
    enter_email       = State()
    choose_university = State()   # Inline choice, "none" allowed
    choose_study_year = State()   # Inline choice, only with a university
    enter_major       = State()   # Only with a university
    enter_cv_link     = State()   # Skippable
    enter_certificate = State()   # Skippable unless required
