from nuopen_bot.states.registration_states import RegistrationStates, ParticipantStates

__all__ = ["RegistrationStates", "ParticipantStates"]
