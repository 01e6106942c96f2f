from farmbot.services.result import Result
from farmbot.services.state_machine import (
    DialogueStep,
    InvalidTransitionError,
    can_transition,
    coerce_step,
    is_terminal,
    transition,
)
