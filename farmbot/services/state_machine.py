from enum import Enum


class DialogueStep(str, Enum):
    COLLECTING = "COLLECTING"
    COMPLETED = "COMPLETED"


# COMPLETED is resolved within the turn that reaches it, so nothing leaves it.
VALID_TRANSITIONS = {
    DialogueStep.COLLECTING: [DialogueStep.COLLECTING, DialogueStep.COMPLETED],
    DialogueStep.COMPLETED: [],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_step: DialogueStep, to_step: DialogueStep):
        self.from_step = from_step
        self.to_step = to_step
        super().__init__(f"Invalid transition: {from_step.value} -> {to_step.value}")


def coerce_step(value) -> DialogueStep:
    """Read a step as emitted by the model. Anything unknown counts as COLLECTING."""
    if isinstance(value, DialogueStep):
        return value
    if isinstance(value, str) and value.strip().upper() == DialogueStep.COMPLETED.value:
        return DialogueStep.COMPLETED
    return DialogueStep.COLLECTING


def can_transition(from_step: DialogueStep, to_step: DialogueStep) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_step, [])
    return to_step in allowed


def transition(from_step: DialogueStep, to_step: DialogueStep) -> DialogueStep:
    """Perform step transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_step, to_step):
        raise InvalidTransitionError(from_step, to_step)
    return to_step


def is_terminal(step: DialogueStep) -> bool:
    return step == DialogueStep.COMPLETED
