from farmbot.schemas.conversation import CONTROL_FIELDS, ConversationState


def merge_states(previous: ConversationState, incoming: ConversationState) -> ConversationState:
    """Combine the stored draft with a freshly extracted one.

    ``step`` and ``history`` come from ``incoming`` as-is. Every other field
    takes the incoming value when it is not None and keeps the previous value
    otherwise. Values are replaced whole, never overlaid.
    """
    values = {}
    for name in ConversationState.model_fields:
        if name in CONTROL_FIELDS:
            values[name] = getattr(incoming, name)
            continue
        incoming_value = getattr(incoming, name)
        values[name] = incoming_value if incoming_value is not None else getattr(previous, name)

    return ConversationState.model_validate(values).model_copy(deep=True)


def changed_fields(previous: ConversationState, merged: ConversationState) -> list[str]:
    """Report fields whose value differs after a merge, for logging."""
    return [
        name
        for name in ConversationState.data_fields()
        if getattr(previous, name) != getattr(merged, name)
    ]
