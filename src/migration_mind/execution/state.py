"""Execution monitor state machine.

    UNCONFIGURED --(credentials found | credentials saved)--> CONFIGURED
    CONFIGURED   --(change target)-----------------------> UNCONFIGURED
    CONFIGURED   --(run started)-------------------------> RUNNING
    RUNNING      --(all tables terminal)-----------------> COMPLETED

``transition`` is a pure function; the monitor owns the current state.

Usage:
    from migration_mind.execution.state import MonitorEvent, transition

    state = transition(MonitorState.UNCONFIGURED, MonitorEvent.CREDENTIALS_SAVED)
"""

from enum import StrEnum

from migration_mind.execution.models import MonitorState


class MonitorEvent(StrEnum):
    CREDENTIALS_FOUND = "credentials_found"
    CREDENTIALS_SAVED = "credentials_saved"
    CHANGE_TARGET = "change_target"
    RUN_STARTED = "run_started"
    RUN_TERMINAL = "run_terminal"


class InvalidTransitionError(Exception):
    """Raised when an event is not allowed from the current state."""

    def __init__(self, state: MonitorState, event: MonitorEvent) -> None:
        self.state = state
        self.event = event
        super().__init__(f"Cannot apply '{event}' while {state}")


_TRANSITIONS: dict[tuple[MonitorState, MonitorEvent], MonitorState] = {
    (MonitorState.UNCONFIGURED, MonitorEvent.CREDENTIALS_FOUND): MonitorState.CONFIGURED,
    (MonitorState.UNCONFIGURED, MonitorEvent.CREDENTIALS_SAVED): MonitorState.CONFIGURED,
    (MonitorState.CONFIGURED, MonitorEvent.CHANGE_TARGET): MonitorState.UNCONFIGURED,
    (MonitorState.CONFIGURED, MonitorEvent.RUN_STARTED): MonitorState.RUNNING,
    (MonitorState.RUNNING, MonitorEvent.RUN_TERMINAL): MonitorState.COMPLETED,
}


def transition(state: MonitorState, event: MonitorEvent) -> MonitorState:
    """Return the state reached by applying *event* in *state*.

    Raises:
        InvalidTransitionError: If the pair is not in the transition table.

    Examples:
        >>> transition(MonitorState.CONFIGURED, MonitorEvent.RUN_STARTED)
        <MonitorState.RUNNING: 'RUNNING'>

        >>> transition(MonitorState.UNCONFIGURED, MonitorEvent.RUN_STARTED)
        Traceback (most recent call last):
        ...
        migration_mind.execution.state.InvalidTransitionError: Cannot apply 'run_started' while UNCONFIGURED
    """
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state, event) from None


def can_transition(state: MonitorState, event: MonitorEvent) -> bool:
    return (state, event) in _TRANSITIONS
