"""Upload lifecycle finite state machine.

The controller owns one FSM instance and fires an event on it before
publishing every new :class:`~fileopener.models.UploadState` snapshot.
An illegal event raises, so a contradictory state can never be published.

The FSM is purely a validation tool -- it holds no upload data and has
no on_enter_state callbacks.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class UploadLifecycleSM(StateMachine):
    """Five-state lifecycle of the controller.

    States:
        idle        -- Nothing chosen, nothing submitted.
        ready       -- File chosen, not yet submitted.
        in_progress -- Request sent, awaiting settlement.
        succeeded   -- Agent accepted and opened the file.
        failed      -- Attempt settled with an error cause.

    No state has ``final=True``: a fresh submission is allowed from both
    terminal states.
    """

    idle = State("idle", initial=True, value="idle")
    ready = State("ready", value="ready")
    in_progress = State("in_progress", value="in_progress")
    succeeded = State("succeeded", value="succeeded")
    failed = State("failed", value="failed")

    choose = (
        idle.to(ready)
        | ready.to(ready)
        | succeeded.to(ready)
        | failed.to(ready)
    )
    clear = (
        idle.to(idle)
        | ready.to(idle)
        | succeeded.to(idle)
        | failed.to(idle)
    )
    # in_progress -> in_progress is a superseding submission
    submit = (
        idle.to(in_progress)
        | ready.to(in_progress)
        | in_progress.to(in_progress)
        | succeeded.to(in_progress)
        | failed.to(in_progress)
    )
    advance = in_progress.to(in_progress)
    succeed = in_progress.to(succeeded)
    fail = in_progress.to(failed)


def create_fsm(current_state: str = "idle") -> UploadLifecycleSM:
    """Create an FSM instance at the given state.

    Args:
        current_state: One of 'idle', 'ready', 'in_progress', 'succeeded',
            'failed'.
    """
    return UploadLifecycleSM(start_value=current_state)
