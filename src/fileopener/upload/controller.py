"""Upload state machine: one attempt from submission to a single verdict.

The controller publishes immutable :class:`~fileopener.models.UploadState`
snapshots to its subscribers.  Every attempt gets a sequence number when
it starts; progress reports and settlements carrying an older number are
dropped, so the latest ``start()`` always decides the final state even if
an earlier request is still running.

Settlement table (exactly one applies):

==============================================  ============================
Outcome                                         Resulting state
==============================================  ============================
2xx, valid body, ``success: true``              ``Succeeded(filePath)``
2xx, valid body, ``success: false``             ``Failed(Application(msg))``
2xx, body not the expected JSON shape           ``Failed(ParseError)``
non-2xx status                                  ``Failed(ServerError(status))``
transport failure                               ``Failed(NetworkError)``
attempt cancelled or superseded                 ``Failed(Aborted)``
==============================================  ============================

Any other exception escaping an attempt still settles the state to
``Failed(NetworkError)`` before it reaches whoever awaits the attempt.
No timeout is enforced: a hung agent leaves the state ``InProgress``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Callable

import httpx
from pydantic import ValidationError
from statemachine.exceptions import TransitionNotAllowed

from fileopener.constants import APPLICATION_DEFAULT_MESSAGE
from fileopener.models import (
    Aborted,
    Application,
    Failed,
    Idle,
    InProgress,
    NetworkError,
    NoFileSelected,
    ParseError,
    Ready,
    SelectedFile,
    ServerError,
    Succeeded,
    UploadState,
)
from fileopener.upload.client import AgentClient
from fileopener.upload.fsm import create_fsm
from fileopener.upload.schemas import AgentResponse

logger = logging.getLogger(__name__)

StateListener = Callable[[UploadState], None]


class IllegalTransitionError(RuntimeError):
    """Raised when the controller is asked for a transition the FSM forbids."""


def interpret_response(status_code: int, body: bytes | str) -> UploadState:
    """Map an HTTP status and body to a terminal state."""
    if not 200 <= status_code < 300:
        return Failed(ServerError(status_code))

    try:
        verdict = AgentResponse.model_validate_json(body)
    except ValidationError as e:
        logger.error("Parse error: %s", e.errors(include_url=False))
        return Failed(ParseError())

    if verdict.success:
        return Succeeded(verdict.file_path or "")
    return Failed(Application(verdict.error_message or APPLICATION_DEFAULT_MESSAGE))


def percent_of(sent: int, total: int) -> int:
    """``floor(100 * sent / total)`` clamped to [0, 100]."""
    if total <= 0:
        return 0
    return max(0, min(100, (100 * sent) // total))


class UploadController:
    """Drives upload attempts and owns the current :class:`UploadState`.

    Usage::

        controller = UploadController(client)
        controller.subscribe(render)
        final_state = await controller.start(selection.current())
    """

    def __init__(self, client: AgentClient) -> None:
        self._client = client
        self._fsm = create_fsm()
        self._state: UploadState = Idle()
        self._sequence = 0
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task[UploadState]] = set()

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def attempt(self) -> int:
        """Sequence number of the authoritative attempt (0 before any)."""
        return self._sequence

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for every published snapshot.

        Returns a callable that unregisters it.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Selection reset
    # ------------------------------------------------------------------

    def prepare(self, file: SelectedFile | None) -> None:
        """React to a new selection: drop the previous result.

        Suitable as a :class:`~fileopener.selection.SelectionHolder`
        listener.  While an attempt is in flight the state is left alone;
        the next ``start()`` supersedes it.
        """
        if isinstance(self._state, InProgress):
            logger.debug(
                "Selection changed during attempt %d, state kept", self._sequence
            )
            return
        if file is None:
            self._transition("clear", Idle())
        else:
            self._transition("choose", Ready(file))

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def start(self, file: SelectedFile | None) -> asyncio.Future[UploadState]:
        """Begin an upload attempt for *file*.

        Must be called from a running event loop.  The state moves to
        ``InProgress(0)`` before this returns.  The returned future
        resolves to the attempt's own outcome; a superseded attempt
        resolves to ``Failed(Aborted)`` without touching the state.

        With *file* ``None`` no request is issued, the state is unchanged
        and the future is already resolved to ``Failed(NoFileSelected)``.
        """
        loop = asyncio.get_running_loop()

        if file is None:
            logger.error("Upload error: no file selected")
            rejected: asyncio.Future[UploadState] = loop.create_future()
            rejected.set_result(Failed(NoFileSelected()))
            return rejected

        if isinstance(self._state, InProgress):
            logger.info("Attempt %d superseded", self._sequence)

        self._sequence += 1
        attempt = self._sequence
        self._transition("submit", InProgress(0, attempt))
        logger.info("Attempt %d: uploading %s", attempt, file.name)

        task = loop.create_task(
            self._run_attempt(attempt, file), name=f"upload-attempt-{attempt}"
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_attempt_done, attempt))
        return task

    async def _run_attempt(self, attempt: int, file: SelectedFile) -> UploadState:
        def _on_progress(sent: int, total: int) -> None:
            self._record_progress(attempt, sent, total)

        try:
            response = await self._client.send(file, on_progress=_on_progress)
        except httpx.DecodingError as e:
            logger.error("Parse error: %s", e)
            outcome: UploadState = Failed(ParseError())
        except (httpx.TransportError, httpx.InvalidURL, OSError) as e:
            logger.error("Network error: %s", e)
            outcome = Failed(NetworkError(str(e) or type(e).__name__))
        else:
            outcome = interpret_response(response.status_code, response.content)
        return self._settle(attempt, outcome)

    def _on_attempt_done(self, attempt: int, task: asyncio.Task[UploadState]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.error("Upload aborted (attempt %d)", attempt)
            self._settle(attempt, Failed(Aborted()))
            return
        exc = task.exception()
        if exc is None:
            return
        # The attempt died before settling; the request never got a verdict.
        if attempt == self._sequence and isinstance(self._state, InProgress):
            logger.error("Upload attempt %d crashed: %r", attempt, exc)
            self._settle(attempt, Failed(NetworkError(str(exc) or type(exc).__name__)))

    def _record_progress(self, attempt: int, sent: int, total: int) -> None:
        if attempt != self._sequence:
            return
        current = self._state
        if not isinstance(current, InProgress):
            return
        percent = max(current.percent, percent_of(sent, total))
        self._transition("advance", InProgress(percent, attempt))

    def _settle(self, attempt: int, outcome: UploadState) -> UploadState:
        if attempt != self._sequence:
            logger.info(
                "Discarding outcome of stale attempt %d (current is %d)",
                attempt,
                self._sequence,
            )
            return Failed(Aborted())

        if isinstance(outcome, Succeeded):
            logger.info("Attempt %d succeeded: %s", attempt, outcome.file_path)
            self._transition("succeed", outcome)
        else:
            if isinstance(outcome, Failed):
                logger.error("Upload error: %s", outcome.cause.message)
            self._transition("fail", outcome)
        return outcome

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def _transition(self, event: str, new_state: UploadState) -> None:
        try:
            self._fsm.send(event)
        except TransitionNotAllowed as e:
            raise IllegalTransitionError(
                f"{event} not allowed from {self._state.phase.value}"
            ) from e
        self._state = new_state
        logger.debug("State -> %s", new_state)
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("State listener %r failed", listener)
