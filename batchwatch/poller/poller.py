import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from batchwatch.client.processing_client import ProcessingClient
from batchwatch.exceptions.upload_exceptions import PollingGaveUp
from batchwatch.model.upload_progress import UploadProgress
from batchwatch.poller.poll_result import PollFailure, PollSuccess, poll_once

_log = logging.getLogger(__name__)


OnProgress = Callable[[PollSuccess], Awaitable[Any]]
OnComplete = Callable[[UploadProgress], Awaitable[Any]]
OnGiveUp = Callable[[PollingGaveUp], Awaitable[Any]]


class PollHandle:
    """
    Handle to a running polling loop for one session.

    Once `cancel()` returns, no further callbacks are made for the session,
    even if a progress query is in flight at the time.
    """

    session_id: str

    _task: "Optional[asyncio.Task[None]]"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id

        self._cancelled = False
        self._task = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        """True if the polling loop is no longer running."""
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """
        Stop polling. Safe to call more than once, and after the loop finished.

        When called from one of the loop's own callbacks, the task is left to
        finish the callback, and the loop stops right after it.
        """
        if self._cancelled:
            return

        self._cancelled = True

        if self._task is None or self._task.done() or self._in_own_task():
            return

        _log.debug("Cancelling polling of session id=%r", self.session_id)
        self._task.cancel()

    def _in_own_task(self) -> bool:
        try:
            return asyncio.current_task() is self._task
        except RuntimeError:
            # No running event loop.
            return False

    def add_done_callback(self, callback: Callable[["PollHandle"], Any]) -> None:
        """Call `callback` with this handle once the polling loop stops."""
        if self._task is None:
            raise RuntimeError("Polling loop was not started")

        self._task.add_done_callback(lambda _: callback(self))

    def exception(self) -> Optional[BaseException]:
        """The exception that stopped the loop, if any."""
        if self._task is None or not self._task.done() or self._task.cancelled():
            return None

        return self._task.exception()

    async def wait(self) -> None:
        """
        Wait for the polling loop to stop.

        Waiting on a cancelled loop returns as soon as its task is torn down.
        """
        if self._task is None or self._task is asyncio.current_task():
            return

        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    def __repr__(self) -> str:
        return f"PollHandle[session_id={self.session_id!r}, cancelled={self._cancelled!r}, done={self.done!r}]"


class Poller:
    """
    Polls the progress of a session at a fixed cadence until the server
    reports it as no longer processing.

    At most one progress query is in flight per loop. If a query takes longer
    than the interval, the ticks it overlapped are skipped, rather than being
    fired back-to-back once it returns.
    """

    def __init__(
        self,
        client: ProcessingClient,
        *,
        interval: float = 1.0,
        max_polls: Optional[int] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval!r}")

        self._client = client
        self.interval = interval
        self.max_polls = max_polls

    def start(
        self,
        session_id: str,
        *,
        on_progress: OnProgress,
        on_complete: OnComplete,
        on_give_up: Optional[OnGiveUp] = None,
    ) -> PollHandle:
        """
        Start polling a session, in the background.

        The first query is made one interval from now.

        `on_progress` is called with every successful query, and `on_complete`
        is called once, with the final snapshot, after which the loop stops.
        Failed queries are logged and retried on the next tick.
        """
        handle = PollHandle(session_id)

        handle._task = asyncio.create_task(
            self._run(handle, on_progress, on_complete, on_give_up),
            name=f"batchwatch-poll-{session_id}",
        )

        return handle

    async def _run(
        self,
        handle: PollHandle,
        on_progress: OnProgress,
        on_complete: OnComplete,
        on_give_up: Optional[OnGiveUp],
    ) -> None:
        session_id = handle.session_id
        loop = asyncio.get_running_loop()

        next_tick = loop.time() + self.interval
        polls = 0

        _log.debug(
            "Polling session id=%r every %.2fs", session_id, self.interval
        )

        try:
            while True:
                await asyncio.sleep(max(0.0, next_tick - loop.time()))

                if handle.cancelled:
                    return

                polls += 1

                result = await poll_once(self._client, session_id, sequence=polls)

                if handle.cancelled:
                    _log.debug(
                        "Discarding poll #%r of session id=%r, polling was cancelled",
                        result.sequence,
                        session_id,
                    )
                    return

                if isinstance(result, PollFailure):
                    _log.warning(
                        "Poll #%r failed, will keep polling: %s",
                        result.sequence,
                        result.error,
                        exc_info=result.error.__cause__,
                    )
                else:
                    await on_progress(result)

                    if result.progress.done:
                        if handle.cancelled:
                            return

                        _log.debug(
                            "Session id=%r done after %r polls", session_id, polls
                        )

                        await on_complete(result.progress)
                        return

                if self.max_polls is not None and polls >= self.max_polls:
                    _log.warning(
                        "Giving up on session id=%r after %r polls", session_id, polls
                    )

                    if on_give_up is not None and not handle.cancelled:
                        await on_give_up(PollingGaveUp(session_id, polls))

                    return

                next_tick = self._next_tick(next_tick, loop.time())
        except asyncio.CancelledError:
            _log.debug("Polling of session id=%r cancelled", session_id)
            raise
        except Exception as exc:  # pylint: disable=broad-except
            _log.error(
                "Polling of session id=%r stopped unexpectedly", session_id, exc_info=exc
            )
            raise

    def _next_tick(self, previous_tick: float, now: float) -> float:
        next_tick = previous_tick + self.interval

        if next_tick <= now:
            missed = int((now - next_tick) // self.interval) + 1

            _log.debug(
                "Poll took longer than the interval, skipping %r tick(s)", missed
            )

            next_tick += missed * self.interval

        return next_tick
