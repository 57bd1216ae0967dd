import asyncio
import logging
from functools import partial
from typing import Any, List, Optional, Sequence

from batchwatch.client.client_config import ClientConfig
from batchwatch.client.processing_client import ProcessingClient
from batchwatch.exceptions.upload_exceptions import (
    EmptyBatch,
    PollingGaveUp,
    SubmissionError,
)
from batchwatch.middleware.middleware import UploadMiddleware
from batchwatch.model.progress_summary import ProgressSummary, summarize
from batchwatch.model.upload_progress import SessionHandle, UploadFile, UploadProgress
from batchwatch.model.upload_state import ACTIVE_STATES, TERMINAL_STATES, UploadState
from batchwatch.poller.poll_result import PollSuccess
from batchwatch.poller.poller import PollHandle, Poller

_log = logging.getLogger(__name__)


class UploadController:
    """
    Uploads batches of files and tracks their processing.

    You can use these objects to:

    - Submit a batch of files (`upload`) and have its progress polled in the background
    - Stop tracking it (`cancel`)
    - Read the current `progress`, `is_uploading`, `error` and `state`

    Each controller tracks one upload at a time. Starting a new upload stops
    tracking the previous one.

    Cancelling only stops this client from polling: the server is not told
    about it, and will keep processing the batch.

    Use it as an async context manager (or call `close()`), so that the polling
    loop is always stopped.
    """

    # The last progress snapshot received from the server.
    progress: Optional[UploadProgress]

    # True from the moment `upload()` is called until the upload completes,
    # fails, or is cancelled.
    is_uploading: bool

    # Message describing why the last upload failed, if it did.
    error: Optional[str]

    state: UploadState

    # ID of the session being (or last) tracked.
    session_id: Optional[str]

    client: ProcessingClient

    config: ClientConfig

    _poll_handle: Optional[PollHandle]

    _middleware: List[UploadMiddleware]

    def __init__(
        self,
        client: ProcessingClient,
        *,
        config: Optional[ClientConfig] = None,
        middleware: Optional[Sequence[UploadMiddleware]] = None,
    ) -> None:
        self.client = client
        self.config = config or client.config

        self.progress = None
        self.is_uploading = False
        self.error = None
        self.state = UploadState.IDLE
        self.session_id = None

        self._poller = Poller(
            client,
            interval=self.config.poll_interval,
            max_polls=self.config.max_polls,
        )
        self._poll_handle = None

        self._middleware = list(middleware or [])

        # Incremented on every upload() call. Callbacks from previous
        # attempts see a different value and do nothing.
        self._attempt = 0

        # Set by cancel(), checked before applying anything.
        self._cancelled = False

        self._last_sequence = 0

        # Set whenever the current attempt reaches a terminal state.
        self._finished = asyncio.Event()

    def add_middleware(self, mw_inst: UploadMiddleware) -> None:
        """
        Adds middleware to this controller.

        Middleware is called in the order in which it was added.
        """
        if mw_inst in self._middleware:
            return

        self._middleware.append(mw_inst)

    @property
    def done(self) -> bool:
        """True if the last upload completed, failed, or was cancelled."""
        return self.state in TERMINAL_STATES

    @property
    def summary(self) -> Optional[ProgressSummary]:
        """Statistics of the current progress snapshot, if there is one."""
        if self.progress is None:
            return None

        return summarize(self.progress)

    async def upload(self, files: Sequence[UploadFile]) -> None:
        """
        Submit a batch of files, and start polling its progress in the background.

        Returns as soon as the batch is submitted. Call `wait()` to wait for
        the upload to finish.

        If the batch cannot be submitted, `state` becomes FAILED and `error`
        says why; nothing is raised. Any other error raised while submitting
        (e.g., the client is not connected) also marks the upload as FAILED,
        and is then re-raised.

        Raises `EmptyBatch` if there are no files.
        """
        files = list(files)

        if not files:
            raise EmptyBatch()

        await self._retire_poller()

        self._attempt += 1
        attempt = self._attempt

        self._cancelled = False
        self._last_sequence = 0

        self.error = None
        self.progress = None
        self.session_id = None
        self.state = UploadState.UPLOADING
        self.is_uploading = True
        self._finished.clear()

        await self._on_upload_submitting(files)

        if self._is_stale(attempt):
            return

        try:
            handle = await self.client.submit(files)
        except SubmissionError as exc:
            if self._is_stale(attempt):
                _log.debug("Ignoring submission error of a stale upload", exc_info=exc)
                return

            _log.error("Could not submit %r files: %s", len(files), exc)

            await self._fail(exc)
            return
        except asyncio.CancelledError:
            if not self._is_stale(attempt):
                self.cancel()

            raise
        except Exception as exc:  # pylint: disable=broad-except
            if not self._is_stale(attempt):
                _log.error("Could not submit %r files", len(files), exc_info=exc)
                await self._fail(exc)

            raise

        if self._is_stale(attempt):
            _log.info(
                "Discarding session id=%r, upload was cancelled or superseded",
                handle.session_id,
            )
            return

        self.session_id = handle.session_id

        await self._on_upload_submitted(handle)

        if self._is_stale(attempt):
            return

        self._poll_handle = self._poller.start(
            handle.session_id,
            on_progress=partial(self._apply_progress, attempt),
            on_complete=partial(self._complete, attempt),
            on_give_up=partial(self._give_up, attempt),
        )
        self._poll_handle.add_done_callback(partial(self._on_poll_stopped, attempt))

    def cancel(self) -> None:
        """
        Stop tracking the current upload.

        No progress updates are applied after this returns, even if a query
        was in flight. Safe to call more than once, or when nothing is being uploaded.
        """
        self._cancelled = True

        if self._poll_handle is not None:
            self._poll_handle.cancel()

        if self.state in ACTIVE_STATES:
            _log.info(
                "Cancelled upload of session id=%r. The server may still be processing it",
                self.session_id,
            )
            self.state = UploadState.CANCELLED

        self.is_uploading = False
        self._finished.set()

    async def wait(self, *, timeout: Optional[float] = None) -> UploadState:
        """
        Wait for the current upload to complete, fail, or be cancelled.

        Raises `asyncio.TimeoutError` if a timeout is set and exceeded.
        """
        if self.state not in ACTIVE_STATES:
            return self.state

        if timeout is not None:
            await asyncio.wait_for(self._finished.wait(), timeout)
        else:
            await self._finished.wait()

        return self.state

    async def close(self) -> None:
        """Stop tracking any upload and release the polling loop."""
        if self.state in ACTIVE_STATES:
            self.cancel()

        await self._retire_poller()

    async def __aenter__(self) -> "UploadController":
        return self

    async def __aexit__(self, *args: Any, **kwargs: Any) -> None:
        await self.close()

    def _is_stale(self, attempt: int) -> bool:
        return self._cancelled or attempt != self._attempt

    async def _retire_poller(self) -> None:
        handle, self._poll_handle = self._poll_handle, None

        if handle is None:
            return

        handle.cancel()
        await handle.wait()

    async def _apply_progress(self, attempt: int, result: PollSuccess) -> None:
        if self._is_stale(attempt):
            return

        if result.sequence <= self._last_sequence:
            _log.debug(
                "Discarding out-of-order poll #%r (already applied #%r)",
                result.sequence,
                self._last_sequence,
            )
            return

        self._last_sequence = result.sequence
        self.progress = result.progress

        await self._on_progress(result.progress)

    async def _complete(self, attempt: int, progress: UploadProgress) -> None:
        if self._is_stale(attempt):
            return

        self.state = UploadState.COMPLETED
        self.is_uploading = False
        self._finished.set()

        summary = summarize(progress)

        _log.info(
            "Upload of session id=%r completed: %r succeeded, %r failed",
            progress.session_id,
            summary.success_count,
            summary.error_count,
        )

        await self._on_upload_completed(progress)

    async def _give_up(self, attempt: int, exc: PollingGaveUp) -> None:
        if self._is_stale(attempt):
            return

        await self._fail(exc)

    def _on_poll_stopped(self, attempt: int, handle: PollHandle) -> None:
        exc = handle.exception()

        if exc is None or self._is_stale(attempt) or self.state not in ACTIVE_STATES:
            return

        self._mark_failed(exc)

    async def _fail(self, exc: BaseException) -> None:
        self._mark_failed(exc)
        await self._on_upload_failed(exc)

    def _mark_failed(self, exc: BaseException) -> None:
        self.error = str(exc) or "Upload failed"
        self.state = UploadState.FAILED
        self.is_uploading = False
        self._finished.set()

    async def _on_upload_submitting(self, files: Sequence[UploadFile]) -> None:
        for mw_inst in self._middleware:
            try:
                await mw_inst.on_upload_submitting(files)
            except Exception as mw_exc:  # pylint: disable=broad-except
                _log.error(
                    "Middleware %r failed on 'on_upload_submitting'",
                    mw_inst,
                    exc_info=mw_exc,
                )

    async def _on_upload_submitted(self, handle: SessionHandle) -> None:
        for mw_inst in self._middleware:
            try:
                await mw_inst.on_upload_submitted(handle)
            except Exception as mw_exc:  # pylint: disable=broad-except
                _log.error(
                    "Middleware %r failed on 'on_upload_submitted'",
                    mw_inst,
                    exc_info=mw_exc,
                )

    async def _on_progress(self, progress: UploadProgress) -> None:
        for mw_inst in self._middleware:
            try:
                await mw_inst.on_progress(progress)
            except Exception as mw_exc:  # pylint: disable=broad-except
                _log.error(
                    "Middleware %r failed on 'on_progress'", mw_inst, exc_info=mw_exc
                )

    async def _on_upload_completed(self, progress: UploadProgress) -> None:
        for mw_inst in self._middleware:
            try:
                await mw_inst.on_upload_completed(progress)
            except Exception as mw_exc:  # pylint: disable=broad-except
                _log.error(
                    "Middleware %r failed on 'on_upload_completed'",
                    mw_inst,
                    exc_info=mw_exc,
                )

    async def _on_upload_failed(self, exc: BaseException) -> None:
        for mw_inst in self._middleware:
            try:
                await mw_inst.on_upload_failed(exc)
            except Exception as mw_exc:  # pylint: disable=broad-except
                _log.error(
                    "Middleware %r failed on 'on_upload_failed'",
                    mw_inst,
                    exc_info=mw_exc,
                )

    def __repr__(self) -> str:
        return f"UploadController[state={self.state!r}, session_id={self.session_id!r}]"
