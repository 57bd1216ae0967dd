from typing import Optional

from batchwatch.exceptions.base_exceptions import BatchWatchError


class UploadError(BatchWatchError):
    pass


class EmptyBatch(UploadError, ValueError):
    """Raised when asked to upload a batch with no files in it."""

    def __str__(self) -> str:
        return "Cannot upload an empty batch of files"


class SubmissionError(UploadError):
    """
    Raised when a batch could not be submitted, either because the request
    failed to go through, or because the server rejected it.

    This is terminal for the upload attempt: no polling is started.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message

        return f"{self.message} (HTTP {self.status_code})"


class TransientPollError(UploadError):
    """
    A single progress query failed.

    These are never raised out of the polling loop; they're carried
    by a `PollFailure` and the loop keeps going.
    """

    def __init__(
        self,
        session_id: str,
        reason: str,
        *,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(session_id, reason, status_code)
        self.session_id = session_id
        self.reason = reason
        self.status_code = status_code

    def __str__(self) -> str:
        msg = f"Could not get progress of session id={self.session_id!r}: {self.reason}"

        if self.status_code is not None:
            msg += f" (HTTP {self.status_code})"

        return msg


class PollingGaveUp(UploadError):
    """
    Raised when a session was polled `max_polls` times without the server
    reporting it as done.
    """

    def __init__(self, session_id: str, polls: int) -> None:
        super().__init__(session_id, polls)
        self.session_id = session_id
        self.polls = polls

    def __str__(self) -> str:
        return f"Session id={self.session_id!r} was still processing after {self.polls!r} polls"
