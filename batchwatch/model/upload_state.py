from enum import Enum


class UploadState(str, Enum):
    """
    States that an upload, as seen by an UploadController, can be in.
    """

    # No upload was started yet.
    IDLE = "IDLE"

    # The files were (or are being) submitted, and the session is being polled.
    UPLOADING = "UPLOADING"

    # The server reported that it is no longer processing the session.
    COMPLETED = "COMPLETED"

    # The user stopped observing the session. Server-side processing
    # is not aborted.
    CANCELLED = "CANCELLED"

    # The files could not be submitted, or polling gave up.
    FAILED = "FAILED"

    def __repr__(self) -> str:
        return f"{self.name!r}"


ACTIVE_STATES = frozenset([UploadState.UPLOADING])

TERMINAL_STATES = frozenset(
    [UploadState.COMPLETED, UploadState.CANCELLED, UploadState.FAILED]
)
