from dataclasses import dataclass
from typing import Union

from batchwatch.client.processing_client import ProcessingClient
from batchwatch.exceptions.upload_exceptions import TransientPollError
from batchwatch.model.upload_progress import UploadProgress


@dataclass(frozen=True)
class PollSuccess:
    """A progress query that returned a (complete) snapshot."""

    sequence: int
    progress: UploadProgress


@dataclass(frozen=True)
class PollFailure:
    """A progress query that failed. The polling loop recovers from these."""

    sequence: int
    error: TransientPollError


PollResult = Union[PollSuccess, PollFailure]


async def poll_once(
    client: ProcessingClient, session_id: str, *, sequence: int
) -> PollResult:
    """
    Query the progress of a session, once.

    Failures are returned, not raised.
    """
    try:
        progress = await client.fetch_progress(session_id)
    except TransientPollError as exc:
        return PollFailure(sequence=sequence, error=exc)

    if progress.session_id != session_id:
        return PollFailure(
            sequence=sequence,
            error=TransientPollError(
                session_id, f"got progress of session id={progress.session_id!r}"
            ),
        )

    return PollSuccess(sequence=sequence, progress=progress)
