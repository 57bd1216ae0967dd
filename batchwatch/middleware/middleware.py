from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from batchwatch.model.upload_progress import (
        SessionHandle,
        UploadFile,
        UploadProgress,
    )


class UploadMiddleware:
    """
    Defines middleware that can hook into different parts of an upload's lifecycle.

    Errors raised from these methods are logged, and otherwise ignored.
    Hooks may cancel the current upload, or start a new one.
    """

    async def on_upload_submitting(self, files: Sequence["UploadFile"]) -> None:
        """
        Called when a batch of files is about to be submitted.
        """

    async def on_upload_submitted(self, handle: "SessionHandle") -> None:
        """
        Called when the server accepted a batch of files, before polling starts.

        For example, you can use this to store the session ID somewhere.
        """

    async def on_progress(self, progress: "UploadProgress") -> None:
        """
        Called every time a new progress snapshot is applied.

        You can use this, for example, to render the progress.
        """

    async def on_upload_completed(self, progress: "UploadProgress") -> None:
        """
        Called once, when the server reports it's no longer processing the batch.
        """

    async def on_upload_failed(self, error: BaseException) -> None:
        """
        Called when the batch could not be submitted, or polling gave up.
        """
