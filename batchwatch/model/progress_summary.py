from typing import List, Optional

from pydantic import BaseModel, Field

from .upload_progress import FileState, FileStatus, UploadProgress


class ProgressSummary(BaseModel):
    """Statistics derived from an `UploadProgress` snapshot."""

    success_count: int = 0
    error_count: int = 0
    pending_count: int = 0

    # 0 to 100.
    percentage: float = 0.0

    # The files that failed, in the order the server reported them.
    failed_files: List[FileStatus] = Field(default_factory=list)


def summarize(progress: UploadProgress) -> ProgressSummary:
    """
    Summarize a progress snapshot.

    This has no side effects, so calling it repeatedly on the same snapshot
    always gives the same summary.
    """
    success_count = 0
    pending_count = 0
    failed_files = []

    for file_status in progress.files:
        if file_status.status == FileState.SUCCESS:
            success_count += 1
        elif file_status.status == FileState.ERROR:
            failed_files.append(file_status)
        else:
            pending_count += 1

    return ProgressSummary(
        success_count=success_count,
        error_count=len(failed_files),
        pending_count=pending_count,
        percentage=completion_percentage(progress),
        failed_files=failed_files,
    )


def completion_percentage(progress: Optional[UploadProgress]) -> float:
    """`processed_files / total_files * 100`, or 0 if there are no files."""
    if progress is None or progress.total_files == 0:
        return 0.0

    return progress.processed_files / progress.total_files * 100
