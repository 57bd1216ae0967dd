"""
Reporting of upload progress, for humans (text) or other programs (JSON).
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, TextIO, Tuple

import tabulate

from batchwatch.middleware.middleware import UploadMiddleware
from batchwatch.model.progress_summary import summarize
from batchwatch.model.upload_progress import UploadProgress


class OutputFormat(str, Enum):
    """Progress report output format"""

    TEXT = "text"
    JSON = "json"


def render_progress(
    progress: Optional[UploadProgress],
    is_uploading: bool,
    *,
    format: OutputFormat = OutputFormat.TEXT,
) -> Optional[str]:
    """
    Render a progress snapshot.

    Returns None if there's nothing to show, i.e., there's no progress,
    or nothing is being uploaded.
    """
    if progress is None or not is_uploading:
        return None

    if format == OutputFormat.JSON:
        return json.dumps(progress_report(progress), ensure_ascii=False)

    summary = summarize(progress)

    table_data: List[Tuple[str, Any]] = [
        ("Session", progress.session_id),
        ("Files", f"{progress.processed_files}/{progress.total_files}"),
        ("Progress", f"{summary.percentage:.1f}%"),
        ("Succeeded", summary.success_count),
        ("Failed", summary.error_count),
        ("Batch", f"{progress.current_batch} of {progress.total_batches}"),
    ]

    text = tabulate.tabulate(table_data)

    if summary.failed_files:
        failed_table = [(f.file_name, f.error or "") for f in summary.failed_files]
        text += "\n\nFailed files:\n" + tabulate.tabulate(
            failed_table, headers=("File", "Error")
        )

    return text


def progress_report(progress: UploadProgress) -> Dict[str, Any]:
    """The data shown by `render_progress`, as a JSON-compatible dict."""
    summary = summarize(progress)

    return {
        "sessionId": progress.session_id,
        "processedFiles": progress.processed_files,
        "totalFiles": progress.total_files,
        "percentage": summary.percentage,
        "successCount": summary.success_count,
        "errorCount": summary.error_count,
        "currentBatch": progress.current_batch,
        "totalBatches": progress.total_batches,
        "isProcessing": progress.is_processing,
        "failedFiles": [
            {"fileName": f.file_name, "error": f.error} for f in summary.failed_files
        ],
    }


class ConsoleProgressMiddleware(UploadMiddleware):
    """
    Writes a progress report to a stream every time the progress changes.
    """

    def __init__(
        self, stream: TextIO, *, format: OutputFormat = OutputFormat.TEXT
    ) -> None:
        self._stream = stream
        self._format = format

    async def on_progress(self, progress: UploadProgress) -> None:
        # Snapshots are rendered even if they're the last, so that
        # the final state is always shown.
        self._write(render_progress(progress, True, format=self._format))

    async def on_upload_failed(self, error: BaseException) -> None:
        if self._format == OutputFormat.JSON:
            self._write(json.dumps({"error": str(error)}, ensure_ascii=False))
        else:
            self._write(f"Upload failed: {error}")

    def _write(self, text: Optional[str]) -> None:
        if text is None:
            return

        print(text, file=self._stream, flush=True)

        if self._format == OutputFormat.TEXT:
            print(file=self._stream, flush=True)
