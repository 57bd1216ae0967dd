import io
import json

import pytest

from batchwatch import FileState, FileStatus, UploadProgress
from batchwatch.display.progress_report import (
    ConsoleProgressMiddleware,
    OutputFormat,
    render_progress,
)
from batchwatch.exceptions.upload_exceptions import SubmissionError


@pytest.fixture
def progress() -> UploadProgress:
    return UploadProgress(
        session_id="s1",
        total_files=4,
        processed_files=2,
        current_batch=1,
        total_batches=2,
        is_processing=True,
        files=[
            FileStatus(file_name="a.pdf", status=FileState.SUCCESS),
            FileStatus(file_name="b.pdf", status=FileState.ERROR, error="parse failed"),
        ],
    )


def test_nothing_is_rendered_without_an_upload(progress: UploadProgress):
    assert render_progress(None, True) is None
    assert render_progress(progress, False) is None


def test_text_report(progress: UploadProgress):
    text = render_progress(progress, True)

    assert text is not None
    assert "2/4" in text
    assert "50.0%" in text
    assert "1 of 2" in text
    assert "Failed files" in text
    assert "b.pdf" in text
    assert "parse failed" in text


def test_text_report_without_failures(progress: UploadProgress):
    progress = progress.model_copy(update={"files": progress.files[:1]})

    text = render_progress(progress, True)

    assert text is not None
    assert "Failed files" not in text


def test_json_report(progress: UploadProgress):
    text = render_progress(progress, True, format=OutputFormat.JSON)

    assert text is not None

    report = json.loads(text)

    assert report["processedFiles"] == 2
    assert report["totalFiles"] == 4
    assert report["successCount"] == 1
    assert report["errorCount"] == 1
    assert report["currentBatch"] == 1
    assert report["totalBatches"] == 2
    assert report["failedFiles"] == [{"fileName": "b.pdf", "error": "parse failed"}]


@pytest.mark.asyncio
async def test_console_middleware_writes_reports(progress: UploadProgress):
    stream = io.StringIO()
    middleware = ConsoleProgressMiddleware(stream, format=OutputFormat.JSON)

    await middleware.on_progress(progress)
    await middleware.on_upload_failed(SubmissionError("Disk full", status_code=500))

    lines = stream.getvalue().splitlines()

    assert json.loads(lines[0])["sessionId"] == "s1"
    assert json.loads(lines[1]) == {"error": "Disk full (HTTP 500)"}
