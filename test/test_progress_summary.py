from batchwatch import FileState, FileStatus, UploadProgress, summarize
from batchwatch.model.progress_summary import completion_percentage


def _progress(**kwargs) -> UploadProgress:
    data = dict(session_id="s1", total_files=4, processed_files=3, is_processing=True)
    data.update(kwargs)
    return UploadProgress(**data)


def test_summarize_counts_files_by_status():
    progress = _progress(
        files=[
            FileStatus(file_name="a.pdf", status=FileState.SUCCESS),
            FileStatus(file_name="b.pdf", status=FileState.ERROR, error="parse failed"),
            FileStatus(file_name="c.pdf", status=FileState.SUCCESS),
            FileStatus(file_name="d.pdf", status=FileState.PENDING),
        ]
    )

    summary = summarize(progress)

    assert summary.success_count == 2
    assert summary.error_count == 1
    assert summary.pending_count == 1
    assert summary.percentage == 75.0
    assert [f.file_name for f in summary.failed_files] == ["b.pdf"]
    assert summary.failed_files[0].error == "parse failed"


def test_percentage_is_zero_when_there_are_no_files():
    progress = _progress(total_files=0, processed_files=0)

    assert summarize(progress).percentage == 0.0
    assert completion_percentage(progress) == 0.0
    assert completion_percentage(None) == 0.0


def test_summarize_is_idempotent():
    progress = _progress(
        files=[
            FileStatus(file_name="a.pdf", status=FileState.ERROR, error="boom"),
            FileStatus(file_name="b.pdf", status=FileState.SUCCESS),
        ]
    )

    assert summarize(progress) == summarize(progress)
    assert len(progress.files) == 2


def test_failed_files_keep_server_order():
    progress = _progress(
        files=[
            FileStatus(file_name="z.pdf", status=FileState.ERROR),
            FileStatus(file_name="a.pdf", status=FileState.SUCCESS),
            FileStatus(file_name="m.pdf", status=FileState.ERROR),
        ]
    )

    assert [f.file_name for f in summarize(progress).failed_files] == ["z.pdf", "m.pdf"]


def test_progress_is_parsed_from_the_wire_format():
    progress = UploadProgress.model_validate(
        {
            "sessionId": "s1",
            "totalFiles": 3,
            "processedFiles": 3,
            "currentBatch": 2,
            "totalBatches": 2,
            "isProcessing": False,
            "files": [
                {"fileName": "a.pdf", "status": "success"},
                {"fileName": "b.pdf", "status": "error", "error": "parse failed"},
            ],
        }
    )

    assert progress.done
    assert progress.current_batch == 2
    assert progress.files[1].status == FileState.ERROR
    assert progress.files[1].failed

    dumped = progress.model_dump(by_alias=True)

    assert dumped["sessionId"] == "s1"
    assert dumped["isProcessing"] is False
    assert dumped["files"][0]["fileName"] == "a.pdf"
