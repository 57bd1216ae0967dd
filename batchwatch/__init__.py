from .client.client_config import ClientConfig
from .client.processing_client import ProcessingClient
from .controller.upload_controller import UploadController
from .middleware.middleware import UploadMiddleware
from .model.progress_summary import ProgressSummary, summarize
from .model.upload_progress import (
    FileState,
    FileStatus,
    SessionHandle,
    UploadFile,
    UploadProgress,
)
from .model.upload_state import UploadState
from .poller.poller import PollHandle, Poller

__all__ = [
    "ClientConfig",
    "ProcessingClient",
    "UploadController",
    "UploadMiddleware",
    "ProgressSummary",
    "summarize",
    "FileState",
    "FileStatus",
    "SessionHandle",
    "UploadFile",
    "UploadProgress",
    "UploadState",
    "Poller",
    "PollHandle",
]
