from typing import Optional

from pydantic import BaseModel, Field

from batchwatch.exceptions.base_exceptions import ImproperlyConfigured


class ClientConfig(BaseModel):
    """
    Configuration for talking to a batch processing server.
    """

    # Root URL of the server's API.
    base_url: str = "http://localhost:5350/"

    # Path, relative to `base_url`, where batches are submitted.
    process_path: str = "api/process"

    # Path, relative to `process_path`, where the progress of a session
    # can be queried. Must contain a `{session_id}` placeholder.
    progress_path: str = "progress/{session_id}"

    # Name of the multipart form field that holds each file.
    files_field: str = "files"

    # Bearer token sent on every request, if set.
    token: Optional[str] = None

    # Time, in seconds, between progress queries. The first query only
    # happens after this much time has passed since the batch was accepted.
    poll_interval: float = Field(default=1.0, gt=0)

    # Maximum number of progress queries for a single session.
    # Unbounded by default; polling only stops once the server says so,
    # or the upload is cancelled.
    max_polls: Optional[int] = Field(default=None, ge=1)

    # Timeout, in seconds, for each HTTP request.
    request_timeout: float = 30

    verify_ssl: bool = True

    @property
    def is_valid(self) -> bool:
        return "{session_id}" in self.progress_path

    def ensure_valid(self) -> None:
        if not self.is_valid:
            raise ImproperlyConfigured(
                f"'progress_path' must contain a '{{session_id}}' placeholder, got {self.progress_path!r}"
            )

    @classmethod
    def from_file(cls, file_path: str) -> "ClientConfig":
        with open(file_path, "r", encoding="utf-8") as config_file:
            return cls.model_validate_json(config_file.read())
