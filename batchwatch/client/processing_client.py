import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from batchwatch.client.client_config import ClientConfig
from batchwatch.exceptions.base_exceptions import NotConnected
from batchwatch.exceptions.upload_exceptions import (
    EmptyBatch,
    SubmissionError,
    TransientPollError,
)
from batchwatch.model.upload_progress import SessionHandle, UploadFile, UploadProgress
from batchwatch.tools.urls import censor_credentials, join_url

_log = logging.getLogger(__name__)


class ProcessingClient:
    """
    Talks to the two endpoints of a batch processing server:

    - The submission endpoint, which accepts a batch of files and returns a session ID;
    - The progress endpoint, which returns the state of a session.

    Use it as an async context manager, or call `connect()` and `close()` yourself.
    """

    config: ClientConfig

    _http: Optional[httpx.AsyncClient]

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config

        self._transport = transport
        self._http = None

    @property
    def submit_url(self) -> str:
        return join_url(self.config.base_url, self.config.process_path)

    def progress_url(self, session_id: str) -> str:
        path = self.config.progress_path.format(session_id=quote(session_id, safe=""))
        return join_url(self.submit_url, path)

    async def connect(self) -> None:
        if self._http is not None:
            return

        self.config.ensure_valid()

        headers = {"Accept": "application/json"}

        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        self._http = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(self.config.request_timeout),
            verify=self.config.verify_ssl,
            transport=self._transport,
        )

        _log.debug(
            "Connected to processing server %s", censor_credentials(self.config.base_url)
        )

    async def close(self) -> None:
        if self._http is None:
            return

        http, self._http = self._http, None
        await http.aclose()

        _log.debug("Closed connection to processing server")

    async def __aenter__(self) -> "ProcessingClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any, **kwargs: Any) -> None:
        await self.close()

    async def submit(self, files: Sequence[UploadFile]) -> SessionHandle:
        """
        Submit a batch of files for processing.

        Raises `EmptyBatch` if there are no files, before sending anything.
        Raises `SubmissionError` if the request fails or the server rejects it.
        """
        if not files:
            raise EmptyBatch()

        http = self._get_http()

        multipart: List[Tuple[str, Tuple[str, bytes, str]]] = [
            (self.config.files_field, (f.file_name, f.content, f.content_type))
            for f in files
        ]

        url = self.submit_url

        _log.debug("Submitting %r files to %s", len(files), censor_credentials(url))

        try:
            response = await http.post(url, files=multipart)
        except httpx.TimeoutException as exc:
            raise SubmissionError("Timed out submitting files") from exc
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Could not submit files: {exc}") from exc

        if response.is_error:
            raise SubmissionError(
                _error_message(response) or "Upload failed",
                status_code=response.status_code,
            )

        try:
            handle = SessionHandle.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise SubmissionError(
                "Server returned an invalid submission response",
                status_code=response.status_code,
            ) from exc

        _log.info(
            "Submitted %r files, got session id=%r", len(files), handle.session_id
        )

        return handle

    async def fetch_progress(self, session_id: str) -> UploadProgress:
        """
        Get the current progress of a session.

        Raises `TransientPollError` if the request fails, the server returns
        an error, or the response is not a valid progress object.
        """
        http = self._get_http()

        try:
            response = await http.get(self.progress_url(session_id))
        except httpx.TimeoutException as exc:
            raise TransientPollError(session_id, "timed out") from exc
        except httpx.HTTPError as exc:
            raise TransientPollError(session_id, str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise TransientPollError(
                session_id,
                _error_message(response) or response.reason_phrase,
                status_code=response.status_code,
            )

        try:
            return UploadProgress.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransientPollError(
                session_id, "invalid progress response"
            ) from exc

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise NotConnected()

        return self._http

    def __repr__(self) -> str:
        return f"ProcessingClient[{censor_credentials(self.config.base_url)}]"


def _error_message(response: httpx.Response) -> Optional[str]:
    """Get the optional `message` field out of an error response."""
    try:
        body: Dict[str, Any] = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    message = body.get("message")

    # NestJS-style validation errors carry a list of messages.
    if isinstance(message, list):
        return "; ".join(str(m) for m in message)

    if message is None:
        return None

    return str(message)
