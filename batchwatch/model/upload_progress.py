import mimetypes
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileState(str, Enum):
    """
    States that a single file of a batch can be in, as reported by the server.
    """

    # The file was not processed yet.
    PENDING = "pending"

    # The file was processed.
    SUCCESS = "success"

    # The file could not be processed. See `FileStatus.error`.
    ERROR = "error"

    def __repr__(self) -> str:
        return f"{self.name!r}"


FINISHED_FILE_STATES = frozenset([FileState.SUCCESS, FileState.ERROR])


class _WireModel(BaseModel):
    # The processing endpoint speaks camelCase, we speak snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileStatus(_WireModel):
    """The server-reported status of one file of a batch."""

    file_name: str
    status: FileState = FileState.PENDING
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.status in FINISHED_FILE_STATES

    @property
    def failed(self) -> bool:
        return self.status == FileState.ERROR


class UploadProgress(_WireModel):
    """
    A snapshot of a batch job's state, as returned by the progress endpoint.

    Every snapshot is complete: a newer one replaces an older one as a whole,
    it is never merged into it.
    """

    session_id: str

    total_files: int = Field(default=0, ge=0)

    # May be 0 while the server is still initializing the session.
    processed_files: int = Field(default=0, ge=0)

    current_batch: int = Field(default=0, ge=0)
    total_batches: int = Field(default=0, ge=0)

    # The single authoritative signal for "keep polling".
    is_processing: bool

    # One entry per submitted file, in submission order. Entries are
    # accumulated, so not every file may be present until processing ends.
    files: List[FileStatus] = Field(default_factory=list)

    @property
    def done(self) -> bool:
        """True if the server is no longer processing this session."""
        return not self.is_processing

    def __repr__(self) -> str:
        return (
            f"UploadProgress[session_id={self.session_id!r}, "
            f"{self.processed_files}/{self.total_files}, "
            f"batch={self.current_batch}/{self.total_batches}, "
            f"is_processing={self.is_processing!r}]"
        )


class SessionHandle(_WireModel):
    """What the submission endpoint returns for an accepted batch."""

    # Servers may send along extra information, e.g. a message.
    model_config = ConfigDict(extra="allow")

    session_id: str


class UploadFile(BaseModel):
    """A file to be submitted as part of a batch."""

    file_name: str
    content: bytes
    content_type: str = "application/pdf"

    @classmethod
    def from_path(cls, path: Union[str, "os.PathLike[str]"]) -> "UploadFile":
        file_path = Path(path)

        content_type, _ = mimetypes.guess_type(file_path.name)

        return cls(
            file_name=file_path.name,
            content=file_path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    def __repr__(self) -> str:
        return f"UploadFile[{self.file_name!r}, {len(self.content)} bytes]"
