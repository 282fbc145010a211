"""Batch upload with pre-flight validation and per-file outcomes.

Files are checked locally first; the ones that fail never reach the
network and never block the rest of the batch. Valid files are uploaded
one at a time, so at most one transfer is in flight and every failure is
attributable to exactly one file. A failed upload is recorded and the
queue moves on.
"""

import dataclasses
import logging
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import Settings, settings as default_settings
from .exceptions import (
    DocTreeError,
    FileNotReadableError,
    FileTooLargeError,
    RemoteError,
    UnsupportedFileTypeError,
    ValidationError,
)
from .schemas import Document, EntityType, UploadRequested
from .store import RemoteStore

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class UploadFile:
    """A file selected for upload.

    ``content`` is either the raw bytes or a path read on demand, so a
    file rejected for its size is never loaded into memory.
    """

    name: str
    size: int
    mime_type: Optional[str] = None
    content: Union[bytes, Path] = b""

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: Optional[str] = None) -> "UploadFile":
        return cls(name=name, size=len(data), mime_type=mime_type or _guess_type(name), content=data)

    @classmethod
    def from_path(cls, path: Union[str, Path], mime_type: Optional[str] = None) -> "UploadFile":
        """Describe a local file. A path that cannot be stat'ed gets size 0
        and is rejected later by ``UploadQueue.validate``."""
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return cls(
            name=path.name,
            size=size,
            mime_type=mime_type or _guess_type(path.name),
            content=path,
        )

    def read(self) -> bytes:
        if isinstance(self.content, Path):
            return self.content.read_bytes()
        return self.content


def _guess_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


class UploadStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"      # attempted, the store refused or the transfer broke
    REJECTED = "rejected"  # failed validation, never attempted


@dataclasses.dataclass(frozen=True)
class UploadOutcome:
    file_name: str
    status: UploadStatus
    document: Optional[Document] = None
    error: Optional[DocTreeError] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.message if self.error else None

    @property
    def attempted(self) -> bool:
        return self.status != UploadStatus.REJECTED


@dataclasses.dataclass(frozen=True)
class UploadReport:
    """Outcomes of one batch, in the order the files were given."""

    outcomes: Tuple[UploadOutcome, ...]

    def __iter__(self):
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def _with(self, status: UploadStatus) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def succeeded(self) -> List[UploadOutcome]:
        return self._with(UploadStatus.SUCCEEDED)

    @property
    def failed(self) -> List[UploadOutcome]:
        return self._with(UploadStatus.FAILED)

    @property
    def rejected(self) -> List[UploadOutcome]:
        return self._with(UploadStatus.REJECTED)

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if o.attempted)

    @property
    def ok(self) -> bool:
        return all(o.status == UploadStatus.SUCCEEDED for o in self.outcomes)


class UploadQueue:
    """Validates and uploads files into one entity's folders."""

    def __init__(
        self,
        store: RemoteStore,
        entity_type: EntityType,
        entity_id: int,
        max_file_size: Optional[int] = None,
        allowed_mime_types: Optional[Iterable[str]] = None,
        config: Optional[Settings] = None,
    ) -> None:
        config = config or default_settings
        self.store = store
        self.entity_type = EntityType(entity_type)
        self.entity_id = entity_id
        self.max_file_size = max_file_size if max_file_size is not None else config.max_upload_bytes
        if allowed_mime_types is None:
            allowed_mime_types = config.get_allowed_mime_types()
        self.allowed_mime_types = frozenset(t.lower() for t in allowed_mime_types)

    def validate(self, file: UploadFile) -> Optional[ValidationError]:
        """Return why *file* cannot be uploaded, or None if it can."""
        if isinstance(file.content, Path) and not file.content.is_file():
            return FileNotReadableError(file.name, "no such file")
        if file.size > self.max_file_size:
            return FileTooLargeError(file.name, file.size, self.max_file_size)
        if self.allowed_mime_types:
            mime = (file.mime_type or "").lower()
            if mime not in self.allowed_mime_types:
                return UnsupportedFileTypeError(file.name, file.mime_type)
        return None

    async def upload(
        self,
        files: Sequence[UploadFile],
        target_folder_id: Optional[int],
        tags: str = "",
    ) -> UploadReport:
        """Upload *files* into *target_folder_id* (None = unfiled), one at a time."""
        outcomes: List[Optional[UploadOutcome]] = [None] * len(files)
        pending: List[Tuple[int, UploadFile]] = []

        for position, file in enumerate(files):
            error = self.validate(file)
            if error is not None:
                logger.warning("Upload rejected: %s", error.message)
                outcomes[position] = UploadOutcome(file.name, UploadStatus.REJECTED, error=error)
            else:
                pending.append((position, file))

        for position, file in pending:
            try:
                document = await self.store.upload_document(
                    self.entity_type, self.entity_id, file, tags, target_folder_id,
                )
            except RemoteError as exc:
                logger.error("Upload of %s failed: %s", file.name, exc.message)
                outcomes[position] = UploadOutcome(file.name, UploadStatus.FAILED, error=exc)
            except OSError as exc:
                # The file changed or vanished between validation and transfer.
                error = FileNotReadableError(file.name, exc.strerror or str(exc))
                logger.error("Upload of %s failed: %s", file.name, error.message)
                outcomes[position] = UploadOutcome(file.name, UploadStatus.FAILED, error=error)
            else:
                outcomes[position] = UploadOutcome(file.name, UploadStatus.SUCCEEDED, document=document)

        report = UploadReport(tuple(o for o in outcomes if o is not None))
        logger.info(
            "Upload batch finished: %d succeeded, %d failed, %d rejected",
            len(report.succeeded), len(report.failed), len(report.rejected),
            extra={"folder_id": target_folder_id},
        )
        return report

    async def handle(self, request: UploadRequested) -> UploadReport:
        return await self.upload(request.files, request.target_folder_id, request.tags)
