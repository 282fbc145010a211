"""Custom exception hierarchy for doctree."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes surfaced to the UI layer."""

    # Validation errors (detected locally, before any network call)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    FILE_NOT_READABLE = "FILE_NOT_READABLE"
    SELF_MOVE = "SELF_MOVE"
    MOVE_INTO_DESCENDANT = "MOVE_INTO_DESCENDANT"

    # Tree errors
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    ROOT_FOLDER_NOT_FOUND = "ROOT_FOLDER_NOT_FOUND"
    INCONSISTENT_TREE = "INCONSISTENT_TREE"

    # Remote store errors
    REMOTE_ERROR = "REMOTE_ERROR"


class DocTreeError(Exception):
    """
    Base exception for all doctree errors.

    Provides structured errors with:
    - Human-readable message
    - Machine-readable error code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for display or JSON output."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(DocTreeError):
    """Pre-flight validation failed. Never reaches the remote store."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, error_code, details=details)


class FileTooLargeError(ValidationError):
    """File exceeds the configured upload size limit."""

    def __init__(self, file_name: str, size: int, limit: int):
        super().__init__(
            f'"{file_name}" exceeds {_format_limit(limit)}',
            error_code=ErrorCode.FILE_TOO_LARGE,
            details={"file_name": file_name, "size": size, "limit": limit},
        )
        self.file_name = file_name


class UnsupportedFileTypeError(ValidationError):
    """File MIME type is not in the configured allow-list."""

    def __init__(self, file_name: str, mime_type: Optional[str]):
        super().__init__(
            f'"{file_name}" has an unsupported format ({mime_type or "unknown"})',
            error_code=ErrorCode.UNSUPPORTED_FILE_TYPE,
            details={"file_name": file_name, "mime_type": mime_type},
        )
        self.file_name = file_name


class FileNotReadableError(ValidationError):
    """Local file is missing or cannot be read."""

    def __init__(self, file_name: str, reason: Optional[str] = None):
        super().__init__(
            f'"{file_name}" cannot be read' + (f" ({reason})" if reason else ""),
            error_code=ErrorCode.FILE_NOT_READABLE,
            details={"file_name": file_name},
        )
        self.file_name = file_name


class IllegalMoveError(ValidationError):
    """Reparenting would break the tree."""

    def __init__(self, message: str, error_code: ErrorCode, folder_id: int, destination_folder_id: Optional[int]):
        super().__init__(
            message,
            error_code=error_code,
            details={"folder_id": folder_id, "destination_folder_id": destination_folder_id},
        )
        self.folder_id = folder_id
        self.destination_folder_id = destination_folder_id


class SelfMoveError(IllegalMoveError):
    """Cannot move a folder into itself."""

    def __init__(self, folder_id: int):
        super().__init__(
            "Cannot move a folder into itself",
            ErrorCode.SELF_MOVE,
            folder_id,
            folder_id,
        )


class MoveIntoDescendantError(IllegalMoveError):
    """Destination lies inside the subtree of the folder being moved."""

    def __init__(self, folder_id: int, destination_folder_id: Optional[int]):
        super().__init__(
            "Cannot move a folder into its own subtree",
            ErrorCode.MOVE_INTO_DESCENDANT,
            folder_id,
            destination_folder_id,
        )


class FolderNotFoundError(ValidationError):
    """Folder id is not part of the loaded tree."""

    def __init__(self, folder_id: Optional[int]):
        super().__init__(
            f"Folder not found: {folder_id}",
            error_code=ErrorCode.FOLDER_NOT_FOUND,
            details={"folder_id": folder_id},
        )
        self.folder_id = folder_id


class DocumentNotFoundError(ValidationError):
    """Document id is not part of the entity's documents."""

    def __init__(self, document_id: int):
        super().__init__(
            f"Document not found: {document_id}",
            error_code=ErrorCode.DOCUMENT_NOT_FOUND,
            details={"document_id": document_id},
        )
        self.document_id = document_id


class RootFolderNotFoundError(DocTreeError):
    """The entity has no root folder (it is normally auto-provisioned)."""

    def __init__(self, entity_type: str, entity_id: int):
        super().__init__(
            f"No root folder for {entity_type} {entity_id}",
            ErrorCode.ROOT_FOLDER_NOT_FOUND,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class RemoteError(DocTreeError):
    """The remote store rejected or failed an operation.

    Carries the operation name and the item it targeted so the UI can say
    what failed, not just that something did.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        item_type: Optional[str] = None,
        item_id: Optional[int] = None,
        status_code: int = 0,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if item_type:
            details["item_type"] = item_type
        if item_id is not None:
            details["item_id"] = item_id
        if status_code:
            details["status_code"] = status_code
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"{operation} failed: {message}",
            ErrorCode.REMOTE_ERROR,
            details=details,
        )
        self.operation = operation
        self.item_type = item_type
        self.item_id = item_id
        self.status_code = status_code


class InconsistencyWarning(UserWarning):
    """A folder's parent id does not resolve in the loaded list.

    Non-fatal: recorded and logged, never raised. Usually a stale cache
    racing an external deletion; the next refresh clears it.
    """

    def __init__(self, folder_id: int, missing_parent_id: int):
        super().__init__(
            f"Folder {folder_id} references missing parent {missing_parent_id}"
        )
        self.folder_id = folder_id
        self.missing_parent_id = missing_parent_id


def _format_limit(limit: int) -> str:
    mb = limit / (1024 * 1024)
    if mb >= 1 and mb == int(mb):
        return f"{int(mb)}MB"
    if mb >= 1:
        return f"{mb:.1f}MB"
    return f"{limit} bytes"
