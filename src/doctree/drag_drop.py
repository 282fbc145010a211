"""Drag-and-drop reparenting of folders and documents.

Drag state (what is being dragged, which folder is highlighted) is purely
visual and is reset at the end of every gesture whatever the outcome. The
only committed effect of a drop is the remote move call, followed by a
Navigator refresh.
"""

import dataclasses
import logging
from enum import Enum
from typing import Optional, Union

from .exceptions import DocTreeError, RemoteError
from .move_validator import MoveValidator
from .navigator import Navigator
from .schemas import Document, Folder, ItemType, MoveRequested
from .store import RemoteStore

logger = logging.getLogger(__name__)

# The item's current folder could not be determined.
_UNKNOWN = object()


@dataclasses.dataclass(frozen=True)
class DragPayload:
    item_type: ItemType
    item_id: int
    source_folder_id: Optional[int] = None


class MoveStatus(str, Enum):
    MOVED = "moved"
    IGNORED = "ignored"    # dropped where it already is
    REJECTED = "rejected"  # failed validation, nothing sent
    FAILED = "failed"      # the store refused the move


@dataclasses.dataclass(frozen=True)
class MoveOutcome:
    """Result of one move request.

    On a MOVED outcome, ``error`` is set only if the follow-up refresh
    failed; the move itself went through.
    """

    request: MoveRequested
    status: MoveStatus
    item: Optional[Union[Folder, Document]] = None
    error: Optional[DocTreeError] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.message if self.error else None


class DragDropController:
    """Turns drag gestures and ``MoveRequested`` messages into safe moves."""

    def __init__(self, navigator: Navigator, store: Optional[RemoteStore] = None) -> None:
        self.navigator = navigator
        self.store = store or navigator.store
        self._dragged: Optional[DragPayload] = None
        self._drop_target: Optional[int] = None

    @property
    def dragged(self) -> Optional[DragPayload]:
        return self._dragged

    @property
    def drop_target(self) -> Optional[int]:
        return self._drop_target

    # ------------------------------------------------------------------
    # Gesture
    # ------------------------------------------------------------------

    def start_drag(
        self,
        item_type: Union[ItemType, str],
        item_id: int,
        source_folder_id: Optional[int] = None,
    ) -> DragPayload:
        item_type = ItemType(item_type)
        if source_folder_id is None:
            resolved = self._resolve_source(item_type, item_id)
            source_folder_id = None if resolved is _UNKNOWN else resolved
        self._dragged = DragPayload(item_type, item_id, source_folder_id)
        self._drop_target = None
        return self._dragged

    def drag_over(self, folder_id: int) -> bool:
        """Highlight *folder_id* as a candidate target. Returns whether it is highlighted."""
        if self._dragged is None:
            return False
        if self._dragged.item_type == ItemType.FOLDER and self._dragged.item_id == folder_id:
            self._drop_target = None
            return False
        self._drop_target = folder_id
        return True

    def drag_leave(self) -> None:
        self._drop_target = None

    def end_drag(self) -> None:
        self._dragged = None
        self._drop_target = None

    async def drop(self, folder_id: int) -> Optional[MoveOutcome]:
        """Drop the dragged item on *folder_id*. Returns None when nothing was being dragged."""
        payload = self._dragged
        if payload is None:
            self.end_drag()
            return None
        try:
            request = MoveRequested(
                item_type=payload.item_type,
                item_id=payload.item_id,
                destination_folder_id=folder_id,
                source_folder_id=payload.source_folder_id,
            )
            return await self.handle(request)
        finally:
            self.end_drag()

    # ------------------------------------------------------------------
    # Message handler
    # ------------------------------------------------------------------

    async def handle(self, request: MoveRequested) -> MoveOutcome:
        destination = request.destination_folder_id

        source = request.source_folder_id
        if source is None:
            source = self._resolve_source(request.item_type, request.item_id)
        if source is not _UNKNOWN and source == destination:
            logger.debug("Ignoring move of %s %d onto its own folder", request.item_type.value, request.item_id)
            return MoveOutcome(request, MoveStatus.IGNORED)

        decision = MoveValidator(self.navigator.index).can_move(
            request.item_type, request.item_id, destination,
        )
        if not decision:
            return MoveOutcome(request, MoveStatus.REJECTED, error=decision.error)

        try:
            if request.item_type == ItemType.FOLDER:
                item = await self.store.move_folder(request.item_id, destination)
            else:
                item = await self.store.move_document(request.item_id, destination)
        except RemoteError as exc:
            logger.error("Move failed: %s", exc.message, extra=exc.details)
            return MoveOutcome(request, MoveStatus.FAILED, error=exc)

        logger.info(
            "Moved %s %d to folder %s", request.item_type.value, request.item_id, destination,
        )
        try:
            await self.navigator.refresh()
        except DocTreeError as exc:
            logger.warning("Refresh after move failed: %s", exc.message)
            return MoveOutcome(request, MoveStatus.MOVED, item=item, error=exc)
        return MoveOutcome(request, MoveStatus.MOVED, item=item)

    def _resolve_source(self, item_type: ItemType, item_id: int):
        """Folder currently holding the item, or ``_UNKNOWN``."""
        if item_type == ItemType.FOLDER:
            folder = self.navigator.index.find_by_id(item_id)
            return folder.parent_folder_id if folder else _UNKNOWN
        document = self.navigator.find_document(item_id)
        return document.folder_id if document else _UNKNOWN
