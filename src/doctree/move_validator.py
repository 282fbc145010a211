"""Decides whether a reparenting keeps the folder tree acyclic.

Server state is never trusted to be acyclic on its own: every folder move
is checked by walking the ancestor chain of the proposed destination and
looking for the folder being moved.
"""

import dataclasses
import logging
from typing import Optional, Union

from .exceptions import (
    FolderNotFoundError,
    MoveIntoDescendantError,
    SelfMoveError,
    ValidationError,
)
from .schemas import ItemType
from .tree_index import TreeIndex

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MoveDecision:
    """Allowed, or Rejected with the validation error that explains why."""

    allowed: bool
    error: Optional[ValidationError] = None

    @classmethod
    def allow(cls) -> "MoveDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, error: ValidationError) -> "MoveDecision":
        return cls(allowed=False, error=error)

    @property
    def reason(self) -> Optional[str]:
        return self.error.message if self.error else None

    def __bool__(self) -> bool:
        return self.allowed


class MoveValidator:
    """Validates folder and document moves against one TreeIndex."""

    def __init__(self, index: TreeIndex) -> None:
        self.index = index

    def can_move(
        self,
        item_type: Union[ItemType, str],
        item_id: int,
        destination_folder_id: Optional[int],
    ) -> MoveDecision:
        item_type = ItemType(item_type)
        if item_type == ItemType.FOLDER:
            decision = self._can_move_folder(item_id, destination_folder_id)
        else:
            decision = self._can_move_document(destination_folder_id)

        if not decision:
            logger.info(
                "Move rejected: %s", decision.reason,
                extra={"item_type": item_type.value, "item_id": item_id,
                       "destination_folder_id": destination_folder_id},
            )
        return decision

    def _can_move_folder(self, folder_id: int, destination_folder_id: Optional[int]) -> MoveDecision:
        if folder_id == destination_folder_id:
            return MoveDecision.reject(SelfMoveError(folder_id))
        if destination_folder_id is None:
            # A second parentless folder would be a second root.
            return MoveDecision.reject(ValidationError(
                "A folder must stay inside the entity's folder tree",
                field="destination_folder_id",
            ))
        if folder_id not in self.index:
            return MoveDecision.reject(FolderNotFoundError(folder_id))
        if destination_folder_id not in self.index:
            return MoveDecision.reject(FolderNotFoundError(destination_folder_id))

        for ancestor in self.index.iter_ancestors(destination_folder_id):
            if ancestor.id == folder_id:
                return MoveDecision.reject(MoveIntoDescendantError(folder_id, destination_folder_id))
        return MoveDecision.allow()

    def _can_move_document(self, destination_folder_id: Optional[int]) -> MoveDecision:
        # Documents contain nothing, so only the destination's scope matters.
        if destination_folder_id is not None and destination_folder_id not in self.index:
            return MoveDecision.reject(FolderNotFoundError(destination_folder_id))
        return MoveDecision.allow()
