"""Breadcrumbs and display names for folders in a TreeIndex."""

import dataclasses
import logging
from typing import Iterator, List, Optional, Tuple

from .exceptions import InconsistencyWarning
from .schemas import Folder
from .tree_index import TreeIndex

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Breadcrumb:
    """Folders from the root to a target folder, root first.

    ``complete`` is False when the walk stopped at a parent id that did not
    resolve; ``folders`` then starts at the highest folder that could be
    reached and ``warnings`` says where the chain broke.
    """

    folders: Tuple[Folder, ...]
    complete: bool = True
    warnings: Tuple[InconsistencyWarning, ...] = ()

    def __iter__(self) -> Iterator[Folder]:
        return iter(self.folders)

    def __len__(self) -> int:
        return len(self.folders)

    def __getitem__(self, index: int) -> Folder:
        return self.folders[index]

    @property
    def ids(self) -> List[int]:
        return [f.id for f in self.folders]

    def labels(self, entity_name: Optional[str] = None) -> List[str]:
        return [display_name(f, entity_name) for f in self.folders]


def display_name(folder: Folder, entity_name: Optional[str] = None) -> str:
    """Name shown in the UI.

    The root folder is shown under the owning entity's name; the stored
    name is left untouched.
    """
    if folder.is_root and entity_name:
        return entity_name
    return folder.name


class PathResolver:
    """Resolves parent links through a TreeIndex."""

    def __init__(self, index: TreeIndex) -> None:
        self.index = index

    def breadcrumb_of(self, folder: Folder) -> Breadcrumb:
        path: List[Folder] = [folder]
        visited = {folder.id}
        current = folder

        while current.parent_folder_id is not None:
            parent = self.index.find_by_id(current.parent_folder_id)
            if parent is None:
                warning = InconsistencyWarning(current.id, current.parent_folder_id)
                logger.warning("Breadcrumb truncated: %s", warning)
                return Breadcrumb(tuple(path), complete=False, warnings=(warning,))
            if parent.id in visited:
                # Cyclic server data; stop rather than loop.
                logger.warning("Breadcrumb truncated: cycle at folder %d", parent.id)
                return Breadcrumb(tuple(path), complete=False)
            visited.add(parent.id)
            path.insert(0, parent)
            current = parent

        return Breadcrumb(tuple(path))

    def display_name(self, folder: Folder, entity_name: Optional[str] = None) -> str:
        return display_name(folder, entity_name)

    def path_string(
        self,
        folder: Folder,
        entity_name: Optional[str] = None,
        separator: str = " / ",
    ) -> str:
        """Breadcrumb rendered as one line, e.g. ``"Congress 2024 / Slides / Day 1"``."""
        return separator.join(self.breadcrumb_of(folder).labels(entity_name))
