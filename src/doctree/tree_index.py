"""In-memory parent -> children projection of one entity's flat folder list.

A ``TreeIndex`` is a pure function of the list it was built from: it is
never mutated, and a fresh one is built after every refetch. Folders are
held in an id-keyed arena with no child pointers, so no client-side object
graph can ever become cyclic; parent links are resolved through the arena.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import InconsistencyWarning
from .schemas import EntityType, Folder

logger = logging.getLogger(__name__)


def _sort_key(folder: Folder) -> Tuple[str, int]:
    return (folder.name.casefold(), folder.id)


class TreeIndex:
    """Queryable hierarchy over a flat, unordered list of ``Folder`` records.

    Children are ordered by name (case-insensitive), then id, so the tree
    renders identically regardless of server ordering.

    When *entity_type*/*entity_id* are given, folders from any other scope
    are dropped. Folders whose parent id does not resolve are kept (they are
    reachable by id) and recorded in ``warnings``.
    """

    def __init__(
        self,
        folders: Iterable[Folder],
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[int] = None,
    ) -> None:
        self._by_id: Dict[int, Folder] = {}
        self._children: Dict[Optional[int], List[Folder]] = {}
        self.warnings: List[InconsistencyWarning] = []

        for folder in folders:
            if entity_type is not None and folder.entity_type != entity_type:
                logger.warning("Dropping folder %d from another entity type", folder.id)
                continue
            if entity_id is not None and folder.entity_id != entity_id:
                logger.warning("Dropping folder %d from another entity", folder.id)
                continue
            self._by_id[folder.id] = folder

        for folder in self._by_id.values():
            self._children.setdefault(folder.parent_folder_id, []).append(folder)
        for siblings in self._children.values():
            siblings.sort(key=_sort_key)

        for folder in self._by_id.values():
            parent_id = folder.parent_folder_id
            if parent_id is not None and parent_id not in self._by_id:
                warning = InconsistencyWarning(folder.id, parent_id)
                self.warnings.append(warning)
                logger.warning(str(warning))

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, folder_id: object) -> bool:
        return folder_id in self._by_id

    def __iter__(self) -> Iterator[Folder]:
        return iter(self._by_id.values())

    def children_of(self, folder_id: Optional[int]) -> List[Folder]:
        """Direct subfolders; ``None`` selects the root level."""
        return list(self._children.get(folder_id, ()))

    def find_by_id(self, folder_id: Optional[int]) -> Optional[Folder]:
        if folder_id is None:
            return None
        return self._by_id.get(folder_id)

    def has_children(self, folder_id: int) -> bool:
        return bool(self._children.get(folder_id))

    def roots(self) -> List[Folder]:
        return self.children_of(None)

    def root(self) -> Optional[Folder]:
        """The entity's root folder, or None for an empty tree.

        Exactly one root is expected. If the store returns several, the
        lowest id wins; it is the one provisioned with the entity.
        """
        roots = self.roots()
        if not roots:
            return None
        if len(roots) > 1:
            logger.warning("Entity has %d root folders; using the oldest", len(roots))
        return min(roots, key=lambda f: f.id)

    def iter_ancestors(self, folder_id: int) -> Iterator[Folder]:
        """Yield the parent chain of *folder_id*, nearest first.

        Stops at the root, at the first parent id that does not resolve,
        or after ``len(self)`` steps, whichever comes first. The step bound
        keeps a corrupted (cyclic) server list from looping forever.
        """
        folder = self._by_id.get(folder_id)
        steps = 0
        while folder is not None and folder.parent_folder_id is not None and steps < len(self._by_id):
            folder = self._by_id.get(folder.parent_folder_id)
            if folder is None:
                return
            yield folder
            steps += 1

    def descendants_of(self, folder_id: int) -> List[Folder]:
        """Every folder below *folder_id*, breadth-first."""
        result: List[Folder] = []
        seen = {folder_id}
        queue = [folder_id]
        while queue:
            current = queue.pop(0)
            for child in self._children.get(current, ()):
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.append(child)
                queue.append(child.id)
        return result

    def is_descendant(self, folder_id: int, ancestor_id: int) -> bool:
        """True when *ancestor_id* appears on *folder_id*'s parent chain."""
        return any(a.id == ancestor_id for a in self.iter_ancestors(folder_id))
