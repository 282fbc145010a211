"""Current-folder state machine and tree-view expansion state.

The Navigator owns the client's read caches for one entity: the TreeIndex
built from the last flat folder list, and the contents of the current
folder. Both are replaced only after every fetch of an operation has
succeeded, so a failed fetch never leaves half-updated state behind.
"""

import dataclasses
import logging
from typing import FrozenSet, List, Optional, Set

from .exceptions import RemoteError, RootFolderNotFoundError
from .path_resolver import Breadcrumb, PathResolver, display_name
from .schemas import Document, EntityType, Folder, FolderContents
from .store import RemoteStore
from .tree_index import TreeIndex

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class TreeRow:
    """One visible line of the folder tree panel."""

    folder: Folder
    depth: int
    has_children: bool
    expanded: bool
    selected: bool


class Navigator:
    """Tracks the current folder of one entity's tree.

    Public methods:
        load          -- fetch the flat folder list and open the root
        open          -- make a folder current and reveal its path
        refresh       -- refetch the list and the current folder, after any mutation
        toggle_expand -- flip a folder's expanded state in the tree view
    """

    def __init__(
        self,
        store: RemoteStore,
        entity_type: EntityType,
        entity_id: int,
        entity_name: Optional[str] = None,
    ) -> None:
        self.store = store
        self.entity_type = EntityType(entity_type)
        self.entity_id = entity_id
        self.entity_name = entity_name
        self._index = TreeIndex([])
        self._contents: Optional[FolderContents] = None
        self._expanded: Set[int] = set()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def index(self) -> TreeIndex:
        return self._index

    @property
    def resolver(self) -> PathResolver:
        return PathResolver(self._index)

    @property
    def contents(self) -> Optional[FolderContents]:
        return self._contents

    @property
    def current_folder(self) -> Optional[Folder]:
        return self._contents.folder if self._contents else None

    @property
    def current_folder_id(self) -> Optional[int]:
        return self._contents.folder.id if self._contents else None

    @property
    def subfolders(self) -> List[Folder]:
        return list(self._contents.subfolders) if self._contents else []

    @property
    def documents(self) -> List[Document]:
        return list(self._contents.documents) if self._contents else []

    @property
    def expanded(self) -> FrozenSet[int]:
        return frozenset(self._expanded)

    def is_expanded(self, folder_id: int) -> bool:
        return folder_id in self._expanded

    @property
    def breadcrumb(self) -> Breadcrumb:
        if self._contents is None:
            return Breadcrumb(())
        return self.resolver.breadcrumb_of(self._contents.folder)

    def display_name(self, folder: Folder) -> str:
        return display_name(folder, self.entity_name)

    def find_document(self, document_id: int) -> Optional[Document]:
        """Look a document up in the current folder's contents."""
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load(self) -> FolderContents:
        """Fetch the entity's folders, rebuild the index and open the root."""
        index = await self._fetch_index()
        root = index.root()
        if root is None:
            raise RootFolderNotFoundError(self.entity_type.value, self.entity_id)
        contents = await self._fetch_contents(root.id)
        self._commit(index, contents)
        return contents

    async def open(self, folder_id: int) -> FolderContents:
        """Make *folder_id* current.

        Ancestors of the folder are added to the expanded set; folders
        that were already expanded stay expanded.
        """
        contents = await self._fetch_contents(folder_id)
        self._commit(self._index, contents)
        return contents

    async def refresh(self) -> FolderContents:
        """Refetch the flat list and the current folder's contents.

        Falls back to the root when the current folder no longer exists.
        """
        if self._contents is None:
            return await self.load()

        index = await self._fetch_index()
        target_id = self._contents.folder.id
        if target_id not in index:
            root = index.root()
            if root is None:
                raise RootFolderNotFoundError(self.entity_type.value, self.entity_id)
            logger.info("Folder %d is gone; returning to root %d", target_id, root.id)
            target_id = root.id
        contents = await self._fetch_contents(target_id)
        self._commit(index, contents)
        return contents

    def toggle_expand(self, folder_id: int) -> bool:
        """Flip *folder_id* in the expanded set and return its new state.

        Folders without children have nothing to reveal and are left alone.
        """
        if not self._index.has_children(folder_id):
            return folder_id in self._expanded
        if folder_id in self._expanded:
            self._expanded.discard(folder_id)
            return False
        self._expanded.add(folder_id)
        return True

    def visible_rows(self) -> List[TreeRow]:
        """Flatten the tree as the tree panel shows it.

        Root-level folders are always visible; children only appear under
        expanded folders.
        """
        rows: List[TreeRow] = []
        current_id = self.current_folder_id
        seen: Set[int] = set()

        def walk(parent_id: Optional[int], depth: int) -> None:
            for folder in self._index.children_of(parent_id):
                if folder.id in seen:
                    continue
                seen.add(folder.id)
                has_children = self._index.has_children(folder.id)
                expanded = folder.id in self._expanded
                rows.append(TreeRow(
                    folder=folder,
                    depth=depth,
                    has_children=has_children,
                    expanded=expanded,
                    selected=folder.id == current_id,
                ))
                if expanded and has_children:
                    walk(folder.id, depth + 1)

        walk(None, 0)
        return rows

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch_index(self) -> TreeIndex:
        try:
            folders = await self.store.list_folders(self.entity_type, self.entity_id)
        except RemoteError:
            logger.error("Could not list folders for %s %d", self.entity_type.value, self.entity_id)
            raise
        logger.debug("Fetched %d folders", len(folders))
        return TreeIndex(folders, self.entity_type, self.entity_id)

    async def _fetch_contents(self, folder_id: int) -> FolderContents:
        try:
            contents = await self.store.get_folder_contents(folder_id)
        except RemoteError:
            logger.error("Could not open folder %d", folder_id)
            raise
        logger.debug(
            "Fetched folder %d: %d subfolders, %d documents",
            folder_id, len(contents.subfolders), len(contents.documents),
        )
        return contents

    def _commit(self, index: TreeIndex, contents: FolderContents) -> None:
        folder = contents.folder
        reveal = {a.id for a in index.iter_ancestors(folder.id)}
        if folder.parent_folder_id is not None:
            reveal.add(folder.parent_folder_id)

        self._index = index
        self._contents = contents
        # Forget folders that no longer exist; keep every other expansion.
        self._expanded = {fid for fid in self._expanded | reveal if fid in index}
