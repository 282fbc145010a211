"""Per-entity folder browser session.

Deep module: the UI layer talks to ``FolderBrowser`` only. It wires the
Navigator, UploadQueue and DragDropController to one remote store and adds
the folder/document CRUD the browser offers. Every mutation is followed by
a refetch; nothing is patched into the local caches optimistically.
"""

import contextlib
import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from pydantic import ValidationError as SchemaValidationError

from .config import Settings
from .drag_drop import DragDropController, MoveOutcome, MoveStatus
from .exceptions import (
    DocTreeError,
    DocumentNotFoundError,
    FolderNotFoundError,
    ValidationError,
)
from .logging_config import entity_scope_var
from .move_validator import MoveDecision, MoveValidator
from .navigator import Navigator, TreeRow
from .path_resolver import Breadcrumb
from .schemas import (
    Document,
    EntityType,
    Folder,
    FolderContents,
    FolderCreate,
    FolderUpdate,
    ItemType,
    MoveRequested,
    UploadRequested,
)
from .store import RemoteStore
from .upload_queue import UploadFile, UploadQueue, UploadReport

logger = logging.getLogger(__name__)

ConfirmFolderDelete = Callable[[Folder, int], bool]
ConfirmDocumentDelete = Callable[[Document], bool]


class FolderBrowser:
    """All folder-tree operations for one entity behind a narrow interface.

    Public methods:
        load / open / refresh / toggle_expand -- navigation
        can_move / move                       -- validated reparenting
        upload                                -- batch upload into a folder
        create_folder / rename_folder / delete_folder
        delete_document / download_document / unfiled_documents
        handle                                -- MoveRequested / UploadRequested messages
    """

    def __init__(
        self,
        store: RemoteStore,
        entity_type: EntityType,
        entity_id: int,
        entity_name: Optional[str] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.entity_type = EntityType(entity_type)
        self.entity_id = entity_id
        self.navigator = Navigator(store, self.entity_type, entity_id, entity_name)
        self.uploads = UploadQueue(store, self.entity_type, entity_id, config=config)
        self.drag_drop = DragDropController(self.navigator, store)

    @property
    def scope(self) -> str:
        return f"{self.entity_type.value}:{self.entity_id}"

    @contextlib.contextmanager
    def _scoped(self) -> Iterator[None]:
        token = entity_scope_var.set(self.scope)
        try:
            yield
        finally:
            entity_scope_var.reset(token)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def current_folder(self) -> Optional[Folder]:
        return self.navigator.current_folder

    @property
    def contents(self) -> Optional[FolderContents]:
        return self.navigator.contents

    @property
    def breadcrumb(self) -> Breadcrumb:
        return self.navigator.breadcrumb

    def visible_rows(self) -> List[TreeRow]:
        return self.navigator.visible_rows()

    def display_name(self, folder: Folder) -> str:
        return self.navigator.display_name(folder)

    async def load(self) -> FolderContents:
        with self._scoped():
            return await self.navigator.load()

    async def open(self, folder_id: int) -> FolderContents:
        with self._scoped():
            return await self.navigator.open(folder_id)

    async def refresh(self) -> FolderContents:
        with self._scoped():
            return await self.navigator.refresh()

    def toggle_expand(self, folder_id: int) -> bool:
        return self.navigator.toggle_expand(folder_id)

    # ------------------------------------------------------------------
    # Moves and uploads
    # ------------------------------------------------------------------

    def can_move(
        self,
        item_type: Union[ItemType, str],
        item_id: int,
        destination_folder_id: Optional[int],
    ) -> MoveDecision:
        return MoveValidator(self.navigator.index).can_move(item_type, item_id, destination_folder_id)

    async def move(
        self,
        item_type: Union[ItemType, str],
        item_id: int,
        destination_folder_id: Optional[int],
    ) -> MoveOutcome:
        """Move an item, raising the validation or remote error if it did not happen."""
        request = MoveRequested(
            item_type=ItemType(item_type),
            item_id=item_id,
            destination_folder_id=destination_folder_id,
        )
        with self._scoped():
            outcome = await self.drag_drop.handle(request)
        if outcome.status in (MoveStatus.REJECTED, MoveStatus.FAILED) and outcome.error:
            raise outcome.error
        return outcome

    async def upload(
        self,
        files: Sequence[UploadFile],
        target_folder_id: Optional[int] = None,
        tags: str = "",
        unfiled: bool = False,
    ) -> UploadReport:
        """Upload *files* into *target_folder_id*, defaulting to the current folder.

        With ``unfiled=True`` the documents are not placed in any folder and
        *target_folder_id* must be left out.

        The view is refreshed once after the batch, not per file, and only
        if at least one upload was attempted.
        """
        if unfiled:
            if target_folder_id is not None:
                raise ValidationError(
                    "An unfiled upload cannot also target a folder", field="target_folder_id",
                )
        elif target_folder_id is None:
            target_folder_id = self.navigator.current_folder_id
        with self._scoped():
            report = await self.uploads.upload(files, target_folder_id, tags)
            if report.attempted:
                try:
                    await self.navigator.refresh()
                except DocTreeError as exc:
                    logger.warning("Refresh after upload failed: %s", exc.message)
        return report

    async def handle(self, message: Union[MoveRequested, UploadRequested]):
        """Dispatch a UI message to the component that owns it."""
        if isinstance(message, MoveRequested):
            with self._scoped():
                return await self.drag_drop.handle(message)
        if isinstance(message, UploadRequested):
            # Messages are explicit: no target folder means unfiled.
            return await self.upload(
                message.files, message.target_folder_id, message.tags,
                unfiled=message.target_folder_id is None,
            )
        raise TypeError(f"Unsupported message: {type(message).__name__}")

    # ------------------------------------------------------------------
    # Folder CRUD
    # ------------------------------------------------------------------

    async def create_folder(self, name: str, parent_folder_id: Optional[int] = None) -> Folder:
        """Create a folder under *parent_folder_id* (default: the current folder)."""
        if parent_folder_id is None:
            parent_folder_id = self.navigator.current_folder_id
        if parent_folder_id is None:
            raise ValidationError("Open a folder before creating subfolders", field="parent_folder_id")
        if parent_folder_id not in self.navigator.index:
            raise FolderNotFoundError(parent_folder_id)
        try:
            data = FolderCreate(
                entity_type=self.entity_type,
                entity_id=self.entity_id,
                parent_folder_id=parent_folder_id,
                name=name,
            )
        except SchemaValidationError as exc:
            raise ValidationError("Folder name cannot be empty", field="name") from exc

        with self._scoped():
            folder = await self.store.create_folder(data)
            logger.info("Created folder %d under %d", folder.id, parent_folder_id)
            await self.navigator.refresh()
        return folder

    async def rename_folder(self, folder_id: int, name: str) -> Folder:
        if folder_id not in self.navigator.index:
            raise FolderNotFoundError(folder_id)
        try:
            data = FolderUpdate(name=name)
        except SchemaValidationError as exc:
            raise ValidationError("Folder name cannot be empty", field="name") from exc

        with self._scoped():
            folder = await self.store.update_folder(folder_id, data)
            logger.info("Renamed folder %d", folder_id)
            await self.navigator.refresh()
        return folder

    async def delete_folder(
        self,
        folder_id: int,
        confirm: ConfirmFolderDelete,
    ) -> bool:
        """Delete a folder together with its subfolders and documents.

        The delete cascades, so *confirm* is required: it receives the folder
        and its number of descendant folders, and returning False cancels
        before anything is sent. Returns whether the folder was deleted.
        """
        index = self.navigator.index
        folder = index.find_by_id(folder_id)
        if folder is None:
            raise FolderNotFoundError(folder_id)
        if folder.is_root:
            raise ValidationError("The root folder cannot be deleted", field="folder_id")

        descendants = index.descendants_of(folder_id)
        if not confirm(folder, len(descendants)):
            return False

        current_id = self.navigator.current_folder_id
        leaving_current = current_id is not None and (
            current_id == folder_id or index.is_descendant(current_id, folder_id)
        )

        with self._scoped():
            await self.store.delete_folder(folder_id, force=True)
            logger.info("Deleted folder %d and %d subfolders", folder_id, len(descendants))
            if leaving_current:
                await self.navigator.load()
            else:
                await self.navigator.refresh()
        return True

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def delete_document(
        self,
        document_id: int,
        confirm: Optional[ConfirmDocumentDelete] = None,
    ) -> bool:
        document = self.navigator.find_document(document_id)
        if confirm is not None and document is not None and not confirm(document):
            return False

        with self._scoped():
            await self.store.delete_document(document_id)
            logger.info("Deleted document %d", document_id)
            await self.navigator.refresh()
        return True

    async def unfiled_documents(self) -> List[Document]:
        """Documents of this entity not yet placed in any folder."""
        with self._scoped():
            documents = await self.store.list_documents(self.entity_type, self.entity_id)
        return [d for d in documents if d.folder_id is None]

    async def download_document(self, document_id: int, dest: Union[str, Path]) -> Path:
        """Download a document's file to *dest*.

        *dest* is either a directory, in which case the stored file name is
        kept, or the full target path. Returns the path written.
        """
        document = self.navigator.find_document(document_id)
        with self._scoped():
            if document is None:
                documents = await self.store.list_documents(self.entity_type, self.entity_id)
                document = next((d for d in documents if d.id == document_id), None)
            if document is None:
                raise DocumentNotFoundError(document_id)
            if not document.file_url:
                raise ValidationError(f'"{document.file_name}" has no stored file', field="file_url")

            data = await self.store.download_document(document.id, document.file_url)
            target = Path(dest)
            if target.is_dir():
                target = target / document.file_name
            target.write_bytes(data)
            logger.info("Downloaded document %d (%d bytes)", document.id, len(data))
        return target
