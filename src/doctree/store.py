"""Boundary contract for the remote folder/document store.

Everything in this package talks to the store through ``RemoteStore``.
``DocTreeClient`` is the HTTP implementation; tests use an in-memory one.
Implementations raise ``RemoteError`` for every store-side failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol

from .schemas import Document, EntityType, Folder, FolderContents, FolderCreate, FolderUpdate

if TYPE_CHECKING:
    from .upload_queue import UploadFile


class RemoteStore(Protocol):

    async def list_folders(self, entity_type: EntityType, entity_id: int) -> List[Folder]:
        """Flat, unordered list of every folder of one entity."""
        ...

    async def get_folder_contents(self, folder_id: int) -> FolderContents:
        ...

    async def create_folder(self, data: FolderCreate) -> Folder:
        ...

    async def update_folder(self, folder_id: int, data: FolderUpdate) -> Folder:
        ...

    async def move_folder(self, folder_id: int, new_parent_id: Optional[int]) -> Folder:
        ...

    async def delete_folder(self, folder_id: int, force: bool = False) -> None:
        """Delete a folder; ``force`` cascades to descendants and documents."""
        ...

    async def upload_document(
        self,
        entity_type: EntityType,
        entity_id: int,
        file: "UploadFile",
        tags: str = "",
        folder_id: Optional[int] = None,
    ) -> Document:
        ...

    async def list_documents(self, entity_type: EntityType, entity_id: int) -> List[Document]:
        ...

    async def move_document(self, document_id: int, new_folder_id: Optional[int]) -> Document:
        ...

    async def delete_document(self, document_id: int) -> None:
        ...

    async def download_document(self, document_id: int, file_url: str) -> bytes:
        """Raw file content. ``file_url`` is the document's stored location."""
        ...
