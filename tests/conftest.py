"""Shared fixtures for the doctree test suite.

Components are exercised against ``FakeStore``, an in-memory
``RemoteStore`` that records every call and can be told to fail
specific operations. Coroutines are driven with ``asyncio.run``.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from doctree.exceptions import RemoteError
from doctree.schemas import (
    Document,
    EntityType,
    Folder,
    FolderContents,
    FolderCreate,
    FolderUpdate,
)
from doctree.tree_index import TreeIndex

MB = 1024 * 1024


def run(coro):
    return asyncio.run(coro)


def make_folder(
    folder_id: int,
    parent_folder_id: Optional[int] = None,
    name: Optional[str] = None,
    entity_type: EntityType = EntityType.EVENT,
    entity_id: int = 1,
) -> Folder:
    return Folder(
        id=folder_id,
        parent_folder_id=parent_folder_id,
        name=name or f"folder-{folder_id}",
        entity_type=entity_type,
        entity_id=entity_id,
    )


def make_document(
    doc_id: int,
    folder_id: Optional[int] = None,
    file_name: Optional[str] = None,
    file_size: int = 1024,
) -> Document:
    return Document(
        id=doc_id,
        folder_id=folder_id,
        file_name=file_name or f"doc-{doc_id}.pdf",
        file_size=file_size,
        mime_type="application/pdf",
        uploaded_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        entity_type=EntityType.EVENT,
        entity_id=1,
        file_url=f"/uploads/event/1/{doc_id}",
    )


class FakeStore:
    """In-memory remote store.

    ``fail(operation, item_id=None)`` makes calls of *operation*
    (optionally only for *item_id*) raise ``RemoteError``.
    """

    def __init__(self, folders: List[Folder], documents: Optional[List[Document]] = None):
        self.folders: Dict[int, Folder] = {f.id: f for f in folders}
        self.documents: Dict[int, Document] = {d.id: d for d in documents or []}
        self.calls: List[Tuple[str, tuple]] = []
        self._failures: Dict[Tuple[str, Optional[int]], int] = {}
        self._next_id = 100
        self.failing_uploads: set = set()
        self.blobs: Dict[int, bytes] = {d.id: f"content-{d.id}".encode() for d in self.documents.values()}

    def fail(self, operation: str, item_id: Optional[int] = None, status_code: int = 500) -> None:
        self._failures[(operation, item_id)] = status_code

    def heal(self) -> None:
        self._failures.clear()

    def calls_to(self, operation: str) -> List[tuple]:
        return [args for op, args in self.calls if op == operation]

    def _record(self, operation: str, item_id: Optional[int], *args) -> None:
        self.calls.append((operation, args))
        for key in ((operation, item_id), (operation, None)):
            if key in self._failures:
                raise RemoteError(
                    operation, f"HTTP {self._failures[key]}",
                    item_id=item_id, status_code=self._failures[key],
                )

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def list_folders(self, entity_type, entity_id):
        self._record("list_folders", None, entity_type, entity_id)
        return [
            f for f in self.folders.values()
            if f.entity_type == entity_type and f.entity_id == entity_id
        ]

    async def get_folder_contents(self, folder_id):
        self._record("get_folder_contents", folder_id, folder_id)
        folder = self.folders.get(folder_id)
        if folder is None:
            raise RemoteError("get_folder_contents", "HTTP 404", item_id=folder_id, status_code=404)
        return FolderContents(
            folder=folder,
            subfolders=[f for f in self.folders.values() if f.parent_folder_id == folder_id],
            documents=[d for d in self.documents.values() if d.folder_id == folder_id],
        )

    async def create_folder(self, data: FolderCreate):
        self._record("create_folder", data.parent_folder_id, data)
        folder = Folder(id=self._new_id(), **data.model_dump())
        self.folders[folder.id] = folder
        return folder

    async def update_folder(self, folder_id, data: FolderUpdate):
        self._record("update_folder", folder_id, folder_id, data)
        folder = self.folders[folder_id].model_copy(update=data.model_dump(exclude_none=True))
        self.folders[folder_id] = folder
        return folder

    async def move_folder(self, folder_id, new_parent_id):
        self._record("move_folder", folder_id, folder_id, new_parent_id)
        folder = self.folders[folder_id].model_copy(update={"parent_folder_id": new_parent_id})
        self.folders[folder_id] = folder
        return folder

    async def delete_folder(self, folder_id, force=False):
        self._record("delete_folder", folder_id, folder_id, force)
        doomed = {folder_id}
        changed = True
        while changed:
            changed = False
            for f in self.folders.values():
                if f.parent_folder_id in doomed and f.id not in doomed:
                    doomed.add(f.id)
                    changed = True
        if len(doomed) > 1 and not force:
            raise RemoteError("delete_folder", "HTTP 409", item_id=folder_id, status_code=409)
        for fid in doomed:
            self.folders.pop(fid, None)
        for doc in list(self.documents.values()):
            if doc.folder_id in doomed:
                del self.documents[doc.id]

    async def upload_document(self, entity_type, entity_id, file, tags="", folder_id=None):
        self._record("upload_document", None, file.name, folder_id)
        if file.name in self.failing_uploads:
            raise RemoteError("upload_document", "HTTP 500", status_code=500)
        data = file.read()
        doc = Document(
            id=self._new_id(),
            folder_id=folder_id,
            file_name=file.name,
            file_size=file.size,
            mime_type=file.mime_type,
            entity_type=entity_type,
            entity_id=entity_id,
            tags=tags,
            file_url=f"/uploads/{entity_type.value}/{entity_id}/{file.name}",
        )
        self.documents[doc.id] = doc
        self.blobs[doc.id] = data
        return doc

    async def list_documents(self, entity_type, entity_id):
        self._record("list_documents", None, entity_type, entity_id)
        return list(self.documents.values())

    async def move_document(self, document_id, new_folder_id):
        self._record("move_document", document_id, document_id, new_folder_id)
        doc = self.documents[document_id].model_copy(update={"folder_id": new_folder_id})
        self.documents[document_id] = doc
        return doc

    async def delete_document(self, document_id):
        self._record("delete_document", document_id, document_id)
        self.documents.pop(document_id, None)

    async def download_document(self, document_id, file_url):
        self._record("download_document", document_id, document_id, file_url)
        return self.blobs[document_id]


@pytest.fixture()
def scenario_folders() -> List[Folder]:
    """Root R(1) with A(2) -> B(3) and a sibling C(4)."""
    return [
        make_folder(1, None, "root"),
        make_folder(2, 1, "A"),
        make_folder(3, 2, "B"),
        make_folder(4, 1, "C"),
    ]


@pytest.fixture()
def scenario_documents() -> List[Document]:
    return [
        make_document(10, 2, "agenda.pdf"),
        make_document(11, 1, "budget.xlsx"),
        make_document(12, None, "legacy.doc"),
    ]


@pytest.fixture()
def index(scenario_folders) -> TreeIndex:
    return TreeIndex(scenario_folders)


@pytest.fixture()
def store(scenario_folders, scenario_documents) -> FakeStore:
    return FakeStore(scenario_folders, scenario_documents)
