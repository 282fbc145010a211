"""Folder, document and message schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class EntityType(str, Enum):
    """Business objects that own an independent folder tree."""
    EVENT = "event"
    PARTICIPANT = "participant"
    SPEAKER = "speaker"
    ENROLLMENT = "enrollment"
    TASK = "task"


class ItemType(str, Enum):
    """What a move or drag gesture carries."""
    FOLDER = "folder"
    DOCUMENT = "document"


class Folder(BaseModel):
    """A folder record as returned by the remote store."""
    id: int
    parent_folder_id: Optional[int] = None
    name: str
    entity_type: EntityType
    entity_id: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.parent_folder_id is None

    class Config:
        frozen = True


class Document(BaseModel):
    """A document record. ``folder_id`` of None means unfiled."""
    id: int
    folder_id: Optional[int] = None
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    entity_type: EntityType
    entity_id: int
    file_url: Optional[str] = None
    tags: List[str] = []

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, v):
        """Accept the comma-separated form some endpoints return."""
        if v is None:
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(',') if t.strip()]
        return v

    class Config:
        frozen = True


class FolderContents(BaseModel):
    """A folder plus its direct subfolders and directly attached documents."""
    folder: Folder
    subfolders: List[Folder] = []
    documents: List[Document] = []


class FolderCreate(BaseModel):
    """Payload for creating a folder."""
    entity_type: EntityType
    entity_id: int
    parent_folder_id: Optional[int] = None
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Folder name cannot be empty")
        return v


class FolderUpdate(BaseModel):
    """Payload for renaming or describing a folder."""
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Folder name cannot be empty")
        return v


class MoveRequested(BaseModel):
    """Request to reparent a folder or a document.

    ``destination_folder_id`` of None is only meaningful for documents
    (it makes them unfiled).
    """
    item_type: ItemType
    item_id: int
    destination_folder_id: Optional[int] = None
    source_folder_id: Optional[int] = Field(
        default=None,
        description="Folder currently holding the item, when the caller knows it",
    )

    class Config:
        frozen = True


class UploadRequested(BaseModel):
    """Request to upload a batch of files into one folder."""
    files: list
    target_folder_id: Optional[int] = None
    tags: str = ""
