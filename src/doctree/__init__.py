"""Client-side folder/document tree management for per-entity document stores."""

from .browser import FolderBrowser
from .drag_drop import DragDropController
from .move_validator import MoveDecision, MoveValidator
from .navigator import Navigator
from .path_resolver import Breadcrumb, PathResolver
from .tree_index import TreeIndex
from .upload_queue import UploadFile, UploadQueue, UploadReport

__all__ = [
    "Breadcrumb",
    "DragDropController",
    "FolderBrowser",
    "MoveDecision",
    "MoveValidator",
    "Navigator",
    "PathResolver",
    "TreeIndex",
    "UploadFile",
    "UploadQueue",
    "UploadReport",
]
