"""doctree MCP Server: browse and reorganize entity folder trees from AI editors.

Exposes the folder browser (tree, open, create, move, upload, download, delete) over
stdio transport for use with Cursor, Codex, or any MCP-compatible client.
One FolderBrowser session is kept per entity so expansion state and the
current folder survive between tool calls.
"""

from typing import Dict, Optional, Tuple

from mcp.server.fastmcp import FastMCP

from .api_client import DocTreeClient
from .browser import FolderBrowser
from .config import settings
from .exceptions import DocTreeError
from .formatters import (
    format_contents,
    format_documents,
    format_file_size,
    format_move_outcome,
    format_tree,
    format_upload_report,
)
from .logging_config import setup_logging
from .schemas import EntityType, ItemType, MoveRequested
from .upload_queue import UploadFile

mcp = FastMCP("doctree Folders")
client = DocTreeClient()

_sessions: Dict[Tuple[str, int], FolderBrowser] = {}


async def _session(entity_type: str, entity_id: int, entity_name: Optional[str] = None) -> FolderBrowser:
    """Get the entity's browser, loading it on first use."""
    key = (EntityType(entity_type).value, entity_id)
    browser = _sessions.get(key)
    if browser is None:
        browser = FolderBrowser(client, EntityType(entity_type), entity_id, entity_name)
        await browser.load()
        _sessions[key] = browser
    elif entity_name:
        browser.navigator.entity_name = entity_name
    return browser


def _view(browser: FolderBrowser) -> str:
    name = browser.navigator.entity_name
    return "\n\n".join([
        format_tree(browser.visible_rows(), name),
        format_contents(browser.contents, browser.breadcrumb, name),
    ])


@mcp.tool()
async def show_tree(entity_type: str, entity_id: int, entity_name: Optional[str] = None) -> str:
    """Show an entity's folder tree and the contents of the current folder.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        entity_name: Optional display name used for the root folder
    """
    try:
        browser = await _session(entity_type, entity_id, entity_name)
        await browser.refresh()
        return _view(browser)
    except (DocTreeError, ValueError) as e:
        return f"Error loading folders: {e}"


@mcp.tool()
async def open_folder(entity_type: str, entity_id: int, folder_id: int) -> str:
    """Open a folder: list its subfolders and documents and reveal it in the tree.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        folder_id: Folder to open
    """
    try:
        browser = await _session(entity_type, entity_id)
        await browser.open(folder_id)
        return _view(browser)
    except (DocTreeError, ValueError) as e:
        return f"Error opening folder: {e}"


@mcp.tool()
async def toggle_folder(entity_type: str, entity_id: int, folder_id: int) -> str:
    """Expand or collapse a folder in the tree view.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        folder_id: Folder to expand or collapse
    """
    try:
        browser = await _session(entity_type, entity_id)
        browser.toggle_expand(folder_id)
        return format_tree(browser.visible_rows(), browser.navigator.entity_name)
    except (DocTreeError, ValueError) as e:
        return f"Error toggling folder: {e}"


@mcp.tool()
async def create_folder(
    entity_type: str,
    entity_id: int,
    name: str,
    parent_folder_id: Optional[int] = None,
) -> str:
    """Create a folder.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        name: Folder name
        parent_folder_id: Parent folder (default: the currently open folder)
    """
    try:
        browser = await _session(entity_type, entity_id)
        folder = await browser.create_folder(name, parent_folder_id)
        return f"**Created:** {folder.name} (`{folder.id}`)\n\n" + _view(browser)
    except (DocTreeError, ValueError) as e:
        return f"Error creating folder: {e}"


@mcp.tool()
async def move_item(
    entity_type: str,
    entity_id: int,
    item_type: str,
    item_id: int,
    destination_folder_id: Optional[int] = None,
) -> str:
    """Move a folder or a document into another folder.

    A folder can never be moved into itself or into one of its own
    subfolders. Omitting destination_folder_id makes a document unfiled.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        item_type: "folder" or "document"
        item_id: Id of the folder or document to move
        destination_folder_id: Target folder
    """
    try:
        browser = await _session(entity_type, entity_id)
        outcome = await browser.handle(MoveRequested(
            item_type=ItemType(item_type),
            item_id=item_id,
            destination_folder_id=destination_folder_id,
        ))
        return format_move_outcome(outcome)
    except (DocTreeError, ValueError) as e:
        return f"Error moving item: {e}"


@mcp.tool()
async def upload_files(
    entity_type: str,
    entity_id: int,
    paths: list[str],
    folder_id: Optional[int] = None,
    tags: str = "",
    unfiled: bool = False,
) -> str:
    """Upload local files into a folder, one at a time.

    Files over the size limit or that cannot be read are skipped and
    reported; the others are still uploaded.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        paths: Local file paths
        folder_id: Target folder (default: the currently open folder)
        tags: Comma-separated tags applied to every uploaded document
        unfiled: Upload without placing the documents in any folder
    """
    try:
        browser = await _session(entity_type, entity_id)
        files = [UploadFile.from_path(p) for p in paths]
        report = await browser.upload(files, folder_id, tags, unfiled=unfiled)
        return format_upload_report(report)
    except (DocTreeError, ValueError) as e:
        return f"Error uploading files: {e}"


@mcp.tool()
async def delete_folder(entity_type: str, entity_id: int, folder_id: int, confirm: bool = False) -> str:
    """Delete a folder with all of its subfolders and documents.

    This cannot be undone. Call once without confirm to see what would be
    removed, then again with confirm=true.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        folder_id: Folder to delete
        confirm: Must be true to actually delete
    """
    try:
        browser = await _session(entity_type, entity_id)
        summary: Dict[str, object] = {}

        def _confirm(folder, descendant_count: int) -> bool:
            summary["name"] = folder.name
            summary["descendants"] = descendant_count
            return confirm

        deleted = await browser.delete_folder(folder_id, confirm=_confirm)
        if not deleted:
            return (
                f"Folder \"{summary['name']}\" and its {summary['descendants']} subfolder(s) "
                "and all contained documents would be deleted. Call again with confirm=true."
            )
        return f"**Deleted:** folder `{folder_id}`\n\n" + _view(browser)
    except (DocTreeError, ValueError) as e:
        return f"Error deleting folder: {e}"


@mcp.tool()
async def delete_document(entity_type: str, entity_id: int, document_id: int) -> str:
    """Delete a document. This cannot be undone.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        document_id: Document to delete
    """
    try:
        browser = await _session(entity_type, entity_id)
        await browser.delete_document(document_id)
        return f"**Deleted:** document `{document_id}`\n\n" + _view(browser)
    except (DocTreeError, ValueError) as e:
        return f"Error deleting document: {e}"


@mcp.tool()
async def download_document(entity_type: str, entity_id: int, document_id: int, dest: str) -> str:
    """Download a document's file to a local directory or file path.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
        document_id: Document to download
        dest: Directory (keeps the stored file name) or full target path
    """
    try:
        browser = await _session(entity_type, entity_id)
        path = await browser.download_document(document_id, dest)
        return f"**Downloaded:** document `{document_id}` to {path} ({format_file_size(path.stat().st_size)})"
    except OSError as e:
        return f"Error writing file: {e}"
    except (DocTreeError, ValueError) as e:
        return f"Error downloading document: {e}"


@mcp.tool()
async def list_unfiled(entity_type: str, entity_id: int) -> str:
    """List an entity's documents that are not in any folder yet.

    Args:
        entity_type: One of event, participant, speaker, enrollment, task
        entity_id: Numeric id of the entity
    """
    try:
        browser = await _session(entity_type, entity_id)
        return format_documents(await browser.unfiled_documents())
    except (DocTreeError, ValueError) as e:
        return f"Error listing documents: {e}"


def main() -> None:
    """Entry point: runs the MCP server over stdio."""
    setup_logging(settings.log_level, settings.log_format, secrets=[settings.api_token])
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
