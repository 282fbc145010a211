"""Format tree state and operation results as markdown for display."""

from typing import List, Optional

from .drag_drop import MoveOutcome, MoveStatus
from .path_resolver import Breadcrumb, display_name
from .schemas import Document, FolderContents
from .navigator import TreeRow
from .upload_queue import UploadReport, UploadStatus


def format_file_size(size: Optional[int]) -> str:
    """Human-readable size: ``"N/A"``, ``"12.5 KB"`` or ``"3.2 MB"``."""
    if not size:
        return "N/A"
    kb = size / 1024
    if kb < 1024:
        return f"{kb:.1f} KB"
    return f"{kb / 1024:.1f} MB"


def format_breadcrumb(breadcrumb: Breadcrumb, entity_name: Optional[str] = None) -> str:
    if not len(breadcrumb):
        return "(no folder open)"
    text = " / ".join(breadcrumb.labels(entity_name))
    if not breadcrumb.complete:
        text = "… / " + text
    return text


def format_tree(rows: List[TreeRow], entity_name: Optional[str] = None) -> str:
    """Indented folder tree; ``[+]`` collapsed, ``[-]`` expanded, ``*`` current."""
    if not rows:
        return "No folders."

    lines = []
    for row in rows:
        if row.has_children:
            marker = "[-]" if row.expanded else "[+]"
        else:
            marker = "   "
        name = display_name(row.folder, entity_name)
        current = " *" if row.selected else ""
        lines.append(f"{'  ' * row.depth}{marker} {name} (`{row.folder.id}`){current}")
    return "\n".join(lines)


def format_documents(docs: List[Document]) -> str:
    if not docs:
        return "No documents."

    lines = []
    for doc in docs:
        line = f"- {doc.file_name} (`{doc.id}`, {format_file_size(doc.file_size)}"
        if doc.mime_type:
            line += f", {doc.mime_type}"
        if doc.uploaded_at:
            line += f", {doc.uploaded_at:%Y-%m-%d}"
        line += ")"
        if doc.tags:
            line += f" [{', '.join(doc.tags)}]"
        lines.append(line)
    return "\n".join(lines)


def format_contents(
    contents: Optional[FolderContents],
    breadcrumb: Breadcrumb,
    entity_name: Optional[str] = None,
) -> str:
    """Current folder: path header, subfolders, documents."""
    if contents is None:
        return "No folder open."

    lines = [f"## {format_breadcrumb(breadcrumb, entity_name)}\n"]

    lines.append(f"### Folders ({len(contents.subfolders)})")
    if contents.subfolders:
        for folder in contents.subfolders:
            lines.append(f"- {display_name(folder, entity_name)} (`{folder.id}`)")
    else:
        lines.append("No subfolders.")
    lines.append("")

    lines.append(f"### Documents ({len(contents.documents)})")
    lines.append(format_documents(contents.documents))
    return "\n".join(lines)


def format_upload_report(report: UploadReport) -> str:
    if not len(report):
        return "No files selected."

    lines = [
        f"Uploaded {len(report.succeeded)} of {len(report)} file(s) "
        f"({len(report.failed)} failed, {len(report.rejected)} rejected):\n"
    ]
    for outcome in report:
        if outcome.status == UploadStatus.SUCCEEDED:
            doc_id = outcome.document.id if outcome.document else "?"
            lines.append(f"- OK {outcome.file_name} (`{doc_id}`)")
        else:
            label = "FAILED" if outcome.status == UploadStatus.FAILED else "REJECTED"
            lines.append(f"- {label} {outcome.file_name}: {outcome.reason}")
    return "\n".join(lines)


def format_move_outcome(outcome: MoveOutcome) -> str:
    request = outcome.request
    item = f"{request.item_type.value} `{request.item_id}`"
    target = (
        f"folder `{request.destination_folder_id}`"
        if request.destination_folder_id is not None
        else "unfiled"
    )

    if outcome.status == MoveStatus.MOVED:
        text = f"**Moved:** {item} to {target}"
        if outcome.error:
            text += f"\n\nThe view could not be refreshed: {outcome.reason}"
        return text
    if outcome.status == MoveStatus.IGNORED:
        return f"Nothing to do: {item} is already in {target}."
    if outcome.status == MoveStatus.REJECTED:
        return f"**Move rejected:** {outcome.reason}"
    return f"**Move failed:** {outcome.reason}"
