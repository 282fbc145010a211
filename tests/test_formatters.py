"""Tests for markdown formatting of tree state and results."""

import pytest

from doctree.drag_drop import MoveOutcome, MoveStatus
from doctree.exceptions import FileTooLargeError, RemoteError, SelfMoveError
from doctree.formatters import (
    format_breadcrumb,
    format_contents,
    format_documents,
    format_file_size,
    format_move_outcome,
    format_tree,
    format_upload_report,
)
from doctree.navigator import Navigator
from doctree.path_resolver import PathResolver
from doctree.schemas import EntityType, ItemType, MoveRequested
from doctree.tree_index import TreeIndex
from doctree.upload_queue import UploadOutcome, UploadReport, UploadStatus

from tests.conftest import MB, make_document, make_folder, run


class TestFileSize:

    @pytest.mark.parametrize("size,expected", [
        (None, "N/A"),
        (0, "N/A"),
        (512, "0.5 KB"),
        (1536, "1.5 KB"),
        (5 * MB, "5.0 MB"),
        (int(2.5 * MB), "2.5 MB"),
    ])
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected


class TestTree:

    def test_rows_show_markers_and_current(self, store):
        navigator = Navigator(store, EntityType.EVENT, 1)
        run(navigator.load())
        run(navigator.open(3))
        text = format_tree(navigator.visible_rows(), "Congress")
        assert text.splitlines() == [
            "[-] Congress (`1`)",
            "  [-] A (`2`)",
            "        B (`3`) *",
            "      C (`4`)",
        ]

    def test_empty_tree(self):
        assert format_tree([]) == "No folders."


class TestBreadcrumb:

    def test_complete_path(self, index):
        crumb = PathResolver(index).breadcrumb_of(index.find_by_id(3))
        assert format_breadcrumb(crumb, "Congress") == "Congress / A / B"

    def test_partial_path_is_marked(self):
        index = TreeIndex([make_folder(1), make_folder(5, 4, "orphan")])
        crumb = PathResolver(index).breadcrumb_of(index.find_by_id(5))
        assert format_breadcrumb(crumb) == "… / orphan"


class TestContents:

    def test_nothing_open(self, index):
        crumb = PathResolver(index).breadcrumb_of(index.root())
        assert format_contents(None, crumb) == "No folder open."

    def test_folder_listing(self, store):
        navigator = Navigator(store, EntityType.EVENT, 1)
        run(navigator.load())
        text = format_contents(navigator.contents, navigator.breadcrumb, "Congress")
        assert text.startswith("## Congress\n")
        assert "### Folders (2)" in text
        assert "- A (`2`)" in text
        assert "### Documents (1)" in text
        assert "budget.xlsx" in text

    def test_documents_line(self):
        text = format_documents([make_document(10, 2, "agenda.pdf", file_size=2048)])
        assert text == "- agenda.pdf (`10`, 2.0 KB, application/pdf, 2024-05-01)"

    def test_no_documents(self):
        assert format_documents([]) == "No documents."


class TestResults:

    def test_upload_report(self):
        report = UploadReport((
            UploadOutcome("a.pdf", UploadStatus.SUCCEEDED, document=make_document(101, 2, "a.pdf")),
            UploadOutcome("b.iso", UploadStatus.REJECTED, error=FileTooLargeError("b.iso", 60 * MB, 50 * MB)),
            UploadOutcome("c.pdf", UploadStatus.FAILED, error=RemoteError("upload_document", "HTTP 500")),
        ))
        lines = format_upload_report(report).splitlines()
        assert lines[0] == "Uploaded 1 of 3 file(s) (1 failed, 1 rejected):"
        assert "- OK a.pdf (`101`)" in lines
        assert '- REJECTED b.iso: "b.iso" exceeds 50MB' in lines
        assert "- FAILED c.pdf: upload_document failed: HTTP 500" in lines

    def test_empty_upload_report(self):
        assert format_upload_report(UploadReport(())) == "No files selected."

    def test_move_outcomes(self):
        request = MoveRequested(item_type=ItemType.FOLDER, item_id=2, destination_folder_id=2)
        assert format_move_outcome(MoveOutcome(request, MoveStatus.MOVED)) == (
            "**Moved:** folder `2` to folder `2`"
        )
        assert format_move_outcome(MoveOutcome(request, MoveStatus.REJECTED, error=SelfMoveError(2))) == (
            "**Move rejected:** Cannot move a folder into itself"
        )

    def test_move_to_unfiled(self):
        request = MoveRequested(item_type=ItemType.DOCUMENT, item_id=10, destination_folder_id=None)
        assert format_move_outcome(MoveOutcome(request, MoveStatus.IGNORED)) == (
            "Nothing to do: document `10` is already in unfiled."
        )
