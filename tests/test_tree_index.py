"""Tests for the flat-list -> hierarchy projection."""

from doctree.schemas import EntityType
from doctree.tree_index import TreeIndex

from tests.conftest import make_folder


class TestChildren:

    def test_root_level_is_exactly_the_parentless_folders(self, scenario_folders):
        index = TreeIndex(scenario_folders)
        assert [f.id for f in index.children_of(None)] == [1]

    def test_children_are_sorted_by_name_then_id(self):
        index = TreeIndex([
            make_folder(1),
            make_folder(5, 1, "beta"),
            make_folder(3, 1, "Alpha"),
            make_folder(4, 1, "alpha"),
        ])
        assert [f.id for f in index.children_of(1)] == [3, 4, 5]

    def test_unknown_parent_has_no_children(self, index):
        assert index.children_of(999) == []

    def test_children_of_returns_a_copy(self, index):
        index.children_of(1).clear()
        assert len(index.children_of(1)) == 2

    def test_has_children(self, index):
        assert index.has_children(1)
        assert index.has_children(2)
        assert not index.has_children(3)
        assert not index.has_children(999)


class TestLookup:

    def test_find_by_id(self, index):
        assert index.find_by_id(3).name == "B"

    def test_find_missing_returns_none(self, index):
        assert index.find_by_id(42) is None
        assert index.find_by_id(None) is None

    def test_len_contains_iter(self, index):
        assert len(index) == 4
        assert 2 in index
        assert 99 not in index
        assert {f.id for f in index} == {1, 2, 3, 4}

    def test_root(self, index):
        assert index.root().id == 1

    def test_root_of_empty_tree_is_none(self):
        assert TreeIndex([]).root() is None

    def test_several_roots_picks_lowest_id(self):
        index = TreeIndex([make_folder(7), make_folder(3)])
        assert index.root().id == 3
        assert len(index.roots()) == 2


class TestAncestry:

    def test_iter_ancestors_nearest_first(self, index):
        assert [f.id for f in index.iter_ancestors(3)] == [2, 1]

    def test_root_has_no_ancestors(self, index):
        assert list(index.iter_ancestors(1)) == []

    def test_ancestor_walk_stops_at_missing_parent(self):
        index = TreeIndex([make_folder(1), make_folder(5, 4), make_folder(6, 5)])
        assert [f.id for f in index.iter_ancestors(6)] == [5]

    def test_ancestor_walk_terminates_on_cyclic_data(self):
        index = TreeIndex([make_folder(1, 2), make_folder(2, 1)])
        assert len(list(index.iter_ancestors(1))) <= 2

    def test_descendants(self, index):
        assert {f.id for f in index.descendants_of(1)} == {2, 3, 4}
        assert [f.id for f in index.descendants_of(2)] == [3]
        assert index.descendants_of(3) == []

    def test_is_descendant(self, index):
        assert index.is_descendant(3, 1)
        assert index.is_descendant(3, 2)
        assert not index.is_descendant(2, 3)
        assert not index.is_descendant(4, 2)


class TestConsistency:

    def test_missing_parent_is_recorded_not_raised(self):
        index = TreeIndex([make_folder(1), make_folder(5, 4)])
        assert len(index.warnings) == 1
        assert index.warnings[0].folder_id == 5
        assert index.warnings[0].missing_parent_id == 4
        assert 5 in index

    def test_consistent_list_has_no_warnings(self, index):
        assert index.warnings == []

    def test_foreign_scope_folders_are_dropped(self):
        index = TreeIndex(
            [
                make_folder(1),
                make_folder(2, 1),
                make_folder(3, None, entity_id=2),
                make_folder(4, None, entity_type=EntityType.SPEAKER),
            ],
            EntityType.EVENT,
            1,
        )
        assert {f.id for f in index} == {1, 2}
