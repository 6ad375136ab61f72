"""Tests for selection_list.py."""

import pytest

from selection_list import IndexOutOfRangeError, NoSelectionError, SelectionError, SelectionList


def _valid(lst):
    return lst.selection is None or 0 <= lst.selection < len(lst)


@pytest.fixture
def abc():
    return SelectionList(["a", "b", "c"])


class TestSelection:
    """Selecting and navigating."""

    def test_new_list_has_no_selection(self, abc):
        assert abc.selection is None
        assert abc.selected() is None
        assert SelectionList().selection is None

    def test_select_valid_index(self, abc):
        abc.select(1)
        assert abc.selection == 1
        assert abc.selected() == "b"

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_select_out_of_range_raises_and_keeps_selection(self, abc, index):
        abc.select(2)
        with pytest.raises(IndexOutOfRangeError, match="index out of range"):
            abc.select(index)
        assert abc.selection == 2

    def test_out_of_range_error_is_also_index_error(self, abc):
        with pytest.raises(IndexError):
            abc.select(5)
        with pytest.raises(SelectionError):
            abc.select(5)

    def test_deselect(self, abc):
        abc.select(0)
        abc.deselect()
        assert abc.selection is None

    def test_select_next_is_cyclic(self, abc):
        seen = []
        for _ in range(4):
            abc.select_next()
            seen.append(abc.selection)
        assert seen == [0, 1, 2, 0]

    def test_select_prev_is_cyclic(self, abc):
        seen = []
        for _ in range(4):
            abc.select_prev()
            seen.append(abc.selection)
        assert seen == [2, 1, 0, 2]

    def test_full_cycle_returns_to_start(self, abc):
        abc.select(1)
        for _ in range(len(abc)):
            abc.select_next()
        assert abc.selection == 1

    def test_navigation_on_empty_list(self):
        lst = SelectionList()
        lst.select_next()
        assert lst.selection is None
        lst.select_prev()
        assert lst.selection is None
        assert lst.next_item() is None
        assert lst.prev_item() is None

    def test_next_and_prev_item_do_not_move(self, abc):
        abc.select(2)
        assert abc.next_item() == "a"
        assert abc.prev_item() == "b"
        assert abc.selection == 2


class TestGetItem:
    def test_get_item_defaults_to_selection(self, abc):
        assert abc.get_item() is None
        abc.select(2)
        assert abc.get_item() == "c"

    def test_get_item_by_index(self, abc):
        assert abc.get_item(0) == "a"
        assert abc.get_item(3) is None
        assert abc.get_item(-1) is None

    def test_items_is_read_only_snapshot(self, abc):
        assert abc.items == ("a", "b", "c")
        assert list(abc) == ["a", "b", "c"]


class TestInsertion:
    def test_push_item_appends_without_selecting(self, abc):
        abc.push_item("d")
        assert abc.items[-1] == "d"
        assert abc.selection is None

    def test_add_item_appends_without_selection(self, abc):
        abc.add_item("d", select=True)
        assert abc.items == ("a", "b", "c", "d")
        assert abc.selection == 3

    def test_add_item_inserts_after_selection(self, abc):
        abc.select(0)
        abc.add_item("x", select=True)
        assert abc.items == ("a", "x", "b", "c")
        assert abc.selected() == "x"

    def test_add_item_without_select_keeps_cursor(self, abc):
        abc.select(0)
        abc.add_item("x")
        assert abc.selection == 0

    def test_insert_item_none_means_front(self, abc):
        abc.insert_item(None, "z", select=True)
        assert abc.items[0] == "z"
        assert abc.selection == 0

    def test_insert_item_at_end(self, abc):
        abc.insert_item(3, "d")
        assert abc.items[-1] == "d"

    def test_insert_item_out_of_range(self, abc):
        with pytest.raises(IndexOutOfRangeError):
            abc.insert_item(4, "x")
        with pytest.raises(IndexOutOfRangeError):
            abc.insert_item(-1, "x")

    def test_replace_selected(self, abc):
        assert abc.replace_selected("q") is None
        abc.select(1)
        assert abc.replace_selected("q") == "b"
        assert abc.items == ("a", "q", "c")


class TestReorder:
    """shift_next / shift_prev keep the moved item selected."""

    def test_shift_next_swaps(self, abc):
        abc.select(0)
        assert abc.shift_next() == 1
        assert abc.items == ("b", "a", "c")
        assert abc.selected() == "a"

    def test_shift_next_at_end_moves_to_front(self, abc):
        abc.select(2)
        assert abc.shift_next() == 0
        assert abc.items == ("c", "a", "b")
        assert abc.selected() == "c"

    def test_shift_prev_swaps(self, abc):
        abc.select(2)
        assert abc.shift_prev() == 1
        assert abc.items == ("a", "c", "b")

    def test_shift_prev_at_front_moves_to_end(self, abc):
        abc.select(0)
        assert abc.shift_prev() == 2
        assert abc.items == ("b", "c", "a")
        assert abc.selected() == "a"

    def test_shift_keeps_items_as_multiset(self, abc):
        abc.select(1)
        for _ in range(5):
            abc.shift_next()
        abc.shift_prev()
        assert sorted(abc.items) == ["a", "b", "c"]

    def test_boundary_shift_next_then_prev_restores_order(self, abc):
        abc.select(2)
        abc.shift_next()
        abc.shift_prev()
        assert abc.items == ("a", "b", "c")
        assert abc.selection == 2

    def test_boundary_shift_prev_then_next_restores_order(self, abc):
        abc.select(0)
        abc.shift_prev()
        abc.shift_next()
        assert abc.items == ("a", "b", "c")
        assert abc.selection == 0

    def test_shift_without_selection_raises(self, abc):
        with pytest.raises(NoSelectionError, match="no item selected"):
            abc.shift_next()
        with pytest.raises(NoSelectionError):
            abc.shift_prev()


class TestPop:
    def test_pop_without_selection(self, abc):
        assert abc.pop_selected() is None
        assert len(abc) == 3

    def test_pop_middle_keeps_index(self, abc):
        abc.select(1)
        assert abc.pop_selected() == "b"
        assert abc.selection == 1
        assert abc.selected() == "c"

    def test_pop_last_clamps(self, abc):
        abc.select(2)
        assert abc.pop_selected() == "c"
        assert abc.selection == 1

    def test_pop_until_empty(self, abc):
        abc.select(0)
        popped = [abc.pop_selected() for _ in range(3)]
        assert popped == ["a", "b", "c"]
        assert len(abc) == 0
        assert abc.selection is None
        assert abc.pop_selected() is None

    def test_clear_items(self, abc):
        abc.select(1)
        abc.clear_items()
        assert len(abc) == 0
        assert abc.selection is None


class TestInvariant:
    def test_selection_stays_valid_through_mixed_operations(self):
        lst = SelectionList()
        ops = [
            lambda: lst.add_item(1, select=True),
            lambda: lst.add_item(2),
            lambda: lst.select_prev(),
            lambda: lst.pop_selected(),
            lambda: lst.push_item(3),
            lambda: lst.select_next(),
            lambda: lst.shift_next(),
            lambda: lst.pop_selected(),
            lambda: lst.pop_selected(),
            lambda: lst.select_next(),
        ]
        for op in ops:
            op()
            assert _valid(lst)


class TestConcatenation:
    def test_add_concatenates_and_drops_selection(self, abc):
        other = SelectionList(["d"])
        abc.select(1)
        other.select(0)
        joined = abc + other
        assert joined.items == ("a", "b", "c", "d")
        assert joined.selection is None
        assert len(joined) == len(abc) + len(other)

    def test_add_leaves_operands_unchanged(self, abc):
        other = SelectionList(["d"])
        _ = abc + other
        assert abc.items == ("a", "b", "c")
        assert other.items == ("d",)


class TestSerialization:
    def test_to_dict(self, abc):
        abc.select(2)
        assert abc.to_dict(str.upper) == {"items": ["A", "B", "C"], "selection": 2}

    def test_from_dict_restores_selection(self):
        lst = SelectionList.from_dict({"items": [1, 2], "selection": 1}, int)
        assert lst.items == (1, 2)
        assert lst.selection == 1
        assert lst == SelectionList.from_dict({"items": [1, 2], "selection": 1}, int)

    @pytest.mark.parametrize("selection", [5, -1, True, "0"])
    def test_from_dict_drops_invalid_selection(self, selection):
        lst = SelectionList.from_dict({"items": [1, 2], "selection": selection}, int)
        assert lst.selection is None

    def test_from_dict_requires_list(self):
        with pytest.raises(TypeError):
            SelectionList.from_dict({"items": "abc", "selection": None}, str)

    def test_as_strings(self):
        assert SelectionList([1, "x"]).as_strings() == ["1", "x"]

    def test_from_dict_requires_object(self):
        with pytest.raises(TypeError, match="must be an object"):
            SelectionList.from_dict(["a"], str)
