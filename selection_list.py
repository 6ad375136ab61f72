"""Ordered collection with an optional selection cursor.

Every level of the journal tree (projects, subprojects, tasks) and the file
picker keep their children in a ``SelectionList``. The list tracks a single
selected index that is always either ``None`` or a valid position; every
mutation that changes the length restores that before returning.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class SelectionError(Exception):
    """Raised when a list operation cannot honour its precondition."""


class IndexOutOfRangeError(SelectionError, IndexError):
    """Raised when selecting or inserting at an index outside the list."""


class NoSelectionError(SelectionError):
    """Raised by operations that need a selected item when there is none."""


class SelectionList(Generic[T]):
    """Ordered items plus an optional selected index."""

    def __init__(self, items: Optional[Iterable[T]] = None):
        self._items: List[T] = list(items) if items is not None else []
        self._selection: Optional[int] = None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectionList):
            return NotImplemented
        return self._items == other._items and self._selection == other._selection

    def __repr__(self) -> str:
        return f"SelectionList(items={self._items!r}, selection={self._selection!r})"

    def __add__(self, other: "SelectionList[T]") -> "SelectionList[T]":
        """Concatenate two lists; the result has no selection."""
        if not isinstance(other, SelectionList):
            return NotImplemented
        return SelectionList(self._items + other._items)

    @property
    def items(self) -> Tuple[T, ...]:
        return tuple(self._items)

    @property
    def selection(self) -> Optional[int]:
        return self._selection

    def selected(self) -> Optional[T]:
        return self.get_item()

    def get_item(self, index: Optional[int] = None) -> Optional[T]:
        """Return the item at ``index``, or the selected item when omitted."""
        if index is None:
            index = self._selection
            if index is None:
                return None
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def push_item(self, item: T) -> None:
        self._items.append(item)

    def add_item(self, item: T, select: bool = False) -> None:
        """Insert ``item`` right after the selection (or at the end)."""
        if self._selection is None or self._selection >= len(self._items) - 1:
            self._items.append(item)
            new_index = len(self._items) - 1
        else:
            new_index = self._selection + 1
            self._items.insert(new_index, item)
        if select:
            self._selection = new_index

    def insert_item(self, index: Optional[int], item: T, select: bool = False) -> None:
        """Insert ``item`` at ``index`` (0 when ``None``)."""
        if index is None:
            index = 0
        if index < 0 or index > len(self._items):
            raise IndexOutOfRangeError(f"index {index} out of range for list of {len(self._items)}")
        self._items.insert(index, item)
        if select:
            self._selection = index

    def replace_selected(self, item: T) -> Optional[T]:
        """Swap the selected item for ``item`` and return the previous one."""
        if self._selection is None:
            return None
        previous = self._items[self._selection]
        self._items[self._selection] = item
        return previous

    def clear_items(self) -> None:
        self._items = []
        self._selection = None

    def select(self, index: int) -> None:
        if index < 0 or index >= len(self._items):
            raise IndexOutOfRangeError("index out of range")
        self._selection = index

    def deselect(self) -> None:
        self._selection = None

    def next_index(self) -> Optional[int]:
        """Index ``select_next`` would move to, without moving."""
        if not self._items:
            return None
        if self._selection is None or self._selection + 1 >= len(self._items):
            return 0
        return self._selection + 1

    def prev_index(self) -> Optional[int]:
        """Index ``select_prev`` would move to, without moving."""
        if not self._items:
            return None
        if self._selection is None or self._selection == 0:
            return len(self._items) - 1
        return self._selection - 1

    def next_item(self) -> Optional[T]:
        index = self.next_index()
        return None if index is None else self._items[index]

    def prev_item(self) -> Optional[T]:
        index = self.prev_index()
        return None if index is None else self._items[index]

    def select_next(self) -> None:
        self._selection = self.next_index()

    def select_prev(self) -> None:
        self._selection = self.prev_index()

    def shift_next(self) -> int:
        """Move the selected item one step towards the end.

        The last item wraps around to the front. Returns the new index.
        """
        if self._selection is None:
            raise NoSelectionError("no item selected")
        selected = self._selection
        if selected < len(self._items) - 1:
            new_index = selected + 1
            self._items[selected], self._items[new_index] = self._items[new_index], self._items[selected]
        else:
            self._items.insert(0, self._items.pop())
            new_index = 0
        self._selection = new_index
        return new_index

    def shift_prev(self) -> int:
        """Move the selected item one step towards the front.

        The first item wraps around to the end. Returns the new index.
        """
        if self._selection is None:
            raise NoSelectionError("no item selected")
        selected = self._selection
        if selected > 0:
            new_index = selected - 1
            self._items[selected], self._items[new_index] = self._items[new_index], self._items[selected]
        else:
            self._items.append(self._items.pop(selected))
            new_index = len(self._items) - 1
        self._selection = new_index
        return new_index

    def pop_selected(self) -> Optional[T]:
        """Remove and return the selected item.

        The cursor stays on the same index, which now holds the following
        item, and clamps to the new last index when the tail was removed.
        """
        if self._selection is None:
            return None
        index = self._selection
        result = self._items.pop(index)
        if not self._items:
            self._selection = None
        elif index >= len(self._items):
            self._selection = len(self._items) - 1
        return result

    def as_strings(self) -> List[str]:
        return [str(item) for item in self._items]

    def to_dict(self, item_to_dict: Callable[[T], Any]) -> Dict[str, Any]:
        return {
            "items": [item_to_dict(item) for item in self._items],
            "selection": self._selection,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], item_from_dict: Callable[[Any], T]) -> "SelectionList[T]":
        """Rebuild a list from ``to_dict`` output.

        A stored selection that no longer points at an item is dropped.
        """
        if not isinstance(data, dict):
            raise TypeError("selection list must be an object")
        raw_items = data["items"]
        if not isinstance(raw_items, list):
            raise TypeError("items must be a list")
        result = cls(item_from_dict(raw) for raw in raw_items)
        selection = data.get("selection")
        if isinstance(selection, int) and not isinstance(selection, bool) and 0 <= selection < len(result):
            result._selection = selection
        return result
