#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
node_arena.py
-------------

Node storage for :class:`kv_tree.KVTree`.

All nodes live in one :class:`NodeArena` and are addressed by integer
handles; ``parent``, ``left`` and ``right`` are stored as ``Optional[int]``.
The arena exposes two kinds of link mutation:

* **attach** (``set_parent`` / ``set_left`` / ``set_right``) – only fills an
  empty slot, raising :class:`~kv_errors.LinkAlreadySetError` otherwise.
  Insertion uses nothing else, so inserting can extend the tree but never
  rewire it.
* **relink** (``detach_no_children`` / ``detach_promote_left`` /
  ``detach_promote_right``) – overwrites existing links and is only called
  by the deletion algorithm.

Released slots go on a free list and are handed out again by ``create``.
"""

from __future__ import annotations

from typing import Any, Generic, List, NamedTuple, Optional, TypeVar

from kv_errors import LinkAlreadySetError

K = TypeVar("K")
V = TypeVar("V")


class Entry(NamedTuple):
    """Immutable ``(key, value)`` pair stored in a node."""

    key: Any
    value: Any


class _Slot:
    """One arena cell – not meant to be used directly by callers."""

    __slots__ = ("entry", "parent", "left", "right")

    def __init__(self, entry: Optional[Entry]) -> None:
        self.entry = entry
        self.parent: Optional[int] = None
        self.left: Optional[int] = None
        self.right: Optional[int] = None

    def __repr__(self) -> str:
        return (
            f"<Slot {self.entry!r} p={self.parent} "
            f"l={self.left} r={self.right}>"
        )


class NodeArena(Generic[K, V]):
    """Owns every node of a tree; nodes are referred to by ``int`` handles."""

    __slots__ = ("_slots", "_free", "_live")

    def __init__(self) -> None:
        self._slots: List[_Slot] = []
        self._free: List[int] = []
        self._live: int = 0

    # ------------------------------------------------------------------
    #   Allocation
    # ------------------------------------------------------------------
    def create(self, entry: Entry) -> int:
        """Return the handle of a new isolated node holding *entry*."""
        if self._free:
            handle = self._free.pop()
            self._slots[handle] = _Slot(entry)
        else:
            handle = len(self._slots)
            self._slots.append(_Slot(entry))
        self._live += 1
        return handle

    def release(self, handle: int) -> None:
        """Return an unlinked node to the free list."""
        slot = self._slot(handle)
        slot.entry = None
        slot.parent = slot.left = slot.right = None
        self._free.append(handle)
        self._live -= 1

    def __len__(self) -> int:
        return self._live

    def _slot(self, handle: int) -> _Slot:
        slot = self._slots[handle]
        if slot.entry is None:
            raise ValueError(f"Handle {handle} does not refer to a live node")
        return slot

    # ------------------------------------------------------------------
    #   Read access
    # ------------------------------------------------------------------
    def entry(self, handle: int) -> Entry:
        return self._slot(handle).entry  # type: ignore[return-value]

    def key(self, handle: int) -> K:
        return self._slot(handle).entry.key  # type: ignore[union-attr]

    def parent(self, handle: int) -> Optional[int]:
        return self._slot(handle).parent

    def left(self, handle: int) -> Optional[int]:
        return self._slot(handle).left

    def right(self, handle: int) -> Optional[int]:
        return self._slot(handle).right

    # ------------------------------------------------------------------
    #   Attach (write-once)
    # ------------------------------------------------------------------
    def set_parent(self, handle: int, parent: int) -> None:
        slot = self._slot(handle)
        if slot.parent is not None:
            raise LinkAlreadySetError(handle, "parent")
        slot.parent = parent

    def set_left(self, handle: int, child: int) -> None:
        slot = self._slot(handle)
        if slot.left is not None:
            raise LinkAlreadySetError(handle, "left")
        slot.left = child

    def set_right(self, handle: int, child: int) -> None:
        slot = self._slot(handle)
        if slot.right is not None:
            raise LinkAlreadySetError(handle, "right")
        slot.right = child

    # ------------------------------------------------------------------
    #   Entry replacement
    # ------------------------------------------------------------------
    def swap_data(self, handle: int, other: int) -> None:
        """Overwrite the entry of *handle* with the entry of *other*; links stay."""
        self._slot(handle).entry = self._slot(other).entry

    def replace_entry(self, handle: int, entry: Entry) -> None:
        self._slot(handle).entry = entry

    # ------------------------------------------------------------------
    #   Relink (deletion only)
    # ------------------------------------------------------------------
    def detach_no_children(self, handle: int, parent: int) -> None:
        """Clear whichever child link of *parent* points at *handle*."""
        pslot = self._slot(parent)
        if pslot.right == handle:
            pslot.right = None
        else:
            pslot.left = None
        self._slot(handle).parent = None

    def detach_promote_right(self, handle: int, parent: Optional[int] = None) -> None:
        """
        Let the right child of *handle* take its place.

        With a *parent* the child is hung from the same side of the parent
        that *handle* occupied.  Without one (*handle* is the root) the
        child's parent link is cleared and the caller must make it the root.
        """
        slot = self._slot(handle)
        child = slot.right
        if child is None:
            raise ValueError(f"Node {handle} has no right child to promote")
        self._promote(handle, child, parent)

    def detach_promote_left(self, handle: int, parent: Optional[int] = None) -> None:
        """Mirror of :meth:`detach_promote_right` using the left child."""
        slot = self._slot(handle)
        child = slot.left
        if child is None:
            raise ValueError(f"Node {handle} has no left child to promote")
        self._promote(handle, child, parent)

    def _promote(self, handle: int, child: int, parent: Optional[int]) -> None:
        if parent is not None:
            pslot = self._slot(parent)
            if pslot.right == handle:
                pslot.right = child
            else:
                pslot.left = child
        self._slot(child).parent = parent
        slot = self._slot(handle)
        slot.parent = slot.left = slot.right = None
