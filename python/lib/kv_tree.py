#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
kv_tree.py
----------

An ordered key → value container backed by an **unbalanced** binary search
tree.  Nothing is ever rotated, so the shape of the tree is decided purely by
insertion order: random input gives O(log n) operations on average, sorted
input degrades the tree into a linked list with O(n) operations.

Features
~~~~~~~~
* `tree.insert(key, value)` – add a new key (DuplicateKeyError if present)
* `tree[key] = value`        – insert, or replace the value of an existing key
* `value = tree[key]`        – lookup (KeyNotFoundError if missing)
* `tree.lookup(key)`         – lookup returning a default instead of raising
* `tree.delete(key)` / `del tree[key]` – remove (KeyNotFoundError if missing)
* `key in tree`, `len(tree)`, `tree.count()`
* iteration (`for entry in tree:`) – ``Entry(key, value)`` pairs in ascending key order
* `tree.keys()`, `tree.values()`, `tree.items()`, `tree.clear()`
* `tree.copy_to(buffer, offset)` – bulk copy into a pre-sized list
* `tree.min_key()`, `tree.max_key()`, `tree.height()`
* `tree.validate()` – sanity-check ordering, links and count (useful for debugging)

Nodes are kept in a :class:`node_arena.NodeArena` and referenced by integer
handles.  Every descent and traversal is a loop, so a degenerate tree of any
size never hits the interpreter's recursion limit.

Deleting a node with two children copies the entry of its in-order successor
or predecessor into it and removes that node instead.  Which one is used is
set by ``removal_policy``; the resulting set of entries is the same either
way, only the shape differs.

Typical usage
~~~~~~~~~~~~~
>>> from kv_tree import KVTree
>>> tree = KVTree()
>>> tree.insert(50, "fifty")
>>> tree.insert(30, "thirty")
>>> tree[70] = "seventy"
>>> tree.keys()
[30, 50, 70]
>>> tree.delete(50)
True
>>> 50 in tree
False
>>> tree.lookup(50, "missing")
'missing'
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    MutableSequence,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from kv_errors import (
    ArgumentOutOfRangeError,
    DuplicateKeyError,
    InsufficientCapacityError,
    KeyNotFoundError,
    NullArgumentError,
    NullKeyError,
)
from node_arena import Entry, NodeArena

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
#  Type variables (keys must be totally ordered, values may be anything)
# ----------------------------------------------------------------------
K = TypeVar("K")
V = TypeVar("V")


class RemovalPolicy(str, Enum):
    """Which neighbour replaces a deleted node that has two children."""

    SUCCESSOR = "successor"
    PREDECESSOR = "predecessor"
    RANDOM = "random"


def compare_keys(a: Any, b: Any) -> int:
    """Three-way comparison: -1 if ``a < b``, 1 if ``a > b``, 0 otherwise."""
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


class KVTree(Generic[K, V]):
    """
    A mutable ordered mapping implemented with a plain binary search tree.

    Unlike ``dict``, iterating the tree yields ``Entry(key, value)`` pairs
    (so ``dict(tree)`` works); use :meth:`keys` for the keys alone.
    """

    __slots__ = ("_arena", "_root", "_count", "_key", "_policy", "_rng")

    # ------------------------------------------------------------------
    #   Construction / configuration
    # ------------------------------------------------------------------
    def __init__(
        self,
        items: Optional[Iterable[Tuple[K, V]]] = None,
        *,
        key: Optional[Callable[[K], Any]] = None,
        removal_policy: Union[RemovalPolicy, str] = RemovalPolicy.SUCCESSOR,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Create an empty tree or optionally initialise it from an iterable of
        ``(key, value)`` pairs.

        Parameters
        ----------
        items : iterable of (key, value)   optional
            Each pair is passed to :meth:`insert` in order, so a repeated key
            raises ``DuplicateKeyError``.
        key : Callable[[K], Any], optional
            Maps a stored key to the value actually compared (like the
            ``key`` argument of ``sorted``).
        removal_policy : RemovalPolicy or str, default ``"successor"``
            Neighbour used when deleting a node with two children.
            ``"random"`` flips a coin on every such deletion.
        rng : random.Random, optional
            Source of randomness for ``"random"``.  Mutually exclusive with
            *seed*.
        seed : int, optional
            Seed for a private ``random.Random`` used by ``"random"``.
        """
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")

        self._arena: NodeArena[K, V] = NodeArena()
        self._root: Optional[int] = None
        self._count: int = 0
        self._key: Callable[[K], Any] = (lambda k: k) if key is None else key
        self._policy: RemovalPolicy = RemovalPolicy(removal_policy)
        self._rng: random.Random = rng if rng is not None else random.Random(seed)

        if items is not None:
            for k, v in items:
                self.insert(k, v)

    @property
    def removal_policy(self) -> RemovalPolicy:
        return self._policy

    @property
    def is_read_only(self) -> bool:
        return False

    def _compare(self, a: K, b: K) -> int:
        return compare_keys(self._key(a), self._key(b))

    # ------------------------------------------------------------------
    #   Search
    # ------------------------------------------------------------------
    def _search_node(self, key: K) -> Optional[int]:
        """Return the handle of the node holding *key*, or ``None``."""
        if key is None:
            return None
        arena = self._arena
        cur = self._root
        while cur is not None:
            c = self._compare(key, arena.key(cur))
            if c == 0:
                return cur
            cur = arena.left(cur) if c < 0 else arena.right(cur)
        return None

    def contains(self, key: K) -> bool:
        return self._search_node(key) is not None

    def lookup(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Return the value stored under *key*, or *default* if it is absent."""
        node = self._search_node(key)
        if node is None:
            return default
        return self._arena.entry(node).value

    def try_get(self, key: K) -> Tuple[bool, Optional[V]]:
        """Return ``(True, value)`` if *key* is present, else ``(False, None)``."""
        node = self._search_node(key)
        if node is None:
            return False, None
        return True, self._arena.entry(node).value

    def contains_entry(self, pair: Tuple[K, V]) -> bool:
        """Membership test for a pair; only the key takes part in the match."""
        return self.contains(pair[0])

    # ------------------------------------------------------------------
    #   Insertion
    # ------------------------------------------------------------------
    def insert(self, key: K, value: V) -> None:
        """
        Add *key* with *value*.

        Raises ``NullKeyError`` for a ``None`` key and ``DuplicateKeyError``
        if the key is found on the way down; the tree is untouched in both
        cases.
        """
        if key is None:
            raise NullKeyError()

        arena = self._arena
        if self._root is None:
            self._root = arena.create(Entry(key, value))
            self._count = 1
            return

        parent = self._root
        while True:
            c = self._compare(key, arena.key(parent))
            if c == 0:
                raise DuplicateKeyError(key)
            nxt = arena.left(parent) if c < 0 else arena.right(parent)
            if nxt is None:
                break
            parent = nxt

        node = arena.create(Entry(key, value))
        arena.set_parent(node, parent)
        if c < 0:
            arena.set_left(parent, node)
        else:
            arena.set_right(parent, node)
        self._count += 1

    def add_entry(self, pair: Tuple[K, V]) -> None:
        """Insert a ``(key, value)`` pair; same errors as :meth:`insert`."""
        key, value = pair
        self.insert(key, value)

    # ------------------------------------------------------------------
    #   Deletion
    # ------------------------------------------------------------------
    def delete(self, key: K) -> bool:
        """
        Remove *key* from the tree and return ``True``.

        Raises ``KeyNotFoundError`` if the key is not stored.
        """
        node = self._search_node(key)
        if node is None:
            raise KeyNotFoundError(key)

        arena = self._arena
        if arena.left(node) is not None and arena.right(node) is not None:
            # Two children: pull the neighbour's entry up and remove the
            # neighbour instead.  It has at most one child.
            neighbour = self._pick_replacement(node)
            arena.swap_data(node, neighbour)
            node = neighbour

        self._unlink(node)
        arena.release(node)
        self._count -= 1
        return True

    def remove_entry(self, pair: Tuple[K, V]) -> bool:
        """Remove the entry whose key matches ``pair[0]``."""
        return self.delete(pair[0])

    def _unlink(self, node: int) -> None:
        """Remove a node with at most one child from the tree."""
        arena = self._arena
        parent = arena.parent(node)
        left = arena.left(node)
        right = arena.right(node)

        if left is None and right is None:
            if parent is None:
                self._root = None
            else:
                arena.detach_no_children(node, parent)
        elif left is None:
            arena.detach_promote_right(node, parent)
            if parent is None:
                self._root = right
                logger.debug("root replaced by right child %r", arena.key(right))
        else:
            arena.detach_promote_left(node, parent)
            if parent is None:
                self._root = left
                logger.debug("root replaced by left child %r", arena.key(left))

    def _pick_replacement(self, node: int) -> int:
        """Return the successor or predecessor of *node* per the removal policy."""
        if self._policy is RemovalPolicy.RANDOM:
            use_successor = self._rng.randrange(2) == 1
        else:
            use_successor = self._policy is RemovalPolicy.SUCCESSOR

        if use_successor:
            chosen = self._leftmost(self._arena.right(node))
        else:
            chosen = self._rightmost(self._arena.left(node))
        logger.debug(
            "replacing %r with its %s %r",
            self._arena.key(node),
            "successor" if use_successor else "predecessor",
            self._arena.key(chosen),
        )
        return chosen

    def clear(self) -> None:
        """Delete every entry, one key at a time."""
        entries = list(self.in_order_sequence())
        logger.debug("clearing %d entries", len(entries))
        for entry in entries:
            self.delete(entry.key)

    # ------------------------------------------------------------------
    #   Minimum / maximum helpers
    # ------------------------------------------------------------------
    def _leftmost(self, start: Optional[int]) -> int:
        if start is None:
            raise ValueError("Tree is empty")
        node = start
        while (nxt := self._arena.left(node)) is not None:
            node = nxt
        return node

    def _rightmost(self, start: Optional[int]) -> int:
        if start is None:
            raise ValueError("Tree is empty")
        node = start
        while (nxt := self._arena.right(node)) is not None:
            node = nxt
        return node

    def min_key(self) -> K:
        """Return the smallest key stored in the tree."""
        return self._arena.key(self._leftmost(self._root))

    def max_key(self) -> K:
        """Return the largest key stored in the tree."""
        return self._arena.key(self._rightmost(self._root))

    # ------------------------------------------------------------------
    #   Ordered traversal
    # ------------------------------------------------------------------
    def in_order_sequence(self) -> Iterator[Entry]:
        """
        Yield every entry in ascending key order.

        The tree is walked right → node → left onto a stack before the first
        entry is produced, so popping the stack gives ascending order and
        the caller may mutate the tree while consuming the result.
        """
        arena = self._arena
        collected: List[Entry] = []
        pending: List[int] = []
        cur = self._root
        while pending or cur is not None:
            while cur is not None:
                pending.append(cur)
                cur = arena.right(cur)
            cur = pending.pop()
            collected.append(arena.entry(cur))
            cur = arena.left(cur)

        while collected:
            yield collected.pop()

    def __iter__(self) -> Iterator[Entry]:
        return self.in_order_sequence()

    def keys(self) -> List[K]:
        """Return a list of all keys in sorted order."""
        return [entry.key for entry in self.in_order_sequence()]

    def values(self) -> List[V]:
        """Return a list of all values in key order."""
        return [entry.value for entry in self.in_order_sequence()]

    def items(self) -> List[Entry]:
        """Return a list of ``Entry(key, value)`` pairs in sorted order."""
        return list(self.in_order_sequence())

    def copy_to(self, buffer: MutableSequence[Any], offset: int = 0) -> None:
        """
        Write every entry, in key order, into *buffer* starting at *offset*.

        The buffer is not resized: it must already have room for
        ``len(self)`` entries after *offset*.
        """
        if buffer is None:
            raise NullArgumentError("buffer must not be None")
        if offset < 0 or offset > len(buffer):
            raise ArgumentOutOfRangeError(
                f"offset {offset} outside buffer of length {len(buffer)}"
            )
        if len(buffer) - offset < self._count:
            raise InsufficientCapacityError(
                f"{len(buffer) - offset} free slots after offset {offset}, "
                f"{self._count} entries to copy"
            )
        for i, entry in enumerate(self.in_order_sequence(), start=offset):
            buffer[i] = entry

    # ------------------------------------------------------------------
    #   Mapping protocol
    # ------------------------------------------------------------------
    def count(self) -> int:
        return self._count

    def __len__(self) -> int:
        return self._count

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __getitem__(self, key: K) -> V:
        node = self._search_node(key)
        if node is None:
            raise KeyNotFoundError(key)
        return self._arena.entry(node).value

    def __setitem__(self, key: K, value: V) -> None:
        """Insert *key* if absent, otherwise replace its entry in place."""
        if key is None:
            raise NullKeyError()
        node = self._search_node(key)
        if node is None:
            self.insert(key, value)
        else:
            self._arena.replace_entry(node, Entry(key, value))

    def __delitem__(self, key: K) -> None:
        self.delete(key)

    # ------------------------------------------------------------------
    #   Shape / validation utilities – useful for debugging
    # ------------------------------------------------------------------
    def height(self) -> int:
        """Number of nodes on the longest root-to-leaf path (0 when empty)."""
        if self._root is None:
            return 0
        arena = self._arena
        level = [self._root]
        depth = 0
        while level:
            depth += 1
            nxt: List[int] = []
            for node in level:
                for child in (arena.left(node), arena.right(node)):
                    if child is not None:
                        nxt.append(child)
            level = nxt
        return depth

    def validate(self) -> None:
        """
        Verify ordering, parent/child link symmetry and the live count.
        Raises ``AssertionError`` with a descriptive message if something is broken.
        """
        arena = self._arena
        if self._root is None:
            assert self._count == 0, "Empty tree with non-zero count"
            assert len(arena) == 0, "Empty tree still owns nodes"
            return

        assert arena.parent(self._root) is None, "Root has a parent"

        reachable = 0
        # (node, lower bound, upper bound) – bounds are exclusive keys or None
        stack: List[Tuple[int, Any, Any]] = [(self._root, None, None)]
        while stack:
            node, low, high = stack.pop()
            reachable += 1
            key = arena.key(node)
            if low is not None:
                assert self._compare(key, low) > 0, "BST property violated (key too small)"
            if high is not None:
                assert self._compare(key, high) < 0, "BST property violated (key too large)"

            left = arena.left(node)
            right = arena.right(node)
            if left is not None:
                assert arena.parent(left) == node, "Left child has wrong parent link"
                stack.append((left, low, key))
            if right is not None:
                assert arena.parent(right) == node, "Right child has wrong parent link"
                stack.append((right, key, high))

        assert reachable == self._count, "Count does not match reachable nodes"
        assert len(arena) == self._count, "Arena holds unreachable nodes"

    # ------------------------------------------------------------------
    #   Convenience string representation (for debugging)
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.in_order_sequence())
        return f"KVTree({{{items}}})"
