#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
kv_errors.py
------------

Exceptions raised by :mod:`kv_tree` and :mod:`node_arena`.

Every error also derives from the builtin exception that the equivalent
``dict`` / ``list`` operation would raise, so ``except KeyError`` keeps
working for code written against a plain mapping.
"""


class KVTreeError(Exception):
    """Base class for all tree errors."""


class DuplicateKeyError(KVTreeError, ValueError):
    """Raised by ``insert`` when the key is already stored."""

    def __init__(self, key) -> None:
        super().__init__(f"Key {key!r} already exists in tree")
        self.key = key


class NullKeyError(KVTreeError, ValueError):
    """Raised when ``None`` is used as a key."""

    def __init__(self) -> None:
        super().__init__("None cannot be used as a key")


class KeyNotFoundError(KVTreeError, KeyError):
    """Raised by ``delete`` and ``tree[key]`` when the key is absent."""

    def __init__(self, key) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Key {self.key!r} not found in tree"


class LinkAlreadySetError(KVTreeError, RuntimeError):
    """Raised when attaching to a parent/left/right slot that is occupied."""

    def __init__(self, handle: int, slot: str) -> None:
        super().__init__(
            f"{slot} link of node {handle} cannot be set unless it is empty"
        )
        self.handle = handle
        self.slot = slot


# ----------------------------------------------------------------------
#  copy_to() argument validation
# ----------------------------------------------------------------------
class ArgumentError(KVTreeError, ValueError):
    """Base class for invalid ``copy_to`` arguments."""


class NullArgumentError(ArgumentError, TypeError):
    """The destination buffer is ``None``."""


class ArgumentOutOfRangeError(ArgumentError, IndexError):
    """The destination offset is negative or past the end of the buffer."""


class InsufficientCapacityError(ArgumentError):
    """The buffer has fewer free slots after the offset than the tree has entries."""
