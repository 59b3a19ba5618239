"""Stable chunk identifiers.

A chunk id is ``"{parent_key}-{ordinal}"``. Parent keys are note ids (ints) or
attachment paths (strings), so the two key spaces never collide. Re-chunking
the same parent yields the same ids, which lets a re-add overwrite rather than
duplicate.
"""

from __future__ import annotations


def chunk_id(parent_key: int | str, ordinal: int) -> str:
    """Return the id of chunk *ordinal* of *parent_key*."""
    if ordinal < 0:
        raise ValueError(f"ordinal must be >= 0, got {ordinal}")
    return f"{parent_key}-{ordinal}"


def chunk_ids(parent_key: int | str, count: int) -> list[str]:
    """Return the ids for ordinals 0..count-1 of *parent_key*, in order."""
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    return [f"{parent_key}-{i}" for i in range(count)]


def parse_chunk_id(value: str) -> tuple[str, int]:
    """Split a chunk id into ``(parent_key, ordinal)``.

    The parent key is returned as a string; attachment paths may themselves
    contain dashes, so the split happens on the last one.

    Raises:
        ValueError: If *value* does not end in ``-<ordinal>``.
    """
    parent, sep, ordinal = value.rpartition("-")
    if not sep or not parent or not ordinal.isdigit():
        raise ValueError(f"not a chunk id: {value!r}")
    return parent, int(ordinal)
