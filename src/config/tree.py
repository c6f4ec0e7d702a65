"""
Dotted-path helpers over nested configuration trees.

A tree is a plain nested dict of str -> scalar | dict. Paths are
dot-separated segment lists ("sharing.upload_results").
"""

import copy
from typing import Any, NamedTuple, Optional

from .errors import ConfigPathError


class Lookup(NamedTuple):
    """Outcome of resolving a dotted path."""

    found: bool
    value: Any = None


def split_key(key: str) -> list[str]:
    """Split a dotted key into segments, rejecting empty segments."""
    if not isinstance(key, str) or not key:
        raise ConfigPathError(f"Invalid key: {key!r}")
    segments = key.split(".")
    if any(not segment for segment in segments):
        raise ConfigPathError(f"Invalid key: {key!r}")
    return segments


def lookup(tree: dict, key: Optional[str]) -> Lookup:
    """
    Resolve a dotted path through nested mappings.

    Args:
        tree: Root mapping
        key: Dotted path, or None for the whole tree

    Returns:
        Lookup(found=True, value) when every segment exists,
        Lookup(found=False) otherwise
    """
    if key is None:
        return Lookup(True, tree)

    node: Any = tree
    for segment in split_key(key):
        if not isinstance(node, dict) or segment not in node:
            return Lookup(False)
        node = node[segment]
    return Lookup(True, node)


def assign(tree: dict, key: str, value: Any) -> dict:
    """
    Return a copy of tree with value written at key.

    Intermediate mappings are created as needed. The input tree is
    not modified.

    Raises:
        ConfigPathError: If an intermediate segment holds a non-mapping value
    """
    segments = split_key(key)
    updated = copy.deepcopy(tree)

    node = updated
    for depth, segment in enumerate(segments[:-1]):
        child = node.get(segment)
        if child is None:
            child = {}
            node[segment] = child
        elif not isinstance(child, dict):
            path = ".".join(segments[: depth + 1])
            raise ConfigPathError(
                f"Cannot set '{key}': '{path}' holds a {type(child).__name__}, not a mapping"
            )
        node = child

    node[segments[-1]] = value
    return updated
