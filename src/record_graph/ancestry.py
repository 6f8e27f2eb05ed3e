"""Walk a record type's ancestry and merge per-level results."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from record_graph.types import TypeRegistry

# fn(level_type_name, immediate_parent_of_queried_type) -> partial output
LevelFunction = Callable[[str, "str | None"], Any]


def merge_recursive_distinct(
    first: dict[Any, Any], second: dict[Any, Any]
) -> dict[Any, Any]:
    """Merge two mappings, letting ``second`` win.

    Where both sides hold a mapping under the same key the two are merged
    recursively; any other value in ``second`` replaces the one in ``first``.
    Neither argument is modified.
    """
    merged = dict(first)
    for key, value in second.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_recursive_distinct(merged[key], value)
        else:
            merged[key] = value
    return merged


def _append(merged: dict[Any, Any], value: Any) -> None:
    """Store a non-mapping output under the next free integer key."""
    int_keys = [k for k in merged if isinstance(k, int) and not isinstance(k, bool)]
    merged[max(int_keys) + 1 if int_keys else 0] = value


def map_ancestry(
    registry: TypeRegistry,
    type_name: str,
    fn: LevelFunction,
    root_kinds: Iterable[str] | None = None,
) -> dict[Any, Any]:
    """Apply ``fn`` to every level of a type's ancestry and merge the outputs.

    Levels are visited from the root kind down to ``type_name``, so values
    produced for more specific levels overwrite those of their ancestors.
    Every call receives the same second argument: the immediate parent of
    ``type_name`` (None when ``type_name`` is itself a root), not the parent
    of the level being visited.

    Args:
        registry: Class-metadata registry.
        type_name: The most specific type to walk from.
        fn: Level function ``fn(level, immediate_parent)``.
        root_kinds: When given, types whose root kind is not listed produce
            an empty result.

    Returns:
        The merged output; empty if the type has no root kind.
    """
    base = registry.root_kind_of(type_name)
    if base is None:
        return {}
    if root_kinds is not None and base not in set(root_kinds):
        return {}

    hierarchy: list[str] = []
    current: str | None = type_name
    while current is not None:
        hierarchy.append(current)
        if current == base:
            break
        current = registry.parent_of(current)

    immediate_parent = hierarchy[1] if len(hierarchy) > 1 else None

    merged: dict[Any, Any] = {}
    for level in reversed(hierarchy):
        partial = fn(level, immediate_parent)
        if isinstance(partial, dict):
            merged = merge_recursive_distinct(merged, partial)
        else:
            _append(merged, partial)
    return merged
