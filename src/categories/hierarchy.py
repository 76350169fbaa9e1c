"""Category hierarchy resolution and tree helpers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from src.categories.models import PATH_SEPARATOR, Category, CategoryRelationship


def _is_well_formed(category: Category) -> bool:
    return bool(category.path) and all(segment.strip() for segment in category.path)


def relationship(a: Category, b: Category) -> CategoryRelationship:
    """Return how ``a`` relates to ``b`` in the category tree.

    Equal ids are the caller's concern (EXACT); this function only inspects
    paths. Malformed paths resolve to NONE instead of raising.
    """
    if not _is_well_formed(a) or not _is_well_formed(b):
        return CategoryRelationship.NONE

    a_path = a.path_string
    b_path = b.path_string
    if a_path == b_path:
        return CategoryRelationship.NONE

    if b_path.startswith(a_path + PATH_SEPARATOR):
        return CategoryRelationship.PARENT
    if a_path.startswith(b_path + PATH_SEPARATOR):
        return CategoryRelationship.CHILD

    if len(a.path) > 1 and len(b.path) > 1:
        a_parent = PATH_SEPARATOR.join(a.path[:-1])
        b_parent = PATH_SEPARATOR.join(b.path[:-1])
        if a_parent == b_parent:
            return CategoryRelationship.SIBLING

    return CategoryRelationship.NONE


def descendant_ids(categories: Iterable[Category], root_id: str) -> list[str]:
    """Return the ids of every category below ``root_id`` (breadth-first)."""
    children: dict[str, list[str]] = {}
    for category in categories:
        if category.parent_id is not None:
            children.setdefault(category.parent_id, []).append(category.id)

    found: list[str] = []
    seen = {root_id}
    queue = deque(children.get(root_id, []))
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        found.append(current)
        queue.extend(children.get(current, []))
    return found


def validate_category_tree(categories: Iterable[Category]) -> list[str]:
    """Return human-readable problems found in a category tree.

    An empty list means every path is consistent with its ``parent_id``
    chain and the tree has no cycles.
    """
    problems: list[str] = []
    by_id: dict[str, Category] = {}

    for category in categories:
        if category.id in by_id:
            problems.append(f"Duplicate category id '{category.id}'")
            continue
        by_id[category.id] = category

    for category in by_id.values():
        if not _is_well_formed(category):
            problems.append(f"Category '{category.id}' has an empty or blank path")
            continue
        if category.path[-1] != category.id:
            problems.append(
                f"Category '{category.id}' path must end with its own id "
                f"(got '{category.path_string}')"
            )

        if category.parent_id is None:
            if len(category.path) != 1:
                problems.append(
                    f"Root category '{category.id}' must have a single-segment path "
                    f"(got '{category.path_string}')"
                )
            continue

        parent = by_id.get(category.parent_id)
        if parent is None:
            problems.append(
                f"Category '{category.id}' references missing parent "
                f"'{category.parent_id}'"
            )
            continue
        if category.path[:-1] != parent.path:
            problems.append(
                f"Category '{category.id}' path '{category.path_string}' does not "
                f"extend parent path '{parent.path_string}'"
            )

    for category in by_id.values():
        seen: set[str] = set()
        current: Category | None = category
        while current is not None and current.parent_id is not None:
            if current.id in seen:
                problems.append(f"Cycle detected at category '{category.id}'")
                break
            seen.add(current.id)
            current = by_id.get(current.parent_id)

    return problems
