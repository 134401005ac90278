"""Sorting support.

The sort specification is an ordered list of `(column key, direction)`
tuples. The first entry is the primary key; the others break ties in order.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from tabview.constants import SORT_DIRECTIONS, SortDirection

if TYPE_CHECKING:
    from tabview.column import ExColumn  # noqa: F401
    from tabview.schema import TableSchema  # noqa: F401

logger = logging.getLogger(__name__)

SortType = List[Tuple[str, SortDirection]]


def set_sort(
    sort_by: SortType, key: str, direction: Optional[str]
) -> SortType:
    """Change the direction of a column in the sort specification.

    A `None` direction removes the column. If the column is already part of
    the specification its direction is replaced in place, so its position
    in the tie-break order is preserved. Otherwise it is appended.

    Args:
        sort_by: The current specification; it is not modified.
        key: The key of the column.
        direction: `asc`, `desc` or None.

    Returns:
        The new specification.
    """
    if direction is None:
        return [(k, d) for k, d in sort_by if k != key]
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")

    result: SortType = []
    found = False
    for k, d in sort_by:
        if k == key:
            result.append((k, direction))  # type: ignore[arg-type]
            found = True
        else:
            result.append((k, d))
    if not found:
        result.append((key, direction))  # type: ignore[arg-type]
    return result


def next_direction(current: Optional[str]) -> Optional[SortDirection]:
    """The direction that follows `current` when a header is clicked.

    The cycle is: unsorted, ascending, descending, unsorted.
    """
    if current is None:
        return "asc"
    if current == "asc":
        return "desc"
    return None


def direction_of(sort_by: SortType, key: str) -> Optional[SortDirection]:
    """The direction of a column in the specification or None."""
    for k, d in sort_by:
        if k == key:
            return d
    return None


def _key_func(col: "ExColumn", descending: bool) -> Callable[[Any], Any]:
    # Records without a usable value go last in both directions. Python's
    # sort keeps equal items in order even with `reverse=True`, so the
    # marker flips together with the direction.
    present, absent = (1, 0) if descending else (0, 1)

    def key(record: Any) -> Tuple:
        value = col.sort_value(record)
        if value is None:
            return (absent,)
        return (present, value)

    return key


def sort_records(
    records: List[Any], sort_by: SortType, schema: "TableSchema"
) -> List[Any]:
    """Sort the records by the specification.

    The sort is stable: records that compare equal on all the keys keep
    their relative order. Keys are applied from the lowest precedence to
    the highest, each pass being a stable sort.

    Args:
        records: The records to sort; the list is not modified.
        sort_by: The sort specification.
        schema: The schema that provides the columns.

    Returns:
        A new, sorted list.
    """
    result = list(records)
    for key, direction in reversed(sort_by):
        col = schema.get(key)
        if col is None:
            logger.debug("Ignoring sort by unknown column %s", key)
            continue
        descending = direction == "desc"
        result.sort(key=_key_func(col, descending), reverse=descending)
    return result
