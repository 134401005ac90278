"""Filter support.

A filter is an ordered list of field filters that are AND-ed together.
This is how the filter is imagined to show in JSON format:
```json
    {
        "filter": [
            {"fld": "name", "op": "ilike", "vl": "blue"},
            {"fld": "color", "op": "eq", "vl": "#0000ff"}
        ]
    }
```

The `ilike` operation is a case-insensitive substring match on the text of
the value; `eq` compares values the same way the column compares them when
sorting (numbers numerically, dates chronologically, the rest as text).
"""

import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Iterable,
    List,
    Optional,
    TypedDict,
    Union,
)

from attrs import define

from tabview.column import ExColumn, to_datetime, to_number
from tabview.constants import FILTER_OPS, OP_EQ, OP_ILIKE

if TYPE_CHECKING:
    from tabview.schema import TableSchema  # noqa: F401

logger = logging.getLogger(__name__)


@define
class FieldFilter:
    """Describes how the results should be filtered by one of the columns.

    Attributes:
        fld: The column to filter by. This is the unique string key of the
            column in the schema.
        op: The operation to perform (`ilike` or `eq`).
        vl: The value to compare against.
    """

    fld: str
    op: str
    vl: Any


class FieldFilterDict(TypedDict):
    """A dictionary type that has the same keys as FieldFilter."""

    fld: str  # column key
    op: str  # operation type ("ilike" or "eq")
    vl: Any  # value to filter by


FilterType = List[Union[FieldFilter, FieldFilterDict]]


def to_field_filter(item: Union[FieldFilter, FieldFilterDict]) -> FieldFilter:
    """Get the class form of a field filter."""
    if isinstance(item, FieldFilter):
        return item
    if isinstance(item, dict):
        return FieldFilter(**item)
    raise ValueError(f"Unknown filter type: {type(item)}")


def validate_filter(
    filter: Any, schema: Optional["TableSchema"] = None
) -> List[str]:
    """Validate the filter expression.

    Error codes:
    - none: The filter is None.
    - not_a_list: The filter is not a list of field filters.
    - invalid_field_filter: The individual field filter is invalid. This
      occurs when it is represented as a dictionary and a FieldFilter
      instance could not be constructed out of it, or when it is neither
      a dictionary nor a FieldFilter.
    - unknown_op: The operation is not one of the known operations.
    - unknown_field: The schema has no column with that key.
    - not_filterable: The column exists but can't be filtered.

    Args:
        filter: The filter to validate.
        schema: If provided, the column keys are checked against it.

    Returns:
        A list of error information. First item is the error code, the second
        is the position of the invalid item.
    """
    if filter is None:
        return ["none"]
    if not isinstance(filter, list):
        return ["not_a_list"]

    for i, item in enumerate(filter):
        try:
            flt = to_field_filter(item)
        except (TypeError, ValueError) as exc:
            logger.error("Invalid field filter %s: %s", item, exc)
            return ["invalid_field_filter", f"and[{i}]"]

        if flt.op not in FILTER_OPS:
            return ["unknown_op", f"and[{i}]"]
        if schema is not None:
            col = schema.get(flt.fld)
            if col is None:
                return ["unknown_field", f"and[{i}]"]
            if not col.filterable:
                return ["not_filterable", f"and[{i}]"]
    return []


def match_field_filter(col: ExColumn, record: Any, flt: FieldFilter) -> bool:
    """Check if a record satisfies one field filter.

    Args:
        col: The column the filter refers to.
        record: The record to check.
        flt: The filter.
    """
    if flt.op == OP_ILIKE:
        needle = "" if flt.vl is None else str(flt.vl)
        return needle.casefold() in col.text(record).casefold()

    if flt.op == OP_EQ:
        if col.is_numeric or col.is_temporal:
            expected = (
                to_number(flt.vl) if col.is_numeric else to_datetime(flt.vl)
            )
            actual = col.sort_value(record)
            return actual is not None and actual == expected
        return col.text(record) == ("" if flt.vl is None else str(flt.vl))

    raise ValueError(f"Unknown filter operation: {flt.op}")


def matches(record: Any, filter: FilterType, schema: "TableSchema") -> bool:
    """Check if a record satisfies all the filters (conjunction).

    Filters that refer to columns that are not part of the schema are
    ignored.
    """
    for item in filter:
        flt = to_field_filter(item)
        col = schema.get(flt.fld)
        if col is None:
            continue
        if not match_field_filter(col, record, flt):
            return False
    return True


def filter_records(
    records: Iterable[Any], filter: FilterType, schema: "TableSchema"
) -> List[Any]:
    """Get the records that satisfy the filter, in their original order."""
    if not filter:
        return list(records)
    return [r for r in records if matches(r, filter, schema)]


def insert_quick_search(
    field_name: str,
    value: Optional[str],
    filter: Optional[FilterType] = None,
) -> FilterType:
    """Insert a quick search into the filter.

    The `ilike` filter of the given column is replaced in place, so its
    position among the other filters is preserved. If the column had no
    such filter the new one is appended. The value is used as typed,
    surrounding spaces included; an empty value removes the filter.

    Args:
        field_name: The key of the column to search.
        value: The value to search for.
        filter: The filter to insert the quick search into.

    Returns:
        A new filter with the quick search inserted.
    """
    value = value or ""
    inserted = (
        FieldFilter(fld=field_name, op=OP_ILIKE, vl=value) if value else None
    )

    result: FilterType = []
    replaced = False
    for part in filter or []:
        flt = to_field_filter(part)
        if flt.fld == field_name and flt.op == OP_ILIKE:
            if inserted is not None and not replaced:
                result.append(inserted)
            replaced = True
            continue
        result.append(part)

    if inserted is not None and not replaced:
        result.append(inserted)
    return result
