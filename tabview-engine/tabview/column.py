from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

from attrs import define, field
from pydantic import BaseModel

from tabview.constants import (
    COL_TYPE_BOOL,
    COL_TYPE_STRING,
    COLUMN_TYPES,
    NUMERIC_TYPES,
    TEMPORAL_TYPES,
)
from tabview.utils import get_value, start_case

CellRenderer = Callable[[Any, Any], str]
HeaderRenderer = Callable[["ExColumn"], str]


def to_number(value: Any) -> Optional[Union[int, float, Decimal]]:
    """Convert a value to something that compares numerically.

    Strings are parsed as decimals (`"12.50"`); thousands separators are
    ignored. Values that can't be converted (and NaN) yield None.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return None if value != value else value
    if isinstance(value, (int, Decimal)):
        if isinstance(value, Decimal) and value.is_nan():
            return None
        return value
    try:
        result = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    return None if result.is_nan() else result


def to_datetime(value: Any) -> Optional[datetime]:
    """Convert a value to a naive UTC datetime.

    Accepts datetime and date objects, ISO 8601 strings (a trailing `Z` is
    understood) and POSIX timestamps. Aware values are converted to UTC so
    that naive and aware values can be compared.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            result = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if result.tzinfo is not None:
        result = result.astimezone(timezone.utc).replace(tzinfo=None)
    return result


def to_bool(value: Any) -> Optional[bool]:
    """Convert a value to a boolean; unknown strings yield None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in ("true", "yes", "1"):
        return True
    if text in ("false", "no", "0"):
        return False
    return None


@define
class ExColumn:
    """A column (Column Descriptor) of a table schema.

    Attributes:
        key: The key of the column. It is unique inside the schema and it
            is the name under which filters, sorting and visibility refer to
            the column.
        accessor: How the value is read from a record. A string is a dotted
            path (`product.name`); a callable receives the record. If not
            provided the key is used as the path.
        label: The text shown in the header. Defaults to the key in
            `Start Case`.
        type_name: One of the `COL_TYPE_*` constants. Numeric and date-like
            columns are sorted by value, the rest lexicographically.
        can_hide: Whether the user can toggle the visibility of the column.
        sortable: Whether the user can sort by this column.
        filterable: Whether the user can filter by this column.
        cell: Optional renderer for the cells; receives the value and the
            record and returns the text to show.
        header: Optional renderer for the header; receives the column.
        description: A longer description of the column.
    """

    key: str
    accessor: Union[str, Callable[[Any], Any], None] = field(default=None)
    label: str = field(default="")
    type_name: str = field(default=COL_TYPE_STRING)
    can_hide: bool = field(default=True)
    sortable: bool = field(default=True)
    filterable: bool = field(default=True)
    cell: Optional[CellRenderer] = field(default=None, repr=False)
    header: Optional[HeaderRenderer] = field(default=None, repr=False)
    description: str = field(default="", repr=False)

    def __attrs_post_init__(self):
        if not self.key:
            raise ValueError("A column needs a non-empty key")
        if self.type_name not in COLUMN_TYPES:
            raise ValueError(
                f"Unknown type `{self.type_name}` for column `{self.key}`; "
                f"valid types are: {list(COLUMN_TYPES)}"
            )
        if not self.label:
            self.label = start_case(self.key)

    def __hash__(self):
        return hash(self.key)

    @property
    def is_numeric(self) -> bool:
        return self.type_name in NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self.type_name in TEMPORAL_TYPES

    @property
    def title(self) -> str:
        """The title used in the column toggle menu."""
        return start_case(self.key)

    def value(self, record: Any) -> Any:
        """Get the raw value of this column for a record."""
        if callable(self.accessor):
            return self.accessor(record)
        path = self.accessor if self.accessor else self.key
        return get_value(record, path)

    def text(self, record: Any) -> str:
        """Get the raw value as text, as used by filters."""
        value = self.value(record)
        return "" if value is None else str(value)

    def sort_value(self, record: Any) -> Any:
        """Get the value used to compare records when sorting.

        Returns:
            A value comparable with the sort values of other records in the
            same column, or None if the record has no usable value.
        """
        value = self.value(record)
        if self.is_numeric:
            return to_number(value)
        if self.is_temporal:
            return to_datetime(value)
        if self.type_name == COL_TYPE_BOOL:
            return to_bool(value)
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def render(self, record: Any) -> str:
        """Get the text of the cell for a record."""
        value = self.value(record)
        if self.cell is not None:
            return self.cell(value, record)
        return "" if value is None else str(value)

    def header_text(self) -> str:
        """Get the text of the header."""
        if self.header is not None:
            return self.header(self)
        return self.label


class ColumnInfo(BaseModel):
    """Information about a column, as read from configuration data.

    The attributes have the same names as those in the `ExColumn` class,
    except `path`, which becomes the `accessor` of the column.

    Attributes:
        key: The unique key of the column.
        path: The dotted path of the value inside the record.
        label: The header text.
        type_name: One of the `COL_TYPE_*` constants.
        can_hide: Whether the user can toggle the visibility of the column.
        sortable: Whether the user can sort by this column.
        filterable: Whether the user can filter by this column.
        description: A longer description of the column.
    """

    key: str
    path: Optional[str] = None
    label: Optional[str] = None
    type_name: str = COL_TYPE_STRING
    can_hide: bool = True
    sortable: bool = True
    filterable: bool = True
    description: Optional[str] = None

    def to_column(self, cell: Optional[CellRenderer] = None) -> ExColumn:
        """Create the column described by this information."""
        return ExColumn(
            key=self.key,
            accessor=self.path,
            label=self.label or "",
            type_name=self.type_name,
            can_hide=self.can_hide,
            sortable=self.sortable,
            filterable=self.filterable,
            cell=cell,
            description=self.description or "",
        )
