# Constants for column types
from typing import Any, Literal, Tuple, Union

COL_TYPE_BOOL = "bool"
COL_TYPE_DT = "date-time"
COL_TYPE_DATE = "date"
COL_TYPE_DECIMAL = "decimal"
COL_TYPE_FLOAT = "float"
COL_TYPE_INTEGER = "integer"
COL_TYPE_STRING = "string"

NUMERIC_TYPES = (COL_TYPE_INTEGER, COL_TYPE_FLOAT, COL_TYPE_DECIMAL)
TEMPORAL_TYPES = (COL_TYPE_DATE, COL_TYPE_DT)
COLUMN_TYPES = (
    COL_TYPE_BOOL,
    COL_TYPE_DT,
    COL_TYPE_DATE,
    COL_TYPE_DECIMAL,
    COL_TYPE_FLOAT,
    COL_TYPE_INTEGER,
    COL_TYPE_STRING,
)

# Filter operations.
OP_ILIKE = "ilike"
OP_EQ = "eq"
FILTER_OPS = (OP_ILIKE, OP_EQ)

SortDirection = Literal["asc", "desc"]
SORT_DIRECTIONS: Tuple[str, str] = ("asc", "desc")

DEFAULT_PAGE_SIZE = 10
PAGE_SIZE_OPTIONS = (10, 20, 30, 40, 50)
DEFAULT_QUERY_PARAM = "q"
DEFAULT_DEBOUNCE_MS = 300
DEFAULT_ID_FIELD = "id"
EMPTY_TEXT = "No results."

# A record ID is usually an int or a string (uuid, cuid).
RecIdType = Union[int, str, Any]
