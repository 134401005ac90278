from tabview.catalog import (  # noqa: F401
    SCHEMAS,
    format_currency,
    format_date,
    order_schema,
    product_schema,
)
from tabview.column import ColumnInfo, ExColumn  # noqa: F401
from tabview.debounce import (  # noqa: F401
    AsyncioScheduler,
    Debouncer,
    ManualScheduler,
    ThreadingScheduler,
    default_scheduler,
)
from tabview.engine import TableEngine  # noqa: F401
from tabview.filter import (  # noqa: F401
    FieldFilter,
    FilterType,
    insert_quick_search,
    validate_filter,
)
from tabview.navigation import (  # noqa: F401
    Navigator,
    QueryMirror,
    RouteActivation,
    create_query_string,
    detail_route,
    read_query_param,
)
from tabview.pagination import PageCursor  # noqa: F401
from tabview.schema import TableSchema  # noqa: F401
from tabview.settings import LocalSettings, ViewConfig  # noqa: F401
from tabview.sorting import SortType  # noqa: F401
from tabview.state import ViewState  # noqa: F401
from tabview.utils import get_value, start_case  # noqa: F401
from tabview.view import DerivedView  # noqa: F401
