"""Table schemas of the commerce dashboard.

Each signed-in user sees the products of their catalog and the orders
placed for those products.
"""

from typing import Any, Callable, Dict

from tabview.column import ExColumn, to_datetime, to_number
from tabview.constants import (
    COL_TYPE_DECIMAL,
    COL_TYPE_DT,
    COL_TYPE_INTEGER,
)
from tabview.schema import TableSchema


def format_currency(value: Any, record: Any = None) -> str:
    """Render an amount as dollars (`$1,234.50`)."""
    number = to_number(value)
    if number is None:
        return ""
    return f"${number:,.2f}"


def format_date(value: Any, record: Any = None) -> str:
    """Render a date-like value as `YYYY-MM-DD`."""
    moment = to_datetime(value)
    if moment is None:
        return ""
    return moment.strftime("%Y-%m-%d")


def product_schema() -> TableSchema:
    """The columns of the products table."""
    return TableSchema(
        name="products",
        columns=[
            ExColumn(key="id", label="ID", can_hide=False),
            ExColumn(key="name"),
            ExColumn(key="description", sortable=False),
            ExColumn(
                key="price",
                type_name=COL_TYPE_DECIMAL,
                cell=format_currency,
            ),
            ExColumn(key="color"),
            ExColumn(
                key="created_at",
                accessor="createdAt",
                label="Created",
                type_name=COL_TYPE_DT,
                cell=format_date,
            ),
        ],
        filter_column="name",
        detail_route="/product/{id}/edit",
    )


def order_schema() -> TableSchema:
    """The columns of the orders table."""
    return TableSchema(
        name="orders",
        columns=[
            ExColumn(key="id", label="ID", can_hide=False),
            ExColumn(key="product", accessor="product.name"),
            ExColumn(key="quantity", type_name=COL_TYPE_INTEGER),
            ExColumn(
                key="total",
                type_name=COL_TYPE_DECIMAL,
                cell=format_currency,
            ),
            ExColumn(
                key="created_at",
                accessor="createdAt",
                label="Created",
                type_name=COL_TYPE_DT,
                cell=format_date,
            ),
        ],
        filter_column="product",
    )


SCHEMAS: Dict[str, Callable[[], TableSchema]] = {
    "products": product_schema,
    "orders": order_schema,
}
