from typing import Any, Dict, List

import pytest

from tabview.catalog import order_schema, product_schema
from tabview.debounce import ManualScheduler
from tabview.engine import TableEngine
from tabview.schema import TableSchema

COLORS = ["red", "green", "blue", "black", "white"]


def _make_products(count: int) -> List[Dict[str, Any]]:
    """Products with predictable values.

    The name of product `i` is `Product {i:02d}`, its price is `i * 1.5`
    and the colors cycle through `COLORS`.
    """
    return [
        {
            "id": i,
            "name": f"Product {i:02d}",
            "description": f"Description of product {i}",
            "price": f"{i * 1.5:.2f}",
            "color": COLORS[(i - 1) % len(COLORS)],
            "createdAt": f"2024-01-{i % 28 + 1:02d}T10:00:00Z",
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def make_products():
    """Factory of product records; see `_make_products`."""
    return _make_products


@pytest.fixture
def products() -> TableSchema:
    return product_schema()


@pytest.fixture
def orders() -> TableSchema:
    return order_schema()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def engine(products, scheduler) -> TableEngine:
    """An engine over 25 products with the default page size (10)."""
    return TableEngine(
        schema=products, records=_make_products(25), scheduler=scheduler
    )
