"""Collaboration with the navigation layer.

The engine does not navigate by itself. When a row is activated it hands
the record to a callback; `RouteActivation` is such a callback that opens
the detail page of the record. The text filter is mirrored into a query
parameter by `QueryMirror`, so reloading the page keeps the last filter.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol
from urllib.parse import parse_qsl, quote, urlencode

from attrs import define, field

from tabview.constants import DEFAULT_QUERY_PARAM

if TYPE_CHECKING:
    from tabview.engine import TableEngine  # noqa: F401
    from tabview.schema import TableSchema  # noqa: F401

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """The navigation layer."""

    def replace(self, url: str) -> Any:
        """Change the current location without adding a history entry."""

    def push(self, url: str) -> Any:
        """Go to a new location."""


def create_query_string(query: str, name: str, value: Optional[str]) -> str:
    """Set a parameter in a query string.

    Other parameters are preserved in their order. The first occurrence of
    the parameter is replaced and the others are removed; if there was none
    the parameter is appended. An empty value removes the parameter.

    Args:
        query: The query string, with or without the leading `?`.
        name: The name of the parameter.
        value: The new value.

    Returns:
        The new query string, without the leading `?`.
    """
    params = parse_qsl((query or "").lstrip("?"), keep_blank_values=True)
    result = []
    replaced = False
    for key, old in params:
        if key == name:
            if value and not replaced:
                result.append((name, value))
            replaced = True
            continue
        result.append((key, old))
    if value and not replaced:
        result.append((name, value))
    return urlencode(result)


def read_query_param(query: str, name: str, default: str = "") -> str:
    """Get the first value of a parameter from a query string."""
    for key, value in parse_qsl(
        (query or "").lstrip("?"), keep_blank_values=True
    ):
        if key == name:
            return value
    return default


def detail_route(schema: "TableSchema", record: Any) -> Optional[str]:
    """The route of the detail page of a record.

    Returns:
        The route, or None if the schema has no detail page or the record
        has no identifier.
    """
    if not schema.detail_route:
        return None
    record_id = schema.record_id(record)
    if record_id is None:
        return None
    return schema.detail_route.format(id=quote(str(record_id), safe=""))


@define
class RouteActivation:
    """Row activation callback that opens the detail page of the record.

    Attributes:
        navigator: The navigation layer.
        schema: The schema that knows the route and the record identifier.
    """

    navigator: Navigator
    schema: "TableSchema"

    def __call__(self, record: Any) -> Optional[str]:
        route = detail_route(self.schema, record)
        if route is None:
            logger.debug("No detail route for record in %s", self.schema.name)
            return None
        self.navigator.push(route)
        return route


@define
class QueryMirror:
    """Keep the text filter of an engine in a query parameter.

    On creation the engine is seeded from the query. Afterwards, each time
    the applied text filter changes the query is updated and the navigator
    is asked to replace the location (no new history entry).

    When the location changes from outside (back/forward buttons) the
    caller hands the new query to `sync_from_query()`; the filter is applied
    at once and is not written back.

    Attributes:
        engine: The engine to mirror.
        navigator: The navigation layer.
        pathname: The path of the page (`/products`).
        query: The current query string.
        param: The name of the query parameter.
    """

    engine: "TableEngine"
    navigator: Navigator
    pathname: str
    query: str = field(default="")
    param: str = field(default=DEFAULT_QUERY_PARAM)
    _last: str = field(default="", init=False)
    _syncing: bool = field(default=False, init=False)
    _unsubscribe: Optional[Callable[[], None]] = field(
        default=None, init=False
    )

    def __attrs_post_init__(self):
        self.query = (self.query or "").lstrip("?")
        seed = read_query_param(self.query, self.param)
        if seed:
            self._apply(seed)
        self._last = self._current()
        self._unsubscribe = self.engine.subscribe(self._on_change)

    @property
    def url(self) -> str:
        if self.query:
            return f"{self.pathname}?{self.query}"
        return self.pathname

    def _current(self) -> str:
        return self.engine.state.text_filter(self.engine.schema.filter_column)

    def _apply(self, value: str) -> None:
        self._syncing = True
        try:
            self.engine.apply_text_filter(value)
        finally:
            self._syncing = False

    def _on_change(self, engine: "TableEngine") -> None:
        text = self._current()
        if text == self._last:
            return
        self._last = text
        if self._syncing:
            return
        self.query = create_query_string(self.query, self.param, text)
        logger.debug("Mirroring text filter into %s", self.url)
        self.navigator.replace(self.url)

    def sync_from_query(self, query: str) -> None:
        """Apply the text filter found in a query that came from outside."""
        self.query = (query or "").lstrip("?")
        self._apply(read_query_param(self.query, self.param))
        self._last = self._current()

    def close(self) -> None:
        """Stop mirroring."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
