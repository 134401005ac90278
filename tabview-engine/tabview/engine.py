import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from attrs import define, field

from tabview.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PAGE_SIZE,
    FILTER_OPS,
    OP_ILIKE,
    SORT_DIRECTIONS,
    RecIdType,
)
from tabview.debounce import Debouncer, Scheduler
from tabview.filter import (
    FieldFilter,
    FilterType,
    filter_records,
    insert_quick_search,
    to_field_filter,
    validate_filter,
)
from tabview.pagination import PageCursor, clamp_page_size, page_count
from tabview.schema import TableSchema
from tabview.sorting import (
    SortType,
    direction_of,
    next_direction,
    set_sort,
    sort_records,
)
from tabview.state import ViewState
from tabview.view import DerivedView

if TYPE_CHECKING:
    from tabview.settings import ViewConfig  # noqa: F401

logger = logging.getLogger(__name__)

Listener = Callable[["TableEngine"], Any]


@define
class TableEngine:
    """Keeps the view state of a table and computes the derived view.

    The records are filtered, then sorted, then paginated; hidden columns
    are removed last. The derived view is recomputed in full by each
    `get_view()` call, which has no side effects.

    Invalid requests (unknown columns, pages past the end, negative sizes)
    are clamped or ignored; they never raise.

    Listeners registered with `subscribe()` are called with the engine
    after every change of the state, including the start of a debounce
    period (so that a "pending" indicator can be shown).

    Attributes:
        schema: The columns of the table.
        records: The records, as handed over by the data layer.
        on_row_activate: Called with the full record when a row is
            activated (double click, enter key).
        page_size: The initial page size.
        debounce_ms: The delay applied to the text filter.
        scheduler: The timer provider for the text filter delay.
        max_page_size: Upper limit for the page size; 0 means no limit.
        state: The view state.
    """

    schema: TableSchema
    records: List[Any] = field(factory=list, converter=list)
    on_row_activate: Optional[Callable[[Any], Any]] = field(default=None)
    page_size: int = field(default=DEFAULT_PAGE_SIZE)
    debounce_ms: int = field(default=DEFAULT_DEBOUNCE_MS)
    scheduler: Optional[Scheduler] = field(default=None)
    max_page_size: int = field(default=0)
    state: ViewState = field(factory=ViewState, init=False)
    _listeners: List[Listener] = field(factory=list, init=False)
    _debouncer: Debouncer = field(default=None, init=False)
    _text_generation: int = field(default=0, init=False)
    _lock: threading.RLock = field(factory=threading.RLock, init=False)

    @classmethod
    def from_config(
        cls,
        schema: TableSchema,
        records: List[Any],
        config: "ViewConfig",
        **kwargs: Any,
    ) -> "TableEngine":
        """Create an engine that uses the defaults from the settings.

        Args:
            schema: The columns of the table.
            records: The records.
            config: The defaults.
            kwargs: Other attributes; they take precedence over `config`.
        """
        options = {
            "page_size": config.page_size,
            "debounce_ms": config.debounce_ms,
            "max_page_size": config.max_page_size,
        }
        options.update(kwargs)
        return cls(schema=schema, records=records, **options)

    def __attrs_post_init__(self):
        self.state.cursor = PageCursor(
            index=0, size=clamp_page_size(self.page_size, self.max_page_size)
        )
        self._debouncer = Debouncer(
            callback=self._on_debounced_text,
            delay_ms=self.debounce_ms,
            scheduler=self.scheduler,
        )

    # Listeners.

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a function to be called after each change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # Derived data.

    def filtered_records(self) -> List[Any]:
        """The records that pass the filters, in their original order."""
        with self._lock:
            return filter_records(self.records, self.state.filters, self.schema)

    def sorted_records(self) -> List[Any]:
        """The filtered records, sorted; all pages."""
        with self._lock:
            return sort_records(
                self.filtered_records(), self.state.sort_by, self.schema
            )

    def get_view(self) -> DerivedView:
        """Compute the derived view for the current state.

        The state is not modified.
        """
        with self._lock:
            state = self.state.snapshot()
            total_count = len(self.records)
            rows = sort_records(
                filter_records(self.records, state.filters, self.schema),
                state.sort_by,
                self.schema,
            )

        cursor = state.cursor.clamped(len(rows))
        return DerivedView(
            rows=cursor.slice(rows),
            columns=[c for c in self.schema if state.is_visible(c.key)],
            all_columns=list(self.schema.columns),
            page_index=cursor.index,
            page_size=cursor.size,
            filtered_count=len(rows),
            total_count=total_count,
            page_count=page_count(len(rows), cursor.size),
            sort_by=list(state.sort_by),
            text_filter=state.text_filter(self.schema.filter_column),
            pending=state.pending,
        )

    def _clamp_cursor(self) -> None:
        count = len(self.filtered_records())
        clamped = self.state.cursor.clamped(count)
        if clamped != self.state.cursor:
            logger.debug(
                "Page index %d clamped to %d (%d rows)",
                self.state.cursor.index,
                clamped.index,
                count,
            )
            self.state.cursor = clamped

    # Records.

    def set_records(self, records: List[Any]) -> None:
        """Replace the records; the state is kept, the page is clamped."""
        with self._lock:
            self.records = list(records)
            self._clamp_cursor()
        self._notify()

    def find_record(self, record_id: RecIdType) -> Optional[Any]:
        """Locate a record by its unique identifier."""
        with self._lock:
            for record in self.records:
                if self.schema.record_id(record) == record_id:
                    return record
        return None

    # Text filter.

    def set_text_filter(self, value: Optional[str]) -> None:
        """Set the text filter of the default filter column.

        The filter is applied after the debounce delay; until then the
        derived view reports `pending`. A newer value replaces one that
        is still waiting. An empty value clears the filter.
        """
        value = value or ""
        with self._lock:
            self.state.pending_text = value
            self._text_generation += 1
            self._debouncer.trigger(value, self._text_generation)
            pending = self._debouncer.pending
        if pending:
            self._notify()

    def flush_text_filter(self) -> bool:
        """Apply the waiting text filter now.

        Returns:
            True if there was a waiting value.
        """
        return self._debouncer.flush()

    def cancel_text_filter(self) -> bool:
        """Drop the waiting text filter; the applied one stays.

        Returns:
            True if there was a waiting value.
        """
        with self._lock:
            self._text_generation += 1
            dropped = self._debouncer.cancel()
            if dropped:
                self.state.pending_text = None
        if dropped:
            self._notify()
        return dropped

    def apply_text_filter(self, value: Optional[str]) -> None:
        """Set the text filter without waiting.

        A value waiting in the debounce period is dropped.
        """
        with self._lock:
            self._text_generation += 1
            self._debouncer.cancel()
            self._apply_text_filter(value or "")
        self._notify()

    def _on_debounced_text(self, value: str, generation: int) -> None:
        with self._lock:
            # A newer value may have arrived while the timer waited for
            # the lock.
            if generation != self._text_generation:
                logger.debug("Dropping superseded text filter %r", value)
                return
            self._apply_text_filter(value)
        self._notify()

    def _apply_text_filter(self, value: str) -> None:
        if not self._debouncer.pending:
            self.state.pending_text = None

        column = self.schema.filter_column
        if column is None:
            logger.debug("Schema %s has no text filter column", self.schema)
            return

        self.state.filters = insert_quick_search(
            column, value, self.state.filters
        )
        logger.debug("Text filter on %s set to %r", column, value)
        self._clamp_cursor()

    # Column filters.

    def set_filter(
        self, key: str, value: Any, op: str = OP_ILIKE
    ) -> None:
        """Set or clear the filter of a column.

        Each column has at most one filter; an existing one is replaced in
        place. An empty value removes the filter of the column. Unknown or
        non-filterable columns and unknown operations are ignored.
        """
        col = self.schema.get(key)
        if col is None or not col.filterable or op not in FILTER_OPS:
            logger.debug("Ignoring filter %s %s %r", key, op, value)
            return

        with self._lock:
            result: FilterType = []
            new_flt = (
                FieldFilter(fld=key, op=op, vl=value)
                if value is not None and value != ""
                else None
            )
            replaced = False
            for item in self.state.filters:
                if to_field_filter(item).fld == key:
                    if new_flt is not None and not replaced:
                        result.append(new_flt)
                    replaced = True
                    continue
                result.append(item)
            if new_flt is not None and not replaced:
                result.append(new_flt)

            self.state.filters = result
            self._clamp_cursor()
        self._notify()

    def set_filters(self, filters: FilterType) -> None:
        """Replace all the filters.

        Invalid entries are dropped with a warning.
        """
        valid: FilterType = []
        for i, item in enumerate(filters or []):
            errors = validate_filter([item], self.schema)
            if errors:
                logger.warning(
                    "Dropping filter %d (%s): %s", i, item, errors[0]
                )
                continue
            valid.append(to_field_filter(item))

        with self._lock:
            self.state.filters = valid
            self._clamp_cursor()
        self._notify()

    def clear_filters(self) -> None:
        """Remove all the filters, including the text filter."""
        with self._lock:
            self._text_generation += 1
            self._debouncer.cancel()
            self.state.pending_text = None
            self.state.filters = []
        self._notify()

    # Visibility.

    def toggle_column_visibility(self, key: str, visible: bool) -> None:
        """Show or hide a column.

        Columns that are not part of the schema or that can't be hidden
        are ignored.
        """
        col = self.schema.get(key)
        if col is None or not col.can_hide:
            logger.debug("Column %s can't be toggled", key)
            return
        with self._lock:
            self.state.visibility[key] = bool(visible)
        self._notify()

    def hideable_columns(self) -> List[Tuple[str, str, bool]]:
        """The columns for the toggle menu: key, title and visibility."""
        with self._lock:
            return [
                (c.key, c.title, self.state.is_visible(c.key))
                for c in self.schema
                if c.can_hide
            ]

    # Sorting.

    def set_sort(self, key: str, direction: Optional[str]) -> None:
        """Set the direction of a column in the sort specification.

        None removes the column. A column that is already sorted keeps its
        position in the tie-break order. Unknown or non-sortable columns
        and unknown directions are ignored.
        """
        col = self.schema.get(key)
        if col is None or not col.sortable:
            logger.debug("Column %s can't be sorted", key)
            return
        if direction is not None and direction not in SORT_DIRECTIONS:
            logger.debug("Unknown sort direction %r", direction)
            return
        with self._lock:
            self.state.sort_by = set_sort(self.state.sort_by, key, direction)
        self._notify()

    def toggle_sort(self, key: str, multi: bool = False) -> None:
        """Move a column to the next direction (as a header click does).

        The cycle is: unsorted, ascending, descending, unsorted. Unless
        `multi` is set, the other columns are removed from the
        specification.
        """
        col = self.schema.get(key)
        if col is None or not col.sortable:
            logger.debug("Column %s can't be sorted", key)
            return
        with self._lock:
            direction = next_direction(direction_of(self.state.sort_by, key))
            base = self.state.sort_by if multi else []
            self.state.sort_by = set_sort(base, key, direction)
        self._notify()

    def set_sort_spec(self, sort_by: SortType) -> None:
        """Replace the whole sort specification.

        Entries for unknown or non-sortable columns, with unknown
        directions or repeating a column are dropped.
        """
        result: SortType = []
        for key, direction in sort_by or []:
            col = self.schema.get(key)
            if col is None or not col.sortable:
                logger.debug("Column %s can't be sorted", key)
                continue
            if direction not in SORT_DIRECTIONS:
                logger.debug("Unknown sort direction %r", direction)
                continue
            if direction_of(result, key) is not None:
                continue
            result.append((key, direction))
        with self._lock:
            self.state.sort_by = result
        self._notify()

    def clear_sort(self) -> None:
        with self._lock:
            self.state.sort_by = []
        self._notify()

    # Pagination.

    def set_page(self, index: int) -> None:
        """Go to a page; out of range values go to the nearest page."""
        with self._lock:
            self.state.cursor = PageCursor(
                index=index, size=self.state.cursor.size
            ).clamped(len(self.filtered_records()))
        self._notify()

    def set_page_size(self, size: int) -> None:
        """Change the number of rows in a page.

        The size is brought inside the valid range. The new page is the one
        that contains the first row of the old page.
        """
        size = clamp_page_size(size, self.max_page_size)
        with self._lock:
            self.state.cursor = self.state.cursor.resized(
                size, len(self.filtered_records())
            )
        self._notify()

    def next_page(self) -> None:
        self.set_page(self.state.cursor.index + 1)

    def previous_page(self) -> None:
        self.set_page(self.state.cursor.index - 1)

    def first_page(self) -> None:
        self.set_page(0)

    def last_page(self) -> None:
        with self._lock:
            count = page_count(
                len(self.filtered_records()), self.state.cursor.size
            )
        self.set_page(count - 1)

    # Row activation.

    def activate_row(self, position: int) -> Optional[Any]:
        """Activate a row of the current page.

        The `on_row_activate` callback receives the full record.

        Args:
            position: The index of the row in the current page.

        Returns:
            The activated record, or None if the position is invalid.
        """
        rows = self.get_view().rows
        if not 0 <= position < len(rows):
            logger.debug("No row at position %d", position)
            return None
        return self._activate(rows[position])

    def activate_record(self, record_id: RecIdType) -> Optional[Any]:
        """Activate a record by its unique identifier.

        Returns:
            The activated record, or None if there is no such record.
        """
        record = self.find_record(record_id)
        if record is None:
            logger.debug("No record with id %r", record_id)
            return None
        return self._activate(record)

    def _activate(self, record: Any) -> Any:
        logger.debug(
            "Activating record %r", self.schema.record_id(record)
        )
        if self.on_row_activate is not None:
            self.on_row_activate(record)
        return record
