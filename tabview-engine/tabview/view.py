from typing import Any, List

from attrs import field, frozen

from tabview.column import ExColumn
from tabview.constants import EMPTY_TEXT
from tabview.sorting import SortType


@frozen
class DerivedView:
    """The render-ready projection of the records for the current page.

    Instances are computed by `TableEngine.get_view()` and never change.

    Attributes:
        rows: The full records of the current page, in display order.
        columns: The visible columns, in display order.
        all_columns: All the columns of the schema, visible or not.
        page_index: The zero-based index of the current page.
        page_size: The number of rows in a page.
        filtered_count: The number of records that pass the filters.
        total_count: The number of records handed to the engine.
        page_count: The number of pages for the filtered records.
        sort_by: The sort specification that produced the order.
        text_filter: The text filter that is applied.
        pending: Whether a text filter waits for the debounce delay.
    """

    rows: List[Any] = field(factory=list)
    columns: List[ExColumn] = field(factory=list)
    all_columns: List[ExColumn] = field(factory=list, repr=False)
    page_index: int = field(default=0)
    page_size: int = field(default=10)
    filtered_count: int = field(default=0)
    total_count: int = field(default=0)
    page_count: int = field(default=0)
    sort_by: SortType = field(factory=list)
    text_filter: str = field(default="")
    pending: bool = field(default=False)

    @property
    def is_empty(self) -> bool:
        """No record passes the filters.

        This does not depend on column visibility.
        """
        return self.filtered_count == 0

    @property
    def col_span(self) -> int:
        """The number of cells spanned by the empty-state row."""
        return len(self.all_columns)

    @property
    def empty_text(self) -> str:
        return EMPTY_TEXT

    @property
    def can_previous_page(self) -> bool:
        return self.page_index > 0

    @property
    def can_next_page(self) -> bool:
        return self.page_index < self.page_count - 1

    @property
    def page_label(self) -> str:
        """The page indicator (`Page 1 of 3`)."""
        return f"Page {self.page_index + 1} of {self.page_count}"

    def headers(self) -> List[str]:
        """The header texts of the visible columns."""
        return [c.header_text() for c in self.columns]

    def cells(self) -> List[List[str]]:
        """The cell texts of the visible columns, one list per row."""
        return [[c.render(r) for c in self.columns] for r in self.rows]
