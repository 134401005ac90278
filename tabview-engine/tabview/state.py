from typing import Dict, Optional

from attrs import define, evolve, field

from tabview.constants import OP_ILIKE
from tabview.filter import FilterType, to_field_filter
from tabview.pagination import PageCursor
from tabview.sorting import SortType


@define
class ViewState:
    """The user-driven configuration of a table view.

    Attributes:
        filters: The filter predicates, AND-ed together, in the order in
            which they were added.
        sort_by: The sort specification, primary key first.
        visibility: Column key to visibility. Columns that are not in the
            map are visible.
        cursor: The pagination cursor.
        pending_text: The text filter waiting for the debounce delay to
            pass; None if nothing is waiting.
    """

    filters: FilterType = field(factory=list)
    sort_by: SortType = field(factory=list)
    visibility: Dict[str, bool] = field(factory=dict)
    cursor: PageCursor = field(factory=PageCursor)
    pending_text: Optional[str] = field(default=None)

    @property
    def pending(self) -> bool:
        return self.pending_text is not None

    def is_visible(self, key: str) -> bool:
        return self.visibility.get(key, True)

    def text_filter(self, column: Optional[str]) -> str:
        """The value of the text filter applied to a column, if any."""
        for item in self.filters:
            flt = to_field_filter(item)
            if flt.fld == column and flt.op == OP_ILIKE:
                return "" if flt.vl is None else str(flt.vl)
        return ""

    def snapshot(self) -> "ViewState":
        """A copy that does not share mutable containers with this state."""
        return evolve(
            self,
            filters=list(self.filters),
            sort_by=list(self.sort_by),
            visibility=dict(self.visibility),
            cursor=evolve(self.cursor),
        )
