import math
from typing import Any, List, Sequence

from attrs import define, field

from tabview.constants import DEFAULT_PAGE_SIZE


def page_count(total: int, page_size: int) -> int:
    """The number of pages needed to show `total` rows.

    Zero rows need zero pages.
    """
    if page_size < 1:
        raise ValueError(f"The page size must be positive, not {page_size}")
    return math.ceil(max(total, 0) / page_size)


def clamp_page_index(index: int, total: int, page_size: int) -> int:
    """Bring a page index inside `[0, page_count - 1]`.

    When there are no rows the only valid index is 0.
    """
    last = max(page_count(total, page_size) - 1, 0)
    return min(max(index, 0), last)


def clamp_page_size(size: int, max_size: int = 0) -> int:
    """Bring a page size inside `[1, max_size]`; 0 means no upper limit."""
    size = max(size, 1)
    if max_size > 0:
        size = min(size, max_size)
    return size


@define
class PageCursor:
    """The current position in a paginated list.

    Attributes:
        index: The zero-based index of the page.
        size: The number of rows in a page.
    """

    index: int = field(default=0)
    size: int = field(default=DEFAULT_PAGE_SIZE)

    @property
    def start(self) -> int:
        """The index of the first row of the page."""
        return self.index * self.size

    def clamped(self, total: int) -> "PageCursor":
        """Get a cursor that is valid for `total` rows."""
        return PageCursor(
            index=clamp_page_index(self.index, total, self.size),
            size=self.size,
        )

    def resized(self, size: int, total: int) -> "PageCursor":
        """Get a cursor with a new page size.

        The page that contains the first row of the current page is
        selected, so the user keeps looking at the same rows.
        """
        new_index = self.start // size
        return PageCursor(index=new_index, size=size).clamped(total)

    def slice(self, rows: Sequence[Any]) -> List[Any]:
        """Get the rows of this page."""
        return list(rows[self.start : self.start + self.size])
