"""Qt model that shows the derived view of a table engine.

The model holds the last derived view computed by the engine. Any change
of the engine state resets the model, the same way the database backed
models reset when their filters or sorting change.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from PyQt5.QtCore import QAbstractTableModel, QModelIndex, Qt, pyqtSignal

from tabview.view import DerivedView

if TYPE_CHECKING:
    from PyQt5.QtCore import QObject  # noqa: F401

    from tabview.engine import TableEngine  # noqa: F401

SORT_ROLE = Qt.ItemDataRole.UserRole + 5
RECORD_ROLE = Qt.ItemDataRole.UserRole + 6

logger = logging.getLogger(__name__)


class TableViewModel(QAbstractTableModel):
    """A table model over a `TableEngine`.

    Rows are the records of the current page, columns are the visible
    columns. Besides the display text each cell exposes the sort value
    (`SORT_ROLE`) and the full record (`RECORD_ROLE`).

    If the engine applies its text filter from a timer, that timer should
    be a `QtScheduler` so that the model is reset in the GUI thread.

    Attributes:
        engine: The engine that computes the view.

    Signals:
        pendingChanged: Emitted when a text filter starts or stops waiting
            for the debounce delay; use it to show a busy indicator.
        emptyChanged: Emitted when the filtered set becomes empty or stops
            being empty.
        pageChanged: Emitted when the page index or the page count changes.
            It receives the page index and the page count.
    """

    engine: "TableEngine"
    _view: DerivedView

    pendingChanged = pyqtSignal(bool)
    emptyChanged = pyqtSignal(bool)
    pageChanged = pyqtSignal(int, int)

    def __init__(
        self, engine: "TableEngine", parent: Optional["QObject"] = None
    ) -> None:
        super().__init__(parent)
        self.engine = engine
        self._view = engine.get_view()
        self._unsubscribe = engine.subscribe(self._on_engine_changed)

    @property
    def view(self) -> DerivedView:
        """The derived view that is currently shown."""
        return self._view

    def close(self) -> None:
        """Stop following the engine."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_engine_changed(self, engine: "TableEngine") -> None:
        self.reset_model()

    def reset_model(self) -> None:
        """Recompute the view and reset the model."""
        old = self._view
        self.beginResetModel()
        self._view = self.engine.get_view()
        self.endResetModel()

        new = self._view
        if old.pending != new.pending:
            self.pendingChanged.emit(new.pending)
        if old.is_empty != new.is_empty:
            self.emptyChanged.emit(new.is_empty)
        if (old.page_index, old.page_count) != (
            new.page_index,
            new.page_count,
        ):
            self.pageChanged.emit(new.page_index, new.page_count)

    def column_key(self, section: int) -> Optional[str]:
        """The key of a visible column, by position."""
        if 0 <= section < len(self._view.columns):
            return self._view.columns[section].key
        return None

    def record(self, row: int) -> Any:
        """The full record shown in a row of the page."""
        if 0 <= row < len(self._view.rows):
            return self._view.rows[row]
        return None

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._view.rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._view.columns)

    def data(
        self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole
    ):
        if not index.isValid():
            return None
        record = self.record(index.row())
        if record is None or index.column() >= len(self._view.columns):
            return None
        col = self._view.columns[index.column()]

        if role == Qt.ItemDataRole.DisplayRole:
            return col.render(record)
        if role == SORT_ROLE:
            return col.sort_value(record)
        if role == RECORD_ROLE:
            return record
        if role == Qt.ItemDataRole.TextAlignmentRole and col.is_numeric:
            return int(Qt.AlignRight | Qt.AlignVCenter)
        return None

    def headerData(
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if orientation == Qt.Orientation.Horizontal:
            if not 0 <= section < len(self._view.columns):
                return None
            col = self._view.columns[section]
            if role == Qt.ItemDataRole.DisplayRole:
                return col.header_text()
            if role == Qt.ItemDataRole.ToolTipRole and col.description:
                return col.description
            return None

        if role == Qt.ItemDataRole.DisplayRole:
            # Row numbers continue across pages.
            first = self._view.page_index * self._view.page_size
            return str(first + section + 1)
        return None

    def sort(
        self, column: int, order: Qt.SortOrder = Qt.SortOrder.AscendingOrder
    ) -> None:
        """Sort by a single column, as requested by the header view."""
        key = self.column_key(column)
        if key is None:
            logger.debug("No visible column at %d", column)
            return
        direction = (
            "asc" if order == Qt.SortOrder.AscendingOrder else "desc"
        )
        self.engine.set_sort_spec([(key, direction)])

    def activate(self, index: QModelIndex) -> Any:
        """Activate the row of an index (connect to `doubleClicked`)."""
        if not index.isValid():
            return None
        return self.engine.activate_row(index.row())
