"""Tests for the table view model."""

import unittest
from decimal import Decimal
from unittest.mock import MagicMock

from PyQt5.QtCore import QModelIndex, Qt

from tabview.catalog import product_schema
from tabview.debounce import ManualScheduler
from tabview.engine import TableEngine

from tabview_qt.model import RECORD_ROLE, SORT_ROLE, TableViewModel


def make_records(count):
    return [
        {
            "id": i,
            "name": f"Product {i:02d}",
            "price": f"{i * 1.5:.2f}",
            "color": "blue" if i % 2 else "red",
        }
        for i in range(1, count + 1)
    ]


class ModelTestCase(unittest.TestCase):
    """Creates an engine over 25 products and a model for it."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.scheduler = ManualScheduler()
        self.on_activate = MagicMock()
        self.engine = TableEngine(
            schema=product_schema(),
            records=make_records(25),
            scheduler=self.scheduler,
            on_row_activate=self.on_activate,
        )
        self.model = TableViewModel(self.engine)

    def tearDown(self) -> None:
        self.model.close()


class TestTableViewModelShape(ModelTestCase):
    def test_counts(self) -> None:
        """Test that the model shows the current page."""
        self.assertEqual(self.model.rowCount(), 10)
        self.assertEqual(self.model.columnCount(), 6)

    def test_children_have_no_rows(self) -> None:
        parent = self.model.index(0, 0)
        self.assertEqual(self.model.rowCount(parent), 0)
        self.assertEqual(self.model.columnCount(parent), 0)

    def test_last_page(self) -> None:
        self.engine.set_page(2)
        self.assertEqual(self.model.rowCount(), 5)

    def test_hidden_column(self) -> None:
        self.engine.toggle_column_visibility("description", False)
        self.assertEqual(self.model.columnCount(), 5)
        self.assertEqual(self.model.column_key(2), "price")
        self.assertIsNone(self.model.column_key(5))


class TestTableViewModelData(ModelTestCase):
    def test_display(self) -> None:
        """Test that the cells use the renderers of the columns."""
        self.assertEqual(self.model.data(self.model.index(0, 1)), "Product 01")
        self.assertEqual(self.model.data(self.model.index(0, 3)), "$1.50")
        self.assertEqual(self.model.data(self.model.index(0, 2)), "")

    def test_sort_role(self) -> None:
        index = self.model.index(1, 3)
        self.assertEqual(self.model.data(index, SORT_ROLE), Decimal("3.00"))

    def test_record_role(self) -> None:
        record = self.model.data(self.model.index(4, 0), RECORD_ROLE)
        self.assertEqual(record["id"], 5)
        self.assertIs(record, self.model.record(4))

    def test_alignment(self) -> None:
        role = Qt.ItemDataRole.TextAlignmentRole
        self.assertEqual(
            self.model.data(self.model.index(0, 3), role),
            int(Qt.AlignRight | Qt.AlignVCenter),
        )
        self.assertIsNone(self.model.data(self.model.index(0, 1), role))

    def test_invalid_index(self) -> None:
        self.assertIsNone(self.model.data(QModelIndex()))
        self.assertIsNone(self.model.record(10))

    def test_header(self) -> None:
        horizontal = Qt.Orientation.Horizontal
        self.assertEqual(self.model.headerData(0, horizontal), "ID")
        self.assertEqual(self.model.headerData(5, horizontal), "Created")
        self.assertIsNone(self.model.headerData(6, horizontal))

    def test_row_numbers(self) -> None:
        vertical = Qt.Orientation.Vertical
        self.engine.set_page(2)
        self.assertEqual(self.model.headerData(0, vertical), "21")


class TestTableViewModelActions(ModelTestCase):
    def test_sort(self) -> None:
        """Test that the header sort replaces the sort specification."""
        self.engine.set_sort("name", "asc")
        self.model.sort(3, Qt.SortOrder.DescendingOrder)
        self.assertEqual(self.engine.state.sort_by, [("price", "desc")])
        self.assertEqual(self.model.record(0)["id"], 25)

    def test_sort_ascending(self) -> None:
        self.model.sort(1, Qt.SortOrder.AscendingOrder)
        self.assertEqual(self.engine.state.sort_by, [("name", "asc")])

    def test_sort_out_of_range(self) -> None:
        self.model.sort(17, Qt.SortOrder.AscendingOrder)
        self.assertEqual(self.engine.state.sort_by, [])

    def test_activate(self) -> None:
        self.engine.set_page(1)
        record = self.model.activate(self.model.index(2, 0))
        self.assertEqual(record["id"], 13)
        self.on_activate.assert_called_once_with(record)

    def test_activate_invalid(self) -> None:
        self.assertIsNone(self.model.activate(QModelIndex()))
        self.on_activate.assert_not_called()


class TestTableViewModelSignals(ModelTestCase):
    def test_reset_on_change(self) -> None:
        reset = MagicMock()
        self.model.modelReset.connect(reset)
        self.engine.set_page(1)
        reset.assert_called_once_with()

    def test_pending(self) -> None:
        pending = MagicMock()
        self.model.pendingChanged.connect(pending)

        self.engine.set_text_filter("Product 1")
        pending.assert_called_once_with(True)
        self.assertEqual(self.model.rowCount(), 10)

        self.scheduler.advance(0.3)
        pending.assert_called_with(False)
        self.assertEqual(self.model.view.filtered_count, 10)

    def test_empty(self) -> None:
        empty = MagicMock()
        self.model.emptyChanged.connect(empty)
        self.engine.apply_text_filter("nothing")
        empty.assert_called_once_with(True)
        self.assertEqual(self.model.rowCount(), 0)
        self.assertEqual(self.model.view.col_span, 6)

    def test_page(self) -> None:
        page = MagicMock()
        self.model.pageChanged.connect(page)
        self.engine.set_page(1)
        page.assert_called_once_with(1, 3)
        self.engine.toggle_column_visibility("color", False)
        self.assertEqual(page.call_count, 1)

    def test_close(self) -> None:
        self.model.close()
        self.engine.set_page(1)
        self.assertEqual(self.model.view.page_index, 0)
