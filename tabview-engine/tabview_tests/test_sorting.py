import pytest

from tabview.sorting import direction_of, next_direction, set_sort, sort_records


class TestSetSort:
    def test_append(self):
        assert set_sort([("name", "asc")], "price", "desc") == [
            ("name", "asc"),
            ("price", "desc"),
        ]

    def test_replace_keeps_position(self):
        sort_by = [("name", "asc"), ("price", "desc")]
        assert set_sort(sort_by, "name", "desc") == [
            ("name", "desc"),
            ("price", "desc"),
        ]
        assert sort_by[0] == ("name", "asc")

    def test_remove(self):
        assert set_sort([("name", "asc"), ("price", "desc")], "name", None) == [
            ("price", "desc")
        ]

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            set_sort([], "name", "up")


def test_next_direction_cycle():
    assert next_direction(None) == "asc"
    assert next_direction("asc") == "desc"
    assert next_direction("desc") is None


def test_direction_of():
    assert direction_of([("name", "desc")], "name") == "desc"
    assert direction_of([("name", "desc")], "price") is None


class TestSortRecords:
    def test_numeric_sort(self, products):
        records = [{"price": p} for p in ["10.00", "9.50", "100"]]
        result = sort_records(records, [("price", "asc")], products)
        assert [r["price"] for r in result] == ["9.50", "10.00", "100"]

    def test_tie_break(self, products):
        records = [
            {"name": "B", "price": "9.99"},
            {"name": "A", "price": "9.99"},
            {"name": "C", "price": "19.99"},
        ]
        result = sort_records(
            records, [("price", "desc"), ("name", "asc")], products
        )
        assert [r["name"] for r in result] == ["C", "A", "B"]

    def test_stable(self, products):
        records = [
            {"id": 1, "color": "red"},
            {"id": 2, "color": "blue"},
            {"id": 3, "color": "red"},
            {"id": 4, "color": "blue"},
        ]
        asc = sort_records(records, [("color", "asc")], products)
        assert [r["id"] for r in asc] == [2, 4, 1, 3]
        desc = sort_records(records, [("color", "desc")], products)
        assert [r["id"] for r in desc] == [1, 3, 2, 4]

    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_missing_values_go_last(self, products, direction):
        records = [
            {"id": 1, "price": None},
            {"id": 2, "price": "5"},
            {"id": 3, "price": "n/a"},
            {"id": 4, "price": "7"},
        ]
        result = sort_records(records, [("price", direction)], products)
        assert [r["id"] for r in result][2:] == [1, 3]

    def test_dates(self, products):
        records = [
            {"id": 1, "createdAt": "2024-02-01T00:00:00Z"},
            {"id": 2, "createdAt": "2023-12-31T23:00:00-05:00"},
            {"id": 3, "createdAt": "2024-01-01T00:00:00Z"},
        ]
        result = sort_records(records, [("created_at", "asc")], products)
        assert [r["id"] for r in result] == [3, 2, 1]

    def test_unknown_column_is_ignored(self, products):
        records = [{"id": 2}, {"id": 1}]
        result = sort_records(records, [("size", "asc")], products)
        assert result == records

    def test_input_not_modified(self, products):
        records = [{"name": "b"}, {"name": "a"}]
        sort_records(records, [("name", "asc")], products)
        assert records[0]["name"] == "b"
