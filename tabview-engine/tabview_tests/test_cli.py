import json

import pytest
import yaml
from click.testing import CliRunner

from tabview.__version__ import __version__
from tabview.cli import cli, format_table, parse_sort
from tabview.view import DerivedView

RECORDS = [
    {"id": 1, "name": "Oak chair", "price": "49.90", "color": "brown"},
    {"id": 2, "name": "Blue lamp", "price": "12.5", "color": "blue"},
    {"id": 3, "name": "Blue chair", "price": "120", "color": "blue"},
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(tmp_path):
    return str(tmp_path / "settings.yaml")


@pytest.fixture
def records_file(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps(RECORDS))
    return str(path)


def invoke(runner, config, *args):
    return runner.invoke(cli, ["--config", config, *args])


def body_lines(output):
    """The data rows of the printed table."""
    return output.splitlines()[2:-1]


class TestShow:
    def test_exact_output(self, runner, config, tmp_path):
        path = tmp_path / "one.yaml"
        path.write_text(
            yaml.safe_dump(
                [{"id": 1, "name": "Chair", "price": "12.5", "color": "red"}]
            )
        )
        result = invoke(
            runner,
            config,
            "show",
            str(path),
            "--hide",
            "description",
            "--hide",
            "created_at",
        )
        assert result.exit_code == 0, result.output
        assert result.output == (
            "ID  Name   Price   Color\n"
            "--  -----  ------  -----\n"
            "1   Chair  $12.50  red\n"
            "Page 1 of 1 (1 rows)\n"
        )

    def test_all_rows(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file)
        assert result.exit_code == 0, result.output
        assert len(body_lines(result.output)) == 3
        assert result.output.splitlines()[-1] == "Page 1 of 1 (3 rows)"

    def test_filter(self, runner, config, records_file):
        result = invoke(
            runner, config, "show", records_file, "--filter", "BLUE"
        )
        assert result.exit_code == 0, result.output
        rows = body_lines(result.output)
        assert [r.split()[0] for r in rows] == ["2", "3"]

    def test_no_results(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file, "--filter", "x")
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[1] == "No results."
        assert lines[-1] == "Page 1 of 0 (0 rows)"

    def test_sort(self, runner, config, records_file):
        result = invoke(
            runner, config, "show", records_file, "--sort", "price:desc"
        )
        assert result.exit_code == 0, result.output
        rows = body_lines(result.output)
        assert [r.split()[0] for r in rows] == ["3", "1", "2"]

    def test_sort_tie_break(self, runner, config, records_file):
        result = invoke(
            runner,
            config,
            "show",
            records_file,
            "--sort",
            "color",
            "--sort",
            "name:desc",
        )
        assert result.exit_code == 0, result.output
        rows = body_lines(result.output)
        assert [r.split()[0] for r in rows] == ["2", "3", "1"]

    def test_bad_sort(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file, "--sort", "size")
        assert result.exit_code == 2
        assert "unknown column 'size'" in result.output

    def test_pages(self, runner, config, records_file):
        result = invoke(
            runner,
            config,
            "show",
            records_file,
            "--page-size",
            "2",
            "--page",
            "2",
        )
        assert result.exit_code == 0, result.output
        assert [r.split()[0] for r in body_lines(result.output)] == ["3"]
        assert result.output.splitlines()[-1] == "Page 2 of 2 (3 rows)"

    def test_page_past_the_end(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file, "--page", "9")
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[-1] == "Page 1 of 1 (3 rows)"

    def test_hide(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file, "--hide", "color")
        assert result.exit_code == 0, result.output
        assert "Color" not in result.output.splitlines()[0]

    def test_hide_unknown(self, runner, config, records_file):
        result = invoke(runner, config, "show", records_file, "--hide", "size")
        assert result.exit_code == 2
        assert "unknown column 'size'" in result.output

    def test_not_a_list(self, runner, config, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: 1\n")
        result = invoke(runner, config, "show", str(path))
        assert result.exit_code == 2
        assert "must contain a list" in result.output

    def test_orders(self, runner, config, tmp_path):
        path = tmp_path / "orders.yaml"
        path.write_text(
            yaml.safe_dump(
                [
                    {"id": 1, "product": {"name": "Lamp"}, "total": "10"},
                    {"id": 2, "product": {"name": "Chair"}, "total": "99"},
                ]
            )
        )
        result = invoke(
            runner,
            config,
            "show",
            str(path),
            "--schema",
            "orders",
            "--filter",
            "chair",
        )
        assert result.exit_code == 0, result.output
        rows = body_lines(result.output)
        assert len(rows) == 1
        assert "Chair" in rows[0]
        assert "$99.00" in rows[0]

    def test_schema_from_module(self, runner, config, records_file):
        result = invoke(
            runner,
            config,
            "show",
            records_file,
            "--schema",
            "tabview.catalog:product_schema",
        )
        assert result.exit_code == 0, result.output

    @pytest.mark.parametrize(
        "value",
        ["nope", "tabview.catalog:missing", "tabview.catalog:SCHEMAS"],
    )
    def test_bad_schema(self, runner, config, records_file, value):
        result = invoke(
            runner, config, "show", records_file, "--schema", value
        )
        assert result.exit_code == 2

    def test_page_size_from_settings(self, runner, config, records_file):
        with open(config, "w") as f:
            yaml.safe_dump({"tabview": {"view": {"page_size": 2}}}, f)
        result = invoke(runner, config, "show", records_file)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[-1] == "Page 1 of 2 (3 rows)"

    def test_config_from_environment(self, runner, config, records_file):
        with open(config, "w") as f:
            yaml.safe_dump({"tabview": {"view": {"page_size": 1}}}, f)
        result = runner.invoke(
            cli, ["show", records_file], env={"TABVIEW_CONFIG": config}
        )
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[-1] == "Page 1 of 3 (3 rows)"


def test_columns(runner, config):
    result = invoke(runner, config, "columns")
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "id\tId (always visible)",
        "name\tName",
        "description\tDescription",
        "price\tPrice",
        "color\tColor",
        "created_at\tCreated At",
    ]


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_parse_sort(products):
    assert parse_sort(products, ("price", "name:desc")) == [
        ("price", "asc"),
        ("name", "desc"),
    ]


def test_format_table_empty():
    assert format_table(DerivedView()) == "\nNo results.\nPage 1 of 0 (0 rows)"
