import logging
from importlib import import_module
from typing import Any, Dict, List, Optional, Tuple

import click
import yaml
from dotenv import load_dotenv

from tabview.__version__ import __version__
from tabview.catalog import SCHEMAS
from tabview.engine import TableEngine
from tabview.schema import TableSchema
from tabview.settings import LocalSettings
from tabview.view import DerivedView

logger = logging.getLogger(__name__)


class GetSchema(click.ParamType):
    """A custom Click parameter type for selecting a table schema.

    The user enters either the name of a built-in schema (`products`,
    `orders`) or a `module.name:symbol` path. The symbol may be a schema
    or a function that returns one.
    """

    name = "schema"

    def convert(self, value, param, ctx):
        if isinstance(value, TableSchema):
            return value
        factory = SCHEMAS.get(value)
        if factory is not None:
            return factory()

        if ":" not in value:
            self.fail(
                f"Unknown schema '{value}'; use one of {sorted(SCHEMAS)} "
                "or a module.name:symbol path",
                param,
                ctx,
            )
        module_path, symbol = value.split(":", 1)
        try:
            result = getattr(import_module(module_path), symbol)
        except (ImportError, AttributeError) as e:
            self.fail(f"Could not load schema '{value}': {e}", param, ctx)
        if callable(result) and not isinstance(result, TableSchema):
            result = result()
        if not isinstance(result, TableSchema):
            self.fail(f"'{value}' is not a table schema", param, ctx)
        return result


def parse_sort(
    schema: TableSchema, items: Tuple[str, ...]
) -> List[Tuple[str, str]]:
    """Parse `key[:asc|desc]` items into a sort specification."""
    result = []
    for item in items:
        key, _, direction = item.partition(":")
        direction = direction or "asc"
        if key not in schema:
            raise click.BadParameter(
                f"unknown column '{key}'; valid columns: {schema.keys()}",
                param_hint="--sort",
            )
        if direction not in ("asc", "desc"):
            raise click.BadParameter(
                f"unknown direction '{direction}' for column '{key}'",
                param_hint="--sort",
            )
        result.append((key, direction))
    return result


def format_table(view: DerivedView) -> str:
    """Render the derived view as plain text."""
    headers = view.headers()
    if view.is_empty:
        lines = ["  ".join(headers), view.empty_text]
    else:
        rows = view.cells()
        widths = [
            max([len(h)] + [len(r[i]) for r in rows])
            for i, h in enumerate(headers)
        ]
        lines = [
            "  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip(),
            "  ".join("-" * w for w in widths),
        ]
        for row in rows:
            lines.append(
                "  ".join(c.ljust(w) for c, w in zip(row, widths)).rstrip()
            )
    lines.append(f"{view.page_label} ({view.filtered_count} rows)")
    return "\n".join(lines)


def create_context_obj(debug: bool, config: Optional[str]) -> Dict[str, Any]:
    """Sets up the logging and prepares the context for the CLI.

    Args:
        debug: If True, sets the logging level to DEBUG.
        config: The path of the settings file, if not the default one.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.debug("Debug mode is on")

    settings = LocalSettings(path=config, read_only=True)
    return {
        "settings": settings,
        "view_config": settings.view_config(),
    }


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="The settings file to use.",
    envvar="TABVIEW_CONFIG",
)
@click.version_option(__version__, prog_name="tabview")
@click.pass_context
def cli(context: click.Context, debug: bool, config: Optional[str]):
    load_dotenv()
    context.obj = create_context_obj(debug, config)


@cli.command()
@click.argument("records", metavar="RECORDS", type=click.File("r"))
@click.option(
    "--schema",
    type=GetSchema(),
    default="products",
    help="The columns of the table.",
)
@click.option(
    "--filter",
    "text",
    type=str,
    default="",
    help="Text to look for in the filter column.",
)
@click.option(
    "--sort",
    multiple=True,
    help="Sort by a column: key[:asc|desc]. Repeat for tie-breaks.",
)
@click.option("--page", type=int, default=1, help="The page to show.")
@click.option(
    "--page-size",
    type=int,
    default=None,
    help="The number of rows in a page.",
)
@click.option("--hide", multiple=True, help="A column to hide.")
@click.pass_context
def show(
    context: click.Context,
    records,
    schema: TableSchema,
    text: str,
    sort: Tuple[str, ...],
    page: int,
    page_size: Optional[int],
    hide: Tuple[str, ...],
):
    """Show a page of records.

    Arguments:
        RECORDS: A JSON or YAML file with a list of records.
    """
    data = yaml.safe_load(records)
    if data is None:
        data = []
    if not isinstance(data, list):
        raise click.UsageError("The records file must contain a list")
    logger.debug("Loaded %d records", len(data))

    engine = TableEngine.from_config(
        schema, data, context.obj["view_config"], debounce_ms=0
    )
    if page_size is not None:
        engine.set_page_size(page_size)
    engine.apply_text_filter(text)
    engine.set_sort_spec(parse_sort(schema, sort))  # type: ignore[arg-type]
    for key in hide:
        if key not in schema:
            raise click.BadParameter(
                f"unknown column '{key}'", param_hint="--hide"
            )
        engine.toggle_column_visibility(key, False)
    engine.set_page(page - 1)

    click.echo(format_table(engine.get_view()))


@cli.command()
@click.option(
    "--schema",
    type=GetSchema(),
    default="products",
    help="The columns of the table.",
)
def columns(schema: TableSchema):
    """List the columns of a table and whether they can be hidden."""
    for col in schema:
        flag = "" if col.can_hide else " (always visible)"
        click.echo(f"{col.key}\t{col.title}{flag}")


if __name__ == "__main__":
    cli()
