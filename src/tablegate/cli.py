#!/usr/bin/env python3
"""tablegate CLI for inspecting tables through their model definitions."""

import argparse
import logging
import re

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tablegate.config import config
from tablegate.connection import Connection, PgConnection
from tablegate.errors import TablegateError
from tablegate.model import Model, create

console = Console()

PATTERN_PREFIX = "re:"


def build_model(definition: dict, connection: Connection) -> Model:
    """
    Build a Model from a JSON definition.

    Field specs are type names, or "re:<regex>" for a pattern.
    """
    fields = {
        name: re.compile(spec[len(PATTERN_PREFIX):])
        if isinstance(spec, str) and spec.startswith(PATTERN_PREFIX)
        else spec
        for name, spec in definition["fields"].items()
    }
    return create(
        connection=connection,
        table=definition["table"],
        fields=fields,
        primary=definition.get("primary", "id"),
        limit=definition.get("limit"),
        query_fields=definition.get("query_fields"),
        required_fields=definition.get("required_fields"),
    )


def load_models(definitions: dict, connection: Connection) -> dict[str, Model]:
    return {name: build_model(d, connection) for name, d in definitions.items()}


def parse_where(pairs: list[str] | None) -> dict:
    query = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {pair!r}")
        query[key] = value
    return query


def render(records: list[dict], title: str) -> None:
    """Print records as a table."""
    if not records:
        console.print(f"[red]No records found in {title}.[/]")
        return
    table = Table(title=title)
    columns = list(records[0].keys())
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*(str(record.get(c)) for c in columns))
    console.print(table)


def run(args: argparse.Namespace, models: dict[str, Model]) -> int:
    model = models.get(args.model)
    if model is None:
        console.print(f"[red]Unknown model {args.model!r}. Known: {sorted(models)}[/]")
        return 2

    if args.command == "count":
        console.print(model.count(parse_where(args.where)))
    elif args.command == "list":
        options = {"order": args.order, "limit": args.limit, "offset": args.offset}
        render(model.list(parse_where(args.where), options), model.table)
    elif args.command == "get":
        record = model.by(model.primary).get(args.id)
        render([record] if record else [], model.table)
    elif args.command == "delete":
        record = model.by(model.primary).get(args.id)
        if not record:
            console.print(f"[red]No record {args.id} in {model.table}.[/]")
            return 1
        render([record], model.table)
        if not questionary.confirm("Delete this record?").ask():
            console.print("[dim]Cancelled.[/]")
            return 0
        deleted = model.by(model.primary).delete(args.id)
        console.print(f"[green]Deleted {deleted} record(s) from {model.table}.[/]")
    return 0


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="tablegate CLI")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    count = subparsers.add_parser("count", help="Count matching records")
    count.add_argument("model")
    count.add_argument("--where", action="append", metavar="FIELD=VALUE")

    list_ = subparsers.add_parser("list", help="List matching records")
    list_.add_argument("model")
    list_.add_argument("--where", action="append", metavar="FIELD=VALUE")
    list_.add_argument("--order", help="e.g. id:desc,created_at:asc")
    list_.add_argument("--limit", type=int)
    list_.add_argument("--offset", type=int)

    get = subparsers.add_parser("get", help="Show a record by primary key")
    get.add_argument("model")
    get.add_argument("id")

    delete = subparsers.add_parser("delete", help="Delete a record by primary key")
    delete.add_argument("model")
    delete.add_argument("id")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = make_parser().parse_args(argv)
    logging.basicConfig(
        level=config.log_level, format="%(message)s", handlers=[RichHandler(console=console)]
    )

    connection = PgConnection(args.database_url)
    try:
        models = load_models(config.load_models_config(), connection)
    except FileNotFoundError:
        console.print(f"[red]Models file not found: {config.models_path}[/]")
        return 1
    try:
        return run(args, models)
    except (TablegateError, ValueError) as e:
        console.print(f"[red]{e}[/]")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
