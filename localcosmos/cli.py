"""
LocalCosmos Command-Line Interface

Parse and run Cosmos DB SQL queries against JSON documents from the shell.

Author: LocalCosmos Team
Date: 2025-12-05
"""

import sys
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from pydantic import ValidationError

from localcosmos import __version__
from localcosmos.core.config_manager import ConfigManager
from localcosmos.core.logging_config import setup_logging
from localcosmos.services.cosmosdb.exceptions import CosmosDBError
from localcosmos.services.cosmosdb.executor import QueryExecutor
from localcosmos.services.cosmosdb.pagination import PaginationManager
from localcosmos.services.cosmosdb.parser import parse_query


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.version_option(version=__version__, prog_name="localcosmos")
@click.pass_context
def cli(ctx):
    """
    LocalCosmos - Local Azure Cosmos DB Query Emulator

    Parse and execute Cosmos DB SQL queries against local JSON data.
    """
    ctx.ensure_object(dict)


def _parse_param(raw: str) -> Tuple[str, Any]:
    """Split ``name=value``; the value is read as JSON, falling back to a plain string."""
    if "=" not in raw:
        raise click.BadParameter(f"Expected name=value, got {raw!r}", param_hint="--param")
    name, _, text = raw.partition("=")
    name = name.strip()
    if not name.lstrip("@"):
        raise click.BadParameter(f"Parameter name is empty in {raw!r}", param_hint="--param")
    try:
        value = json.loads(text)
    except ValueError:
        value = text
    return name, value


def _load_documents(path: Path) -> List[Dict[str, Any]]:
    """Load a JSON array of documents, or JSON Lines when the file is not one array."""
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = [json.loads(line) for line in text.splitlines() if line.strip()]
        except ValueError as e:
            raise click.BadParameter(f"Data file is not JSON or JSON Lines: {e}", param_hint="--data")

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(doc, dict) for doc in data):
        raise click.BadParameter("Data file must contain JSON objects", param_hint="--data")
    return data


@cli.command()
@click.argument("sql")
def parse(sql: str):
    """
    Parse a query and print its normalized form.

    Examples:
        localcosmos parse "SELECT * FROM c WHERE c.age > 21"
    """
    try:
        query = parse_query(sql)
    except CosmosDBError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    click.echo(str(query))


@cli.command()
@click.argument("sql")
@click.option(
    "--data",
    "-d",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with an array of documents (or JSON Lines)",
)
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Query parameter as name=value (value parsed as JSON when possible)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--max-item-count",
    type=int,
    default=None,
    help="Page size; prints a continuation token when more results remain",
)
@click.option(
    "--continuation",
    default=None,
    help="Continuation token from a previous page",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (overrides configuration)",
)
def query(
    sql: str,
    data: Path,
    params: Tuple[str, ...],
    config: Optional[Path],
    max_item_count: Optional[int],
    continuation: Optional[str],
    log_level: Optional[str],
):
    """
    Run a query against documents from a JSON file.

    Examples:
        localcosmos query "SELECT c.name FROM c WHERE c.age > @min" -d people.json -p min=21
        localcosmos query "SELECT * FROM c ORDER BY c.name" -d people.json --max-item-count 10
    """
    overrides = {"logging": {"level": log_level.upper()}} if log_level else None
    try:
        settings = ConfigManager().load(str(config) if config else None, overrides)
    except (ValidationError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        settings.logging.level,
        settings.logging.format,
        settings.logging.file,
        settings.logging.rotation_size,
        settings.logging.rotation_count,
        settings.logging.module_levels,
    )
    logger = logging.getLogger("localcosmos.cli")

    parameters = [_parse_param(raw) for raw in params]
    documents = _load_documents(data)
    logger.debug(f"Loaded {len(documents)} documents from {data}")

    try:
        parsed = parse_query(sql)
        results = QueryExecutor(settings=settings.query).execute(parsed, documents, parameters)
    except CosmosDBError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    if max_item_count is not None or continuation:
        pages = PaginationManager(settings.query.default_max_item_count)
        results, next_token = pages.get_page(results, max_item_count, continuation)
        if next_token:
            click.echo(f"Continuation: {next_token}", err=True)

    click.echo(json.dumps(results, indent=2, default=str))


@cli.command()
def version():
    """Show LocalCosmos version."""
    click.echo(f"LocalCosmos version {__version__}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
