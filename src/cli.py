#!/usr/bin/env python3
"""
CLI tool for the Operator Broker
Runs the broker and inspects controller discovery
"""

import asyncio
import json

import click
import yaml
from tabulate import tabulate

from main import run as run_broker
from config import get_config
from controllers.discovery import resolve_pattern
from controllers.registry import get_catalog
from log import configure_logging


@click.group()
def cli():
    """Operator Broker CLI - run and inspect controller brokers"""
    pass


@cli.command()
@click.option("--name", "-n", default=None, help="Broker name")
@click.option("--controllers", "-c", "pattern", default=None, help="Controller glob")
@click.option("--log-level", "-l", default=None, help="Log level")
def run(name, pattern, log_level):
    """Start the broker and run until interrupted"""
    config = get_config()
    if name:
        config.broker.name = name
    if pattern:
        config.broker.controllers_pattern = pattern
    if log_level:
        config.logging.level = log_level.upper()

    configure_logging(config.logging)
    asyncio.run(run_broker(config))


@cli.command()
@click.option("--pattern", "-p", default=None, help="Glob to resolve against")
@click.option("--entry-points/--no-entry-points", default=True)
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
def controllers(pattern, entry_points, output):
    """List controller factories, or what a glob resolves to"""
    config = get_config()
    catalog = get_catalog()
    if entry_points:
        catalog.load_entry_points(config.broker.entry_point_group)

    if pattern:
        headers = ["Path", "Factory"]
        rows = [[path, catalog.key_for(path)] for path in resolve_pattern(pattern)]
    else:
        headers = ["Factory"]
        rows = [[name] for name in catalog.list_names()]

    if output == "json":
        click.echo(json.dumps([dict(zip(headers, row)) for row in rows], indent=2))
    elif output == "yaml":
        click.echo(
            yaml.dump(
                [dict(zip(headers, row)) for row in rows], default_flow_style=False
            )
        )
    else:
        rows = [[value if value is not None else "✗" for value in row] for row in rows]
        click.echo(tabulate(rows, headers=headers, tablefmt="grid"))


if __name__ == "__main__":
    cli()
