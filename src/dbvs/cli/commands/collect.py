"""Feed collection command"""

import asyncio
import sys

import click
from dateutil import parser as date_parser

from ...core.exceptions import DBVSError
from ...processing.processor import SOURCES, DBVSProcessor


def _validate_since(ctx, param, value):
    if value is None:
        return None
    try:
        return date_parser.isoparse(value).date().isoformat()
    except ValueError:
        raise click.BadParameter("expected a date like 2025-01-01")


@click.command()
@click.option('--source', type=click.Choice(SOURCES), default='cve', help='Feed to collect')
@click.option('--since', callback=_validate_since, help='Only advisories published since (YYYY-MM-DD)')
@click.pass_context
def collect(ctx, source, since):
    """Collect advisories from a feed into the vulnerability store

    Examples:
        dbvs collect --source cve --since 2025-01-01
        dbvs collect --source cnvd
    """
    config = ctx.obj['config']

    async def process():
        async with DBVSProcessor(config) as processor:
            return await processor.collect(source, since)

    try:
        stored = asyncio.run(process())
    except DBVSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"collect done: {stored} records from {source.upper()}")
