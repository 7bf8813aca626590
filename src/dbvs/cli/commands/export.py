"""Export command"""

import asyncio
import sys

import click

from ...core.exceptions import DBVSError
from ...processing.processor import DBVSProcessor
from ..formatters.csv import CSVFormatter
from ..formatters.json import JSONFormatter


@click.command()
@click.option('--format', type=click.Choice(['json', 'csv']), default='json', help='Export format')
@click.option('--output', '-o', help='Output file path (stdout when omitted)')
@click.pass_context
def export(ctx, format, output):
    """Export every stored record

    Examples:
        dbvs export --format json --output scan_result.json
        dbvs export --format csv > records.csv
    """
    config = ctx.obj['config']

    async def process():
        async with DBVSProcessor(config) as processor:
            return await processor.export_records()

    try:
        records = asyncio.run(process())
    except DBVSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if format == 'csv':
        CSVFormatter.save_records(records, output)
    else:
        JSONFormatter.save_records(records, output)
