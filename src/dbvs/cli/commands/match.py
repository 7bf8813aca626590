"""Direct match command"""

import asyncio
import sys

import click

from ...core.exceptions import DBVSError
from ...core.models import TargetDescriptor
from ...processing.processor import DBVSProcessor
from .scan import render_results


@click.command()
@click.argument('vendor')
@click.argument('product')
@click.argument('version')
@click.option('--format', type=click.Choice(['table', 'json', 'csv']), default='table', help='Output format')
@click.option('--timeout', default=30.0, help='Store query timeout in seconds')
@click.pass_context
def match(ctx, vendor, product, version, format, timeout):
    """Match a vendor/product/version without connecting to a database

    Examples:
        dbvs match Oracle MySQL 8.0.30
        dbvs match "Microsoft" "SQL Server" 15.0.2000.5 --format json
    """
    config = ctx.obj['config']

    async def process():
        async with DBVSProcessor(config) as processor:
            return await processor.match(vendor, product, version, timeout=timeout)

    try:
        results = asyncio.run(process())
    except DBVSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    target = TargetDescriptor(vendor=vendor, product=product, version=version)
    click.echo(render_results(target, results, format))
