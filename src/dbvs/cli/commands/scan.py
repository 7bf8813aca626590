"""Target scan command"""

import asyncio
import logging
import sys

import click

from ...core.exceptions import DBVSError
from ...processing.processor import DBVSProcessor
from ...scanning.target import TargetScanner
from ..formatters.csv import CSVFormatter
from ..formatters.json import JSONFormatter
from ..formatters.table import TableFormatter


def render_results(target, results, format) -> str:
    """Render scan or match results in the requested format"""
    if format == 'json':
        return JSONFormatter.format_scan(target, results)
    if format == 'csv':
        return CSVFormatter.format_records(results).rstrip("\n")
    return TableFormatter.format_results(target, results)


@click.command()
@click.option('--db', 'db_type', type=click.Choice(['mysql', 'postgres', 'mssql', 'oracle']),
              default='mysql', help='Target database type')
@click.option('--addr', default='', help='Target database address host:port')
@click.option('--user', default='', help='Target database user')
@click.option('--password', default='', help='Target database password')
@click.option('--dsn', default='', help='Target DSN (overrides addr/user/password)')
@click.option('--dry-run/--live', default=True, help='Simulate the target version instead of connecting')
@click.option('--format', type=click.Choice(['table', 'json', 'csv']), default='table', help='Output format')
@click.option('--save/--no-save', default=True, help='Store the outcome as scan records')
@click.option('--timeout', default=30.0, help='Store query timeout in seconds')
@click.option('--debug', is_flag=True, help='Enable debug logging for this command')
@click.pass_context
def scan(ctx, db_type, addr, user, password, dsn, dry_run, format, save, timeout, debug):
    """Detect a database version and match it against known vulnerabilities

    Examples:
        dbvs scan --db mysql                                   # Dry run, simulated 8.0.33
        dbvs scan --db postgres --live --addr 10.0.0.5:5432 --user audit --password secret
        dbvs scan --db mssql --format json --no-save
    """
    config = ctx.obj['config']

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        config.log_level = 'DEBUG'

    scanner = TargetScanner(db_type, addr=addr, user=user, password=password, dsn=dsn, dry_run=dry_run)

    async def process():
        async with DBVSProcessor(config) as processor:
            return await processor.scan(scanner, save=save, timeout=timeout)

    try:
        target, results = asyncio.run(process())
    except DBVSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if format == 'table':
        click.echo(f"Detected: vendor={target.vendor} product={target.product} version={target.version}")
    click.echo(render_results(target, results, format))
    if save and format == 'table':
        click.echo(f"Scan saved: vulns={len(results)}")
