"""Version information command"""

import platform
import sys
from importlib import metadata

import click

from ... import __version__


DEPENDENCIES = ("click", "aiohttp", "asyncpg", "aiomysql", "tenacity", "python-dateutil", "python-dotenv")


@click.command()
def version():
    """Show DBVS version and system information"""
    click.echo("DATABASE VULNERABILITY SCANNER (DBVS)")
    click.echo("=" * 50)

    click.echo(f"\nVersion: {__version__}")

    click.echo("\nFeeds:")
    click.echo("   - CVE (NVD API 2.0)")
    click.echo("   - CNVD")
    click.echo("   - Aliyun")

    click.echo("\nFinal Score:")
    click.echo("   Weighted mean of the available scores (CVE 0.6, CNVD 0.25, Aliyun 0.15)")

    click.echo("\nSystem Information:")
    click.echo(f"   Python Version: {sys.version.split()[0]}")
    click.echo(f"   Platform: {platform.platform()}")

    click.echo("\nDependencies:")
    for package in DEPENDENCIES:
        try:
            click.echo(f"   - {package}: {metadata.version(package)}")
        except metadata.PackageNotFoundError:
            click.echo(f"   - {package}: not installed")
