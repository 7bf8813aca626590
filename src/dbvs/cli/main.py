"""DBVS CLI Main Entry Point"""

import logging

import click

from ..config.settings import DBVSConfig
from .commands.collect import collect
from .commands.scan import scan
from .commands.match import match
from .commands.export import export
from .commands.config import config_cmd
from .commands.version import version


def setup_logging(level: str):
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


@click.group()
@click.option('--log-level', default=None, help='Logging level (default: DBVS_LOG_LEVEL or INFO)')
@click.option('--env-file', help='Configuration .env file path')
@click.pass_context
def cli(ctx, log_level, env_file):
    """Database Vulnerability Scanner (DBVS) CLI

    Collects CVE, CNVD and Aliyun advisories for MySQL, PostgreSQL, SQL Server
    and Oracle Database, and matches database versions against them.
    """
    config = DBVSConfig.from_env(env_file)
    if log_level:
        config.log_level = log_level
    setup_logging(config.log_level)

    ctx.ensure_object(dict)
    ctx.obj['config'] = config


# Register commands
cli.add_command(collect)
cli.add_command(scan)
cli.add_command(match)
cli.add_command(export)
cli.add_command(config_cmd, name='config')
cli.add_command(version)


if __name__ == '__main__':
    cli()
