"""Configuration management commands"""

import click

from ...config.settings import DBVSConfig


def _mask(value: str) -> str:
    return f"{value[:8]}..." if len(value) > 8 else "***"


@click.command('config')
@click.option('--validate', is_flag=True, help='Validate configuration')
@click.option('--env-file', help='Specify custom .env file path')
def config_cmd(validate, env_file):
    """Show current DBVS configuration

    Example:
        dbvs config
        dbvs config --validate
        dbvs config --env-file /path/to/custom.env
    """
    config = DBVSConfig.from_env(env_file)

    click.echo("DBVS CONFIGURATION")
    click.echo("=" * 50)

    click.echo("\nFeed:")
    api_key_status = f"Set ({_mask(config.nvd_api_key)})" if config.nvd_api_key else "Not Set"
    click.echo(f"   NVD API Key: {api_key_status}")
    click.echo(f"   NVD URL: {config.nvd_base_url}")
    click.echo(f"   Page Size: {config.page_size}")
    click.echo(f"   Page Delay: {config.page_delay}s")
    click.echo(f"   Retry: {config.retry.attempts} attempts, "
               f"backoff {config.retry.backoff}s / {config.retry.rate_limit_backoff}s per attempt")

    click.echo("\nStore:")
    dsn = config.database_dsn
    if "@" in dsn:
        # Hide credentials
        dsn = dsn.split("://", 1)[0] + "://***@" + dsn.rsplit("@", 1)[1]
    click.echo(f"   DSN: {dsn}")

    click.echo("\nScoring Weights:")
    click.echo(f"   CVE: {config.weights.cve}")
    click.echo(f"   CNVD: {config.weights.cnvd}")
    click.echo(f"   Aliyun: {config.weights.aliyun}")

    click.echo(f"\nLog Level: {config.log_level}")

    if validate:
        click.echo("\nConfiguration Validation:")
        issues = config.validate()

        if not issues:
            click.echo("   Configuration looks good!")
        else:
            click.echo("   Issues found:")
            for issue in issues:
                click.echo(f"      - {issue}")
