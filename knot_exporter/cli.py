#!/usr/bin/env python3
"""
Knot Exporter CLI Interface
"""

import logging
import sys

import click
from prometheus_client import REGISTRY

from .collector import KnotCollector, build_identity
from .exceptions import ValidationError
from .models import ExporterConfig
from .server import check_knot_connection, serve, validate_config
from .transport import library_version
from .utils import setup_logging
from .version import __version__

logger = logging.getLogger(__name__)


def print_version():
    """Print the build identity to stdout"""
    version, build_time, git_commit, python_version, libknot_version, platform = \
        build_identity(library_version())
    click.echo("Knot DNS Exporter")
    click.echo(f"  Version:      {version}")
    click.echo(f"  Build time:   {build_time}")
    click.echo(f"  Git commit:   {git_commit}")
    click.echo(f"  Python:       {python_version}")
    click.echo(f"  Libknot:      {libknot_version}")
    click.echo(f"  Platform:     {platform}")


@click.command(context_settings={"auto_envvar_prefix": "KNOT_EXPORTER"})
@click.option('--web-listen-addr', default="127.0.0.1", show_default=True,
              help='Address on which to expose metrics')
@click.option('--web-listen-port', type=int, default=9433, show_default=True,
              help='Port on which to expose metrics')
@click.option('--knot-socket-path', default="/run/knot/knot.sock", show_default=True,
              help='Path to the knot control socket')
@click.option('--knot-socket-timeout', type=int, default=2000, show_default=True,
              help='Timeout for control socket operations in milliseconds')
@click.option('--no-meminfo', is_flag=True, help='Disable collection of memory usage')
@click.option('--no-global-stats', is_flag=True, help='Disable collection of global statistics')
@click.option('--no-zone-stats', is_flag=True, help='Disable collection of zone statistics')
@click.option('--no-zone-status', is_flag=True, help='Disable collection of zone status')
@click.option('--no-zone-serial', is_flag=True, help='Disable collection of zone serial')
@click.option('--zone-timers', is_flag=True, help='Enable collection of zone SOA timer values')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--skip-validation', is_flag=True, help='Skip start-up validation checks')
@click.option('--version', 'show_version', is_flag=True, help='Show version information and exit')
def cli(web_listen_addr, web_listen_port, knot_socket_path, knot_socket_timeout, no_meminfo,
        no_global_stats, no_zone_stats, no_zone_status, no_zone_serial, zone_timers, debug,
        skip_validation, show_version):
    """Knot DNS Exporter: Prometheus metrics from the knotd control socket"""

    if show_version:
        print_version()
        return

    setup_logging(logging.DEBUG if debug else logging.INFO)

    config = ExporterConfig(
        web_listen_addr=web_listen_addr,
        web_listen_port=web_listen_port,
        socket_path=knot_socket_path,
        socket_timeout=knot_socket_timeout,
        collect_meminfo=not no_meminfo,
        collect_stats=not no_global_stats,
        collect_zone_stats=not no_zone_stats,
        collect_zone_status=not no_zone_status,
        collect_zone_serial=not no_zone_serial,
        collect_zone_timers=zone_timers,
        debug=debug,
        skip_validation=skip_validation,
    )

    logger.info(f"Starting Knot DNS Exporter {__version__}")
    logger.debug("Debug mode enabled")

    if config.skip_validation:
        logger.info("Skipping validation checks")
    else:
        try:
            logger.info("Validating configuration...")
            validate_config(config)
            logger.info("Testing connection to Knot DNS...")
            check_knot_connection(config.socket_path, config.socket_timeout)
        except ValidationError as e:
            click.echo(f"Error: Configuration validation failed: {e}", err=True)
            sys.exit(1)
        logger.info("Configuration validation passed")

    logger.info("Initializing metrics collector...")
    try:
        REGISTRY.register(KnotCollector(config))
    except ValueError as e:
        click.echo(f"Error: Failed to register collector: {e}", err=True)
        sys.exit(1)

    try:
        serve(config)
    except OSError as e:
        click.echo(f"Error: HTTP server failed: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
