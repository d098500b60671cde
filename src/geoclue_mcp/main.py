#!/usr/bin/env python3
"""
geoclue-mcp - Command line entry point

Runs one of the MCP servers over stdio, or the same diagnostics directly
from a terminal.

Usage:
    geoclue-mcp serve metrics         # MCP server on stdin/stdout
    geoclue-mcp health                # Health check table
    geoclue-mcp health --json         # Health report as JSON
    geoclue-mcp validate              # Validate the MCP config document
    geoclue-mcp show-config           # Effective settings

Exit codes (health):
    0 healthy, 1 degraded, 2 unhealthy
"""

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .__version__ import __version__
from .config.mcp_config import ConfigManager, ConfigStore
from .core.diagnostics.engine import run_health_check
from .core.diagnostics.models import CheckStatus, HealthStatus
from .errors import ConfigLoadFailure
from .server.servers import SERVER_BUILDERS, build_server
from .server.stdio import run_stdio
from .utils.env_config import Settings, show_settings
from .utils.logging_config import setup_logging

HEALTH_EXIT_CODES = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}

STATUS_STYLES = {
    CheckStatus.PASS: "green",
    CheckStatus.WARN: "yellow",
    CheckStatus.FAIL: "red",
}


def cmd_serve(args, settings: Settings) -> int:
    run_stdio(build_server(args.role, settings))
    return 0


def cmd_health(args, settings: Settings, console: Console) -> int:
    report = run_health_check(
        host=args.host or settings.metrics_host,
        port=args.port or settings.metrics_port,
        include_metrics=not args.no_metrics,
        service_name=settings.service_name,
        dependency_service=settings.dependency_service,
        metrics_path=settings.metrics_path,
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return HEALTH_EXIT_CODES[report.overall_status]

    table = Table(title=f"Health: {settings.service_name}", show_header=True, header_style="bold cyan")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Message")
    for name, outcome in report.checks.items():
        style = STATUS_STYLES[outcome.status]
        table.add_row(name, f"[{style}]{outcome.status.value}[/{style}]", outcome.message)

    console.print(table)
    console.print(f"Overall: [bold]{report.overall_status.value}[/bold]")
    return HEALTH_EXIT_CODES[report.overall_status]


def cmd_validate(args, settings: Settings, console: Console) -> int:
    path = Path(args.config).expanduser() if args.config else settings.config_path
    manager = ConfigManager(ConfigStore(path))
    try:
        report = manager.validate()
    except ConfigLoadFailure as e:
        console.print(f"[red]❌ {e.message}[/red]")
        return 1

    console.print(f"[dim]{path}[/dim]")
    console.print(report.to_text("mcp"))
    return 0 if report.is_valid else 1


def cmd_show_config(args, settings: Settings, console: Console) -> int:
    show_settings(settings, console)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geoclue-mcp",
        description="MCP servers and diagnostics for the geoclue-prometheus-exporter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  geoclue-mcp serve monitoring       # Run the monitoring MCP server
  geoclue-mcp health --no-metrics    # Skip the metrics endpoint probe
  geoclue-mcp validate --config ./mcp-config.json
        """
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--env-file', help='Read settings from this .env file')
    parser.add_argument('--log-level', help='Override GEOCLUE_MCP_LOG_LEVEL')

    sub = parser.add_subparsers(dest='command', required=True)

    serve = sub.add_parser('serve', help='Run an MCP server over stdio')
    serve.add_argument('role', choices=sorted(SERVER_BUILDERS),
                       help='Which server to run')

    health = sub.add_parser('health', help='Run the health check')
    health.add_argument('--host', help='Exporter host (default: from settings)')
    health.add_argument('--port', type=int, help='Exporter port (default: from settings)')
    health.add_argument('--no-metrics', action='store_true',
                        help='Skip the metrics endpoint probe')
    health.add_argument('--json', action='store_true', help='Output as JSON')

    validate = sub.add_parser('validate', help='Validate the MCP config document')
    validate.add_argument('--config', help='Config document path (default: from settings)')

    sub.add_parser('show-config', help='Show effective settings')

    return parser


def main(argv=None) -> int:
    """CLI entry point"""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env(Path(args.env_file) if args.env_file else None)
    setup_logging(args.log_level or settings.log_level, log_file=settings.log_file)

    # stdout is reserved for the protocol and for --json output
    console = Console(stderr=args.command == 'serve')

    if args.command == 'serve':
        return cmd_serve(args, settings)
    if args.command == 'health':
        return cmd_health(args, settings, console)
    if args.command == 'validate':
        return cmd_validate(args, settings, console)
    return cmd_show_config(args, settings, console)


def _serve_role(role: str) -> int:
    settings = Settings.from_env()
    setup_logging(settings.log_level, log_file=settings.log_file)
    run_stdio(build_server(role, settings))
    return 0


def main_metrics() -> int:
    return _serve_role('metrics')


def main_config() -> int:
    return _serve_role('config')


def main_monitoring() -> int:
    return _serve_role('monitoring')


if __name__ == "__main__":
    sys.exit(main())
