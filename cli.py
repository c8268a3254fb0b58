"""CLI entry point for mount-proxy."""

import sys
from datetime import datetime

import httpx
from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Upstream:[/bold] {config.upstream.base_url}")
            return

        if arg == "--mounts":
            _print_mounts(config)
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    try:
        validate_upstream(config)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        console.print(f"[dim]Edit {CONFIG_FILE} and set upstream.base_url[/dim]")
        sys.exit(1)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log(
        "STARTUP",
        "Proxy started",
        port=config.proxy.port,
        upstream=config.upstream.base_url,
    )
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def validate_upstream(config: Config) -> None:
    """Ensure the upstream base URL is an absolute http(s) URL."""
    try:
        url = httpx.URL(config.upstream.base_url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid upstream base URL: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Upstream base URL must be an absolute http(s) URL, got {config.upstream.base_url!r}"
        )


def _print_mounts(config: Config) -> None:
    """Print the registered mounts."""
    table = Table(title="Mounts", header_style="bold")
    table.add_column("Name")
    table.add_column("Inbound prefix")
    table.add_column("Upstream")
    for mount in config.mount_configs():
        table.add_row(mount.name, mount.prefix, f"{config.upstream.base_url}/{mount.base_path}")
    console.print(table)


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Mount Proxy[/bold cyan]

Forwards mounted API routes to the upstream backend with CORS support.

[bold]Usage:[/bold]
    mount-proxy              Start with live dashboard
    mount-proxy --mounts     Show registered mounts
    mount-proxy --config     Show config location and upstream
    mount-proxy --help       Show this help

[bold]Environment:[/bold]
    MOUNT_PROXY_API_URL      Override the upstream base URL
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
