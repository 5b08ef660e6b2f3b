#!/usr/bin/env python3
"""
FullFeed - Full-Content RSS Proxy
=================================

Main application entry point with CLI interface for serving and testing.

Usage:
    python main.py --help                    # Show all commands
    python main.py serve                     # Start the HTTP proxy
    python main.py check-config              # Validate configuration
    python main.py render URL                # Render one feed to stdout
    python main.py cache-stats               # Show content cache statistics
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from fullfeed.config.settings import get_settings
from fullfeed.enrichment.link_resolver import SelectorConfig
from fullfeed.processing.pipeline import FeedProxy
from fullfeed.server.app import run_server
from fullfeed.storage.content_cache import ContentCache
from fullfeed.utils.logging import configure_application_logging
from fullfeed.utils.exceptions import FullFeedError, SourceFeedError, ValidationError
from fullfeed.utils.validators import URLValidator

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path or None,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """FullFeed - full-content RSS proxy."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


@cli.command()
@click.option('--host', default=None, help='Interface to bind (default from config)')
@click.option('--port', default=None, type=int, help='Port to listen on (default from config)')
@click.pass_context
def serve(ctx, host, port):
    """Start the HTTP proxy."""
    try:
        _configure_logging(ctx.obj.get('debug', False))
        settings = get_settings()
        console.print(
            f"[bold blue]🚀 Starting {settings.app_name} on "
            f"{host or settings.server.host}:{port or settings.server.port}[/bold blue]"
        )
        run_server(host=host, port=port)
    except FullFeedError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking FullFeed Configuration[/bold blue]")

    try:
        settings = get_settings()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        checks = [
            ("Server", _check_server_config),
            ("Cache", _check_cache_config),
            ("Fetching", _check_fetch_config),
            ("Logging", _check_logging_config),
        ]

        all_passed = True
        for name, check_func in checks:
            status, details = check_func(settings)
            table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
            if not status:
                all_passed = False

        console.print(table)

        if all_passed:
            console.print("[bold green]✅ All configuration checks passed![/bold green]")
            sys.exit(0)
        else:
            console.print("[bold red]❌ Configuration validation failed[/bold red]")
            sys.exit(1)

    except FullFeedError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--selector', default=None, help='CSS selector for the article link on each item page')
@click.option('--selector-text', default=None, help='Text the selected link must contain')
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write the feed to a file instead of stdout')
@click.pass_context
def render(ctx, url, selector, selector_text, output):
    """Render the full-content version of one feed."""
    _configure_logging(ctx.obj.get('debug', False))

    try:
        feed_url = URLValidator.validate_feed_url(url)
    except ValidationError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(2)

    selector_config = SelectorConfig(selector, selector_text) if selector else None

    async def run_render() -> Optional[str]:
        proxy = FeedProxy()
        return await proxy.render(feed_url, selector_config)

    try:
        body = asyncio.run(run_render())
    except SourceFeedError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    if output:
        Path(output).write_text(body, encoding="utf-8")
        console.print(f"[bold green]✅ Feed written to {output}[/bold green]")
    else:
        click.echo(body)


@cli.command()
def cache_stats():
    """Show content cache statistics."""
    settings = get_settings()
    stats = ContentCache(settings.cache.directory).stats()

    table = Table(title="Content Cache")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Directory", stats["directory"])
    table.add_row("Entries", str(stats["entries"]))
    table.add_row("Size", f"{stats['total_bytes'] / (1024 * 1024):.2f} MB")
    table.add_row(
        "Response Cache",
        f"{'enabled' if settings.cache.response_cache_enabled else 'disabled'}"
        f" (TTL {settings.cache.response_cache_ttl_seconds}s)",
    )

    console.print(table)


# Helper functions for configuration checks
def _check_server_config(settings) -> tuple[bool, str]:
    """Check listener configuration."""
    return True, f"Listening on {settings.server.host}:{settings.server.port}"


def _check_cache_config(settings) -> tuple[bool, str]:
    """Check the cache directory is usable."""
    try:
        cache_dir = Path(settings.cache.directory)
        cache_dir.mkdir(parents=True, exist_ok=True)
        marker = cache_dir / ".write-test"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink()
        return True, f"Directory: {cache_dir}"
    except OSError as e:
        return False, str(e)


def _check_fetch_config(settings) -> tuple[bool, str]:
    """Check outbound fetch configuration."""
    return True, (
        f"Timeout: {settings.fetch.request_timeout}s, "
        f"Attempts: {settings.fetch.max_attempts}, "
        f"Parallel items: {settings.processing.parallel_items}"
    )


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            log_path = Path(settings.logging.file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 FullFeed interrupted by user[/yellow]")
        sys.exit(130)
