from __future__ import annotations

import argparse
from datetime import datetime
from typing import List, Optional

from rich.panel import Panel
from rich.table import Table

from .auth import AuthManager
from .config import RunConfig, load_run_config
from .console import console, logger, set_verbose
from .errors import AuthError, ConfigError
from .models import Playlist
from .report import ReportWriter
from .runner import Runner
from .scraper import PageScraper
from .services.spotify import CatalogClient, PlaylistSync, build_client, build_oauth
from .state import RunStats


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cratesync",
        description="Add albums listed on the blog to genre playlists on Spotify.",
    )
    parser.add_argument("--start-page", type=int, default=None, help="first listing page (default: 1)")
    parser.add_argument("--end-page", type=int, default=None, help="last listing page, inclusive (default: 26)")
    parser.add_argument("--report-dir", default=None, help="where to write the not-found report")
    parser.add_argument("--no-browser", action="store_true", help="only print the login URL")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_runner(config: RunConfig) -> Runner:
    oauth = build_oauth(config)
    auth = AuthManager(
        oauth,
        callback_host=config.callback_host,
        callback_port=config.callback_port,
        callback_path=config.callback_path,
        open_browser=config.open_browser,
    )
    client = build_client(auth)
    return Runner(
        auth=auth,
        scraper=PageScraper(config.blog_url),
        catalog=CatalogClient(client),
        playlists=PlaylistSync(client),
        playlist_ids=config.playlist_ids,
        start_page=config.start_page,
        end_page=config.end_page,
        report=ReportWriter(config.report_dir),
    )


def summary_table(stats: RunStats) -> Table:
    table = Table(title="Run summary", show_lines=False)
    table.add_column("Playlist")
    table.add_column("Processed", justify="right")
    table.add_column("Added tracks", justify="right")
    table.add_column("Not found", justify="right")
    table.add_column("Skipped (duplicates)", justify="right")
    for playlist in Playlist:
        row = stats[playlist]
        table.add_row(
            playlist.value,
            str(row.processed),
            str(row.added),
            str(row.not_found),
            str(row.skipped_duplicates),
        )
    total = stats.total
    table.add_row(
        "[bold]Total[/bold]",
        str(total.processed),
        str(total.added),
        str(total.not_found),
        str(total.skipped_duplicates),
    )
    return table


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    set_verbose(args.verbose)
    try:
        config = load_run_config(
            start_page=args.start_page,
            end_page=args.end_page,
            report_dir=args.report_dir,
            open_browser=False if args.no_browser else None,
        )
    except ConfigError as err:
        logger.error(f"[red]Configuration error:[/red] {err}")
        return 1

    console.print(
        Panel.fit(
            "[bold cyan]cratesync[/bold cyan]\n"
            f"Pages: {config.start_page} to {config.end_page}\n"
            f"Start: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            border_style="cyan",
        )
    )
    try:
        runner = build_runner(config)
        stats = runner.run()
    except AuthError as err:
        logger.error(f"[red]Fatal authentication error:[/red] {err}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled by user.[/dim]")
        return 130

    console.print()
    console.print(summary_table(stats))
    if runner.report_path:
        console.print(f"[dim]Not found report:[/dim] {runner.report_path}")
    return 0


__all__ = ["main", "parse_args", "build_runner", "summary_table"]
