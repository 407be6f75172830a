from __future__ import annotations

import time
from typing import Dict, List, Optional

from .auth import AuthManager
from .config import PAGE_DELAY, SEARCH_DELAY, TRACKS_DELAY, WRITE_DELAY
from .console import logger
from .genres import classify_release
from .models import NotFoundEntry, Playlist, Release
from .report import ReportWriter
from .scraper import PageScraper
from .services.spotify import CatalogClient, PlaylistSync
from .state import RunStats


class Runner:
    """Drives one run: pages, then releases, strictly one call at a time.

    Every remote call is followed by a fixed pause whatever its outcome.
    AuthError is the only exception that escapes ``run``.
    """

    def __init__(
        self,
        auth: AuthManager,
        scraper: PageScraper,
        catalog: CatalogClient,
        playlists: PlaylistSync,
        playlist_ids: Dict[Playlist, str],
        start_page: int,
        end_page: int,
        report: Optional[ReportWriter] = None,
    ):
        self.auth = auth
        self.scraper = scraper
        self.catalog = catalog
        self.playlists = playlists
        self.playlist_ids = playlist_ids
        self.start_page = start_page
        self.end_page = end_page
        self.report = report
        self.stats = RunStats()
        self.not_found: List[NotFoundEntry] = []
        self.report_path: Optional[str] = None

    def run(self) -> RunStats:
        self.auth.get_valid_token()
        self.playlists.preload_all(self.playlist_ids.values())

        for page in range(self.start_page, self.end_page + 1):
            for release in self.scraper.fetch_page(page):
                self.process(release)
            logger.info(f"[green]Completed page {page}[/green]")
            time.sleep(PAGE_DELAY)

        if self.report is not None:
            self.report_path = self.report.write(self.not_found)
        return self.stats

    def process(self, release: Release) -> None:
        item = classify_release(release)
        destination = item.destination
        stats = self.stats[destination]
        stats.processed += 1
        logger.info(
            f'[bold][{self.stats.processed}][/bold] Processing: "{release.album}" by {release.artist}'
            f" [magenta]-> {destination.value}[/magenta]"
        )

        album_id = self.catalog.search_album(release.artist, release.album)
        time.sleep(SEARCH_DELAY)
        if not album_id:
            stats.not_found += 1
            self.not_found.append(NotFoundEntry.from_classified(item))
            return

        track_uris = self.catalog.list_album_tracks(album_id)
        time.sleep(TRACKS_DELAY)
        if not track_uris:
            return

        playlist_id = self.playlist_ids[destination]
        total, fresh = self.playlists.filter_new(playlist_id, track_uris)
        if not fresh:
            stats.skipped_duplicates += 1
            logger.info(f"  [dim]All {total} tracks already in {destination.value}, skipping.[/dim]")
            return
        if len(fresh) < total:
            logger.info(f"  {total - len(fresh)} of {total} tracks already in {destination.value}")

        stats.added += self.playlists.append(playlist_id, fresh)
        time.sleep(WRITE_DELAY)


__all__ = ["Runner"]
