from __future__ import annotations

import os
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from .console import logger
from .models import NotFoundEntry, Playlist

REPORT_PREFIX = "not-found-albums"


def report_filename(day: date) -> str:
    return f"{REPORT_PREFIX}-{day.isoformat()}.md"


def render_report(entries: Sequence[NotFoundEntry], generated: datetime) -> str:
    groups: Dict[Playlist, List[NotFoundEntry]] = defaultdict(list)
    for entry in entries:
        groups[entry.destination].append(entry)

    lines = [
        "# Albums Not Found on Spotify",
        "",
        f"Generated: {generated.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Total: {len(entries)} albums",
        "",
        "---",
        "",
    ]
    for playlist in sorted(groups, key=lambda item: item.value):
        group = groups[playlist]
        lines.append(f"## {playlist.value} ({len(group)})")
        lines.append("")
        for idx, entry in enumerate(group, start=1):
            tags = f"(tags: {', '.join(entry.tags)})" if entry.tags else "(no tags)"
            lines.append(f"{idx}. [{entry.artist} - {entry.album}]({entry.source_url}) {tags}")
        lines.append("")
    return "\n".join(lines)


class ReportWriter:
    def __init__(self, directory: str = "."):
        self.directory = directory

    def write(self, entries: Sequence[NotFoundEntry], now: Optional[datetime] = None) -> Optional[str]:
        """Write the not-found report for this run; returns its path.

        Nothing is written for an empty list. Write failures are logged
        and swallowed since the run's work is already done by then.
        """
        if not entries:
            return None
        now = now or datetime.now()
        path = os.path.join(self.directory, report_filename(now.date()))
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_report(entries, now))
        except OSError as err:
            logger.error(f"[red]Error saving not found albums:[/red] {err}")
            return None
        logger.info(f"[green]Not found albums saved to:[/green] {path}")
        return path


__all__ = ["ReportWriter", "render_report", "report_filename"]
