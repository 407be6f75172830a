from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .models import Playlist


@dataclass
class DestinationStats:
    processed: int = 0
    added: int = 0
    not_found: int = 0
    skipped_duplicates: int = 0

    def merge(self, other: "DestinationStats") -> None:
        self.processed += other.processed
        self.added += other.added
        self.not_found += other.not_found
        self.skipped_duplicates += other.skipped_duplicates


def default_destinations() -> Dict[Playlist, DestinationStats]:
    return {playlist: DestinationStats() for playlist in Playlist}


@dataclass
class RunStats:
    by_destination: Dict[Playlist, DestinationStats] = field(default_factory=default_destinations)

    def __getitem__(self, playlist: Playlist) -> DestinationStats:
        return self.by_destination[playlist]

    @property
    def total(self) -> DestinationStats:
        totals = DestinationStats()
        for stats in self.by_destination.values():
            totals.merge(stats)
        return totals

    @property
    def processed(self) -> int:
        return self.total.processed

    @property
    def added(self) -> int:
        return self.total.added

    @property
    def not_found(self) -> int:
        return self.total.not_found

    @property
    def skipped_duplicates(self) -> int:
        return self.total.skipped_duplicates


__all__ = ["DestinationStats", "RunStats"]
