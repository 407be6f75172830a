from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class Playlist(str, Enum):
    BASS = "BASS"
    TECHNO = "TECHNO"
    HOUSE = "HOUSE"
    DNB = "DNB"
    AMBIENT = "AMBIENT"
    REST = "REST"


@dataclass(frozen=True)
class Release:
    artist: str
    album: str
    source_url: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassifiedRelease:
    release: Release
    destination: Playlist


@dataclass(frozen=True)
class NotFoundEntry:
    artist: str
    album: str
    source_url: str
    tags: Tuple[str, ...]
    destination: Playlist

    @classmethod
    def from_classified(cls, item: ClassifiedRelease) -> "NotFoundEntry":
        release = item.release
        return cls(
            artist=release.artist,
            album=release.album,
            source_url=release.source_url,
            tags=release.tags,
            destination=item.destination,
        )


@dataclass(frozen=True)
class Credential:
    access_token: str
    refresh_token: Optional[str]
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        return (time.time() if now is None else now) < self.expires_at

    @classmethod
    def from_token_info(
        cls, token_info: Mapping[str, Any], previous_refresh: Optional[str] = None
    ) -> "Credential":
        """Build from a spotipy token dict (``access_token``, ``expires_at``...)."""
        expires_at = token_info.get("expires_at")
        if expires_at is None:
            expires_at = time.time() + int(token_info.get("expires_in", 0))
        return cls(
            access_token=token_info["access_token"],
            refresh_token=token_info.get("refresh_token") or previous_refresh,
            expires_at=float(expires_at),
        )


__all__ = ["Playlist", "Release", "ClassifiedRelease", "NotFoundEntry", "Credential"]
