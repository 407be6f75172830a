from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigError
from .models import Playlist

load_dotenv()

BLOG_URL_TEMPLATE = "https://nodata.tv/blog/page/{page}"
DEFAULT_REDIRECT_URI = "http://localhost:3000/callback"
DEFAULT_START_PAGE = 1
DEFAULT_END_PAGE = 26

SPOTIFY_SCOPES = "playlist-read-private playlist-modify-public playlist-modify-private"

# Pacing between remote calls (seconds). Fixed sleeps, not backoff.
SEARCH_DELAY = 0.3
TRACKS_DELAY = 0.3
WRITE_DELAY = 0.5
WRITE_CHUNK_DELAY = 0.5
PAGE_DELAY = 1.0
PRELOAD_PAGE_DELAY = 0.2

SPOTIFY_ADD_BATCH = 100
PLAYLIST_PAGE_SIZE = 100
ALBUM_TRACKS_LIMIT = 50
HTTP_TIMEOUT = 15
USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class RunConfig:
    client_id: str
    client_secret: str
    redirect_uri: str
    playlist_ids: Dict[Playlist, str]
    start_page: int = DEFAULT_START_PAGE
    end_page: int = DEFAULT_END_PAGE
    blog_url: str = BLOG_URL_TEMPLATE
    report_dir: str = "."
    open_browser: bool = True
    scope: str = SPOTIFY_SCOPES

    @property
    def callback_host(self) -> str:
        return urlparse(self.redirect_uri).hostname or "localhost"

    @property
    def callback_port(self) -> int:
        parsed = urlparse(self.redirect_uri)
        if parsed.port:
            return parsed.port
        return 443 if parsed.scheme == "https" else 80

    @property
    def callback_path(self) -> str:
        return urlparse(self.redirect_uri).path or "/callback"


def load_playlist_ids() -> Dict[Playlist, str]:
    fallback = os.getenv("SPOTIFY_PLAYLIST_ID", "").strip()
    ids: Dict[Playlist, str] = {}
    missing = []
    for playlist in Playlist:
        value = os.getenv(f"SPOTIFY_PLAYLIST_{playlist.value}", "").strip() or fallback
        if not value:
            missing.append(playlist.value)
            continue
        ids[playlist] = value
    if missing:
        raise ConfigError(
            "No playlist id for: "
            + ", ".join(missing)
            + ". Set SPOTIFY_PLAYLIST_ID or SPOTIFY_PLAYLIST_<NAME>."
        )
    return ids


def load_run_config(
    start_page: Optional[int] = None,
    end_page: Optional[int] = None,
    report_dir: Optional[str] = None,
    open_browser: Optional[bool] = None,
) -> RunConfig:
    """Build the run configuration from the environment (and .env).

    Keyword arguments, when given, win over the environment. Client
    credentials may be left empty here; they are prompted for when the
    OAuth helper is built.
    """
    start = start_page if start_page is not None else _env_int("CRATESYNC_START_PAGE", DEFAULT_START_PAGE)
    end = end_page if end_page is not None else _env_int("CRATESYNC_END_PAGE", DEFAULT_END_PAGE)
    if start < 1:
        raise ConfigError(f"start page must be >= 1, got {start}")
    if start > end:
        raise ConfigError(f"start page {start} is after end page {end}")
    blog_url = os.getenv("CRATESYNC_BLOG_URL", BLOG_URL_TEMPLATE)
    if "{page}" not in blog_url:
        raise ConfigError("CRATESYNC_BLOG_URL must contain a '{page}' placeholder")
    return RunConfig(
        client_id=os.getenv("SPOTIFY_CLIENT_ID", "").strip(),
        client_secret=os.getenv("SPOTIFY_CLIENT_SECRET", "").strip(),
        redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI", DEFAULT_REDIRECT_URI),
        playlist_ids=load_playlist_ids(),
        start_page=start,
        end_page=end,
        blog_url=blog_url,
        report_dir=report_dir if report_dir is not None else os.getenv("CRATESYNC_REPORT_DIR", "."),
        open_browser=open_browser if open_browser is not None else _env_flag("CRATESYNC_OPEN_BROWSER", True),
    )


__all__ = [
    "BLOG_URL_TEMPLATE",
    "DEFAULT_REDIRECT_URI",
    "SPOTIFY_SCOPES",
    "SEARCH_DELAY",
    "TRACKS_DELAY",
    "WRITE_DELAY",
    "WRITE_CHUNK_DELAY",
    "PAGE_DELAY",
    "PRELOAD_PAGE_DELAY",
    "SPOTIFY_ADD_BATCH",
    "PLAYLIST_PAGE_SIZE",
    "ALBUM_TRACKS_LIMIT",
    "HTTP_TIMEOUT",
    "USER_AGENT",
    "RunConfig",
    "load_playlist_ids",
    "load_run_config",
]
