from __future__ import annotations

import time
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

import requests
import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth

from ..config import (
    ALBUM_TRACKS_LIMIT,
    PLAYLIST_PAGE_SIZE,
    PRELOAD_PAGE_DELAY,
    SPOTIFY_ADD_BATCH,
    WRITE_CHUNK_DELAY,
    RunConfig,
)
from ..console import logger
from ..errors import AuthError, TransportError, WriteError
from ..utils import chunked


def build_oauth(config: RunConfig) -> SpotifyOAuth:
    client_id = config.client_id or input("SPOTIFY_CLIENT_ID: ").strip()
    client_secret = config.client_secret or input("SPOTIFY_CLIENT_SECRET: ").strip()
    # Tokens live for this run only.
    return SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=config.redirect_uri,
        scope=config.scope,
        cache_handler=MemoryCacheHandler(),
        open_browser=False,
    )


def build_client(auth_manager: Any) -> spotipy.Spotify:
    """spotipy client that asks ``auth_manager`` for a token before every call.

    spotipy's own retry adapter is disabled; pacing is done by the caller.
    """
    return spotipy.Spotify(auth_manager=auth_manager, retries=0, status_retries=0)


def call_spotify(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run one spotipy call, mapping failures onto the cratesync error types.

    401 means the token is bad even after refresh, which ends the run.
    Everything else becomes a TransportError for the caller to absorb.
    """
    try:
        return func(*args, **kwargs)
    except SpotifyException as err:
        if err.http_status == 401:
            raise AuthError("unauthorized", err.msg) from err
        raise TransportError(f"HTTP {err.http_status}: {err.msg}") from err
    except requests.RequestException as err:
        raise TransportError(str(err)) from err


class CatalogClient:
    def __init__(self, client: spotipy.Spotify):
        self.client = client

    def search_album(self, artist: str, album: str) -> Optional[str]:
        query = f"artist:{artist} album:{album}"
        try:
            results = call_spotify(self.client.search, q=query, type="album", limit=1)
        except TransportError as err:
            logger.error(f'[red]Error searching for "{album}" by {artist}:[/red] {err}')
            return None
        items = ((results or {}).get("albums") or {}).get("items") or []
        if not items:
            logger.info(f'  [yellow]Not found:[/yellow] "{album}" by {artist}')
            return None
        album_id = items[0].get("id")
        logger.info(f'  [green]Found:[/green] "{album}" by {artist} (ID: {album_id})')
        return album_id

    def list_album_tracks(self, album_id: str) -> List[str]:
        try:
            results = call_spotify(self.client.album_tracks, album_id, limit=ALBUM_TRACKS_LIMIT)
        except TransportError as err:
            logger.error(f"[red]Error getting tracks for album {album_id}:[/red] {err}")
            return []
        uris = [item["uri"] for item in (results or {}).get("items", []) if item and item.get("uri")]
        logger.info(f"  Got {len(uris)} tracks from album")
        return uris


class PlaylistSync:
    """In-memory view of destination playlist contents for deduplication."""

    def __init__(self, client: spotipy.Spotify):
        self.client = client
        self._known: Dict[str, Set[str]] = {}

    def known(self, playlist_id: str) -> FrozenSet[str]:
        return frozenset(self._known.get(playlist_id, ()))

    def preload(self, playlist_id: str) -> Set[str]:
        uris = self._known.setdefault(playlist_id, set())
        offset = 0
        total = None
        while total is None or offset < total:
            try:
                page = call_spotify(
                    self.client.playlist_items,
                    playlist_id,
                    fields="items(track(uri,is_local)),total",
                    limit=PLAYLIST_PAGE_SIZE,
                    offset=offset,
                    additional_types=("track",),
                )
            except TransportError as err:
                logger.warning(
                    f"[yellow]Preload of playlist {playlist_id} stopped at offset {offset}:[/yellow] {err}"
                )
                break
            for item in page.get("items", []):
                track = (item or {}).get("track")
                if not track or track.get("is_local") or not track.get("uri"):
                    continue
                uris.add(track["uri"])
            total = int(page.get("total") or 0)
            offset += PLAYLIST_PAGE_SIZE
            time.sleep(PRELOAD_PAGE_DELAY)
        logger.info(f"[cyan]Playlist {playlist_id}:[/cyan] {len(uris)} tracks already present")
        return set(uris)

    def preload_all(self, playlist_ids: Iterable[str]) -> None:
        for playlist_id in dict.fromkeys(playlist_ids):
            self.preload(playlist_id)

    def filter_new(self, playlist_id: str, uris: Sequence[str]) -> Tuple[int, List[str]]:
        known = self._known.get(playlist_id, set())
        fresh = [uri for uri in dict.fromkeys(uris) if uri not in known]
        return len(uris), fresh

    def append(self, playlist_id: str, uris: Sequence[str]) -> int:
        known = self._known.setdefault(playlist_id, set())
        added = 0
        for chunk in chunked(uris, SPOTIFY_ADD_BATCH):
            if not chunk:
                continue
            try:
                self._write_chunk(playlist_id, chunk)
            except WriteError as err:
                logger.error(f"[red]Error adding tracks to playlist {playlist_id}:[/red] {err}")
                break
            known.update(chunk)
            added += len(chunk)
            logger.info(f"  [green]Added {len(chunk)} tracks to playlist[/green]")
            time.sleep(WRITE_CHUNK_DELAY)
        return added

    def _write_chunk(self, playlist_id: str, chunk: List[str]) -> None:
        # New tracks go to the head of the playlist.
        try:
            call_spotify(self.client.playlist_add_items, playlist_id, chunk, position=0)
        except TransportError as err:
            raise WriteError(str(err)) from err


__all__ = ["build_oauth", "build_client", "call_spotify", "CatalogClient", "PlaylistSync"]
