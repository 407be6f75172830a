import time

import pytest

ENV_KEYS = [
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "SPOTIFY_REDIRECT_URI",
    "SPOTIFY_PLAYLIST_ID",
    "SPOTIFY_PLAYLIST_BASS",
    "SPOTIFY_PLAYLIST_TECHNO",
    "SPOTIFY_PLAYLIST_HOUSE",
    "SPOTIFY_PLAYLIST_DNB",
    "SPOTIFY_PLAYLIST_AMBIENT",
    "SPOTIFY_PLAYLIST_REST",
    "CRATESYNC_BLOG_URL",
    "CRATESYNC_START_PAGE",
    "CRATESYNC_END_PAGE",
    "CRATESYNC_REPORT_DIR",
    "CRATESYNC_OPEN_BROWSER",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Keep a developer's .env / shell settings out of the tests.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Record pacing sleeps instead of waiting."""
    calls = []
    monkeypatch.setattr(time, "sleep", calls.append)
    return calls
