import pytest
from spotipy.exceptions import SpotifyException

from cratesync.config import (
    PAGE_DELAY,
    PRELOAD_PAGE_DELAY,
    SEARCH_DELAY,
    TRACKS_DELAY,
    WRITE_CHUNK_DELAY,
    WRITE_DELAY,
)
from cratesync.errors import AuthError
from cratesync.models import Playlist, Release
from cratesync.report import ReportWriter
from cratesync.runner import Runner
from cratesync.services.spotify import CatalogClient, PlaylistSync

from fakes import FakeAuth, FakeScraper, FakeSpotify

PLAYLIST_IDS = {playlist: f"pl-{playlist.value.lower()}" for playlist in Playlist}

TECHNO_RELEASE = Release("Artist One", "Techno Album", "https://nodata.tv/1", ("Techno",))
MISSING_RELEASE = Release("Nobody", "Missing", "https://nodata.tv/2", ())
TECHNO_TRACKS = ["spotify:track:t1", "spotify:track:t2", "spotify:track:t3"]


def make_runner(pages, sp, tmp_path, start=1, end=2, auth=None):
    return Runner(
        auth=auth or FakeAuth(),
        scraper=FakeScraper(pages),
        catalog=CatalogClient(sp),
        playlists=PlaylistSync(sp),
        playlist_ids=PLAYLIST_IDS,
        start_page=start,
        end_page=end,
        report=ReportWriter(str(tmp_path)),
    )


def test_two_page_run(tmp_path):
    sp = FakeSpotify(
        albums={"artist:Artist One album:Techno Album": "album-1"},
        tracks={"album-1": TECHNO_TRACKS},
        playlists={"pl-techno": ["spotify:track:old"]},
    )
    runner = make_runner({1: [TECHNO_RELEASE], 2: [MISSING_RELEASE]}, sp, tmp_path)

    stats = runner.run()

    techno = stats[Playlist.TECHNO]
    assert (techno.processed, techno.added, techno.not_found, techno.skipped_duplicates) == (1, 3, 0, 0)
    assert stats[Playlist.REST].not_found == 1
    assert (stats.processed, stats.added, stats.not_found, stats.skipped_duplicates) == (2, 3, 1, 0)
    assert runner.playlists.known("pl-techno") == frozenset(TECHNO_TRACKS + ["spotify:track:old"])
    assert sp.add_calls == [("pl-techno", TECHNO_TRACKS, 0)]

    reports = list(tmp_path.glob("not-found-albums-*.md"))
    assert len(reports) == 1
    content = reports[0].read_text(encoding="utf-8")
    assert "## REST (1)" in content
    assert "[Nobody - Missing](https://nodata.tv/2) (no tags)" in content
    assert runner.report_path == str(reports[0])


def test_run_authenticates_then_preloads_every_playlist(tmp_path):
    auth = FakeAuth()
    sp = FakeSpotify()
    runner = make_runner({}, sp, tmp_path, auth=auth)
    runner.run()
    assert auth.calls == 1
    assert len(sp.item_offsets) == len(PLAYLIST_IDS)
    assert runner.scraper.fetched == [1, 2]
    assert list(tmp_path.iterdir()) == []


def test_release_already_in_playlist_is_skipped(tmp_path):
    sp = FakeSpotify(
        albums={"artist:Artist One album:Techno Album": "album-1"},
        tracks={"album-1": TECHNO_TRACKS},
        playlists={"pl-techno": TECHNO_TRACKS},
    )
    stats = make_runner({1: [TECHNO_RELEASE]}, sp, tmp_path, end=1).run()
    assert stats[Playlist.TECHNO].processed == 1
    assert stats[Playlist.TECHNO].skipped_duplicates == 1
    assert stats.added == 0
    assert sp.add_calls == []


def test_same_album_twice_in_one_run_is_added_once(tmp_path):
    sp = FakeSpotify(
        albums={"artist:Artist One album:Techno Album": "album-1"},
        tracks={"album-1": TECHNO_TRACKS},
    )
    stats = make_runner({1: [TECHNO_RELEASE], 2: [TECHNO_RELEASE]}, sp, tmp_path).run()
    assert stats.added == 3
    assert stats.skipped_duplicates == 1
    assert len(sp.add_calls) == 1


def test_only_new_tracks_are_written(tmp_path):
    sp = FakeSpotify(
        albums={"artist:Artist One album:Techno Album": "album-1"},
        tracks={"album-1": TECHNO_TRACKS},
        playlists={"pl-techno": TECHNO_TRACKS[:1]},
    )
    stats = make_runner({1: [TECHNO_RELEASE]}, sp, tmp_path, end=1).run()
    assert stats.added == 2
    assert sp.add_calls == [("pl-techno", TECHNO_TRACKS[1:], 0)]


def test_album_without_tracks_counts_as_processed_only(tmp_path):
    sp = FakeSpotify(albums={"artist:Artist One album:Techno Album": "album-1"})
    stats = make_runner({1: [TECHNO_RELEASE]}, sp, tmp_path, end=1).run()
    assert (stats.processed, stats.added, stats.not_found, stats.skipped_duplicates) == (1, 0, 0, 0)


def test_pacing_follows_every_remote_step(tmp_path, sleeps):
    sp = FakeSpotify(
        albums={"artist:Artist One album:Techno Album": "album-1"},
        tracks={"album-1": TECHNO_TRACKS},
    )
    make_runner({1: [TECHNO_RELEASE, MISSING_RELEASE]}, sp, tmp_path, end=1).run()
    assert sleeps == [PRELOAD_PAGE_DELAY] * len(PLAYLIST_IDS) + [
        SEARCH_DELAY,
        TRACKS_DELAY,
        WRITE_CHUNK_DELAY,
        WRITE_DELAY,
        SEARCH_DELAY,
        PAGE_DELAY,
    ]


def test_unauthorized_search_ends_the_run(tmp_path):
    sp = FakeSpotify()
    sp.search_error = SpotifyException(401, -1, "Invalid access token")
    runner = make_runner({1: [TECHNO_RELEASE, MISSING_RELEASE]}, sp, tmp_path)
    with pytest.raises(AuthError):
        runner.run()
    assert runner.stats.processed == 1
    assert runner.scraper.fetched == [1]
