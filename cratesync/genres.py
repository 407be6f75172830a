from __future__ import annotations

from typing import FrozenSet, Iterable, Tuple

from .models import ClassifiedRelease, Playlist, Release
from .utils import normalize_tag

DNB_TAGS: FrozenSet[str] = frozenset({"drum n bass", "jungle", "hardcore"})

# Checked in order; the first genre with a matching tag wins.
PRIMARY_GENRES: Tuple[Tuple[Playlist, FrozenSet[str]], ...] = (
    (Playlist.BASS, frozenset({"breaks", "dubstep", "bass"})),
    (Playlist.HOUSE, frozenset({"house"})),
    (Playlist.TECHNO, frozenset({"techno"})),
)

AMBIENT_TAGS: FrozenSet[str] = frozenset({"ambient"})


def classify(tags: Iterable[str]) -> Playlist:
    """Pick the destination playlist for a set of blog tags.

    DNB shadows every other genre, then Bass, House and Techno in that
    order. Ambient only applies when none of those matched.
    """
    normalized = {normalize_tag(tag) for tag in tags}
    normalized.discard("")
    if not normalized:
        return Playlist.REST
    if normalized & DNB_TAGS:
        return Playlist.DNB
    for playlist, keywords in PRIMARY_GENRES:
        if normalized & keywords:
            return playlist
    if normalized & AMBIENT_TAGS:
        return Playlist.AMBIENT
    return Playlist.REST


def classify_release(release: Release) -> ClassifiedRelease:
    return ClassifiedRelease(release=release, destination=classify(release.tags))


__all__ = ["DNB_TAGS", "PRIMARY_GENRES", "AMBIENT_TAGS", "classify", "classify_release"]
