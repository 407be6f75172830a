from __future__ import annotations

import re
import secrets
import string
from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")

# Blog labels carry a fixed-width marker such as "[LP01]" or "[2024]".
BRACKET_TAG_PAT = re.compile(r"\[....\]")

STATE_ALPHABET = string.ascii_letters + string.digits


def strip_bracket_tags(value: str) -> str:
    return BRACKET_TAG_PAT.sub("", value)


def normalize_tag(value: str) -> str:
    return (value or "").strip().lower()


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def random_state(length: int = 16) -> str:
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(length))


__all__ = [
    "BRACKET_TAG_PAT",
    "strip_bracket_tags",
    "normalize_tag",
    "chunked",
    "random_state",
]
