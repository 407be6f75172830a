from __future__ import annotations

from typing import List, NamedTuple, Optional

import requests
from bs4 import BeautifulSoup

from .config import BLOG_URL_TEMPLATE, HTTP_TIMEOUT, USER_AGENT
from .console import logger
from .errors import TransportError
from .models import Release
from .utils import strip_bracket_tags

ITEM_SELECTOR = ".column-13 .object > a"
TAG_SELECTOR = 'a[rel~="tag"]'
LABEL_SEPARATOR = "/ "


class Label(NamedTuple):
    artist: str
    album: str


def parse_label(text: str) -> Optional[Label]:
    """Split a listing label like ``"[LP01]Artist / Album"``.

    Returns None when the label does not hold exactly one separator.
    """
    parts = strip_bracket_tags(text or "").split(LABEL_SEPARATOR)
    if len(parts) != 2:
        return None
    return Label(artist=parts[0].strip(), album=parts[1].strip())


class PageScraper:
    def __init__(
        self,
        url_template: str = BLOG_URL_TEMPLATE,
        session: Optional[requests.Session] = None,
    ):
        self.url_template = url_template
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = USER_AGENT
        self.session = session

    def page_url(self, index: int) -> str:
        return self.url_template.format(page=index)

    def fetch_page(self, index: int) -> List[Release]:
        url = self.page_url(index)
        logger.info(f"[cyan]Fetching page {index}:[/cyan] {url}")
        try:
            body = self._download(url)
            releases = self.parse_listing(body)
        except TransportError as err:
            logger.error(f"[red]Could not fetch page {index}:[/red] {err}")
            return []
        except Exception as err:
            logger.error(f"[red]Could not parse page {index}:[/red] {err}")
            return []
        logger.info(f"Found [bold]{len(releases)}[/bold] albums on page {index}")
        return releases

    def _download(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as err:
            raise TransportError(str(err)) from err
        return response.text

    def parse_listing(self, body: str) -> List[Release]:
        soup = BeautifulSoup(body, "html.parser")
        releases: List[Release] = []
        for anchor in soup.select(ITEM_SELECTOR):
            label = parse_label(anchor.get_text())
            if label is None:
                logger.debug(f"[dim]Skipping malformed label:[/dim] {anchor.get_text()!r}")
                continue
            node = anchor.parent
            tags = []
            for link in node.select(TAG_SELECTOR):
                if link is anchor:
                    continue
                text = link.get_text(" ", strip=True)
                if text:
                    tags.append(text)
            releases.append(
                Release(
                    artist=label.artist,
                    album=label.album,
                    source_url=anchor.get("href") or "",
                    tags=tuple(tags),
                )
            )
        return releases


__all__ = ["Label", "PageScraper", "parse_label", "ITEM_SELECTOR", "TAG_SELECTOR"]
