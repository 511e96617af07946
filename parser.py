#parser.py
from __future__ import annotations

import re
from typing import Iterator, List
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import PreformattedString, Tag

_WS_RE = re.compile(r"\s+")
_SKIP_TAGS = {"script", "style", "noscript", "template"}


def _squash(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


class Page:
    """A fetched HTML document: where it came from and what it links to."""

    def __init__(self, location: str, soup: BeautifulSoup) -> None:
        self.location = location
        self.soup = soup

    def __repr__(self) -> str:
        return f"Page({self.location!r})"

    @property
    def base_url(self) -> str:
        base = self.soup.find("base", href=True)
        if base:
            try:
                return urljoin(self.location, base["href"].strip())
            except ValueError:
                pass
        return self.location

    def absolute(self, ref: str) -> str:
        """Resolve `ref` against the page; unparseable refs come back as-is."""
        ref = ref.strip()
        try:
            return urljoin(self.base_url, ref)
        except ValueError:
            return ref

    def links(self) -> List[str]:
        """Absolute targets of every <a href>, in document order."""
        return [self.absolute(a["href"]) for a in self.soup.find_all("a", href=True)]

    def images(self) -> List[str]:
        """Absolute sources of every <img src>, in document order."""
        return [self.absolute(img["src"]) for img in self.soup.find_all("img", src=True)]

    def own_texts(self) -> Iterator[str]:
        """Whitespace-squashed text each element holds directly (not its children's)."""
        for tag in self.soup.find_all(True):
            if not isinstance(tag, Tag) or tag.name in _SKIP_TAGS:
                continue
            own = " ".join(
                s for s in tag.find_all(string=True, recursive=False)
                if not isinstance(s, PreformattedString)   # comments, doctype, cdata
            )
            own = _squash(own)
            if own:
                yield own


def parse_html(html: str, location: str) -> Page:
    return Page(location, BeautifulSoup(html or "", "html.parser"))
