import logging
from typing import Callable, Optional

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DESKTOP_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

MAX_TEXT_CHARS = 6000

# Blocks dropped entirely, opening tag through the first matching closing tag,
# in this order: code blocks, then comments, then page chrome.
CODE_BLOCKS = ("script", "style")
LAYOUT_BLOCKS = ("nav", "header", "footer", "aside")

# Primary content regions, in order of preference.
CONTENT_REGIONS = ("article", "main")

_NAME_END = frozenset(" \t\n\r\f/>")


class FetchError(Exception):
    """The source page could not be fetched."""


def fetch_page(url: str) -> str:
    try:
        resp = requests.get(url, headers=DESKTOP_HEADERS, timeout=20, allow_redirects=True)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Fetching %s failed: %s", url, e)
        raise FetchError("Failed to fetch webpage") from e
    return resp.text


def _open_tag_end(html: str, pos: int, name: str) -> int:
    """Index just past ``<name ...>`` starting at pos, or -1 if there is none."""
    end = pos + 1 + len(name)
    if end >= len(html) or html[pos + 1:end].lower() != name or html[end] not in _NAME_END:
        return -1
    close = html.find(">", end)
    return -1 if close == -1 else close + 1


def _close_tag_end(html: str, pos: int, name: str) -> int:
    """Index just past the first ``</name>`` at or after pos, or -1."""
    literal = f"</{name}>"
    i = html.find("<", pos)
    while i != -1:
        if html[i:i + len(literal)].lower() == literal:
            return i + len(literal)
        i = html.find("<", i + 1)
    return -1


def _element_end(html: str, pos: int, name: str) -> int:
    """Index just past a whole ``<name ...>...</name>`` element starting at pos, or -1."""
    body = _open_tag_end(html, pos, name)
    return -1 if body == -1 else _close_tag_end(html, body, name)


def _comment_end(html: str, pos: int) -> int:
    if not html.startswith("<!--", pos):
        return -1
    end = html.find("-->", pos + 4)
    return -1 if end == -1 else end + 3


def _drop_spans(html: str, span_end: Callable[[str, int], int]) -> str:
    """Remove every span that span_end recognises at a ``<``, scanning left to right."""
    parts = []
    kept_from = 0
    i = html.find("<")
    while i != -1:
        end = span_end(html, i)
        if end == -1:
            i = html.find("<", i + 1)
            continue
        parts.append(html[kept_from:i])
        kept_from = end
        i = html.find("<", end)
    parts.append(html[kept_from:])
    return "".join(parts)


def strip_blocks(html: str) -> str:
    """
    Remove non-content blocks, one kind per pass over the whole document.

    Scripts go first, then styles, then comments, then the page chrome, so a
    closing tag quoted inside a script cannot cut a ``<nav>`` short.
    """
    for name in CODE_BLOCKS:
        html = _drop_spans(html, lambda s, pos, name=name: _element_end(s, pos, name))
    html = _drop_spans(html, _comment_end)
    for name in LAYOUT_BLOCKS:
        html = _drop_spans(html, lambda s, pos, name=name: _element_end(s, pos, name))
    return html


def _first_element(html: str, name: str, attr_marker: Optional[str] = None) -> Optional[str]:
    i = html.find("<")
    while i != -1:
        body = _open_tag_end(html, i, name)
        if body != -1 and (
            attr_marker is None or attr_marker in html[i + 1 + len(name):body].lower()
        ):
            end = _close_tag_end(html, body, name)
            # A later opener of the same kind cannot have a closer either.
            return None if end == -1 else html[i:end]
        i = html.find("<", i + 1)
    return None


def find_content_region(html: str) -> Optional[str]:
    """
    Return the markup of the primary content region, or None.

    Only the first ``<article>`` is considered, so pages holding several
    articles yield the first one.
    """
    for name in CONTENT_REGIONS:
        region = _first_element(html, name)
        if region is not None:
            return region
    return _first_element(html, "div", attr_marker="content")


def _strip_tags(html: str) -> str:
    """Replace every ``<...>`` with a space; a ``<`` with no later ``>`` is text."""
    out = []
    kept_from = 0
    i = html.find("<")
    while i != -1:
        close = html.find(">", i + 1)
        if close == -1:
            break
        out.append(html[kept_from:i])
        out.append(" ")
        kept_from = close + 1
        i = html.find("<", kept_from)
    out.append(html[kept_from:])
    return "".join(out)


def _resolve_entities_once(text: str) -> str:
    out = []
    n = len(text)
    kept_from = 0
    i = text.find("&")
    while i != -1:
        j = i + 1
        while j < n and "a" <= text[j] <= "z":
            j += 1
        if j > i + 1 and j < n and text[j] == ";":
            out.append(text[kept_from:i])
            if text[i + 1:j] == "nbsp":
                out.append(" ")
            kept_from = j + 1
        i = text.find("&", max(j, i + 1))
    out.append(text[kept_from:])
    return "".join(out)


def _resolve_entities(text: str) -> str:
    """
    ``&nbsp;`` becomes a space, other lower-case named entities are dropped.

    Dropping ``&amp;`` from ``&&amp;nbsp;`` splices a new entity together, so
    passes repeat until nothing changes.
    """
    while True:
        resolved = _resolve_entities_once(text)
        if resolved == text:
            return text
        text = resolved


def extract_text(html: str, limit: int = MAX_TEXT_CHARS) -> str:
    """
    Reduce raw HTML to a plain-text excerpt of at most ``limit`` characters.

    This is a lexical reduction, not an HTML parser: malformed markup is
    handled on a best-effort basis and never raises. Entities are resolved
    before whitespace is collapsed and the cut is right-trimmed, so the
    result extracts to itself.
    """
    stripped = strip_blocks(html or "")
    region = find_content_region(stripped)
    text = _resolve_entities(_strip_tags(region if region is not None else stripped))
    text = " ".join(text.split())
    return text[:limit].rstrip()


def page_title(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string and soup.title.string.strip():
        return soup.title.string.strip()
    h1 = soup.find("h1")
    title = h1.get_text(strip=True) if h1 else ""
    return title or "Untitled"


def scrape_page(url: str) -> tuple[str, str]:
    """
    Fetch a webpage and extract its readable text.

    Returns:
        tuple: (extracted_text, raw_html)
    """
    html = fetch_page(url)
    text = extract_text(html)
    logger.info("Extracted %d characters from %s", len(text), url)
    return text, html
