"""HTML processing utilities for campaign link and view tracking."""

import base64
import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# 1x1 transparent RGBA PNG
TRACKING_PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAAC0lEQVR42mNgAAIAAAUAAen63NgAAAAASUVORK5CYII="
)

# Shorthand for tracked links: <a href="https://example.com@TrackLink">
TRACK_LINK_SUFFIX = "@TrackLink"

# {{ TrackLink("https://example.com") }}
TRACK_LINK_CALL = re.compile(r"""TrackLink\s*\(\s*["']([^"']+)["']""")


def find_tracked_urls(body: str) -> list[str]:
    """
    Collect every URL a campaign body asks to track.

    Covers both the TrackLink template call and the `@TrackLink` href
    suffix. Order is preserved and duplicates are dropped.

    Args:
        body: Raw (uncompiled) campaign body

    Returns:
        List of destination URLs
    """
    urls = list(TRACK_LINK_CALL.findall(body))

    soup = BeautifulSoup(body, "html.parser")
    for a_tag in soup.find_all("a", href=True):
        href = a_tag["href"].strip()
        if href.endswith(TRACK_LINK_SUFFIX):
            urls.append(href[: -len(TRACK_LINK_SUFFIX)])

    return list(dict.fromkeys(u for u in urls if u))


def rewrite_tracked_links(html: str, build_url: Callable[[str], str | None]) -> str:
    """
    Replace `url@TrackLink` hrefs with redirect URLs.

    Args:
        html: Rendered HTML
        build_url: Maps a destination URL to its tracking URL, or None to
            leave the destination untracked

    Returns:
        HTML with tracked hrefs rewritten
    """
    if TRACK_LINK_SUFFIX not in html:
        return html

    soup = BeautifulSoup(html, "html.parser")

    rewritten = 0
    for a_tag in soup.find_all("a", href=True):
        href = a_tag["href"].strip()
        if not href.endswith(TRACK_LINK_SUFFIX):
            continue

        url = href[: -len(TRACK_LINK_SUFFIX)]
        a_tag["href"] = build_url(url) or url
        rewritten += 1

    if rewritten:
        logger.debug(f"Rewrote {rewritten} tracked links")

    return str(soup)


def tracking_pixel_tag(pixel_url: str) -> str:
    """Build the invisible <img> tag that registers a campaign view."""
    return (
        f'<img src="{pixel_url}" width="1" height="1" alt="" '
        f'style="display:none;border:0;outline:0;" />'
    )
