"""Heuristic live detection on YouTube HTML pages.

YouTube has no public live status endpoint that works without an API key,
so the state is inferred from whatever a channel or watch page embeds. The
heuristics below are tried in order and the first one that reports a live
broadcast wins:

1. the embedded ``ytInitialPlayerResponse`` JSON of a watch page
2. a thumbnail carrying the ``LIVE`` overlay on a channel grid
3. generic meta tags and inline ``isLive`` flags of the document

Each heuristic is a pure function of a :class:`LivePage` and returns a live
:class:`LiveStatus` or None.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from ...domain.models.live_status import LiveStatus
from .value_parsing import extract_text, first_present, normalize_timestamp, parse_viewer_count

logger = logging.getLogger(__name__)

YOUTUBE_BASE_URL = "https://www.youtube.com"

_PLAYER_RESPONSE_ASSIGNMENT = re.compile(r"ytInitialPlayerResponse\s*=\s*")
_LIVE_FLAG_PATTERNS = (
    re.compile(r'"isLive":\s*true'),
    re.compile(r'"isLiveContent":\s*true'),
    re.compile(r'"isLiveNow":\s*true'),
)
_LIVE_PATH_VIDEO_ID = re.compile(r"/live/([0-9A-Za-z_-]{11})")
_WATCH_HREF = re.compile(r"^/watch\?v=")

_VIDEO_RENDERERS = ["ytd-grid-video-renderer", "ytd-video-renderer", "ytd-rich-item-renderer", "ytd-rich-grid-media"]
_LIVE_BADGE_SELECTOR = "ytd-badge-supported-renderer, .badge-style-type-live-now, .ytp-live-badge"
_LIVE_OVERLAY_SELECTOR = 'ytd-thumbnail-overlay-time-status-renderer[overlay-style="LIVE"]'


@dataclass
class LivePage:
    """A fetched HTML document and the URL it was fetched from."""
    html: str
    source_url: str
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup


def watch_url(video_id: str) -> str:
    return f"{YOUTUBE_BASE_URL}/watch?v={video_id}"


# ------------------------------------------------------------
# Heuristic 1: embedded player response
# ------------------------------------------------------------

def extract_player_response(html: str) -> Optional[Dict[str, Any]]:
    """Decode the JSON literal assigned to ``ytInitialPlayerResponse``."""
    decoder = json.JSONDecoder()
    for match in _PLAYER_RESPONSE_ASSIGNMENT.finditer(html):
        start = match.end()
        if html[start:start + 1] != "{":
            continue
        try:
            value, _ = decoder.raw_decode(html, start)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def _dig(source: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(source, dict):
            return None
        source = source.get(key)
    return source


def _video_id_of(source: Any) -> Optional[str]:
    video_id = _dig(source, "videoId")
    return video_id if isinstance(video_id, str) and len(video_id) >= 11 else None


def parse_player_response(page: LivePage) -> Optional[LiveStatus]:
    player = extract_player_response(page.html)
    if not player:
        return None

    live_details = _dig(player, "microformat", "playerMicroformatRenderer", "liveBroadcastDetails") or {}
    live_renderer = _dig(player, "playabilityStatus", "liveStreamability", "liveStreamabilityRenderer") or {}
    video_details = _dig(player, "videoDetails") or {}

    is_live = any(
        bool(flag)
        for flag in (
            _dig(live_details, "isLiveNow"),
            _dig(live_details, "isLive"),
            _dig(video_details, "isLiveContent"),
            _dig(live_renderer, "isLive"),
        )
    )
    if not is_live:
        return None

    video_id = _video_id_of(video_details) or _video_id_of(live_renderer) or extract_video_id_from_document(page.soup)
    title = (
        extract_text(_dig(video_details, "title"))
        or extract_text(_dig(live_details, "title"))
        or extract_title_from_document(page.soup)
    )
    started_at = first_present(
        _dig(live_details, "startTimestamp"),
        _dig(live_renderer, "startTimestamp"),
        extract_start_timestamp(page.soup),
    )
    viewer_count = parse_viewer_count(
        first_present(
            _dig(video_details, "viewCount"),
            _dig(live_renderer, "viewerCount"),
            _dig(live_renderer, "liveStream", "viewerCount"),
            _dig(live_renderer, "liveStream", "activeViewers"),
        )
    )

    return LiveStatus(
        is_live=True,
        title=title,
        viewer_count=viewer_count,
        started_at=normalize_timestamp(started_at),
        stream_url=watch_url(video_id) if video_id else page.source_url,
    )


# ------------------------------------------------------------
# Heuristic 2: LIVE thumbnail overlay
# ------------------------------------------------------------

def _find_watch_anchor(overlay: Tag) -> Optional[Tag]:
    anchor = (
        overlay.find_parent("a", href=_WATCH_HREF)
        or overlay.find_previous_sibling("a", href=_WATCH_HREF)
        or overlay.find_next_sibling("a", href=_WATCH_HREF)
        or overlay.find("a", href=_WATCH_HREF)
    )
    if anchor:
        return anchor

    renderer = overlay.find_parent(_VIDEO_RENDERERS)
    if renderer:
        return renderer.find("a", href=_WATCH_HREF)
    return None


def _element_text(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    text = element.get_text().strip()
    return text or None


def parse_live_overlay(page: LivePage) -> Optional[LiveStatus]:
    for overlay in page.soup.select(_LIVE_OVERLAY_SELECTOR):
        anchor = _find_watch_anchor(overlay)
        if anchor is None:
            continue

        video_id = extract_video_id_from_href(anchor.get("href"))
        if not video_id:
            continue

        title = anchor.get("title") or anchor.get("aria-label") or _element_text(anchor.select_one("#video-title"))
        if not title:
            renderer = anchor.find_parent(_VIDEO_RENDERERS) or overlay.find_parent(_VIDEO_RENDERERS)
            if renderer is not None:
                title = _element_text(renderer.select_one("#video-title"))

        return LiveStatus(
            is_live=True,
            title=title.strip() if title else extract_title_from_document(page.soup),
            viewer_count=None,
            started_at=normalize_timestamp(extract_start_timestamp(page.soup)),
            stream_url=watch_url(video_id),
        )

    return None


# ------------------------------------------------------------
# Heuristic 3: document meta data and inline flags
# ------------------------------------------------------------

def _attr(soup: BeautifulSoup, selector: str, attribute: str) -> Optional[str]:
    element = soup.select_one(selector)
    if element is None:
        return None
    value = element.get(attribute)
    return value if isinstance(value, str) else None


def extract_video_id_from_href(href: Optional[str]) -> Optional[str]:
    """Read a video ID from a ``watch?v=`` or ``/live/<id>`` link."""
    if not href:
        return None

    try:
        url = urlsplit(urljoin(YOUTUBE_BASE_URL, href))
    except ValueError:
        return None

    video_id = (parse_qs(url.query).get("v") or [None])[0]
    if video_id and len(video_id) >= 11:
        return video_id

    match = _LIVE_PATH_VIDEO_ID.search(url.path)
    return match.group(1) if match else None


def extract_video_id_from_document(soup: BeautifulSoup) -> Optional[str]:
    candidates = (
        _attr(soup, "link[rel='canonical']", "href"),
        _attr(soup, "meta[property='og:video:url']", "content"),
        _attr(soup, "meta[property='og:url']", "content"),
        _attr(soup, "meta[itemprop='url']", "content"),
        _attr(soup, "a[href^='/watch?v=']", "href"),
    )
    for href in candidates:
        video_id = extract_video_id_from_href(href)
        if video_id:
            return video_id

    data_video_id = _attr(soup, "[data-video-id]", "data-video-id")
    if data_video_id and len(data_video_id) >= 11:
        return data_video_id
    return None


def extract_title_from_document(soup: BeautifulSoup) -> Optional[str]:
    candidates = (
        _attr(soup, "meta[property='og:title']", "content"),
        _attr(soup, "meta[name='title']", "content"),
        _attr(soup, "meta[name='twitter:title']", "content"),
        _attr(soup, "meta[itemprop='name']", "content"),
        _element_text(soup.select_one("#video-title")),
        _element_text(soup.find("title")),
    )
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def extract_start_timestamp(soup: BeautifulSoup) -> Optional[str]:
    candidates = (
        _attr(soup, "meta[itemprop='startDate']", "content"),
        _attr(soup, "meta[property='video:release_date']", "content"),
        _attr(soup, "meta[property='l:original_publish_date']", "content"),
    )
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def _is_truthy(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in ("true", "1", "yes")


def is_live_from_document(page: LivePage) -> bool:
    soup = page.soup
    meta_flags = (
        _attr(soup, "meta[itemprop='isLiveBroadcast']", "content"),
        _attr(soup, "meta[property='og:video:live_broadcast']", "content"),
        _attr(soup, "meta[name='is_live']", "content"),
    )
    if any(_is_truthy(flag) for flag in meta_flags):
        return True

    if any(badge.get_text().strip().upper() == "LIVE" for badge in soup.select(_LIVE_BADGE_SELECTOR)):
        return True

    return any(pattern.search(page.html) for pattern in _LIVE_FLAG_PATTERNS)


def parse_document_signals(page: LivePage) -> Optional[LiveStatus]:
    video_id = extract_video_id_from_document(page.soup)
    if not video_id or not is_live_from_document(page):
        return None

    return LiveStatus(
        is_live=True,
        title=extract_title_from_document(page.soup),
        viewer_count=None,
        started_at=normalize_timestamp(extract_start_timestamp(page.soup)),
        stream_url=watch_url(video_id),
    )


LIVE_PAGE_HEURISTICS: Tuple[Callable[[LivePage], Optional[LiveStatus]], ...] = (
    parse_player_response,
    parse_live_overlay,
    parse_document_signals,
)


def parse_live_status(html: str, source_url: str) -> Optional[LiveStatus]:
    """Run the heuristics in order on a page.

    Args:
        html: Page body
        source_url: URL the page was fetched from

    Returns:
        Live status from the first heuristic that detects a broadcast, or
        None when the page shows no live signal
    """
    page = LivePage(html=html, source_url=source_url)
    for heuristic in LIVE_PAGE_HEURISTICS:
        try:
            status = heuristic(page)
        except Exception as e:
            logger.debug(f"⚠️ {heuristic.__name__} failed on {source_url}: {e}")
            continue
        if status is not None:
            logger.debug(f"✅ {heuristic.__name__} detected a live broadcast on {source_url}")
            return status
    return None
