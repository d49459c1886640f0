from __future__ import annotations

import html
import logging
import os
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from time import struct_time
from typing import Any, Protocol
from urllib.parse import parse_qs, urlparse

import feedparser
import requests
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_HN_API_BASE = os.getenv("HN_API_BASE", "https://hacker-news.firebaseio.com/v0")
DEFAULT_RSS_BASE = os.getenv("HN_RSS_BASE", "https://hnrss.org")
HN_ITEM_URL = "https://news.ycombinator.com/item?id={item_id}"
DEFAULT_MAX_ITEMS = 100
DEFAULT_HTTP_TIMEOUT_SECONDS = 10

HTML_TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")
POINTS_RE = re.compile(r"Points:\s*(\d+)")


class Section(Enum):
    TOP = ("Top", "topstories", "frontpage")
    ASK = ("Ask", "askstories", "ask")
    SHOW = ("Show", "showstories", "show")
    JOBS = ("Jobs", "jobstories", "jobs")

    def __init__(self, label: str, listing: str, rss_path: str) -> None:
        self.label = label
        self.listing = listing
        self.rss_path = rss_path

    def listing_url(self, api_base: str = DEFAULT_HN_API_BASE) -> str:
        return f"{api_base.rstrip('/')}/{self.listing}.json"

    def rss_url(self, rss_base: str = DEFAULT_RSS_BASE) -> str:
        return f"{rss_base.rstrip('/')}/{self.rss_path}"

    def next(self) -> Section:
        members = list(Section)
        return members[(members.index(self) + 1) % len(members)]

    def previous(self) -> Section:
        members = list(Section)
        return members[(members.index(self) - 1) % len(members)]


ALL_SECTIONS: tuple[Section, ...] = tuple(Section)


@dataclass(frozen=True)
class Item:
    id: int
    title: str
    url: str | None
    text: str | None
    author: str
    score: int
    published_at: datetime | None = None

    @property
    def comments_url(self) -> str:
        return HN_ITEM_URL.format(item_id=self.id)

    @property
    def link(self) -> str:
        return self.url or self.comments_url


class FeedError(Exception):
    pass


class FeedClient(Protocol):
    def fetch(self, section: Section) -> list[Item]: ...


def normalize_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (list, tuple)):
        raw = " ".join(str(piece) for piece in raw)
    if not isinstance(raw, str):
        raw = str(raw)
    unescaped = html.unescape(raw)
    no_html = HTML_TAG_RE.sub(" ", unescaped)
    return WHITESPACE_RE.sub(" ", no_html).strip()


def parse_date(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        parsed = raw
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, (tuple, struct_time)):
        try:
            parsed = datetime(*list(raw)[:6], tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
        except (TypeError, ValueError):
            return None
    try:
        parsed = date_parser.parse(str(raw))
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def short_error(exc: BaseException, limit: int = 160) -> str:
    return normalize_text(str(exc))[:limit] or exc.__class__.__name__


def item_from_payload(payload: Any) -> Item | None:
    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise FeedError(f"Malformed item payload ({type(payload).__name__}).")
    if payload.get("deleted") or payload.get("dead"):
        return None
    try:
        item_id = int(payload["id"])
        score = int(payload.get("score") or 0)
    except (KeyError, TypeError, ValueError) as exc:
        raise FeedError(f"Malformed item payload ({short_error(exc)}).") from exc

    text = normalize_text(payload.get("text"))
    url = str(payload.get("url") or "").strip()
    return Item(
        id=item_id,
        title=normalize_text(payload.get("title")) or "(untitled)",
        url=url or None,
        text=text or None,
        author=normalize_text(payload.get("by")) or "Unknown",
        score=score,
        published_at=parse_date(payload.get("time")),
    )


class HackerNewsClient:
    def __init__(
        self,
        api_base: str = DEFAULT_HN_API_BASE,
        max_items: int = DEFAULT_MAX_ITEMS,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.max_items = max_items
        self.timeout_seconds = timeout_seconds
        self._shared_session = session
        self._local = threading.local()

    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def _get_json(self, url: str) -> Any:
        try:
            response = self.session().get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise FeedError(f"Request to {url} failed ({short_error(exc)}).") from exc
        except ValueError as exc:
            raise FeedError(f"Response from {url} was not JSON ({short_error(exc)}).") from exc

    def fetch(self, section: Section) -> list[Item]:
        ids = self._get_json(section.listing_url(self.api_base))
        if not isinstance(ids, list):
            raise FeedError(f"Malformed {section.label} listing ({type(ids).__name__}).")

        items: list[Item] = []
        for item_id in ids[: self.max_items]:
            item = item_from_payload(self._get_json(f"{self.api_base}/item/{item_id}.json"))
            if item is not None:
                items.append(item)
        logger.debug("Fetched %d %s items from %s", len(items), section.label, self.api_base)
        return items


def item_id_from_link(link: str) -> int | None:
    values = parse_qs(urlparse(link).query).get("id", [])
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None


class RssFeedClient:
    def __init__(
        self,
        rss_base: str = DEFAULT_RSS_BASE,
        max_items: int = DEFAULT_MAX_ITEMS,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.rss_base = rss_base.rstrip("/")
        self.max_items = max_items
        self.timeout_seconds = timeout_seconds
        self._shared_session = session
        self._local = threading.local()

    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def fetch(self, section: Section) -> list[Item]:
        url = section.rss_url(self.rss_base)
        try:
            response = self.session().get(
                url,
                params={"count": min(self.max_items, 100)},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FeedError(f"Request to {url} failed ({short_error(exc)}).") from exc

        parsed = feedparser.parse(response.text)
        if not parsed.entries and (parsed.bozo or not parsed.feed.get("title")):
            raise FeedError(f"Unreadable {section.label} feed from {url}.")

        items: list[Item] = []
        for position, entry in enumerate(parsed.entries[: self.max_items], start=1):
            comments = entry.get("comments", "") or ""
            item_id = item_id_from_link(comments) or item_id_from_link(entry.get("link", ""))
            description = entry.get("summary", "") or entry.get("description", "")
            points = POINTS_RE.search(description)
            link = (entry.get("link", "") or "").strip()
            items.append(
                Item(
                    id=item_id if item_id is not None else position,
                    title=normalize_text(entry.get("title")) or "(untitled)",
                    url=link if link and link != comments else None,
                    text=None,
                    author=normalize_text(entry.get("author")) or "Unknown",
                    score=int(points.group(1)) if points else 0,
                    published_at=parse_date(
                        entry.get("published") or entry.get("published_parsed")
                    ),
                )
            )
        logger.debug("Fetched %d %s items from %s", len(items), section.label, url)
        return items
