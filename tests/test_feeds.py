from __future__ import annotations

import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from conftest import RecordingSurface, build_orchestrator
from feeds import (
    FeedError,
    HackerNewsClient,
    Item,
    RssFeedClient,
    Section,
    item_from_payload,
    normalize_text,
    parse_date,
)
from orchestrator import FetchFailed

API = "https://hn.test/v0"


def json_response(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


def session_for(routes: dict[str, object]) -> MagicMock:
    session = MagicMock()

    def get(url, timeout=None, **kwargs):
        value = routes[url]
        if isinstance(value, BaseException):
            raise value
        return json_response(value)

    session.get.side_effect = get
    return session


def test_section_urls_and_cycling():
    assert Section.ASK.listing_url(API) == f"{API}/askstories.json"
    assert Section.TOP.rss_url("https://hnrss.test/") == "https://hnrss.test/frontpage"
    assert Section.TOP.next() is Section.ASK
    assert Section.JOBS.next() is Section.TOP
    assert Section.TOP.previous() is Section.JOBS
    assert [section.label for section in Section] == ["Top", "Ask", "Show", "Jobs"]


def test_item_links():
    story = Item(id=7, title="t", url=None, text=None, author="a", score=1)
    assert story.link == "https://news.ycombinator.com/item?id=7"
    assert story.comments_url == story.link


def test_item_from_payload_normalizes_fields():
    item = item_from_payload(
        {
            "id": 99,
            "title": "Show HN: &quot;thing&quot;",
            "by": "dang",
            "score": 12,
            "text": "<p>Hello&#x2F;world</p>",
            "time": 1700000000,
        }
    )
    assert item == Item(
        id=99,
        title='Show HN: "thing"',
        url=None,
        text="Hello/world",
        author="dang",
        score=12,
        published_at=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
    )


def test_item_from_payload_skips_deleted_and_rejects_garbage():
    assert item_from_payload(None) is None
    assert item_from_payload({"id": 1, "deleted": True}) is None
    assert item_from_payload({"id": 2, "dead": True}) is None
    with pytest.raises(FeedError):
        item_from_payload(["not", "a", "dict"])
    with pytest.raises(FeedError):
        item_from_payload({"title": "no id"})


def test_hacker_news_client_fetches_in_listing_order():
    session = session_for(
        {
            f"{API}/topstories.json": [3, 1, 2, 4],
            f"{API}/item/3.json": {"id": 3, "title": "Third", "by": "c", "score": 3, "url": "https://c"},
            f"{API}/item/1.json": None,
            f"{API}/item/2.json": {"id": 2, "title": "Second", "by": "b", "score": 2},
            f"{API}/item/4.json": {"id": 4, "title": "Fourth", "by": "d", "score": 4},
        }
    )
    client = HackerNewsClient(api_base=API, max_items=3, session=session)

    items = client.fetch(Section.TOP)

    assert [item.id for item in items] == [3, 2]
    assert items[0].url == "https://c"
    assert session.get.call_count == 4


def test_hacker_news_client_raises_feed_error_on_bad_listing():
    session = session_for({f"{API}/jobstories.json": {"error": "nope"}})
    with pytest.raises(FeedError, match="Malformed Jobs listing"):
        HackerNewsClient(api_base=API, session=session).fetch(Section.JOBS)


def test_hacker_news_client_wraps_request_errors():
    session = session_for({f"{API}/askstories.json": requests.ConnectionError("refused")})
    with pytest.raises(FeedError, match="refused"):
        HackerNewsClient(api_base=API, session=session).fetch(Section.ASK)


def test_hacker_news_client_rejects_non_json():
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.side_effect = ValueError("Expecting value")
    session = MagicMock()
    session.get.return_value = response
    with pytest.raises(FeedError, match="not JSON"):
        HackerNewsClient(api_base=API, session=session).fetch(Section.SHOW)


RSS_BODY = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
<channel>
<title>Hacker News: Front Page</title>
<item>
<title>A fast new parser</title>
<description><![CDATA[<p>Article URL: https://parser.example/</p><p>Points: 245</p>]]></description>
<pubDate>Tue, 14 Nov 2023 22:13:20 +0000</pubDate>
<link>https://parser.example/</link>
<dc:creator>alice</dc:creator>
<comments>https://news.ycombinator.com/item?id=38270000</comments>
</item>
<item>
<title>Ask HN: How do you read papers?</title>
<description><![CDATA[<p>Points: 12</p>]]></description>
<link>https://news.ycombinator.com/item?id=38270001</link>
<dc:creator>bob</dc:creator>
<comments>https://news.ycombinator.com/item?id=38270001</comments>
</item>
</channel>
</rss>
"""


def test_rss_client_maps_entries():
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.text = RSS_BODY
    session = MagicMock()
    session.get.return_value = response

    items = RssFeedClient(rss_base="https://hnrss.test", session=session).fetch(Section.TOP)

    assert [item.id for item in items] == [38270000, 38270001]
    assert items[0].url == "https://parser.example/"
    assert items[0].score == 245
    assert items[0].author == "alice"
    assert items[0].published_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert items[1].url is None
    assert items[1].link == "https://news.ycombinator.com/item?id=38270001"
    assert session.get.call_args.args[0] == "https://hnrss.test/frontpage"


def test_rss_client_rejects_unreadable_feed():
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.text = "Service Unavailable"
    session = MagicMock()
    session.get.return_value = response

    with pytest.raises(FeedError, match="Unreadable Ask feed"):
        RssFeedClient(session=session).fetch(Section.ASK)


def test_normalize_and_parse_date_helpers():
    assert normalize_text("  a <b>bold</b>\n move ") == "a bold move"
    assert normalize_text(None) == ""
    assert parse_date(None) is None
    assert parse_date("not a date") is None
    assert parse_date("2024-01-02T03:04:05").tzinfo is timezone.utc


def test_item_from_payload_rejects_non_numeric_score():
    with pytest.raises(FeedError, match="Malformed item payload"):
        item_from_payload({"id": 1, "title": "t", "score": "lots"})
    with pytest.raises(FeedError, match="Malformed item payload"):
        item_from_payload({"id": "abc"})


def test_bad_score_surfaces_as_fetch_failure():
    session = session_for(
        {
            f"{API}/topstories.json": [1],
            f"{API}/item/1.json": {"id": 1, "title": "t", "score": "lots"},
        }
    )
    client = HackerNewsClient(api_base=API, session=session)

    with pytest.raises(FetchFailed) as caught:
        build_orchestrator(client, RecordingSurface()).load_one(Section.TOP)

    assert caught.value.section is Section.TOP


def test_clients_reuse_an_injected_session():
    session = MagicMock()
    client = HackerNewsClient(api_base=API, session=session)
    assert client.session() is session
    assert RssFeedClient(session=session).session() is session


def test_clients_give_each_thread_its_own_session():
    client = HackerNewsClient(api_base=API)
    seen: list[requests.Session] = []

    def grab():
        seen.append(client.session())
        seen.append(client.session())

    workers = [threading.Thread(target=grab) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(5)

    assert len(seen) == 4
    assert seen[0] is seen[1]
    assert seen[2] is seen[3]
    assert seen[0] is not seen[2]
    assert all(isinstance(session, requests.Session) for session in seen)
