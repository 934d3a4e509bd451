"""Unit tests for the praw-backed Reddit source (no network)."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from config import RedditSettings
from scrapers import RedditScraper
from utils.exceptions import ConfigurationError, RateLimitError, ScraperError


def _scraper(**overrides) -> RedditScraper:
    values = {"client_id": "id", "client_secret": "secret", "user_agent": "tests/1.0", "requests_per_second": 100.0}
    values.update(overrides)
    return RedditScraper(RedditSettings(**values))


def _submission(**overrides):
    values = dict(
        id="abc",
        title="Battery drains overnight",
        selftext="",
        score=12,
        num_comments=4,
        subreddit=SimpleNamespace(display_name="iphone"),
        permalink="/r/iphone/comments/abc/battery/",
        created_utc=1700000000,
        author=SimpleNamespace(name="user1"),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_convert_submission():
    post = _scraper()._convert_to_post(_submission())

    assert post.id == "abc"
    assert post.url == "https://reddit.com/r/iphone/comments/abc/battery/"
    assert post.subreddit == "iphone"
    assert post.engagement == (12, 4)
    assert post.author == "user1"


def test_convert_deleted_author_and_missing_fields():
    post = _scraper()._convert_to_post(_submission(author=None, selftext=None, score=None))

    assert post.author == "[deleted]"
    assert post.selftext == ""
    assert post.score == 0


def test_convert_comment():
    comment = _scraper()._convert_to_comment(
        SimpleNamespace(id="c1", body="Same here", score=3, created_utc=1.0, author=None)
    )

    assert comment.id == "c1"
    assert comment.num_comments == 0
    assert comment.author == "[deleted]"


def test_unconfigured_client_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        _scraper(client_id=None)._get_reddit()


@pytest.mark.asyncio
async def test_rate_limit_messages_are_classified_and_not_retried():
    scraper = _scraper()
    calls = []

    def sync_search(*args):
        calls.append(args)
        raise Exception("received 429 HTTP response")

    scraper._sync_search = sync_search

    with pytest.raises(RateLimitError):
        await scraper.query_global("iphone")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_other_failures_become_scraper_errors():
    scraper = _scraper()

    def boom(*args):
        raise ValueError("bad gateway")

    with pytest.raises(ScraperError) as exc_info:
        await scraper._call("Search failed", boom)

    assert not isinstance(exc_info.value, RateLimitError)
    assert exc_info.value.source == "Reddit"


@pytest.mark.asyncio
async def test_query_in_community_converts_results():
    scraper = _scraper()
    scraper._sync_search = lambda community, query, sort, time_filter, limit: [_submission(id=f"s{limit}")]

    posts = await scraper.query_in_community("iphone", "battery", sort="top", time_filter="week", limit=3)

    assert [p.id for p in posts] == ["s3"]
