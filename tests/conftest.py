"""Shared fakes for the pain point pipeline tests (no network access)."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest

from config import AnalysisSettings, LLMSettings, RedditSettings, Settings
from intelligence.llm.base import BaseLLM, LLMResponse, Message
from models import PainPoint, PainPointSource, RedditComment, RedditPost
from scrapers.base import BaseContentSource


class ScriptedLLM(BaseLLM):
    """Answers every prompt through ``responder``; exceptions returned by it are raised."""

    def __init__(self, responder: Callable[[str], Any]):
        super().__init__(model="scripted")
        self.responder = responder
        self.prompts: List[str] = []
        self.closed = False

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages: List[Message], **kwargs: Any) -> LLMResponse:
        prompt = messages[-1].content
        self.prompts.append(prompt)
        reply = self.responder(prompt)
        if isinstance(reply, BaseException):
            raise reply
        return LLMResponse(content=reply, model=self.model, usage={})

    async def aclose(self) -> None:
        self.closed = True


class FakeSource(BaseContentSource):
    """Content source answering from callables keyed by the call shape."""

    def __init__(
        self,
        global_results: Optional[Callable[..., Any]] = None,
        community_results: Optional[Callable[..., Any]] = None,
        communities: Optional[Callable[..., Any]] = None,
        comments: Optional[Callable[..., Any]] = None,
    ):
        self._global = global_results or (lambda query, sort, time_filter, limit: [])
        self._community = community_results or (lambda community, query, sort, time_filter, limit: [])
        self._communities = communities or (lambda term, limit: [])
        self._comments = comments or (lambda post_id, limit: [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    @staticmethod
    def _answer(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    async def query_global(self, query, sort="relevance", time_filter="all", limit=25):
        self.calls.append({"kind": "global", "query": query, "sort": sort, "time_filter": time_filter, "limit": limit})
        return self._answer(self._global(query, sort, time_filter, limit))

    async def query_in_community(self, community, query, sort="relevance", time_filter="all", limit=25):
        self.calls.append({
            "kind": "community", "community": community, "query": query,
            "sort": sort, "time_filter": time_filter, "limit": limit,
        })
        return self._answer(self._community(community, query, sort, time_filter, limit))

    async def resolve_communities(self, term, limit=5):
        self.calls.append({"kind": "communities", "term": term, "limit": limit})
        return self._answer(self._communities(term, limit))

    async def get_comments(self, post_id, limit=20):
        self.calls.append({"kind": "comments", "post_id": post_id, "limit": limit})
        return self._answer(self._comments(post_id, limit))

    async def close(self):
        self.closed = True


def make_post(
    post_id: str,
    title: str = "This app is so slow and keeps crashing",
    selftext: str = "",
    score: int = 10,
    num_comments: int = 2,
    subreddit: str = "apps",
    comments: Optional[List[RedditComment]] = None,
) -> RedditPost:
    return RedditPost(
        id=post_id,
        title=title,
        selftext=selftext,
        score=score,
        num_comments=num_comments,
        subreddit=subreddit,
        url=f"https://reddit.com/r/{subreddit}/comments/{post_id}",
        created_utc=1_700_000_000.0,
        author="someone",
        comments=comments or [],
    )


def make_point(
    point_id: str,
    content: str,
    engagement: int = 10,
    subreddit: str = "apps",
) -> PainPoint:
    return PainPoint(
        id=point_id,
        content=content,
        source=PainPointSource.TITLE,
        score=engagement,
        num_comments=0,
        subreddit=subreddit,
        url=f"https://reddit.com/{point_id}",
        created_utc=1_700_000_000.0,
        engagement_score=engagement,
    )


@pytest.fixture
def analysis_settings() -> AnalysisSettings:
    return AnalysisSettings(request_timeout=1.0, llm_timeout=1.0)


@pytest.fixture
def settings(analysis_settings: AnalysisSettings) -> Settings:
    return Settings(
        reddit=RedditSettings(client_id="id", client_secret="secret", user_agent="tests/1.0"),
        llm=LLMSettings(provider="gemini", gemini_api_key="key"),
        analysis=analysis_settings,
    )
