"""Tests for subreddit resolution and its fallback chain."""

from __future__ import annotations

import json

import pytest

from aggregator import CommunityResolver
from conftest import FakeSource, ScriptedLLM
from utils.exceptions import LLMError, ScraperError


@pytest.mark.asyncio
async def test_llm_suggestions_are_cleaned_and_capped():
    names = ["r/apple", "/r/iPhone/", "APPLE", "bad name!", "x"] + [f"sub{i}" for i in range(10)]
    llm = ScriptedLLM(lambda prompt: "```json\n" + json.dumps(names) + "\n```")

    communities = await CommunityResolver(llm, max_communities=8).resolve("iphone")

    assert communities[:2] == ["apple", "iPhone"]
    assert len(communities) == 8
    assert "bad name!" not in communities
    assert "x" not in communities
    assert 'discussions about "iphone"' in llm.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [LLMError("down"), "no idea", "[]", '["!!!"]'])
async def test_keyword_table_when_llm_unusable(reply):
    resolver = CommunityResolver(ScriptedLLM(lambda prompt: reply))

    assert await resolver.resolve("Tesla Model 3") == [
        "tesla", "teslamotors", "electricvehicles", "cars", "automotive",
    ]


@pytest.mark.asyncio
async def test_source_lookup_when_no_table_entry():
    source = FakeSource(communities=lambda term, limit: ["Notion", "r/productivity", "Notion"])
    resolver = CommunityResolver(ScriptedLLM(lambda prompt: LLMError("down")), source=source)

    assert await resolver.resolve("notion") == ["Notion", "productivity"]
    assert source.calls == [{"kind": "communities", "term": "notion", "limit": 8}]


@pytest.mark.asyncio
@pytest.mark.parametrize("answer", [ScraperError("lookup failed"), []])
async def test_default_list_as_last_resort(answer):
    source = FakeSource(communities=lambda term, limit: answer)
    resolver = CommunityResolver(None, source=source)

    assert await resolver.resolve("obscure gadget") == [
        "technology", "gadgets", "reviews", "complaints", "mildlyinfuriating", "assholedesign",
    ]
