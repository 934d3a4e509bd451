"""Tests for AI categorization, index sanitising and the keyword fallback."""

from __future__ import annotations

import json

import pytest

from conftest import ScriptedLLM, make_point
from intelligence.agents import Categorizer
from utils.exceptions import LLMError


def _response(*categories) -> str:
    return json.dumps({"categories": list(categories)})


@pytest.mark.asyncio
async def test_primary_path_builds_categories_from_indexes():
    points = [
        make_point("a", "sync loses notes", engagement=10),
        make_point("b", "price doubled", engagement=3),
        make_point("c", "sync conflicts", engagement=5),
        make_point("d", "never mentioned", engagement=1),
    ]
    llm = ScriptedLLM(lambda prompt: _response(
        {"name": "Sync Problems", "description": "Data sync failures", "painPointIndexes": [0, 2]},
        {"name": "Pricing & Value", "description": "Cost", "painPointIndexes": [1, 2, 99, -1, "3", 1.5, True]},
        {"name": "Ghost", "description": "Nothing valid", "painPointIndexes": [42]},
    ))

    categories = await Categorizer(llm).categorize(points, "notion")

    assert [c.name for c in categories] == ["Sync Problems", "Pricing & Value"]
    sync, pricing = categories
    assert sync.id == "sync-problems"
    assert [p.id for p in sync.pain_points] == ["a", "c"]
    assert sync.count == 2
    assert sync.average_engagement == 8
    assert sync.summary == ""
    assert pricing.id == "pricing--value"
    assert [p.id for p in pricing.pain_points] == ["b"]


@pytest.mark.asyncio
async def test_hard_partition_across_categories():
    points = [make_point(f"p{i}", f"text {i}") for i in range(6)]
    llm = ScriptedLLM(lambda prompt: _response(
        {"name": "One", "description": "", "painPointIndexes": [0, 1, 2]},
        {"name": "Two", "description": "", "painPointIndexes": [2, 3, 0]},
        {"name": "One", "description": "again", "painPointIndexes": [4]},
    ))

    categories = await Categorizer(llm).categorize(points, "notion")

    ids = [p.id for c in categories for p in c.pain_points]
    assert len(ids) == len(set(ids))
    assert [c.name for c in categories] == ["One", "Two"]
    assert [p.id for p in categories[0].pain_points] == ["p0", "p1", "p2", "p4"]
    assert all(c.count == len(c.pain_points) for c in categories)


@pytest.mark.asyncio
async def test_only_the_window_is_sent_and_resolvable():
    points = [make_point(f"p{i}", f"text {i}") for i in range(60)]
    llm = ScriptedLLM(lambda prompt: _response(
        {"name": "Window", "description": "", "painPointIndexes": [0, 49, 55]},
    ))

    categories = await Categorizer(llm, window=50).categorize(points, "notion")

    prompt = llm.prompts[0]
    assert '\n49: "text 49"' in prompt
    assert '"text 50"' not in prompt
    assert [p.id for p in categories[0].pain_points] == ["p0", "p49"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        LLMError("down", provider="fake"),
        "I could not categorize these.",
        json.dumps({"categories": []}),
        json.dumps({"categories": [{"name": "Empty", "description": "", "painPointIndexes": []}]}),
        json.dumps({"groups": "wrong shape", "categories": "nope"}),
    ],
)
async def test_fallback_on_unusable_responses(reply):
    points = [
        make_point("a", "It is so slow to open"),
        make_point("b", "The interface is confusing"),
        make_point("c", "Price went up again"),
        make_point("d", "Meh"),
        make_point("e", "Another slow sync"),
    ]

    categories = await Categorizer(ScriptedLLM(lambda prompt: reply)).categorize(points, "notion")

    assert [c.name for c in categories] == [
        "Performance Issues",
        "User Interface",
        "Pricing & Value",
        "Other Issues",
    ]
    assert [p.id for p in categories[0].pain_points] == ["a", "e"]
    assert categories[1].description == "Issues related to user interface"
    assert categories[3].id == "other-issues"
    assert sum(c.count for c in categories) == len(points)


def test_fallback_uses_first_matching_rule():
    categorizer = Categorizer(llm=None)
    points = [make_point("a", "Buggy and slow")]

    categories = categorizer.fallback_categorize(points)

    # "slow" belongs to the first rule in table order
    assert [c.name for c in categories] == ["Performance Issues"]


@pytest.mark.asyncio
async def test_empty_input_yields_no_categories():
    llm = ScriptedLLM(lambda prompt: _response())

    assert await Categorizer(llm).categorize([], "notion") == []
    assert llm.prompts == []
