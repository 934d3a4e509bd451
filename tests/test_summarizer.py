"""Tests for per-category summaries."""

from __future__ import annotations

import pytest

from conftest import ScriptedLLM, make_point
from intelligence.agents import Summarizer
from models import PainPointCategory
from utils.exceptions import LLMError


def _category(name: str, size: int = 3) -> PainPointCategory:
    members = [make_point(f"{name}-{i}", f"{name} complaint {i}") for i in range(size)]
    return PainPointCategory.from_members(name, "", members)


@pytest.mark.asyncio
async def test_summary_is_trimmed_response():
    llm = ScriptedLLM(lambda prompt: "  Users struggle with slow sync.  \n")

    summary = await Summarizer(llm).summarize(_category("Sync"))

    assert summary == "Users struggle with slow sync."


@pytest.mark.asyncio
async def test_evidence_is_limited():
    llm = ScriptedLLM(lambda prompt: "ok")

    await Summarizer(llm, evidence_limit=10).summarize(_category("Sync", size=12))

    prompt = llm.prompts[0]
    assert '"Sync complaint 9"' in prompt
    assert '"Sync complaint 10"' not in prompt
    assert 'the "Sync" category' in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [LLMError("down"), "", "   "])
async def test_failures_use_fixed_template(reply):
    llm = ScriptedLLM(lambda prompt: reply)

    summary = await Summarizer(llm).summarize(_category("Pricing & Value"))

    assert summary == "Common issues related to pricing & value"


@pytest.mark.asyncio
async def test_summarize_all_assigns_each_category():
    def responder(prompt: str):
        if '"Broken"' in prompt:
            return LLMError("category failed")
        return "Summary for " + ("UI" if '"UI"' in prompt else "Speed")

    categories = [_category("UI"), _category("Broken"), _category("Speed")]
    summarized = await Summarizer(ScriptedLLM(responder)).summarize_all(categories)

    assert [c.summary for c in summarized] == [
        "Summary for UI",
        "Common issues related to broken",
        "Summary for Speed",
    ]
    assert [c.count for c in summarized] == [3, 3, 3]
    # originals are untouched
    assert all(c.summary == "" for c in categories)
