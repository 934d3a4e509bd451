"""Tests for the data model helpers, settings and rule tables."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config import AnalysisSettings, LLMSettings, RedditSettings, Settings, get_rules
from conftest import make_point, make_post
from intelligence.llm import get_llm
from models import (
    PainPointCategory,
    average_engagement,
    engagement_score,
    round_half_up,
    slugify,
)
from utils.exceptions import (
    ConfigurationError,
    LLMError,
    PainPointerError,
    RateLimitError,
    ResponseParseError,
    ScraperError,
)


def test_engagement_and_rounding():
    assert engagement_score(10, 3) == 16
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert average_engagement([]) == 0
    assert average_engagement([make_point("a", "x", 1), make_point("b", "y", 2)]) == 2


def test_slugify():
    assert slugify("Bugs & Errors") == "bugs--errors"
    assert slugify("  Customer   Service ") == "-customer-service-"
    assert slugify("UI/UX 2.0") == "uiux-20"


def test_category_counts_come_from_members():
    members = [make_point("a", "x", 3), make_point("b", "y", 4)]

    category = PainPointCategory.from_members("Sync Problems", "desc", members)

    assert category.id == "sync-problems"
    assert category.count == 2
    assert category.average_engagement == 4
    assert category.summary == ""


def test_single_member_average_is_that_members_score():
    category = PainPointCategory.from_members("Exports", "desc", [make_point("a", "export fails", 37)])

    assert category.count == 1
    assert category.average_engagement == 37


def test_substantive_post_uses_raw_title_length():
    # 15 visible characters, padded to 19
    padded = make_post("padded", title="  Too short title  ", selftext="")
    blank = make_post("blank", title="    ", selftext="body but no title")

    assert padded.is_substantive(min_title_chars=15)
    assert not make_post("exact", title="Too short title", selftext="").is_substantive(min_title_chars=15)
    assert not blank.is_substantive()


def test_pain_points_are_immutable():
    point = make_point("a", "original")

    with pytest.raises(ValidationError):
        point.content = "changed"

    rewritten = point.with_content("rewritten")
    assert rewritten.content == "rewritten"
    assert rewritten.id == point.id
    assert point.content == "original"


def test_analysis_defaults():
    analysis = AnalysisSettings()

    assert analysis.max_posts == 500
    assert (analysis.direct_budget, analysis.community_budget, analysis.variation_budget, analysis.time_sliced_budget) == (100, 100, 80, 70)
    assert analysis.min_engagement == 2
    assert analysis.categorization_window == 50


def test_analysis_settings_read_environment(monkeypatch):
    monkeypatch.setenv("ANALYSIS_MAX_POSTS", "42")
    monkeypatch.setenv("ANALYSIS_COMMENTS_PER_POST", "3")

    analysis = AnalysisSettings()

    assert analysis.max_posts == 42
    assert analysis.comments_per_post == 3


def test_missing_credentials_lists_variables():
    settings = Settings(
        reddit=RedditSettings(client_id=None, client_secret="s", user_agent="ua"),
        llm=LLMSettings(provider="gemini", gemini_api_key=None),
    )

    assert settings.missing_credentials() == ["REDDIT_CLIENT_ID", "LLM_GEMINI_API_KEY"]


def test_exception_hierarchy():
    error = RateLimitError("slow down", source="Reddit", retry_after=30)

    assert isinstance(error, LLMError)
    assert isinstance(error, ScraperError)
    assert isinstance(error, PainPointerError)
    assert error.source == "Reddit"
    assert error.details == {"retry_after": 30}
    assert issubclass(ResponseParseError, LLMError)
    assert ConfigurationError("missing", missing=["X"]).missing == ["X"]


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        get_llm(provider="nope", api_key="k")


def test_rule_tables():
    rules = get_rules()

    assert rules is get_rules()
    assert len(rules.variation_suffixes) == 10
    assert rules.time_windows == ("week", "month", "year", "all")
    assert rules.fallback_communities("my xbox series x") == ("xbox", "xboxone", "gaming", "console")
    assert rules.fallback_communities("notion") is None
    assert rules.fallback_category("Way too EXPENSIVE") == "Pricing & Value"
    assert rules.fallback_category("meh") == "Other Issues"


def test_factory_builds_configured_providers():
    from intelligence.llm import GeminiLLM, OpenAILLM

    gemini = get_llm(provider="gemini", api_key="k", timeout=5.0)
    openai_llm = get_llm(provider="OpenAI", model="gpt-4o", api_key="k")

    assert isinstance(gemini, GeminiLLM)
    assert gemini.model
    assert gemini.timeout == 5.0
    assert isinstance(openai_llm, OpenAILLM)
    assert openai_llm.model == "gpt-4o"
    assert openai_llm.provider == "openai"
