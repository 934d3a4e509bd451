"""Tests for the command line entrypoint."""

from __future__ import annotations

import json

import main as cli
from models import AnalysisResult, PainPointCategory
from utils.exceptions import ConfigurationError, RateLimitError


def _patch_analyze(monkeypatch, outcome, seen=None):
    async def fake_analyze(term, settings=None, reporter=None, show_progress=False):
        if seen is not None:
            seen.update(term=term, settings=settings, reporter=reporter)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    monkeypatch.setattr(cli, "analyze_pain_points", fake_analyze)


def test_analyze_prints_json(monkeypatch, capsys, settings):
    category = PainPointCategory(id="sync", name="Sync", count=2, summary="Sync breaks.")
    result = AnalysisResult(search_term="notion", categories=[category], top_categories=[category], total_pain_points=2)
    seen = {}
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, result, seen)

    code = cli.main(["analyze", "notion", "--json", "--min-engagement", "5", "--max-posts", "50"])

    assert code == cli.EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["search_term"] == "notion"
    assert payload["top_categories"][0]["name"] == "Sync"
    assert seen["reporter"] is None
    assert seen["settings"].analysis.min_engagement == 5
    assert seen["settings"].analysis.max_posts == 50
    # cached settings are not mutated
    assert settings.analysis.max_posts == 500


def test_analyze_renders_table(monkeypatch, capsys, settings):
    category = PainPointCategory(id="sync", name="Sync", count=2, summary="Sync breaks.")
    result = AnalysisResult(search_term="notion", categories=[category], top_categories=[category], total_pain_points=2)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, result)

    assert cli.main(["analyze", "notion", "--quiet"]) == cli.EXIT_OK
    assert "Sync breaks." in capsys.readouterr().out


def test_rate_limit_exit_code(monkeypatch, capsys, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, RateLimitError("429"))

    assert cli.main(["analyze", "notion", "--quiet"]) == cli.EXIT_RATE_LIMIT
    assert "API rate limit exceeded. Please try again later." in capsys.readouterr().err


def test_configuration_error_exit_code(monkeypatch, capsys, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, ConfigurationError("Missing credentials", missing=["REDDIT_CLIENT_ID"]))

    assert cli.main(["analyze", "notion", "--quiet"]) == cli.EXIT_CONFIG
    assert "REDDIT_CLIENT_ID" in capsys.readouterr().err


def test_health(monkeypatch, capsys, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)

    assert cli.main(["health"]) == cli.EXIT_OK
    assert json.loads(capsys.readouterr().out)["status"] == "healthy"

    broken = settings.model_copy(update={"reddit": settings.reddit.model_copy(update={"client_secret": None})})
    monkeypatch.setattr(cli, "get_settings", lambda: broken)

    assert cli.main(["health"]) == cli.EXIT_CONFIG
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "error"
    assert "REDDIT_CLIENT_SECRET" in payload["error"]


def test_blank_term_is_rejected_before_analysis(monkeypatch, capsys, settings):
    seen = {}
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, AnalysisResult(search_term="unused"), seen)

    assert cli.main(["analyze", "   ", "--json"]) == cli.EXIT_USAGE
    assert "Search term is required" in capsys.readouterr().err
    assert seen == {}


def test_rate_limited_result_shows_retry_guidance_and_table(monkeypatch, capsys, settings):
    category = PainPointCategory(id="sync", name="Sync", count=2, summary="Sync breaks.")
    result = AnalysisResult(
        search_term="notion",
        categories=[category],
        top_categories=[category],
        total_pain_points=2,
        message="Please try again later.",
        rate_limited=True,
    )
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    _patch_analyze(monkeypatch, result)

    assert cli.main(["analyze", "notion", "--quiet"]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Please try again later." in out
    assert "Sync breaks." in out
