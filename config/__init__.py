"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    RedditSettings,
    LLMSettings,
    AnalysisSettings,
    get_settings,
    get_reddit_settings,
    get_llm_settings,
    get_analysis_settings,
)
from .rules import CategoryRule, CommunityRule, PipelineRules, get_rules

__all__ = [
    "Settings",
    "RedditSettings",
    "LLMSettings",
    "AnalysisSettings",
    "get_settings",
    "get_reddit_settings",
    "get_llm_settings",
    "get_analysis_settings",
    "CategoryRule",
    "CommunityRule",
    "PipelineRules",
    "get_rules",
]
