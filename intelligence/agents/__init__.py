"""
Agents Module
相关性过滤 / 分类 / 摘要
"""
from .relevance_agent import RelevanceFilter, RelevanceVerdict, parse_verdicts
from .categorizer_agent import (
    Categorizer,
    CategorizationResponse,
    CategoryProposal,
    fallback_description,
)
from .summarizer_agent import Summarizer, fallback_summary

__all__ = [
    "RelevanceFilter",
    "RelevanceVerdict",
    "parse_verdicts",
    "Categorizer",
    "CategorizationResponse",
    "CategoryProposal",
    "fallback_description",
    "Summarizer",
    "fallback_summary",
]
