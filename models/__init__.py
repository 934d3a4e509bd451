"""
Data Models
"""
from .schemas import (
    PainPointSource,
    RedditComment,
    RedditPost,
    PainPoint,
    PainPointCategory,
    AnalysisResult,
    engagement_score,
    average_engagement,
    round_half_up,
    slugify,
)

__all__ = [
    "PainPointSource",
    "RedditComment",
    "RedditPost",
    "PainPoint",
    "PainPointCategory",
    "AnalysisResult",
    "engagement_score",
    "average_engagement",
    "round_half_up",
    "slugify",
]
