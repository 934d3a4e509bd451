"""
Processing Module
痛点处理模块 - 规则抽取、互动过滤、分组
"""
from .extractor import (
    PainPointExtractor,
    filter_by_engagement,
    apply_engagement_gate,
    group_by_subreddit,
    extract_pain_points,
)

__all__ = [
    "PainPointExtractor",
    "filter_by_engagement",
    "apply_engagement_gate",
    "group_by_subreddit",
    "extract_pain_points",
]
