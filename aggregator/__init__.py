"""
Aggregator Module
多策略检索聚合
"""
from .communities import CommunityResolver
from .search_aggregator import (
    SearchAggregator,
    SearchReport,
    StrategyOutcome,
    QueryFailure,
    STRATEGY_ORDER,
    per_query_limit,
)

__all__ = [
    "CommunityResolver",
    "SearchAggregator",
    "SearchReport",
    "StrategyOutcome",
    "QueryFailure",
    "STRATEGY_ORDER",
    "per_query_limit",
]
