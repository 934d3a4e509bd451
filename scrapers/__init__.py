"""
Scrapers Module
"""
from .base import BaseContentSource, RateLimitedContentSource
from .social import RedditScraper, search_reddit

__all__ = [
    "BaseContentSource",
    "RateLimitedContentSource",
    "RedditScraper",
    "search_reddit",
]
