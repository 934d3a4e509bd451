"""
Social Media Scrapers
"""
from .reddit_scraper import RedditScraper, search_reddit

__all__ = [
    "RedditScraper",
    "search_reddit",
]
