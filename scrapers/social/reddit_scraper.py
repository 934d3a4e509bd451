"""
Reddit Scraper
从 Reddit 抓取帖子与评论
"""
from typing import Any, Callable, List, Optional
import logging

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from scrapers.base import RateLimitedContentSource
from models import RedditComment, RedditPost
from config import RedditSettings, get_settings
from utils.exceptions import ConfigurationError, RateLimitError, ScraperError


logger = logging.getLogger(__name__)


def _is_transient(exc: BaseException) -> bool:
    """仅对非限流的抓取错误重试"""
    return isinstance(exc, ScraperError) and not isinstance(exc, RateLimitError)


_retry_transient = retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


class RedditScraper(RateLimitedContentSource):
    """
    Reddit 抓取器
    使用 PRAW (Python Reddit API Wrapper)
    """

    def __init__(self, settings: Optional[RedditSettings] = None):
        self._reddit_settings = settings or get_settings().reddit
        super().__init__(requests_per_second=self._reddit_settings.requests_per_second)
        self._reddit = None

    @property
    def name(self) -> str:
        return "Reddit"

    def is_configured(self) -> bool:
        return bool(
            self._reddit_settings.client_id and
            self._reddit_settings.client_secret
        )

    def _get_reddit(self):
        """获取 Reddit 客户端"""
        if self._reddit is None:
            if not self.is_configured():
                raise ConfigurationError(
                    "Reddit API configuration is missing",
                    missing=["REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET"],
                )
            import praw

            credentials = {
                "client_id": self._reddit_settings.client_id,
                "client_secret": self._reddit_settings.client_secret,
                "user_agent": self._reddit_settings.user_agent,
            }
            # script app 可以使用账号密码认证, 否则为只读模式
            if self._reddit_settings.username and self._reddit_settings.password:
                credentials["username"] = self._reddit_settings.username
                credentials["password"] = self._reddit_settings.password
            self._reddit = praw.Reddit(**credentials)
        return self._reddit

    async def _call(self, description: str, func: Callable[..., Any], *args) -> Any:
        """限速后在线程中执行 praw 调用, 并将异常归类"""
        from prawcore.exceptions import TooManyRequests

        await self._wait_for_rate_limit()
        try:
            return await self._run_blocking(func, *args)
        except (ConfigurationError, ScraperError):
            raise
        except TooManyRequests as exc:
            raise RateLimitError(f"{description}: rate limited", source=self.name) from exc
        except Exception as exc:
            message = str(exc)
            if "429" in message or "rate limit" in message.lower():
                raise RateLimitError(f"{description}: {message}", source=self.name) from exc
            raise ScraperError(f"{description}: {message}", source=self.name) from exc

    @_retry_transient
    async def query_global(
        self,
        query: str,
        sort: str = "relevance",
        time_filter: str = "all",
        limit: int = 25,
    ) -> List[RedditPost]:
        submissions = await self._call(
            f"Global search failed for '{query}'",
            self._sync_search,
            "all",
            query,
            sort,
            time_filter,
            limit,
        )
        posts = [self._convert_to_post(s) for s in submissions]
        self._log_search(query, len(posts))
        return posts

    @_retry_transient
    async def query_in_community(
        self,
        community: str,
        query: str,
        sort: str = "relevance",
        time_filter: str = "all",
        limit: int = 25,
    ) -> List[RedditPost]:
        submissions = await self._call(
            f"Search in r/{community} failed for '{query}'",
            self._sync_search,
            community,
            query,
            sort,
            time_filter,
            limit,
        )
        posts = [self._convert_to_post(s) for s in submissions]
        self._log_search(f"r/{community}: {query}", len(posts))
        return posts

    @_retry_transient
    async def resolve_communities(self, term: str, limit: int = 5) -> List[str]:
        subreddits = await self._call(
            f"Subreddit lookup failed for '{term}'",
            self._sync_find_subreddits,
            term,
            limit,
        )
        return [sub.display_name for sub in subreddits]

    @_retry_transient
    async def get_comments(self, post_id: str, limit: int = 20) -> List[RedditComment]:
        comments = await self._call(
            f"Failed to get comments for post {post_id}",
            self._sync_get_comments,
            post_id,
            limit,
        )
        return [self._convert_to_comment(c) for c in comments]

    def _sync_search(
        self,
        subreddit_name: str,
        query: str,
        sort: str,
        time_filter: str,
        limit: int,
    ) -> list:
        """同步搜索"""
        reddit = self._get_reddit()
        subreddit = reddit.subreddit(subreddit_name)
        return list(subreddit.search(
            query=query,
            sort=sort,
            time_filter=time_filter,
            limit=limit,
        ))

    def _sync_find_subreddits(self, term: str, limit: int) -> list:
        reddit = self._get_reddit()
        return list(reddit.subreddits.search(term, limit=limit))

    def _sync_get_comments(self, post_id: str, limit: int) -> list:
        reddit = self._get_reddit()
        submission = reddit.submission(id=post_id)
        submission.comment_sort = "top"
        # 只取已加载的顶层评论, 不展开 "more comments"
        submission.comments.replace_more(limit=0)
        return list(submission.comments)[:limit]

    def _convert_to_post(self, submission) -> RedditPost:
        """将 Reddit Submission 转换为 RedditPost"""
        return RedditPost(
            id=submission.id,
            title=submission.title or "",
            selftext=submission.selftext or "",
            score=submission.score or 0,
            num_comments=submission.num_comments or 0,
            subreddit=submission.subreddit.display_name,
            url=f"https://reddit.com{submission.permalink}",
            created_utc=float(submission.created_utc or 0.0),
            author=submission.author.name if submission.author else "[deleted]",
        )

    def _convert_to_comment(self, comment) -> RedditComment:
        return RedditComment(
            id=comment.id,
            body=getattr(comment, "body", "") or "",
            score=getattr(comment, "score", 0) or 0,
            created_utc=float(getattr(comment, "created_utc", 0.0) or 0.0),
            author=comment.author.name if getattr(comment, "author", None) else "[deleted]",
        )


# 便捷函数
async def search_reddit(
    query: str,
    max_results: int = 50,
    sort: str = "relevance",
    time_filter: str = "all",
) -> List[RedditPost]:
    """便捷函数：全站搜索 Reddit"""
    async with RedditScraper() as scraper:
        return await scraper.query_global(query, sort=sort, time_filter=time_filter, limit=max_results)
