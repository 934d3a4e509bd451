"""
Base Content Source
所有内容源抓取器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import Callable, List, TypeVar
import asyncio
import logging
import time

from models import RedditComment, RedditPost


logger = logging.getLogger(__name__)

R = TypeVar("R")


class BaseContentSource(ABC):
    """
    内容源抽象基类

    调用失败必须抛出可捕获的异常 (ScraperError / RateLimitError),
    与"零结果" (空列表) 区分开
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """返回内容源名称"""
        pass

    @abstractmethod
    async def query_global(
        self,
        query: str,
        sort: str = "relevance",
        time_filter: str = "all",
        limit: int = 25,
    ) -> List[RedditPost]:
        """
        全站搜索

        Args:
            query: 搜索关键词
            sort: 排序方式 (relevance, hot, top, new, comments)
            time_filter: 时间范围 (hour, day, week, month, year, all)
            limit: 最大返回结果数
        """
        pass

    @abstractmethod
    async def query_in_community(
        self,
        community: str,
        query: str,
        sort: str = "relevance",
        time_filter: str = "all",
        limit: int = 25,
    ) -> List[RedditPost]:
        """在单个社区内搜索"""
        pass

    @abstractmethod
    async def resolve_communities(self, term: str, limit: int = 5) -> List[str]:
        """按关键词查找相关社区名称"""
        pass

    async def get_comments(self, post_id: str, limit: int = 20) -> List[RedditComment]:
        """获取帖子的顶层评论 (默认不支持, 返回空列表)"""
        return []

    def is_configured(self) -> bool:
        """
        检查是否已正确配置
        子类可以覆盖此方法来检查必要的API密钥等
        """
        return True

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源"""
        return None

    async def _run_blocking(self, func: Callable[..., R], *args, **kwargs) -> R:
        """在线程池中执行阻塞函数，统一替代 run_in_executor 样板代码。"""
        return await asyncio.to_thread(func, *args, **kwargs)

    def _log_search(self, query: str, count: int):
        """记录搜索日志"""
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")


class RateLimitedContentSource(BaseContentSource):
    """
    带速率限制的内容源基类
    """

    def __init__(self, requests_per_second: float = 1.0):
        self._rate_limit = max(0.1, float(requests_per_second))
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        """等待满足速率限制"""
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            min_interval = 1.0 / self._rate_limit

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

            self._last_request_time = time.monotonic()
