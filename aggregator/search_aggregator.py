"""
Search Aggregator
并发执行多种检索策略, 合并去重后按互动排序
"""
from dataclasses import dataclass, field
from typing import Awaitable, Dict, List, Optional, Sequence, Tuple
import asyncio
import logging

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import AnalysisSettings, PipelineRules, get_rules, get_settings
from models import RedditPost
from scrapers.base import BaseContentSource
from utils.exceptions import RateLimitError
from .communities import CommunityResolver


logger = logging.getLogger(__name__)
console = Console(stderr=True)


STRATEGY_DIRECT = "direct"
STRATEGY_COMMUNITY = "community"
STRATEGY_VARIATION = "variation"
STRATEGY_TIME_SLICED = "time_sliced"

# 合并顺序固定, 保证去重结果可复现
STRATEGY_ORDER: Tuple[str, ...] = (
    STRATEGY_DIRECT,
    STRATEGY_COMMUNITY,
    STRATEGY_VARIATION,
    STRATEGY_TIME_SLICED,
)


@dataclass
class QueryFailure:
    """一次失败的子查询"""
    strategy: str
    query: str
    error: BaseException

    @property
    def rate_limited(self) -> bool:
        return isinstance(self.error, RateLimitError)


@dataclass
class StrategyOutcome:
    """单个策略的输出 (子查询结果按固定顺序拼接)"""
    name: str
    posts: List[RedditPost] = field(default_factory=list)
    failures: List[QueryFailure] = field(default_factory=list)


@dataclass
class SearchReport:
    """检索报告"""
    term: str
    posts: List[RedditPost] = field(default_factory=list)
    strategy_counts: Dict[str, int] = field(default_factory=dict)
    failures: List[QueryFailure] = field(default_factory=list)

    @property
    def rate_limited(self) -> bool:
        return any(failure.rate_limited for failure in self.failures)


def per_query_limit(budget: int, fan_out: int) -> int:
    """策略预算在子查询之间均分 (至少为 1)"""
    return max(1, int(budget) // max(1, int(fan_out)))


class SearchAggregator:
    """
    检索聚合器

    四种策略并发执行:
    - direct: 全站相关性搜索
    - community: 在推荐的 subreddit 中分别搜索
    - variation: 搜索词 + 抱怨后缀 (近一年)
    - time_sliced: 不同时间窗口的 top 帖子, 缓解单次查询的时效偏差
    """

    def __init__(
        self,
        source: BaseContentSource,
        community_resolver: Optional[CommunityResolver] = None,
        settings: Optional[AnalysisSettings] = None,
        rules: Optional[PipelineRules] = None,
        show_progress: bool = False,
    ):
        self.source = source
        self.settings = settings or get_settings().analysis
        self.rules = rules or get_rules()
        self.community_resolver = community_resolver or CommunityResolver(
            llm=None,
            source=source,
            rules=self.rules,
            max_communities=self.settings.max_communities,
        )
        self.show_progress = show_progress

    async def search(self, term: str) -> List[RedditPost]:
        """
        检索帖子

        Args:
            term: 搜索词

        Returns:
            按 (score + num_comments) 降序排列的帖子, 最多 max_posts 条;
            全部策略失败或无结果时返回空列表
        """
        report = await self.search_with_report(term)
        return report.posts

    async def search_with_report(self, term: str) -> SearchReport:
        jobs: List[Tuple[str, Awaitable[StrategyOutcome]]] = [
            (STRATEGY_DIRECT, self._direct_search(term)),
            (STRATEGY_COMMUNITY, self._community_search(term)),
            (STRATEGY_VARIATION, self._variation_search(term)),
            (STRATEGY_TIME_SLICED, self._time_sliced_search(term)),
        ]
        tasks = [self._run_strategy(name, coro) for name, coro in jobs]

        logger.info(f"[Aggregator] Executing {len(tasks)} search strategies in parallel for '{term}'")
        if self.show_progress:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task(
                    f"[cyan]Running {len(tasks)} search strategies...",
                    total=None,
                )
                outcomes = await asyncio.gather(*tasks)
                progress.update(task, completed=True)
        else:
            outcomes = await asyncio.gather(*tasks)

        report = self._merge(term, outcomes)
        report.posts = await self._attach_comments(report.posts)

        if not report.posts:
            logger.info(
                f"[Aggregator] No results found for '{term}' "
                f"({len(report.failures)} failed sub-queries)"
            )
        else:
            logger.info(f"[Aggregator] Search completed: {len(report.posts)} unique posts for '{term}'")

        if self.show_progress:
            self._print_summary(report)
        return report

    def _merge(self, term: str, outcomes: Sequence[StrategyOutcome]) -> SearchReport:
        """按固定策略顺序合并, 先到先得"""
        by_name = {outcome.name: outcome for outcome in outcomes}
        report = SearchReport(term=term)
        seen_ids = set()
        merged: List[RedditPost] = []

        for name in STRATEGY_ORDER:
            outcome = by_name.get(name) or StrategyOutcome(name=name)
            report.strategy_counts[name] = len(outcome.posts)
            report.failures.extend(outcome.failures)
            for post in outcome.posts:
                if post.id in seen_ids:
                    continue
                seen_ids.add(post.id)
                merged.append(post)

        merged.sort(key=lambda post: post.ranking_score, reverse=True)
        report.posts = merged[: max(0, self.settings.max_posts)]
        return report

    async def _run_strategy(self, name: str, coro: Awaitable[StrategyOutcome]) -> StrategyOutcome:
        try:
            outcome = await coro
        except Exception as exc:
            logger.warning(f"[Aggregator] {name} strategy failed: {exc}")
            return StrategyOutcome(name=name, failures=[QueryFailure(name, "*", exc)])
        logger.info(
            f"[Aggregator] {name} strategy found {len(outcome.posts)} posts"
            + (f" ({len(outcome.failures)} sub-queries failed)" if outcome.failures else "")
        )
        return outcome

    async def _run_query(
        self,
        strategy: str,
        label: str,
        coro: Awaitable[List[RedditPost]],
    ) -> Tuple[List[RedditPost], Optional[QueryFailure]]:
        """执行单个子查询: 超时与异常都只影响自身"""
        try:
            posts = await asyncio.wait_for(coro, timeout=float(self.settings.request_timeout))
        except Exception as exc:
            logger.warning(f"[Aggregator] {strategy} sub-query '{label}' skipped: {exc!r}")
            return [], QueryFailure(strategy, label, exc)
        return [post for post in posts if post.is_substantive()], None

    async def _fan_out(
        self,
        strategy: str,
        queries: Sequence[Tuple[str, Awaitable[List[RedditPost]]]],
    ) -> StrategyOutcome:
        results = await asyncio.gather(
            *(self._run_query(strategy, label, coro) for label, coro in queries)
        )
        outcome = StrategyOutcome(name=strategy)
        for posts, failure in results:
            outcome.posts.extend(posts)
            if failure is not None:
                outcome.failures.append(failure)
        return outcome

    async def _direct_search(self, term: str) -> StrategyOutcome:
        """全站直接搜索"""
        limit = per_query_limit(self.settings.direct_budget, 1)
        return await self._fan_out(
            STRATEGY_DIRECT,
            [(term, self.source.query_global(term, sort="relevance", time_filter="all", limit=limit))],
        )

    async def _community_search(self, term: str) -> StrategyOutcome:
        """在推荐的 subreddit 中并发搜索"""
        communities = await self.community_resolver.resolve(term)
        if not communities:
            return StrategyOutcome(name=STRATEGY_COMMUNITY)
        limit = per_query_limit(self.settings.community_budget, len(communities))
        return await self._fan_out(
            STRATEGY_COMMUNITY,
            [
                (
                    f"r/{community}",
                    self.source.query_in_community(
                        community, term, sort="relevance", time_filter="all", limit=limit
                    ),
                )
                for community in communities
            ],
        )

    async def _variation_search(self, term: str) -> StrategyOutcome:
        """抱怨导向的搜索变体 (近一年)"""
        variations = [f"{term} {suffix}" for suffix in self.rules.variation_suffixes]
        limit = per_query_limit(self.settings.variation_budget, len(variations))
        return await self._fan_out(
            STRATEGY_VARIATION,
            [
                (variation, self.source.query_global(variation, sort="relevance", time_filter="year", limit=limit))
                for variation in variations
            ],
        )

    async def _time_sliced_search(self, term: str) -> StrategyOutcome:
        """按时间窗口分别取 top 帖子"""
        windows = list(self.rules.time_windows)
        limit = per_query_limit(self.settings.time_sliced_budget, len(windows))
        return await self._fan_out(
            STRATEGY_TIME_SLICED,
            [
                (window, self.source.query_global(term, sort="top", time_filter=window, limit=limit))
                for window in windows
            ],
        )

    async def _attach_comments(self, posts: List[RedditPost]) -> List[RedditPost]:
        """为排名靠前的帖子抓取顶层评论 (comments_per_post 为 0 时关闭)"""
        per_post = int(self.settings.comments_per_post)
        if per_post <= 0 or not posts:
            return posts

        head = posts[: max(0, self.settings.comment_posts)]

        async def _fetch(post: RedditPost) -> RedditPost:
            try:
                comments = await asyncio.wait_for(
                    self.source.get_comments(post.id, limit=per_post),
                    timeout=float(self.settings.request_timeout),
                )
            except Exception as exc:
                logger.warning(f"[Aggregator] Comments for post {post.id} skipped: {exc!r}")
                return post
            return post.model_copy(update={"comments": list(comments)})

        enriched = await asyncio.gather(*(_fetch(post) for post in head))
        return list(enriched) + posts[len(head):]

    def _print_summary(self, report: SearchReport):
        """打印检索摘要"""
        table = Table(title="📊 Search Summary", show_header=True)
        table.add_column("Strategy", style="cyan")
        table.add_column("Posts", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")

        failed: Dict[str, int] = {}
        for failure in report.failures:
            failed[failure.strategy] = failed.get(failure.strategy, 0) + 1

        for name in STRATEGY_ORDER:
            table.add_row(name, str(report.strategy_counts.get(name, 0)), str(failed.get(name, 0)))

        table.add_row("", "", "")
        table.add_row("[bold]Unique[/bold]", f"[bold]{len(report.posts)}[/bold]", "")
        console.print(table)

    async def close(self):
        await self.source.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
