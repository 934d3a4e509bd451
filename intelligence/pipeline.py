"""
Pain Point Pipeline
搜索词驱动的端到端痛点分析流水线

检索 -> 抽取 -> 相关性过滤 -> 互动阈值 -> 分类 -> 摘要 -> 组装
"""
from datetime import datetime
from typing import Callable, List, Optional
import logging

from aggregator import CommunityResolver, SearchAggregator
from config import PipelineRules, Settings, get_rules, get_settings
from intelligence.agents import Categorizer, RelevanceFilter, Summarizer
from intelligence.llm import BaseLLM, get_llm
from models import AnalysisResult, PainPointCategory
from processing import PainPointExtractor, apply_engagement_gate
from scrapers import RedditScraper
from utils.exceptions import ConfigurationError, RateLimitError
from utils.progress import ProgressReporter, safe_report


logger = logging.getLogger(__name__)


NO_POSTS_MESSAGE = (
    "No posts found for this search term. "
    "Try a different search term or check if it's spelled correctly."
)
NO_PAIN_POINTS_MESSAGE = (
    "No complaints or pain points found in the posts. "
    "The discussions might be mostly positive."
)
RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."
PARTIAL_RATE_LIMIT_MESSAGE = (
    "Some requests were rate limited, so these results may be incomplete. "
    "Please try again later."
)


def validate_settings(settings: Settings) -> None:
    """缺少 Reddit 或 LLM 凭据时抛出 ConfigurationError"""
    missing = settings.missing_credentials()
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            missing=missing,
        )


def select_top_categories(categories: List[PainPointCategory], limit: int = 10) -> List[PainPointCategory]:
    """按数量降序 (稳定排序) 取前 limit 个"""
    return sorted(categories, key=lambda category: category.count, reverse=True)[: max(0, limit)]


class PainPointPipeline:
    """
    痛点分析流水线

    各阶段内部自行兜底; 只有配置错误, 以及检索因限流而完全为空的情况会抛给调用方;
    其余限流 (部分检索或生成请求) 以 rate_limited + 稍后重试提示的形式写入结果
    """

    def __init__(
        self,
        aggregator: SearchAggregator,
        llm: BaseLLM,
        settings: Optional[Settings] = None,
        rules: Optional[PipelineRules] = None,
        extractor: Optional[PainPointExtractor] = None,
        relevance_filter: Optional[RelevanceFilter] = None,
        categorizer: Optional[Categorizer] = None,
        summarizer: Optional[Summarizer] = None,
        reporter: Optional[ProgressReporter] = None,
        config_check: Optional[Callable[[], None]] = None,
    ):
        self.settings = settings or get_settings()
        self.rules = rules or get_rules()
        analysis = self.settings.analysis

        self.aggregator = aggregator
        self.llm = llm
        self.extractor = extractor or PainPointExtractor(
            rules=self.rules,
            max_pain_points=analysis.max_pain_points,
            content_max_chars=analysis.content_max_chars,
            dedup_prefix_chars=analysis.dedup_prefix_chars,
        )
        self.relevance_filter = relevance_filter or RelevanceFilter(
            llm,
            batch_size=analysis.relevance_batch_size,
            timeout=analysis.llm_timeout,
        )
        self.categorizer = categorizer or Categorizer(
            llm,
            rules=self.rules,
            window=analysis.categorization_window,
            timeout=analysis.llm_timeout,
        )
        self.summarizer = summarizer or Summarizer(
            llm,
            evidence_limit=analysis.summary_evidence,
            timeout=analysis.llm_timeout,
        )
        self.reporter = reporter
        self.config_check = config_check

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        reporter: Optional[ProgressReporter] = None,
        show_progress: bool = False,
    ) -> "PainPointPipeline":
        """
        按配置构建默认协作者 (Reddit + 配置的 LLM 供应商)

        Raises:
            ConfigurationError: 缺少必需凭据
        """
        settings = settings or get_settings()
        validate_settings(settings)
        analysis = settings.analysis
        rules = get_rules()

        llm = get_llm(
            provider=settings.llm.provider,
            model=settings.llm.model_name,
            api_key=settings.llm.api_key_for(),
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            timeout=analysis.llm_timeout,
        )
        source = RedditScraper(settings.reddit)
        resolver = CommunityResolver(
            llm,
            source=source,
            rules=rules,
            max_communities=analysis.max_communities,
            timeout=analysis.llm_timeout,
        )
        aggregator = SearchAggregator(
            source,
            community_resolver=resolver,
            settings=analysis,
            rules=rules,
            show_progress=show_progress,
        )
        return cls(
            aggregator,
            llm,
            settings=settings,
            rules=rules,
            reporter=reporter,
            config_check=lambda: validate_settings(settings),
        )

    def _report(self, stage: str, message: str, progress: int, details: Optional[str] = None) -> None:
        safe_report(self.reporter, stage, message, progress, details)

    def _empty_result(self, term: str, message: str, rate_limited: bool = False) -> AnalysisResult:
        self._report("complete", message, 100)
        return AnalysisResult(
            search_term=term,
            total_pain_points=0,
            message=message,
            rate_limited=rate_limited,
        )

    def _generation_rate_limit_hits(self) -> int:
        """各生成阶段累计被限流的请求数"""
        stages = [
            getattr(self.aggregator, "community_resolver", None),
            self.relevance_filter,
            self.categorizer,
            self.summarizer,
        ]
        return sum(getattr(stage, "rate_limit_hits", 0) for stage in stages)

    async def analyze(self, term: str) -> AnalysisResult:
        """
        分析搜索词

        Args:
            term: 搜索词

        Returns:
            AnalysisResult

        Raises:
            ConfigurationError: 配置缺失 (在任何外部调用之前)
            RateLimitError: 检索为空且至少一个子查询被限流
        """
        if self.config_check is not None:
            self.config_check()

        term = (term or "").strip()
        if not term:
            raise ValueError("Search term is required")

        logger.info(f"[Pipeline] Starting analysis for: {term}")
        hits_before = self._generation_rate_limit_hits()

        def rate_limited() -> bool:
            return report.rate_limited or self._generation_rate_limit_hits() > hits_before

        # 1. 检索
        self._report("searching", f"Searching Reddit for '{term}'", 10)
        report = await self.aggregator.search_with_report(term)
        posts = report.posts
        logger.info(f"[Pipeline] Found {len(posts)} posts")

        if not posts:
            if report.rate_limited:
                raise RateLimitError(RATE_LIMIT_MESSAGE, source="reddit")
            return self._empty_result(term, NO_POSTS_MESSAGE, rate_limited=rate_limited())
        self._report("searching", f"Found {len(posts)} posts", 35, details=self._strategy_details(report))

        # 2. 规则抽取
        self._report("extracting", "Extracting pain points", 40)
        candidates = self.extractor.extract(posts)
        logger.info(f"[Pipeline] Extracted {len(candidates)} pain points")
        if not candidates:
            return self._empty_result(term, NO_PAIN_POINTS_MESSAGE, rate_limited=rate_limited())

        # 3. 相关性过滤
        self._report("filtering", f"Checking relevance of {len(candidates)} pain points", 50)
        relevant = await self.relevance_filter.filter(candidates, term)
        logger.info(f"[Pipeline] {len(relevant)} pain points passed the relevance filter")
        if not relevant:
            return self._empty_result(term, NO_PAIN_POINTS_MESSAGE, rate_limited=rate_limited())

        # 4. 互动阈值 (过滤为空时放宽)
        gated = apply_engagement_gate(relevant, self.settings.analysis.min_engagement)
        logger.info(f"[Pipeline] Filtered to {len(gated)} high-engagement pain points")

        # 5. 分类
        self._report("categorizing", f"Categorizing {len(gated)} pain points", 65)
        categories = await self.categorizer.categorize(gated, term)

        # 6. 摘要
        self._report("summarizing", f"Summarizing {len(categories)} categories", 85)
        categories = await self.summarizer.summarize_all(categories)

        # 7. 组装
        limited = rate_limited()
        if limited:
            logger.warning("[Pipeline] Some requests were rate limited; results may be incomplete")
        result = AnalysisResult(
            search_term=term,
            analyzed_at=datetime.now(),
            categories=categories,
            top_categories=select_top_categories(categories, self.settings.analysis.top_categories),
            total_pain_points=len(gated),
            message=PARTIAL_RATE_LIMIT_MESSAGE if limited else None,
            rate_limited=limited,
        )
        logger.info(f"[Pipeline] Analysis complete: {len(categories)} categories created")
        self._report("complete", f"Found {len(categories)} categories", 100)
        return result

    @staticmethod
    def _strategy_details(report) -> str:
        return ", ".join(f"{name}: {count}" for name, count in report.strategy_counts.items())

    async def close(self):
        await self.aggregator.close()
        await self.llm.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def analyze_pain_points(
    term: str,
    settings: Optional[Settings] = None,
    reporter: Optional[ProgressReporter] = None,
    show_progress: bool = False,
) -> AnalysisResult:
    """
    便捷函数: 按配置构建流水线, 分析后关闭所有客户端

    Example:
        result = await analyze_pain_points("notion")
        for category in result.top_categories:
            print(category.name, category.count)
    """
    pipeline = PainPointPipeline.from_settings(
        settings=settings,
        reporter=reporter,
        show_progress=show_progress,
    )
    async with pipeline:
        return await pipeline.analyze(term)
