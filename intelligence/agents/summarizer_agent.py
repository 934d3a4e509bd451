"""
Summarizer Agent
为每个类别生成 2-3 句摘要
"""
from typing import List, Sequence
import asyncio
import logging

from intelligence.llm import BaseLLM
from intelligence.prompts import build_summary_prompt
from models import PainPointCategory
from utils.exceptions import RateLimitError


logger = logging.getLogger(__name__)


def fallback_summary(name: str) -> str:
    return f"Common issues related to {name.lower()}"


class Summarizer:
    """类别摘要生成器, 任何失败都退回固定模板"""

    def __init__(self, llm: BaseLLM, evidence_limit: int = 10, timeout: float = 60.0):
        self.llm = llm
        self.evidence_limit = max(1, int(evidence_limit))
        self.timeout = float(timeout)
        # 被限流的生成请求数 (调用方据此给出稍后重试提示)
        self.rate_limit_hits = 0

    async def summarize(self, category: PainPointCategory) -> str:
        evidence = category.pain_points[: self.evidence_limit]
        try:
            text = await asyncio.wait_for(
                self.llm.achat(build_summary_prompt(category.name, evidence)),
                timeout=self.timeout,
            )
        except Exception as exc:
            if isinstance(exc, RateLimitError):
                self.rate_limit_hits += 1
            logger.warning(f"[Summarizer] Summary for '{category.name}' failed: {exc!r}")
            return fallback_summary(category.name)

        summary = (text or "").strip()
        if not summary:
            logger.warning(f"[Summarizer] Empty summary for '{category.name}'")
            return fallback_summary(category.name)
        return summary

    async def summarize_all(self, categories: Sequence[PainPointCategory]) -> List[PainPointCategory]:
        """并发生成全部摘要, 在汇合点统一回填"""
        categories = list(categories)
        summaries = await asyncio.gather(*(self.summarize(category) for category in categories))
        return [
            category.model_copy(update={"summary": summary})
            for category, summary in zip(categories, summaries)
        ]
