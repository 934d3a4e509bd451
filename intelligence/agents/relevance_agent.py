"""
Relevance Agent
用 LLM 剔除与搜索词无关的候选, 并把保留的候选改写为清晰的痛点描述
"""
from typing import List, Optional, Sequence
import asyncio
import logging

from pydantic import BaseModel, StrictBool, TypeAdapter, ValidationError

from intelligence.llm import BaseLLM
from intelligence.parsing import ParseResult, parse_json_array
from intelligence.prompts import build_relevance_prompt
from models import PainPoint
from utils.exceptions import RateLimitError


logger = logging.getLogger(__name__)


class RelevanceVerdict(BaseModel):
    """单条候选的判定"""
    relevant: StrictBool
    restatement: Optional[str] = ""


_VERDICTS = TypeAdapter(List[RelevanceVerdict])


def parse_verdicts(text: str, expected: int) -> ParseResult:
    """
    解析批次判定

    只有长度与批次一致、且每项 relevant 均为布尔值时才算有效
    """
    parsed = parse_json_array(text)
    if not parsed.ok:
        return parsed
    try:
        verdicts = _VERDICTS.validate_python(parsed.value)
    except ValidationError as exc:
        return ParseResult.failure("Malformed relevance verdicts", errors=exc.error_count())
    if len(verdicts) != expected:
        return ParseResult.failure(
            "Relevance verdict count mismatch",
            expected=expected,
            received=len(verdicts),
        )
    return ParseResult.success(verdicts)


class RelevanceFilter:
    """
    相关性过滤

    候选按 batch_size 分批, 所有批次并发请求;
    任一批次失败 (请求异常/超时/响应异常) 时该批原样保留
    """

    def __init__(self, llm: BaseLLM, batch_size: int = 10, timeout: float = 60.0):
        self.llm = llm
        self.batch_size = max(1, int(batch_size))
        self.timeout = float(timeout)
        # 被限流的生成请求数 (调用方据此给出稍后重试提示)
        self.rate_limit_hits = 0

    async def filter(self, pain_points: Sequence[PainPoint], term: str) -> List[PainPoint]:
        """
        过滤候选

        Args:
            pain_points: 抽取阶段输出
            term: 搜索词

        Returns:
            保留的候选 (保持输入顺序, 数量不超过输入)
        """
        points = list(pain_points)
        if not points:
            return []

        batches = [points[i: i + self.batch_size] for i in range(0, len(points), self.batch_size)]
        logger.info(f"[Relevance] Checking {len(points)} pain points in {len(batches)} batches")

        results = await asyncio.gather(
            *(self._filter_batch(index, batch, term) for index, batch in enumerate(batches))
        )

        kept: List[PainPoint] = []
        for batch_result in results:
            kept.extend(batch_result)

        logger.info(f"[Relevance] Kept {len(kept)}/{len(points)} pain points")
        return kept

    async def _filter_batch(self, index: int, batch: List[PainPoint], term: str) -> List[PainPoint]:
        try:
            text = await asyncio.wait_for(
                self.llm.achat(build_relevance_prompt(batch, term)),
                timeout=self.timeout,
            )
        except Exception as exc:
            if isinstance(exc, RateLimitError):
                self.rate_limit_hits += 1
            logger.warning(f"[Relevance] Batch {index} request failed, keeping batch: {exc!r}")
            return list(batch)

        parsed = parse_verdicts(text, len(batch))
        if not parsed.ok:
            logger.warning(f"[Relevance] Batch {index} unusable, keeping batch: {parsed.error}")
            return list(batch)

        kept: List[PainPoint] = []
        for point, verdict in zip(batch, parsed.value):
            if not verdict.relevant:
                continue
            restatement = (verdict.restatement or "").strip()
            kept.append(point.with_content(restatement) if restatement else point)
        return kept
