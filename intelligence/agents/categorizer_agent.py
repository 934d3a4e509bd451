"""
Categorizer Agent
把痛点候选归入少量有名称、有描述的类别
"""
from typing import Any, Dict, List, Optional, Sequence
import asyncio
import logging

from pydantic import BaseModel, ConfigDict, Field

from config import PipelineRules, get_rules
from intelligence.llm import BaseLLM
from intelligence.parsing import parse_model
from intelligence.prompts import build_categorization_prompt
from models import PainPoint, PainPointCategory
from utils.exceptions import RateLimitError


logger = logging.getLogger(__name__)


class CategoryProposal(BaseModel):
    """LLM 给出的单个类别"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: Optional[str] = ""
    pain_point_indexes: List[Any] = Field(default_factory=list, alias="painPointIndexes")


class CategorizationResponse(BaseModel):
    """LLM 分类响应"""
    categories: List[CategoryProposal] = Field(default_factory=list)


def fallback_description(name: str) -> str:
    return f"Issues related to {name.lower()}"


class Categorizer:
    """
    分类器

    主路径: 一次请求, 只发送前 window 个候选, 按索引回填;
    兜底: 关键词规则表逐条匹配, 未命中归入 "Other Issues"
    """

    def __init__(
        self,
        llm: Optional[BaseLLM],
        rules: Optional[PipelineRules] = None,
        window: int = 50,
        timeout: float = 60.0,
    ):
        self.llm = llm
        self.rules = rules or get_rules()
        self.window = max(1, int(window))
        self.timeout = float(timeout)
        # 被限流的生成请求数 (调用方据此给出稍后重试提示)
        self.rate_limit_hits = 0

    async def categorize(self, pain_points: Sequence[PainPoint], term: str) -> List[PainPointCategory]:
        """
        分类

        Args:
            pain_points: 通过互动阈值的候选
            term: 搜索词

        Returns:
            类别列表 (未排序); 每个候选至多属于一个类别
        """
        points = list(pain_points)
        if not points:
            return []

        categories = await self._categorize_with_llm(points, term)
        if categories:
            logger.info(f"[Categorizer] AI produced {len(categories)} categories")
            return categories

        categories = self.fallback_categorize(points)
        logger.info(f"[Categorizer] Keyword fallback produced {len(categories)} categories")
        return categories

    async def _categorize_with_llm(self, points: List[PainPoint], term: str) -> List[PainPointCategory]:
        if self.llm is None:
            return []

        window = points[: self.window]
        try:
            text = await asyncio.wait_for(
                self.llm.achat(build_categorization_prompt(window, term)),
                timeout=self.timeout,
            )
        except Exception as exc:
            if isinstance(exc, RateLimitError):
                self.rate_limit_hits += 1
            logger.warning(f"[Categorizer] AI categorization failed, using fallback: {exc!r}")
            return []

        parsed = parse_model(text, CategorizationResponse)
        if not parsed.ok:
            logger.warning(f"[Categorizer] Unparsable categorization, using fallback: {parsed.error}")
            return []

        categories = self.build_categories(parsed.value, window)
        if len(window) < len(points):
            logger.info(f"[Categorizer] {len(points) - len(window)} pain points beyond the window were not categorized")
        return categories

    def build_categories(
        self,
        response: CategorizationResponse,
        window: Sequence[PainPoint],
    ) -> List[PainPointCategory]:
        """
        按索引回填类别

        丢弃非整数/越界索引; 已被前面类别占用的索引丢弃 (硬划分);
        同名类别合并; 空类别丢弃
        """
        claimed = set()
        order: List[str] = []
        members: Dict[str, List[PainPoint]] = {}
        descriptions: Dict[str, str] = {}

        for proposal in response.categories:
            name = (proposal.name or "").strip()
            if not name:
                continue
            for index in proposal.pain_point_indexes:
                if isinstance(index, bool) or not isinstance(index, int):
                    continue
                if index < 0 or index >= len(window) or index in claimed:
                    continue
                claimed.add(index)
                if name not in members:
                    order.append(name)
                    members[name] = []
                    descriptions[name] = (proposal.description or "").strip()
                members[name].append(window[index])

        return [
            PainPointCategory.from_members(name, descriptions[name], members[name])
            for name in order
        ]

    def fallback_categorize(self, pain_points: Sequence[PainPoint]) -> List[PainPointCategory]:
        """关键词兜底分类 (覆盖全部输入, 类别按首次出现顺序)"""
        groups: Dict[str, List[PainPoint]] = {}
        for point in pain_points:
            name = self.rules.fallback_category(point.content)
            groups.setdefault(name, []).append(point)

        return [
            PainPointCategory.from_members(name, fallback_description(name), members)
            for name, members in groups.items()
        ]
