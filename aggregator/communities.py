"""
Community Resolver
为搜索词挑选最可能出现抱怨讨论的 subreddit
"""
from typing import List, Optional
import asyncio
import logging
import re

from config import PipelineRules, get_rules
from intelligence.llm import BaseLLM
from intelligence.parsing import parse_json_array
from intelligence.prompts import build_community_prompt
from scrapers.base import BaseContentSource
from utils.exceptions import RateLimitError


logger = logging.getLogger(__name__)

_COMMUNITY_NAME_RE = re.compile(r"^[A-Za-z0-9_]{2,21}$")


class CommunityResolver:
    """
    社区解析

    依次尝试: LLM 推荐 -> 关键词映射表 -> 内容源自带的 subreddit 搜索 -> 通用列表
    """

    def __init__(
        self,
        llm: Optional[BaseLLM],
        source: Optional[BaseContentSource] = None,
        rules: Optional[PipelineRules] = None,
        max_communities: int = 8,
        timeout: float = 60.0,
    ):
        self.llm = llm
        self.source = source
        self.rules = rules or get_rules()
        self.max_communities = max(1, int(max_communities))
        self.timeout = float(timeout)
        # 被限流的生成请求数 (调用方据此给出稍后重试提示)
        self.rate_limit_hits = 0

    async def resolve(self, term: str) -> List[str]:
        suggested = await self._suggest_with_llm(term)
        if suggested:
            logger.info(f"[Communities] AI suggested for '{term}': {suggested}")
            return suggested
        return await self._fallback(term)

    async def _suggest_with_llm(self, term: str) -> List[str]:
        if self.llm is None:
            return []
        try:
            text = await asyncio.wait_for(
                self.llm.achat(build_community_prompt(term)),
                timeout=self.timeout,
            )
        except Exception as exc:
            if isinstance(exc, RateLimitError):
                self.rate_limit_hits += 1
            logger.warning(f"[Communities] AI suggestion failed for '{term}': {exc}")
            return []

        parsed = parse_json_array(text)
        if not parsed.ok:
            logger.warning(f"[Communities] Unparsable AI suggestion: {parsed.error}")
            return []
        return self._clean(parsed.value)

    async def _fallback(self, term: str) -> List[str]:
        mapped = self.rules.fallback_communities(term)
        if mapped:
            logger.info(f"[Communities] Using keyword fallback for '{term}'")
            return list(mapped)[: self.max_communities]

        if self.source is not None:
            try:
                found = await asyncio.wait_for(
                    self.source.resolve_communities(term, limit=self.max_communities),
                    timeout=self.timeout,
                )
                cleaned = self._clean(found)
                if cleaned:
                    logger.info(f"[Communities] Using {self.source.name} subreddit search for '{term}'")
                    return cleaned
            except Exception as exc:
                logger.warning(f"[Communities] Subreddit lookup failed for '{term}': {exc}")

        logger.info(f"[Communities] Using default communities for '{term}'")
        return list(self.rules.default_communities)[: self.max_communities]

    def _clean(self, names: list) -> List[str]:
        cleaned: List[str] = []
        seen = set()
        for raw in names or []:
            if not isinstance(raw, str):
                continue
            name = re.sub(r"^/?r/", "", raw.strip(), flags=re.IGNORECASE).strip("/ ")
            if not _COMMUNITY_NAME_RE.match(name):
                continue
            key = name.lower()
            if key in seen:
                continue
            seen.add(key)
            cleaned.append(name)
        return cleaned[: self.max_communities]
