"""
Pain Point Extractor
基于规则从帖子中抽取痛点候选, 计算互动分并去重排序
"""
from typing import Dict, Iterable, List, Optional, Sequence
import re

from config import PipelineRules, get_rules
from models import (
    PainPoint,
    PainPointSource,
    RedditComment,
    RedditPost,
    engagement_score,
)


class PainPointExtractor:
    """
    痛点抽取器

    一段文本满足以下任一条件即视为候选:
    1. 包含抱怨关键词 (不区分大小写)
    2. 命中负面句式
    3. 带问号, 且同时出现 why/how 与 bad/slow/broken
    """

    NEWLINES = re.compile(r"\n+")

    def __init__(
        self,
        rules: Optional[PipelineRules] = None,
        max_pain_points: int = 100,
        content_max_chars: int = 200,
        dedup_prefix_chars: int = 50,
    ):
        """
        初始化抽取器

        Args:
            rules: 规则表, 默认使用全局规则
            max_pain_points: 输出上限
            content_max_chars: 正文/评论截断长度
            dedup_prefix_chars: 去重键长度
        """
        self.rules = rules or get_rules()
        self.max_pain_points = max_pain_points
        self.content_max_chars = content_max_chars
        self.dedup_prefix_chars = dedup_prefix_chars

    def extract(self, posts: Iterable[RedditPost]) -> List[PainPoint]:
        """
        抽取痛点

        Args:
            posts: 检索阶段输出的帖子

        Returns:
            去重后按互动分降序排列的候选, 最多 max_pain_points 条
        """
        candidates: List[PainPoint] = []
        for post in posts:
            candidates.extend(self._extract_from_post(post))
        return self._deduplicate_and_sort(candidates)

    def _extract_from_post(self, post: RedditPost) -> List[PainPoint]:
        found: List[PainPoint] = []
        post_engagement = engagement_score(post.score, post.num_comments)

        # 标题保持原文
        if post.title and self.contains_pain_point(post.title):
            found.append(PainPoint(
                id=f"{post.id}_title",
                content=post.title,
                source=PainPointSource.TITLE,
                score=post.score,
                num_comments=post.num_comments,
                subreddit=post.subreddit,
                url=post.url,
                created_utc=post.created_utc,
                engagement_score=post_engagement,
            ))

        if post.selftext and self.contains_pain_point(post.selftext):
            found.append(PainPoint(
                id=f"{post.id}_body",
                content=self.extract_relevant_text(post.selftext),
                source=PainPointSource.BODY,
                score=post.score,
                num_comments=post.num_comments,
                subreddit=post.subreddit,
                url=post.url,
                created_utc=post.created_utc,
                engagement_score=post_engagement,
            ))

        for comment in post.comments:
            candidate = self._extract_from_comment(post, comment)
            if candidate is not None:
                found.append(candidate)
        return found

    def _extract_from_comment(self, post: RedditPost, comment: RedditComment) -> Optional[PainPoint]:
        if not comment.body or not self.contains_pain_point(comment.body):
            return None
        # 评论的回复数不计入互动分
        return PainPoint(
            id=f"{comment.id}_reply",
            content=self.extract_relevant_text(comment.body),
            source=PainPointSource.REPLY,
            score=comment.score,
            num_comments=0,
            subreddit=post.subreddit,
            url=post.url,
            created_utc=comment.created_utc,
            engagement_score=engagement_score(comment.score, 0),
        )

    def contains_pain_point(self, text: str) -> bool:
        """判断文本是否包含痛点信号"""
        if not text:
            return False
        lowered = text.lower()

        if any(keyword in lowered for keyword in self.rules.complaint_keywords):
            return True

        if any(pattern.search(text) for pattern in self.rules.negative_patterns):
            return True

        return (
            "?" in lowered
            and any(token in lowered for token in self.rules.question_openers)
            and any(token in lowered for token in self.rules.question_negatives)
        )

    def extract_relevant_text(self, text: str) -> str:
        """合并换行并截断长文本"""
        cleaned = self.NEWLINES.sub(" ", text or "").strip()
        if len(cleaned) > self.content_max_chars:
            return cleaned[: self.content_max_chars] + "..."
        return cleaned

    def _deduplicate_and_sort(self, candidates: List[PainPoint]) -> List[PainPoint]:
        # 内容前缀相同视为重复, 保留先出现的一条
        seen = set()
        unique: List[PainPoint] = []
        for point in candidates:
            key = point.content.lower()[: self.dedup_prefix_chars]
            if key in seen:
                continue
            seen.add(key)
            unique.append(point)

        unique.sort(key=lambda point: point.engagement_score, reverse=True)
        return unique[: self.max_pain_points]


def filter_by_engagement(pain_points: Sequence[PainPoint], min_score: int = 2) -> List[PainPoint]:
    """保留互动分不低于阈值的候选"""
    return [point for point in pain_points if point.engagement_score >= min_score]


def apply_engagement_gate(pain_points: Sequence[PainPoint], min_score: int = 2) -> List[PainPoint]:
    """
    互动阈值过滤 (带放宽)

    过滤把非空集合清空时, 退回未过滤的集合
    """
    filtered = filter_by_engagement(pain_points, min_score)
    if not filtered and pain_points:
        return list(pain_points)
    return filtered


def group_by_subreddit(pain_points: Iterable[PainPoint]) -> Dict[str, List[PainPoint]]:
    """按 subreddit 分组, 组内保持原顺序"""
    groups: Dict[str, List[PainPoint]] = {}
    for point in pain_points:
        groups.setdefault(point.subreddit, []).append(point)
    return groups


def extract_pain_points(posts: Iterable[RedditPost], **kwargs) -> List[PainPoint]:
    """快捷函数: 使用默认规则抽取痛点"""
    return PainPointExtractor(**kwargs).extract(posts)
