"""
Data Models / Schemas
定义流水线中流转的统一数据结构
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import math
import re

from pydantic import BaseModel, ConfigDict, Field


class PainPointSource(str, Enum):
    """痛点来源字段"""
    TITLE = "title"
    BODY = "body"
    REPLY = "reply"


class RedditComment(BaseModel):
    """Reddit 评论 (帖子的子文档, 无标题)"""
    id: str = Field(..., description="评论ID")
    body: str = Field(default="", description="评论内容")
    score: int = Field(default=0, description="得分")
    num_comments: int = Field(default=0, description="回复数")
    created_utc: float = Field(default=0.0, description="创建时间 (UTC 秒)")
    author: str = Field(default="[deleted]", description="作者")


class RedditPost(BaseModel):
    """Reddit 帖子"""
    id: str = Field(..., description="帖子ID")
    title: str = Field(..., description="标题")
    selftext: str = Field(default="", description="正文")
    score: int = Field(default=0, description="得分 (upvotes)")
    num_comments: int = Field(default=0, description="评论数")
    subreddit: str = Field(default="", description="所属 subreddit")
    url: str = Field(default="", description="帖子链接")
    created_utc: float = Field(default=0.0, description="创建时间 (UTC 秒)")
    author: str = Field(default="[deleted]", description="作者")
    comments: List[RedditComment] = Field(default_factory=list, description="评论")

    @property
    def engagement(self) -> Tuple[int, int]:
        """(得分, 评论数)"""
        return self.score, self.num_comments

    @property
    def ranking_score(self) -> int:
        """检索阶段的排序分: 得分 + 评论数"""
        return self.score + self.num_comments

    def is_substantive(self, min_title_chars: int = 15) -> bool:
        """有标题, 且有正文或标题足够长 (过滤纯链接帖)"""
        title = self.title or ""
        if not title.strip():
            return False
        return bool((self.selftext or "").strip()) or len(title) > min_title_chars


def engagement_score(score: int, num_comments: int) -> int:
    """互动分: 评论权重是得分的两倍"""
    return int(score) + int(num_comments) * 2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_engagement(pain_points: Sequence["PainPoint"]) -> int:
    """平均互动分 (四舍五入取整, 空集为 0)"""
    if not pain_points:
        return 0
    total = sum(point.engagement_score for point in pain_points)
    return round_half_up(total / len(pain_points))


def slugify(name: str) -> str:
    """类别名 -> 稳定 ID"""
    slug = re.sub(r"\s+", "-", (name or "").lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


class PainPoint(BaseModel):
    """
    痛点候选

    创建后不可变; 相关性过滤阶段可通过 model_copy 替换 content
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="由来源 ID + 来源字段派生")
    content: str = Field(..., description="痛点文本")
    source: PainPointSource = Field(..., description="来源字段")
    score: int = Field(default=0, description="来源得分")
    num_comments: int = Field(default=0, description="来源评论数")
    subreddit: str = Field(default="", description="来源 subreddit")
    url: str = Field(default="", description="来源链接")
    created_utc: float = Field(default=0.0, description="来源时间")
    engagement_score: int = Field(default=0, description="score + 2 * num_comments")

    def with_content(self, content: str) -> "PainPoint":
        return self.model_copy(update={"content": content})


class PainPointCategory(BaseModel):
    """痛点类别"""
    id: str = Field(..., description="由名称派生的 slug")
    name: str = Field(..., description="类别名称")
    description: str = Field(default="", description="类别描述")
    pain_points: List[PainPoint] = Field(default_factory=list, description="成员")
    count: int = Field(default=0, description="成员数")
    average_engagement: int = Field(default=0, description="平均互动分")
    summary: str = Field(default="", description="摘要 (由摘要阶段填充)")

    @classmethod
    def from_members(
        cls,
        name: str,
        description: str,
        members: Sequence[PainPoint],
    ) -> "PainPointCategory":
        members = list(members)
        return cls(
            id=slugify(name),
            name=name,
            description=description,
            pain_points=members,
            count=len(members),
            average_engagement=average_engagement(members),
        )


class AnalysisResult(BaseModel):
    """分析结果 (唯一对外输出结构)"""
    search_term: str = Field(..., description="搜索词")
    analyzed_at: datetime = Field(default_factory=datetime.now, description="分析时间")
    categories: List[PainPointCategory] = Field(default_factory=list, description="全部类别")
    top_categories: List[PainPointCategory] = Field(default_factory=list, description="按数量排序的 top 类别")
    total_pain_points: int = Field(default=0, description="进入分类阶段的候选数")
    message: Optional[str] = Field(default=None, description="空结果或被限流时的提示信息")
    rate_limited: bool = Field(default=False, description="是否有请求被限流 (结果可能不完整, 稍后重试)")
