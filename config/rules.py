"""
Rule Tables
关键词 / 模式 / 变体 / 兜底分类等固定规则表

进程启动时构建一次, 以不可变对象的形式传入各阶段
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Pattern, Tuple
import re


COMPLAINT_KEYWORDS: Tuple[str, ...] = (
    # Direct complaints
    "hate", "awful", "terrible", "worst", "horrible", "annoying", "frustrating",
    "useless", "broken", "buggy", "slow", "expensive", "overpriced",
    # Problem indicators
    "problem", "issue", "bug", "error", "fail", "crash", "freeze", "glitch",
    "doesn't work", "not working", "stopped working",
    # Negative experiences
    "disappointed", "regret", "waste", "scam", "rip off", "avoid", "never again",
    "poor quality", "bad experience", "customer service", "support",
    # Improvement needs
    "should fix", "needs to", "wish they would", "hope they", "better if",
    "why can't", "when will", "still waiting",
)

NEGATIVE_PATTERNS: Tuple[str, ...] = (
    r"why (does|is|are|do) .+ (so|such) .+ (bad|awful|terrible|slow|expensive)",
    r"can't believe .+ (still|doesn't|won't)",
    r"(hate|dislike) (how|that|when) .+",
    r"wish .+ (would|could|didn't) .+",
    r"(sick|tired) (of|from) .+",
    r"what's wrong with .+",
    r"(anyone else|does anyone) (hate|dislike|have problems) .+",
)

SEARCH_VARIATION_SUFFIXES: Tuple[str, ...] = (
    "problems",
    "issues",
    "complaints",
    "broken",
    "disappointed",
    "hate",
    "sucks",
    "terrible",
    "awful",
    "worst",
)

TIME_WINDOWS: Tuple[str, ...] = ("week", "month", "year", "all")


@dataclass(frozen=True)
class CategoryRule:
    """兜底分类规则: 名称 + 关键词"""
    name: str
    keywords: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)


@dataclass(frozen=True)
class CommunityRule:
    """搜索词 -> subreddit 兜底映射"""
    triggers: Tuple[str, ...]
    communities: Tuple[str, ...]

    def matches(self, term: str) -> bool:
        lowered = term.lower()
        return any(trigger in lowered for trigger in self.triggers)


FALLBACK_CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("Performance Issues", ("slow", "lag", "freeze", "crash", "performance", "speed")),
    CategoryRule("User Interface", ("ui", "interface", "design", "layout", "confusing", "hard to use")),
    CategoryRule("Bugs & Errors", ("bug", "error", "broken", "not working", "glitch", "fail")),
    CategoryRule("Pricing & Value", ("expensive", "price", "cost", "money", "overpriced", "cheap")),
    CategoryRule("Customer Service", ("support", "service", "help", "response", "staff", "rude")),
    CategoryRule("Feature Requests", ("wish", "should", "need", "want", "missing", "add")),
    CategoryRule("Quality Issues", ("quality", "poor", "bad", "terrible", "awful", "horrible")),
)

CATCH_ALL_CATEGORY = "Other Issues"

COMMUNITY_RULES: Tuple[CommunityRule, ...] = (
    CommunityRule(
        ("iphone", "apple", "ios"),
        ("apple", "iphone", "ios", "mobilephones", "smartphones", "technology"),
    ),
    CommunityRule(
        ("tesla", "model 3", "model y", "model s"),
        ("tesla", "teslamotors", "electricvehicles", "cars", "automotive"),
    ),
    CommunityRule(
        ("netflix", "streaming"),
        ("netflix", "streaming", "cordcutters", "television", "movies"),
    ),
    CommunityRule(
        ("windows", "microsoft"),
        ("windows", "microsoft", "windows10", "windows11", "techsupport"),
    ),
    CommunityRule(
        ("playstation", "ps5", "ps4"),
        ("playstation", "ps5", "ps4", "gaming", "console"),
    ),
    CommunityRule(
        ("xbox",),
        ("xbox", "xboxone", "gaming", "console"),
    ),
)

DEFAULT_COMMUNITIES: Tuple[str, ...] = (
    "technology",
    "gadgets",
    "reviews",
    "complaints",
    "mildlyinfuriating",
    "assholedesign",
)


@dataclass(frozen=True)
class PipelineRules:
    """流水线使用的全部规则表"""
    complaint_keywords: Tuple[str, ...] = COMPLAINT_KEYWORDS
    negative_patterns: Tuple[Pattern, ...] = field(
        default_factory=lambda: tuple(re.compile(p, re.IGNORECASE) for p in NEGATIVE_PATTERNS)
    )
    question_openers: Tuple[str, ...] = ("why", "how")
    question_negatives: Tuple[str, ...] = ("bad", "slow", "broken")
    variation_suffixes: Tuple[str, ...] = SEARCH_VARIATION_SUFFIXES
    time_windows: Tuple[str, ...] = TIME_WINDOWS
    category_rules: Tuple[CategoryRule, ...] = FALLBACK_CATEGORY_RULES
    catch_all_category: str = CATCH_ALL_CATEGORY
    community_rules: Tuple[CommunityRule, ...] = COMMUNITY_RULES
    default_communities: Tuple[str, ...] = DEFAULT_COMMUNITIES

    def fallback_communities(self, term: str) -> Optional[Tuple[str, ...]]:
        """按关键词表匹配 subreddit, 未命中返回 None"""
        for rule in self.community_rules:
            if rule.matches(term):
                return rule.communities
        return None

    def fallback_category(self, text: str) -> str:
        """按顺序匹配第一个命中的兜底类别"""
        for rule in self.category_rules:
            if rule.matches(text):
                return rule.name
        return self.catch_all_category


@lru_cache()
def get_rules() -> PipelineRules:
    """获取全局规则表单例"""
    return PipelineRules()
