"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class RedditSettings(BaseSettings):
    """Reddit API 配置"""
    client_id: Optional[str] = Field(default=None, description="Reddit Client ID")
    client_secret: Optional[str] = Field(default=None, description="Reddit Client Secret")
    user_agent: str = Field(default="PainPointer/1.0", description="User Agent")
    username: Optional[str] = Field(default=None, description="Script app 用户名 (可选)")
    password: Optional[str] = Field(default=None, description="Script app 密码 (可选)")
    requests_per_second: float = Field(default=5.0, description="客户端请求速率上限")

    class Config:
        env_prefix = "REDDIT_"


class LLMSettings(BaseSettings):
    """LLM 配置"""
    provider: str = Field(default="gemini", description="LLM提供商: gemini, openai")
    model_name: Optional[str] = Field(default=None, description="模型名称(不填则使用默认)")
    temperature: float = Field(default=0.4, description="生成温度")
    max_tokens: int = Field(default=4096, description="最大生成token数")

    # API Keys
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")

    class Config:
        env_prefix = "LLM_"

    def api_key_for(self, provider: Optional[str] = None) -> Optional[str]:
        provider = (provider or self.provider or "").lower()
        return {
            "gemini": self.gemini_api_key,
            "openai": self.openai_api_key,
        }.get(provider)


class AnalysisSettings(BaseSettings):
    """痛点分析流水线参数"""
    max_posts: int = Field(default=500, description="合并后保留的最大帖子数")

    # 各检索策略的预算 (在其子查询之间均分)
    direct_budget: int = Field(default=100, description="全站直接搜索预算")
    community_budget: int = Field(default=100, description="社区定向搜索预算")
    variation_budget: int = Field(default=80, description="抱怨变体搜索预算")
    time_sliced_budget: int = Field(default=70, description="时间分片搜索预算")
    max_communities: int = Field(default=8, description="最多搜索的 subreddit 数")

    # 抽取
    max_pain_points: int = Field(default=100, description="抽取阶段保留的候选上限")
    content_max_chars: int = Field(default=200, description="正文/回复截断长度")
    dedup_prefix_chars: int = Field(default=50, description="近似去重使用的前缀长度")

    # 过滤与分类
    min_engagement: int = Field(default=2, description="互动分阈值")
    relevance_batch_size: int = Field(default=10, description="相关性过滤每批条数")
    categorization_window: int = Field(default=50, description="发送给模型分类的候选上限")
    summary_evidence: int = Field(default=10, description="每个类别摘要使用的证据条数")
    top_categories: int = Field(default=10, description="结果中 top 类别数")

    # 超时 (秒)
    request_timeout: float = Field(default=30.0, description="单次 Reddit 请求超时")
    llm_timeout: float = Field(default=60.0, description="单次生成请求超时")

    # 回复抓取 (0 表示关闭)
    comments_per_post: int = Field(default=0, description="每个帖子抓取的顶层评论数")
    comment_posts: int = Field(default=10, description="抓取评论的帖子数")

    class Config:
        env_prefix = "ANALYSIS_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    reddit: RedditSettings = Field(default_factory=RedditSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            reddit=RedditSettings(),
            llm=LLMSettings(),
            analysis=AnalysisSettings(),
        )

    def missing_credentials(self) -> List[str]:
        """列出缺失的必需环境变量"""
        missing: List[str] = []
        if not self.reddit.client_id:
            missing.append("REDDIT_CLIENT_ID")
        if not self.reddit.client_secret:
            missing.append("REDDIT_CLIENT_SECRET")
        if not self.reddit.user_agent:
            missing.append("REDDIT_USER_AGENT")
        if not self.llm.api_key_for():
            missing.append(f"LLM_{(self.llm.provider or 'gemini').upper()}_API_KEY")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_reddit_settings() -> RedditSettings:
    return get_settings().reddit


def get_llm_settings() -> LLMSettings:
    return get_settings().llm


def get_analysis_settings() -> AnalysisSettings:
    return get_settings().analysis
