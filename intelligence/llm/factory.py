"""
LLM Factory
工厂函数 - 根据配置自动创建 LLM 实例
"""
from typing import Optional
import logging

from .base import BaseLLM
from .openai_llm import OpenAILLM
from .gemini_llm import GeminiLLM


logger = logging.getLogger(__name__)


# 默认模型配置
DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
}


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从 .env 读取配置，也可手动指定

    Args:
        provider: LLM 供应商 (gemini, openai)
        model: 模型名称 (不传则使用默认)
        **kwargs: 额外参数 (temperature, max_tokens, timeout 等)

    Returns:
        BaseLLM 实例

    Example:
        # 使用 .env 配置
        llm = get_llm()

        # 指定供应商和模型
        llm = get_llm(provider="openai", model="gpt-4o")
    """
    from config import get_llm_settings

    settings = get_llm_settings()

    provider = (provider or settings.provider or "gemini").lower()
    model = model or settings.model_name or DEFAULT_MODELS.get(provider)
    api_key = kwargs.pop("api_key", None) or settings.api_key_for(provider)

    default_params = {
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    for key, value in default_params.items():
        if key not in kwargs:
            kwargs[key] = value

    if provider == "gemini":
        return GeminiLLM(
            model=model,
            api_key=api_key,
            **kwargs,
        )
    elif provider == "openai":
        return OpenAILLM(
            model=model,
            api_key=api_key,
            base_url=kwargs.pop("base_url", None),
            **kwargs,
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")
