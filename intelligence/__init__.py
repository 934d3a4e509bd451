"""
Intelligence Module
智能层 - LLM 抽象 + 响应解析 + 相关性/分类/摘要 Agent

流水线位于 intelligence.pipeline (依赖 aggregator, 不在此处导入)
"""
from .llm import (
    BaseLLM,
    OpenAILLM,
    GeminiLLM,
    get_llm,
)
from .parsing import ParseResult, parse_json_array, parse_json_object, parse_model
from .agents import RelevanceFilter, Categorizer, Summarizer

__all__ = [
    # LLM
    "BaseLLM",
    "OpenAILLM",
    "GeminiLLM",
    "get_llm",
    # Parsing
    "ParseResult",
    "parse_json_array",
    "parse_json_object",
    "parse_model",
    # Agents
    "RelevanceFilter",
    "Categorizer",
    "Summarizer",
]
