"""
Utils Module
通用工具函数
"""
from .logger import setup_logger, get_logger, configure_package_logging
from .exceptions import (
    PainPointerError,
    ConfigurationError,
    ScraperError,
    LLMError,
    ResponseParseError,
    RateLimitError,
)
from .progress import ProgressReporter, ConsoleProgressReporter

__all__ = [
    "setup_logger",
    "get_logger",
    "configure_package_logging",
    "PainPointerError",
    "ConfigurationError",
    "ScraperError",
    "LLMError",
    "ResponseParseError",
    "RateLimitError",
    "ProgressReporter",
    "ConsoleProgressReporter",
]
