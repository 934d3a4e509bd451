"""
Custom Exceptions
自定义异常类
"""


class PainPointerError(Exception):
    """痛点分析基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(PainPointerError):
    """配置错误 (缺少凭证等), 整个运行立即终止"""

    def __init__(self, message: str, missing: list = None):
        super().__init__(message, {"missing": list(missing)} if missing else None)
        self.missing = list(missing or [])


class ScraperError(PainPointerError):
    """抓取器错误"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class LLMError(PainPointerError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class ResponseParseError(LLMError):
    """LLM 响应无法解析为预期结构"""
    pass


class RateLimitError(LLMError, ScraperError):
    """
    速率限制 / 配额耗尽

    同时属于抓取错误和生成错误, 局部降级处理;
    当它导致检索结果为空时上抛给调用方; 其余情况在结果中标记 rate_limited (稍后重试)
    """

    def __init__(self, message: str, source: str = None, provider: str = None, **kwargs):
        PainPointerError.__init__(self, message, kwargs)
        self.source = source
        self.provider = provider
