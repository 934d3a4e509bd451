"""
Response Parsing
将 LLM 的松散文本响应解析为结构化数据

解析永不抛异常: 返回 ParseResult, 失败时携带 ResponseParseError
"""
from dataclasses import dataclass
from typing import Any, Generic, Iterator, Optional, Type, TypeVar
import json
import re

from pydantic import BaseModel, ValidationError

from utils.exceptions import ResponseParseError


T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*([\s\S]*?)\s*```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


@dataclass
class ParseResult(Generic[T]):
    """解析结果: 成功时 value 有效, 失败时 error 说明原因"""
    value: Optional[T] = None
    error: Optional[ResponseParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, **details) -> "ParseResult[T]":
        return cls(error=ResponseParseError(message, **details))


def strip_code_fences(text: str) -> str:
    """去掉 ```json ... ``` 包裹, 没有代码块时原样返回"""
    raw = str(text or "").strip().lstrip("\ufeff")
    match = _FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw


def _balanced_blocks(text: str, opener: str) -> Iterator[str]:
    """按出现顺序产出以 opener 开头且括号配平的片段 (跳过字符串内的括号)"""
    closer = "]" if opener == "[" else "}"
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    yield text[start: idx + 1]
                    break
        start = text.find(opener, start + 1)


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return json.loads(_TRAILING_COMMA_RE.sub(r"\1", candidate))


def parse_json(text: str, expected: type) -> ParseResult:
    """
    从响应文本中提取 JSON 值

    Args:
        text: LLM 原始响应
        expected: 期望的顶层类型 (list 或 dict)
    """
    kind = "array" if expected is list else "object"
    cleaned = strip_code_fences(text)
    if not cleaned:
        return ParseResult.failure("Empty response", expected=kind)

    try:
        parsed = _loads(cleaned)
        if isinstance(parsed, expected):
            return ParseResult.success(parsed)
    except json.JSONDecodeError:
        pass

    opener = "[" if expected is list else "{"
    for block in _balanced_blocks(cleaned, opener):
        try:
            parsed = _loads(block)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, expected):
            return ParseResult.success(parsed)

    return ParseResult.failure(f"No JSON {kind} found in response", preview=cleaned[:120])


def parse_json_array(text: str) -> ParseResult:
    return parse_json(text, list)


def parse_json_object(text: str) -> ParseResult:
    return parse_json(text, dict)


def parse_model(text: str, model: Type[M]) -> ParseResult:
    """解析 JSON 对象并用 pydantic 模型校验"""
    result = parse_json_object(text)
    if not result.ok:
        return result
    try:
        return ParseResult.success(model.model_validate(result.value))
    except ValidationError as exc:
        return ParseResult.failure(
            f"Response does not match {model.__name__}",
            errors=exc.error_count(),
        )
