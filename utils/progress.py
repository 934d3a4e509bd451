"""
Progress Reporting
阶段进度回调 (流水线不依赖其返回值)
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging
import time

from rich.console import Console


logger = logging.getLogger(__name__)


@dataclass
class ProgressEvent:
    """一次进度更新"""
    stage: str
    message: str
    progress: int
    details: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


class ProgressReporter:
    """
    进度报告器基类

    默认实现为 no-op, 流水线在 no-op 与真实报告器下行为一致
    """

    def update(
        self,
        stage: str,
        message: str,
        progress: int,
        details: Optional[str] = None,
    ) -> None:
        return None


class ConsoleProgressReporter(ProgressReporter):
    """使用 Rich 在终端打印阶段进度"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def update(
        self,
        stage: str,
        message: str,
        progress: int,
        details: Optional[str] = None,
    ) -> None:
        suffix = f" - {details}" if details else ""
        self.console.print(
            f"📊 [bold cyan][{progress:>3}%][/bold cyan] [magenta]{stage}[/magenta]: {message}{suffix}"
        )


class RecordingProgressReporter(ProgressReporter):
    """记录所有进度事件 (便于调用方轮询或测试)"""

    def __init__(self):
        self.events: List[ProgressEvent] = []

    def update(
        self,
        stage: str,
        message: str,
        progress: int,
        details: Optional[str] = None,
    ) -> None:
        self.events.append(ProgressEvent(stage, message, progress, details))

    @property
    def latest(self) -> Optional[ProgressEvent]:
        return self.events[-1] if self.events else None


def safe_report(
    reporter: Optional[ProgressReporter],
    stage: str,
    message: str,
    progress: int,
    details: Optional[str] = None,
) -> None:
    """调用报告器, 报告器自身的异常只记录不上抛"""
    if reporter is None:
        return
    try:
        reporter.update(stage, message, progress, details)
    except Exception as exc:
        logger.warning(f"[Progress] reporter failed at stage '{stage}': {exc}")
