from __future__ import annotations

from typing import Any, List

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Quiet mode: prints nothing but keeps warnings and errors.

    The retained messages let API callers and tests inspect what a run
    reported without any console output.
    """

    def __init__(self) -> None:
        self.warnings: List[str] = []
        self.errors: List[str] = []

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        pass

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        pass

    def status(self, message: str, **fields: Any) -> None:
        pass

    def warning(self, message: str, **fields: Any) -> None:
        self.warnings.append(message)

    def error(self, message: str, **fields: Any) -> None:
        self.errors.append(message)

    def section(self, title: str) -> None:
        pass
