from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TraceStep:
    title: str
    summary: str | None = None
    data: Any | None = None
    failed: bool = False


@dataclass
class RunTrace:
    steps: list[TraceStep] = field(default_factory=list)

    def add(
        self,
        title: str,
        *,
        summary: str | None = None,
        data: Any | None = None,
        failed: bool = False,
    ) -> None:
        self.steps.append(TraceStep(title=title, summary=summary, data=data, failed=failed))

    @property
    def titles(self) -> list[str]:
        return [step.title for step in self.steps]

    def to_list(self) -> list[dict[str, Any]]:
        return [
            {"title": s.title, "summary": s.summary, "data": s.data, "failed": s.failed}
            for s in self.steps
        ]
