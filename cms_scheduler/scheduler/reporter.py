"""
Pass outcome reporting

A PassReport collects what one publish() or unpublish() pass did. The cron
layer combines both passes into a CronResult.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from cms_scheduler.utils.metrics import record_pass_error, record_transition


@dataclass
class PassReport:
    process: str
    transitioned: Counter = field(default_factory=Counter)
    handled: int = 0
    failed: int = 0
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        """True when at least one item was transitioned."""
        return sum(self.transitioned.values()) > 0

    def record_committed(self, entity_type: str, handled: bool = False) -> None:
        self.transitioned[entity_type] += 1
        if handled:
            self.handled += 1
        record_transition(entity_type, self.process, "handled" if handled else "committed")

    def record_failure(self, entity_type: str, message: str) -> None:
        self.failed += 1
        self.warnings.append(message)
        record_transition(entity_type, self.process, "failed")

    def record_error(self, message: str) -> None:
        self.error = message
        record_pass_error(self.process)

    def to_dict(self) -> dict[str, Any]:
        return {
            "process": self.process,
            "changed": self.changed,
            "transitioned": dict(self.transitioned),
            "handled": self.handled,
            "failed": self.failed,
            "warnings": list(self.warnings),
            "error": self.error,
        }


@dataclass
class CronResult:
    trigger: str
    publish: PassReport | None = None
    unpublish: PassReport | None = None
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return any(report is not None and report.changed for report in (self.publish, self.unpublish))

    @property
    def errors(self) -> list[str]:
        return [r.error for r in (self.publish, self.unpublish) if r is not None and r.error]

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger,
            "skipped": self.skipped,
            "changed": self.changed,
            "publish": self.publish.to_dict() if self.publish else None,
            "unpublish": self.unpublish.to_dict() if self.unpublish else None,
        }
