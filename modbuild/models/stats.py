"""
Dataclasses for tracking build session statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class ToolInvocation:
    """One call of a compiler or test runner."""

    name: str
    args: list[str]
    result: int
    duration_seconds: float = 0.0


@dataclass
class PhaseRecord:
    """Outcome of a single build phase."""

    name: str
    duration_seconds: float = 0.0
    skipped: bool = False
    skip_reason: str | None = None


@dataclass
class BuildStats:
    """Tracks statistics for a build session."""

    artifacts_downloaded: int = 0
    artifacts_cached: int = 0
    bytes_downloaded: int = 0
    dry_run: bool = False
    phases: list[PhaseRecord] = field(default_factory=list)
    invocations: list[ToolInvocation] = field(default_factory=list)
    _start_time: float = field(default=0.0, repr=False)

    def __post_init__(self):
        self._start_time = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._start_time

    @property
    def phases_completed(self) -> list[str]:
        return [phase.name for phase in self.phases if not phase.skipped]

    def record_phase(
        self, name: str, duration_seconds: float, skip_reason: str | None = None
    ) -> PhaseRecord:
        record = PhaseRecord(
            name=name,
            duration_seconds=duration_seconds,
            skipped=skip_reason is not None,
            skip_reason=skip_reason,
        )
        self.phases.append(record)
        return record
