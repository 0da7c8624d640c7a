"""Weighted multi-step progress tracking.

A job's overall progress is split into equally weighted steps, one per
pipeline stage. Each stage reports ``(current, total)`` through a
``ProgressSink`` bound to its step index.
"""

import threading
from typing import Optional, Protocol


class ProgressSink(Protocol):
    """Receives ``(current, total)`` progress reports."""

    def report(self, current: int, total: int) -> None: ...


class ProgressMeter:
    """Thread-safe progress fraction over a fixed number of steps."""

    def __init__(self, steps: int):
        self.steps = steps
        self._lock = threading.Lock()
        self._progress = 0.0

    def progress(self) -> float:
        with self._lock:
            return self._progress

    @property
    def finished(self) -> bool:
        return self.progress() >= 1.0

    def finish_now(self) -> None:
        """Force the meter to 1.0, whatever stage it was in."""
        with self._lock:
            self._progress = 1.0

    def step(self, n: int) -> "StepProgress":
        """Return a sink that reports progress for step ``n``."""
        return StepProgress(self, n)

    def _update(self, n: int, current: int, total: int) -> None:
        fraction = min(1.0, max(0.0, current / max(1, total)))
        with self._lock:
            self._progress = (n + fraction) / max(1, self.steps)

    def __repr__(self) -> str:
        return f"ProgressMeter(steps={self.steps}, progress={self.progress():.3f})"


class StepProgress:
    """ProgressSink bound to one step of a ProgressMeter."""

    def __init__(self, meter: ProgressMeter, index: int):
        self.meter = meter
        self.index = index

    def report(self, current: int, total: int) -> None:
        self.meter._update(self.index, current, total)


def progress_of(meter: Optional[ProgressMeter]) -> float:
    """Progress of ``meter``, 0.0 if it does not exist yet."""
    if meter is None:
        return 0.0
    return meter.progress()
