"""通用进度工具：进度条渲染、共享完成度与后台监视器。"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TextIO

IDLE = -1.0


@dataclass
class ProgressBar:
    prefix: str = ""
    width: int = 30
    stream: TextIO | None = None
    _active: bool = False

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def update(self, fraction: float, extra: str = "") -> None:
        self._active = True
        width = max(10, self.width)
        percent = min(max(fraction, 0.0), 1.0)
        filled = int(width * percent)
        bar = "#" * filled + "-" * (width - filled)
        base = f"{self.prefix} [{bar}] {percent*100:5.1f}%"
        if extra:
            base = f"{base} {extra}"
        out = self._out()
        out.write("\r" + base)
        out.flush()

    def finish(self, message: str = "") -> None:
        out = self._out()
        if message:
            out.write(("\r" if self._active else "") + message)
            self._active = True
        if self._active:
            out.write("\n")
            out.flush()
            self._active = False


class ProgressTracker:
    """
    Fraction of completion of the running search, or ``IDLE`` (-1) when no
    search is in progress.

    Written by the driver under its own lock and read by monitors without any
    locking. Float attribute reads and writes are atomic in CPython, and the
    value is advisory only: nothing relies on it for correctness.
    """

    def __init__(self) -> None:
        self.value = IDLE

    @property
    def running(self) -> bool:
        return self.value >= 0.0

    def start(self, initial: float = 0.0) -> None:
        self.value = float(initial)

    def advance(self, increment: float) -> None:
        self.value += increment

    def reset(self) -> None:
        self.value = IDLE


class ProgressMonitor:
    """
    Periodically renders a tracker's completion until the search signals the
    end by resetting the tracker, then prints a final 100% line once.
    """

    START_DELAY = 1.0
    INTERVAL = 10.0
    POLL = 0.1

    def __init__(self, tracker: ProgressTracker, stream: TextIO | None = None) -> None:
        self.tracker = tracker
        self.bar = ProgressBar(prefix="*** In process...", stream=stream)
        self.renders = 0

    def run(self) -> None:
        time.sleep(self.START_DELAY)
        next_render = time.monotonic()
        while True:
            value = self.tracker.value
            if value < 0.0:
                break
            now = time.monotonic()
            if now >= next_render:
                self.bar.update(value, extra="completed... ***")
                self.renders += 1
                next_render = now + self.INTERVAL
            time.sleep(self.POLL)
        self.bar.finish("### 100.0% completed ###")
