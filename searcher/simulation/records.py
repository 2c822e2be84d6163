"""
Search records: one immutable snapshot per evaluated model state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from operator import attrgetter
from typing import Any, Iterable, List


class Acceptance(enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BEST = "best"


class RecordPolicy(enum.Enum):
    """Which evaluated candidates are kept in the returned sequence."""

    NONE = "none"
    ACCEPTED_ONLY = "accepted"
    ALL = "all"

    @property
    def keeps_accepted(self) -> bool:
        return self is not RecordPolicy.NONE

    @property
    def keeps_rejected(self) -> bool:
        return self is RecordPolicy.ALL

    def keeps(self, acceptance: Acceptance) -> bool:
        if acceptance is Acceptance.REJECTED:
            return self.keeps_rejected
        return self.keeps_accepted


@dataclass(frozen=True)
class SearchRecord:
    iteration: int
    worker_id: int
    temperature: float
    state: Any
    n_data: int
    energy: float
    acceptance: Acceptance = Acceptance.REJECTED

    @property
    def accepted(self) -> bool:
        return self.acceptance is not Acceptance.REJECTED

    def with_acceptance(self, acceptance: Acceptance) -> "SearchRecord":
        return replace(self, acceptance=acceptance)

    def __str__(self) -> str:
        return (
            f"search# {self.iteration:3d} (T={self.temperature:g}, tid={self.worker_id:2d}):"
            f"\tminfo = ({format_state(self.state)})\tN = {self.n_data}\tE = {self.energy:g}"
            f" ({self.acceptance.value})"
        )


def format_state(state: Any) -> str:
    """模型状态的单行文本表示。"""
    tolist = getattr(state, "tolist", None)
    if callable(tolist):
        state = tolist()
    if isinstance(state, (list, tuple)):
        return " ".join(f"{v:g}" if isinstance(v, float) else str(v) for v in state)
    return str(state)


def sort_records(records: Iterable[SearchRecord]) -> List[SearchRecord]:
    # stable: the best echo stays behind the regular record sharing its iteration
    return sorted(records, key=attrgetter("iteration"))
