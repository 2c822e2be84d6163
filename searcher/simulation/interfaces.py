"""
Capabilities the searcher needs from the caller.

The driver is generic over any pair of objects satisfying these two
protocols; it never inspects the model state itself.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable


@runtime_checkable
class ModelSpace(Protocol):
    """
    Search space holding the current model state.

    ``perturb`` is called concurrently from several workers and must return a
    new candidate object without mutating the space. ``set_state`` is only
    called by the driver while it holds its lock, and once at the end of a run.
    """

    state: Any

    def perturb(self) -> Any: ...

    def set_state(self, state: Any) -> None: ...


@runtime_checkable
class DataHandler(Protocol):
    """Energy (misfit) evaluator; must not mutate anything shared."""

    def energy(self, state: Any) -> Tuple[float, int]: ...
