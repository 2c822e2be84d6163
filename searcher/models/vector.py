"""
Bounded real-vector model space.
"""

from __future__ import annotations

import threading
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray


def _as_bounds(values: Optional[Sequence[float] | float], dim: int, name: str) -> Optional[NDArray[np.floating]]:
    if values is None:
        return None
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return np.full(dim, float(arr))
    if arr.shape != (dim,):
        raise ValueError(f"{name} 的长度必须与 x0 相同。")
    return arr


class VectorModelSpace:
    """
    Model space whose states are float vectors.

    ``perturb`` draws a Gaussian step around the current state. With both
    bounds given, the step of each component scales with the span of its
    bounds, otherwise with ``max(1, |x_i|)``; candidates are clipped to the
    bounds. Draws from the shared generator are serialized, so perturbation is
    safe from several worker threads.
    """

    def __init__(
        self,
        x0: Sequence[float],
        step: float = 0.1,
        lower: Optional[Sequence[float] | float] = None,
        upper: Optional[Sequence[float] | float] = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        x = np.asarray(x0, dtype=float)
        if x.ndim != 1 or x.size == 0:
            raise ValueError("x0 必须是非空的一维向量。")
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        self.dim = x.size
        self.step = float(step)
        self.lower = _as_bounds(lower, self.dim, "lower")
        self.upper = _as_bounds(upper, self.dim, "upper")
        if self.lower is not None and self.upper is not None and np.any(self.lower > self.upper):
            raise ValueError("lower bounds must not exceed upper bounds")
        self.rng = np.random.default_rng() if rng is None else rng
        self._rng_lock = threading.Lock()
        self.state = self.clip(x)

    def clip(self, x: NDArray[np.floating]) -> NDArray[np.floating]:
        if self.lower is None and self.upper is None:
            return np.array(x, dtype=float)
        return np.clip(x, self.lower, self.upper)

    def _scales(self, current: NDArray[np.floating]) -> NDArray[np.floating]:
        if self.lower is not None and self.upper is not None:
            return self.step * (self.upper - self.lower)
        return self.step * np.maximum(1.0, np.abs(current))

    def perturb(self) -> NDArray[np.floating]:
        current = self.state
        with self._rng_lock:
            noise = self.rng.normal(size=self.dim)
        return self.clip(current + noise * self._scales(current))

    def set_state(self, state: Sequence[float]) -> None:
        x = np.array(state, dtype=float)
        if x.shape != (self.dim,):
            raise ValueError(f"state must have shape ({self.dim},), got {x.shape}")
        self.state = x
