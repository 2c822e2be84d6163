from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike


class PolynomialMisfit:
    """
    Half-squared L2 misfit of a polynomial (highest degree first) against
    observations ``(x, y)``. Observations with a non-finite value are ignored
    and not counted.
    """

    def __init__(self, x: ArrayLike, y: ArrayLike) -> None:
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.shape != y.shape or x.ndim != 1:
            raise ValueError("x and y must be 1-D arrays of the same length")
        mask = np.isfinite(x) & np.isfinite(y)
        self.x = x[mask]
        self.y = y[mask]

    @classmethod
    def from_file(cls, path: str | Path) -> "PolynomialMisfit":
        """Load two whitespace-separated columns (x, y); '#' starts a comment."""
        data = np.loadtxt(path, dtype=float, ndmin=2)
        if data.shape[1] < 2:
            raise ValueError(f"{path}: expected at least two columns, got {data.shape[1]}")
        return cls(data[:, 0], data[:, 1])

    @property
    def n_data(self) -> int:
        return int(self.x.size)

    def predict(self, coefs: ArrayLike) -> np.ndarray:
        return np.polyval(np.asarray(coefs, dtype=float), self.x)

    def energy(self, coefs: ArrayLike) -> Tuple[float, int]:
        if self.n_data == 0:
            return float("inf"), 0
        with np.errstate(over="ignore", invalid="ignore"):
            residual = self.predict(coefs) - self.y
            value = 0.5 * float(np.mean(residual ** 2))
        if not np.isfinite(value):
            value = float("inf")
        return value, self.n_data
