"""Metropolis acceptance rule."""

from __future__ import annotations

import math


def metropolis_accept(energy: float, new_energy: float, temperature: float, draw: float) -> bool:
    """
    Decide whether a candidate replaces the current state.

    A strict improvement is always accepted. A worse candidate is accepted
    when ``draw`` (uniform on [0, 1)) falls below ``exp((energy - new_energy) / temperature)``.

    ``temperature`` is expected to be positive. Degenerate inputs are handled
    without raising:
    - a non-finite candidate energy is never accepted;
    - a finite candidate always replaces a non-finite current energy;
    - with ``temperature <= 0`` only strict improvements pass.
    """
    if not math.isfinite(new_energy):
        return False
    if not math.isfinite(energy):
        return True
    if new_energy < energy:
        return True
    if temperature <= 0.0:
        return False
    # exponent <= 0 here, so exp() cannot overflow
    return draw < math.exp((energy - new_energy) / temperature)
