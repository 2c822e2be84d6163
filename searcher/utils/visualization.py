"""
Visualization utilities for annealing / Monte Carlo search histories.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from ..simulation.records import Acceptance, SearchRecord


def history_arrays(records: Sequence[SearchRecord]) -> dict:
    """Split regular records into iteration / energy / temperature arrays."""
    regular = [r for r in records if r.acceptance is not Acceptance.BEST]
    return {
        "iteration": np.array([r.iteration for r in regular], dtype=int),
        "energy": np.array([r.energy for r in regular], dtype=float),
        "temperature": np.array([r.temperature for r in regular], dtype=float),
        "accepted": np.array([r.accepted for r in regular], dtype=bool),
    }


def plot_search_history(
    records: Sequence[SearchRecord],
    png_path: str | Path,
    title: str = "Search history",
) -> Path:
    data = history_arrays(records)
    best = next((r for r in records if r.acceptance is Acceptance.BEST), None)

    fig, ax1 = plt.subplots(figsize=(8, 4.8))
    ax1.set_xlabel("Search #")
    ax1.set_ylabel("Energy", color="tab:red")
    acc = data["accepted"]
    ax1.plot(data["iteration"][acc], data["energy"][acc], "o", ms=3, color="tab:red", label="accepted")
    ax1.plot(data["iteration"][~acc], data["energy"][~acc], "x", ms=3, color="lightgrey", label="rejected")
    if best is not None:
        ax1.plot([best.iteration], [best.energy], "*", ms=12, color="gold", mec="k", label="best")
    ax1.tick_params(axis="y", labelcolor="tab:red")
    ax1.legend(loc="upper right", fontsize=8)

    ax2 = ax1.twinx()
    ax2.set_ylabel("Temperature", color="tab:blue")
    order = np.argsort(data["iteration"], kind="stable")
    ax2.plot(data["iteration"][order], data["temperature"][order], color="tab:blue", lw=1.0)
    ax2.tick_params(axis="y", labelcolor="tab:blue")

    fig.suptitle(title)
    fig.tight_layout()
    out = Path(png_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=160)
    plt.close(fig)
    return out
