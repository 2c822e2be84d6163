"""
Simulation module containing the annealing driver, the Monte Carlo wrappers
and the search records they produce.
"""

from .acceptance import metropolis_accept
from .annealing import (
    AnnealingConfig,
    ConfigurationError,
    RunState,
    SimulatedAnnealing,
    resolve_initial_temperature,
    simulated_annealing,
)
from .interfaces import DataHandler, ModelSpace
from .monte_carlo import MC_TEMPERATURE, monte_carlo, monte_carlo_config, monte_carlo_stream
from .records import Acceptance, RecordPolicy, SearchRecord, format_state, sort_records

__all__ = [
    "metropolis_accept",
    "AnnealingConfig",
    "ConfigurationError",
    "RunState",
    "SimulatedAnnealing",
    "resolve_initial_temperature",
    "simulated_annealing",
    "DataHandler",
    "ModelSpace",
    "MC_TEMPERATURE",
    "monte_carlo",
    "monte_carlo_config",
    "monte_carlo_stream",
    "Acceptance",
    "RecordPolicy",
    "SearchRecord",
    "format_state",
    "sort_records",
]
