"""Demo model space and energy used by the command line tools."""

from .misfit import PolynomialMisfit
from .vector import VectorModelSpace

__all__ = ["PolynomialMisfit", "VectorModelSpace"]
