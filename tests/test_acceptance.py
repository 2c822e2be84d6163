import math

import pytest

from searcher.simulation.acceptance import metropolis_accept


@pytest.mark.parametrize("draw", [0.0, 0.5, 0.999999])
def test_improvement_always_accepted(draw: float) -> None:
    assert metropolis_accept(10.0, 9.999, 2.0, draw)
    assert metropolis_accept(10.0, -50.0, 1e-12, draw)


def test_worse_candidate_follows_metropolis_probability() -> None:
    p = math.exp((10.0 - 12.0) / 2.0)
    assert metropolis_accept(10.0, 12.0, 2.0, p * 0.99)
    assert not metropolis_accept(10.0, 12.0, 2.0, p * 1.01)


def test_equal_energy_accepted_unless_draw_is_one() -> None:
    # exp(0) == 1, so any draw in [0, 1) passes
    assert metropolis_accept(3.0, 3.0, 1.0, 0.999)


def test_non_finite_candidate_never_accepted() -> None:
    assert not metropolis_accept(1.0, math.inf, 5.0, 0.0)
    assert not metropolis_accept(1.0, math.nan, 5.0, 0.0)
    assert not metropolis_accept(math.inf, math.inf, 5.0, 0.0)


def test_finite_candidate_replaces_non_finite_current() -> None:
    assert metropolis_accept(math.inf, 1e30, 5.0, 0.99)
    assert metropolis_accept(math.nan, 1.0, 5.0, 0.99)


def test_zero_temperature_accepts_only_improvements() -> None:
    assert metropolis_accept(2.0, 1.0, 0.0, 0.5)
    assert not metropolis_accept(2.0, 2.5, 0.0, 0.0)
    assert not metropolis_accept(2.0, 2.0, 0.0, 0.0)
