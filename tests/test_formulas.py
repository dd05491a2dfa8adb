import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import numpy as np
from hullwhite.exceptions import DegenerateParameterError
from hullwhite.formulas import (
    evaluate,
    realized_variance,
    realized_volatility,
    variance_of_realized_variance
)

V0 = 1e-4


@pytest.fixture
def time_index():
    return np.arange(1, 101)


@pytest.mark.parametrize("kappa", [1e-4, 1e-6, 1e-8, 1e-10, -1e-8])
def test_variance_continuous_at_removable_singularity(kappa, time_index):
    """f(t; kappa) -> v0 as kappa*t -> 0"""
    values = realized_variance(V0, time_index, kappa)

    # |f - v0| ~ v0 * kappa * t / 2 near the singularity
    bound = V0 * abs(kappa) * time_index.max()
    assert np.all(np.abs(values - V0) <= bound)
    np.testing.assert_allclose(realized_variance(V0, time_index, 1e-12), V0, rtol=1e-9)


def test_variance_known_value():
    """f(t) = v0 (e^{kt} - 1) / (kt)"""
    kappa, t = 0.02, np.array([5.0, 50.0])
    expected = V0 * (np.exp(kappa * t) - 1) / (kappa * t)
    np.testing.assert_allclose(realized_variance(V0, t, kappa), expected, rtol=1e-12)


def test_variance_broadcasts_scalar_v0(time_index):
    values = realized_variance(V0, time_index, 0.01)
    assert values.shape == time_index.shape
    assert np.all(values > 0)


def test_variance_formula_depends_only_on_kappa_times_t():
    """
    Swapping the time and kappa arguments gives the same value.

    An earlier version of the volatility formula called the variance formula
    as (v0, kappa, t); this pins that the swap was numerically harmless.
    """
    for kappa, t in [(0.01, 30.0), (-0.02, 7.0), (0.5, 3.0)]:
        assert realized_variance(V0, t, kappa) == pytest.approx(realized_variance(V0, kappa, t))


def test_degenerate_kappa_raises(time_index):
    with pytest.raises(DegenerateParameterError):
        realized_variance(V0, time_index, 0.0)


def test_zero_time_raises():
    with pytest.raises(DegenerateParameterError):
        realized_variance(V0, np.array([0.0, 1.0, 2.0]), 0.01)


def test_zero_kappa_plus_zeta_squared_raises(time_index):
    with pytest.raises(DegenerateParameterError):
        variance_of_realized_variance(V0, time_index, -0.25, 0.5)


def test_zero_second_moment_rate_raises(time_index):
    with pytest.raises(DegenerateParameterError):
        variance_of_realized_variance(V0, time_index, -0.125, 0.5)


def test_overflow_raises_floating_point_error():
    with pytest.raises(FloatingPointError):
        realized_variance(V0, np.arange(1, 1001), 5.0)


def test_variance_of_realized_variance_small_parameter_limit():
    """h ~ v0^2 zeta^2 t / 3 for small kappa*t and zeta^2*t"""
    t = np.array([2.0, 5.0, 10.0])
    kappa, zeta = 1e-6, 1e-3
    expected = V0 ** 2 * zeta ** 2 * t / 3
    np.testing.assert_allclose(variance_of_realized_variance(V0, t, kappa, zeta), expected, rtol=1e-2)


def test_volatility_close_to_sqrt_variance_for_small_zeta(time_index):
    kappa = 0.01
    vol = realized_volatility(V0, time_index, kappa, 1e-4)
    np.testing.assert_allclose(vol, np.sqrt(realized_variance(V0, time_index, kappa)), rtol=1e-5)


def test_volatility_correction_lowers_volatility(time_index):
    """Positive variance of realized variance pulls E[sqrt(RV)] below sqrt(E[RV])"""
    kappa, zeta = 0.005, 0.05
    h = variance_of_realized_variance(V0, time_index, kappa, zeta)
    vol = realized_volatility(V0, time_index, kappa, zeta)
    sqrt_var = np.sqrt(realized_variance(V0, time_index, kappa))

    assert np.all(h > 0)
    assert np.all(vol < sqrt_var)
    assert np.all(vol > 0)


def test_evaluate_dispatch(time_index):
    np.testing.assert_array_equal(
        evaluate('variance', V0, time_index, 0.01),
        realized_variance(V0, time_index, 0.01)
    )
    np.testing.assert_array_equal(
        evaluate('volatility', V0, time_index, 0.01, 0.05),
        realized_volatility(V0, time_index, 0.01, 0.05)
    )
    with pytest.raises(ValueError):
        evaluate('volatility', V0, time_index, 0.01)
    with pytest.raises(ValueError):
        evaluate('unknown', V0, time_index, 0.01)


if __name__ == '__main__':
    pytest.main([__file__])
