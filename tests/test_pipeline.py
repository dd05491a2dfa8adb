import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import logging
import pytest
import numpy as np
import pandas as pd
from hullwhite import (
    DegenerateParameterError,
    ForecastConfig,
    HullWhitePipeline,
    InsufficientDataError,
    InvalidConfigurationError,
    hull_white
)
from hullwhite.interfaces import ChartRenderer, PriceSource
from hullwhite.solver import NonlinearSolver
from hullwhite.forecaster import Z_95


class StubSolver(NonlinearSolver):
    """Returns the initial guess so runs are independent of optimizer behaviour"""

    def __init__(self):
        self.calls = 0

    def fit(self, model_fn, t, data, initial_guess):
        self.calls += 1
        params = np.asarray(initial_guess, dtype=float)
        residuals = model_fn(t, *params) - data
        return params, float(np.sqrt(np.mean(residuals ** 2)))


class StubRenderer(ChartRenderer):
    def __init__(self):
        self.calls = []

    def render(self, observed, forecast, upper, lower, train_size,
               title=None, variance=True, save_path=None):
        self.calls.append({
            'observed': observed,
            'forecast': forecast,
            'upper': upper,
            'lower': lower,
            'train_size': train_size,
            'title': title,
            'variance': variance,
            'save_path': save_path
        })


class StubSource(PriceSource):
    def __init__(self, prices):
        self.prices = prices
        self.requests = []

    def get_prices(self, symbol, start, end):
        self.requests.append((symbol, start, end))
        return self.prices


def make_prices(n: int = 100, seed: int = 42) -> pd.Series:
    """Geometric random walk with 1% daily volatility"""
    np.random.seed(seed)
    dates = pd.bdate_range('2023-01-02', periods=n)
    returns = np.random.normal(0, 0.01, n)
    return pd.Series(100 * np.exp(np.cumsum(returns)), index=dates)


@pytest.fixture
def sample_prices():
    return make_prices()


@pytest.fixture
def stub_pipeline():
    return HullWhitePipeline(solver=StubSolver())


@pytest.mark.parametrize("variance", [True, False])
def test_backtest_scenario(sample_prices, variance):
    """100 closes, 5 burn-in points, 10 held out, fitted with the real solver"""
    logger = logging.getLogger('test')
    config = ForecastConfig(prediction_period=10, days_to_drop=5,
                            kappa0=0.1, zeta0=0.05, variance=variance, testing=True)

    result = HullWhitePipeline().run(sample_prices, config, symbol='TEST')
    logger.info(f"{result.fit.model} fit: {result.fit.params}, rmse={result.fit.rmse}")

    assert len(result.series) == 100 - 2 - 5
    assert result.train_size == 93 - 10
    assert len(result.records) == 10
    assert [r.index for r in result.records] == list(range(1, 11))
    for record in result.records:
        assert record.value >= 0
        assert record.lower <= record.value <= record.upper
    assert np.isfinite(result.volatility_fit.rmse)


def test_backtest_uses_observed_horizon(stub_pipeline, sample_prices):
    config = ForecastConfig(prediction_period=10, days_to_drop=5, testing=True)
    result = stub_pipeline.run(sample_prices, config)

    assert len(result.variance_forecast.values) == len(result.series)
    assert list(result.dates) == list(sample_prices.index[-10:])


def test_forecast_mode_extends_horizon(stub_pipeline, sample_prices):
    config = ForecastConfig(prediction_period=15, days_to_drop=5, testing=False)
    result = stub_pipeline.run(sample_prices, config)

    assert result.train_size == len(result.series)
    assert len(result.forecast.values) == len(result.series) + 15
    assert len(result.records) == 15
    assert result.dates[0] > sample_prices.index[-1]
    assert len(result.dates) == 15


def test_band_width_is_constant(stub_pipeline, sample_prices):
    config = ForecastConfig(prediction_period=10, days_to_drop=5, testing=True)
    result = stub_pipeline.run(sample_prices, config)

    widths = [r.upper - r.lower for r in result.records]
    np.testing.assert_allclose(widths, 2 * Z_95 * result.variance_fit.rmse)


def test_volatility_mode_records(stub_pipeline, sample_prices):
    config = ForecastConfig(prediction_period=10, days_to_drop=5, variance=False, testing=True)
    result = stub_pipeline.run(sample_prices, config)

    assert result.fit is result.volatility_fit
    np.testing.assert_allclose(
        [r.value for r in result.records],
        result.volatility_forecast.values[-10:]
    )
    assert all(r.quantity == 'realized_volatility' for r in result.records)


def test_burn_in_longer_than_data_raises_before_fitting(sample_prices):
    solver = StubSolver()
    config = ForecastConfig(prediction_period=5, days_to_drop=len(sample_prices))

    with pytest.raises(InsufficientDataError):
        HullWhitePipeline(solver=solver).run(sample_prices, config)
    assert solver.calls == 0


def test_zero_kappa_guess_raises_before_fitting(sample_prices):
    solver = StubSolver()
    config = ForecastConfig(prediction_period=5, kappa0=0.0)

    with pytest.raises(DegenerateParameterError):
        HullWhitePipeline(solver=solver).run(sample_prices, config)
    assert solver.calls == 0


@pytest.mark.parametrize("prediction_period", [0, -3, 2.5])
def test_invalid_prediction_period_raises(stub_pipeline, sample_prices, prediction_period):
    with pytest.raises(InvalidConfigurationError):
        stub_pipeline.run(sample_prices, ForecastConfig(prediction_period=prediction_period))


def test_negative_burn_in_raises(stub_pipeline, sample_prices):
    with pytest.raises(InvalidConfigurationError):
        stub_pipeline.run(sample_prices, ForecastConfig(prediction_period=5, days_to_drop=-1))


def test_substituted_solver_is_used(sample_prices):
    solver = StubSolver()
    config = ForecastConfig(prediction_period=5, kappa0=0.02, zeta0=0.1)

    result = HullWhitePipeline(solver=solver).run(sample_prices, config)

    assert solver.calls == 2
    assert result.variance_fit.params.kappa == 0.02
    assert result.volatility_fit.params.as_tuple() == (0.02, 0.1)


def test_renderer_receives_full_horizon(sample_prices, tmp_path):
    renderer = StubRenderer()
    config = ForecastConfig(prediction_period=10, days_to_drop=5, testing=False)
    chart_path = tmp_path / "chart.png"

    result = HullWhitePipeline(solver=StubSolver(), renderer=renderer).run(
        sample_prices, config, symbol='SPY', chart_path=chart_path
    )

    assert len(renderer.calls) == 1
    call = renderer.calls[0]
    assert len(call['observed']) == len(result.series)
    assert len(call['forecast']) == len(result.series) + 10
    assert call['train_size'] == result.train_size
    assert call['title'] == 'SPY'
    assert call['save_path'] == chart_path


def test_no_renderer_by_default(stub_pipeline, sample_prices):
    assert stub_pipeline.renderer is None
    stub_pipeline.run(sample_prices, ForecastConfig(prediction_period=5))


def test_runs_are_deterministic(stub_pipeline, sample_prices):
    config = ForecastConfig(prediction_period=10, days_to_drop=5, testing=True)

    first = stub_pipeline.run(sample_prices, config).to_dataframe()
    second = stub_pipeline.run(sample_prices, config).to_dataframe()

    pd.testing.assert_frame_equal(first, second)


def test_hull_white_returns_record_frame(sample_prices):
    df = hull_white(sample_prices, prediction_period=7, days_to_drop=3,
                    variance=False, testing=True, solver=StubSolver())

    assert list(df.columns) == ['index', 'realized_volatility', 'UC95', 'LC95']
    assert len(df) == 7
    assert df.index.name == 'date'
    assert (df['LC95'] <= df['realized_volatility']).all()
    assert (df['realized_volatility'] <= df['UC95']).all()


def test_hull_white_accepts_plain_array(sample_prices):
    df = hull_white(sample_prices.values, prediction_period=5, solver=StubSolver())

    assert list(df.columns) == ['index', 'realized_variance', 'UC95', 'LC95']
    assert list(df['index']) == [1, 2, 3, 4, 5]


def test_run_symbol_fetches_from_source(sample_prices):
    source = StubSource(sample_prices)
    config = ForecastConfig(prediction_period=5, days_to_drop=2, testing=True)

    result = HullWhitePipeline(solver=StubSolver()).run_symbol(
        source, 'SPY', '2023-01-01', '2023-12-31', config
    )

    assert source.requests == [('SPY', '2023-01-01', '2023-12-31')]
    assert result.symbol == 'SPY'
    assert len(result.records) == 5


def test_run_symbol_with_too_few_prices_raises(sample_prices):
    source = StubSource(sample_prices.iloc[:6])
    solver = StubSolver()
    config = ForecastConfig(prediction_period=5, days_to_drop=2)

    with pytest.raises(InsufficientDataError):
        HullWhitePipeline(solver=solver).run_symbol(source, 'SPY', '2023-01-01', '2023-12-31', config)
    assert solver.calls == 0


if __name__ == '__main__':
    pytest.main([__file__])
