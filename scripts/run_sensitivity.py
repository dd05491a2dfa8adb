"""
Fit the same price history from a grid of initial guesses.

The solver is a local method, so different (kappa0, zeta0) pairs can land on
different optima or fail outright. Each pair is an independent pipeline run;
failures are recorded, not retried.
"""

import itertools
import logging
from pathlib import Path
import sys
from typing import Iterable, List

import pandas as pd

# Add parent directory to path to import our modules
sys.path.append(str(Path(__file__).parent.parent))

from hullwhite import ForecastConfig, HullWhiteError, HullWhitePipeline
from data_manager.data_loader import YahooPriceSource
from utils.progress import ProgressMonitor

TICKER = "SPY"
START_DATE = "2022-01-01"
END_DATE = "2023-12-31"
PREDICTION_PERIOD = 20
DAYS_TO_DROP = 10
KAPPA_GUESSES = [-0.05, -0.01, 0.01, 0.05, 0.1]
ZETA_GUESSES = [0.01, 0.05, 0.2]


def sweep_initial_guesses(prices: pd.Series,
                          kappa_guesses: Iterable[float],
                          zeta_guesses: Iterable[float],
                          prediction_period: int,
                          days_to_drop: int = 0,
                          testing: bool = True,
                          pipeline: HullWhitePipeline = None,
                          logger: logging.Logger = None) -> pd.DataFrame:
    """
    Run the pipeline once per (kappa0, zeta0) pair.

    Returns:
        One row per pair with fitted parameters and RMSEs, or the error
        raised for that pair
    """
    pipeline = pipeline or HullWhitePipeline()
    logger = logger or logging.getLogger('sensitivity')
    grid = list(itertools.product(kappa_guesses, zeta_guesses))

    rows: List[dict] = []
    with ProgressMonitor(total=len(grid), desc="Initial guesses", logger=logger) as monitor:
        for kappa0, zeta0 in grid:
            config = ForecastConfig(
                prediction_period=prediction_period,
                days_to_drop=days_to_drop,
                kappa0=kappa0,
                zeta0=zeta0,
                testing=testing
            )
            row = {'kappa0': kappa0, 'zeta0': zeta0}
            try:
                result = pipeline.run(prices, config)
            except HullWhiteError as e:
                row['error'] = f"{type(e).__name__}: {e}"
                monitor.update(status=f"kappa0={kappa0}, zeta0={zeta0} failed", failed=True)
            else:
                row.update({
                    'variance_kappa': result.variance_fit.params.kappa,
                    'variance_rmse': result.variance_fit.rmse,
                    'volatility_kappa': result.volatility_fit.params.kappa,
                    'volatility_zeta': result.volatility_fit.params.zeta,
                    'volatility_rmse': result.volatility_fit.rmse,
                    'error': None
                })
                monitor.update()
            rows.append(row)

    return pd.DataFrame(rows)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('sensitivity_run.log'),
            logging.StreamHandler()
        ]
    )
    logger = logging.getLogger('sensitivity')

    output_path = Path("results/sensitivity")
    output_path.mkdir(parents=True, exist_ok=True)

    try:
        source = YahooPriceSource(cache_dir="data_manager/data")
        prices = source.get_prices(TICKER, START_DATE, END_DATE)
        logger.info(f"Loaded {len(prices)} prices from {prices.index[0]} to {prices.index[-1]}")

        table = sweep_initial_guesses(
            prices,
            KAPPA_GUESSES,
            ZETA_GUESSES,
            prediction_period=PREDICTION_PERIOD,
            days_to_drop=DAYS_TO_DROP,
            logger=logger
        )
        table.to_csv(output_path / f"{TICKER}_initial_guesses.csv", index=False)
        logger.info("\n" + table.to_string())

    except Exception as e:
        logger.error(f"Sensitivity sweep failed: {str(e)}")
        raise
