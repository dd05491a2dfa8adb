#!/usr/bin/env python
"""
Hull-White realized variance/volatility forecast for a single ticker.
Coordinates price loading, model fitting, forecasting and chart output.
"""
import sys
from pathlib import Path
import logging
from datetime import datetime
from contextlib import contextmanager
from typing import Any, Dict, Optional
import time
import psutil
import traceback

# Add project root to path
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from hullwhite import ForecastConfig, HullWhitePipeline, HullWhiteResult, LeastSquaresSolver
from hullwhite.interfaces import PriceSource
from data_manager.data_loader import YahooPriceSource
from utils.visualization import HullWhiteVisualizer

# Run parameters
TICKER = "SPY"
START_DATE = "2023-01-01"
END_DATE = "2023-12-31"
PREDICTION_PERIOD = 20
DAYS_TO_DROP = 10
KAPPA0 = 0.1
ZETA0 = 0.05
VARIANCE = True
TESTING = True


class StageTimer:
    """Wall time and resident memory per pipeline stage (load, fit, charts, ...)"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('hull_white_forecast')
        self.process = psutil.Process()
        self.start_time = time.time()
        self.stages: Dict[str, Dict[str, Any]] = {}

    @contextmanager
    def stage(self, name: str):
        """Time the enclosed block; a stage that raises is recorded as failed"""
        started = time.time()
        rss_before = self.process.memory_info().rss / 1024 / 1024  # MB
        status = 'ok'
        try:
            yield
        except Exception:
            status = 'failed'
            raise
        finally:
            rss_after = self.process.memory_info().rss / 1024 / 1024
            self.stages[name] = {
                'seconds': time.time() - started,
                'rss_mb': rss_after,
                'rss_delta_mb': rss_after - rss_before,
                'status': status
            }
            self.logger.debug(f"Stage '{name}' {status} in {self.stages[name]['seconds']:.2f}s")

    def report(self) -> str:
        lines = ["Stage report:", "-------------"]
        for name, stats in self.stages.items():
            lines.append(
                f"{name:<16} {stats['status']:<7} {stats['seconds']:7.2f}s "
                f"{stats['rss_mb']:9.1f} MB ({stats['rss_delta_mb']:+.1f})"
            )
        lines.append("-------------")
        lines.append(f"Total: {time.time() - self.start_time:.2f}s")
        return "\n".join(lines)


def setup_logging(output_dir: Path) -> logging.Logger:
    """
    Configure logging with both file and console handlers

    Parameters:
    -----------
    output_dir : Path
        Directory for log file

    Returns:
    --------
    logging.Logger
        Configured logger
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"hull_white_forecast_{timestamp}.log"

    # Handlers go on the root logger so hullwhite.* and data_manager.* are captured
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        logging.Formatter('%(message)s')
    )

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    return logging.getLogger("hull_white_forecast")


def initialize_components(logger: logging.Logger = None, render: bool = True) -> Dict:
    """Initialize all analysis components"""
    if logger is None:
        logger = logging.getLogger('hull_white_forecast')

    logger.info("Creating solver...")
    solver = LeastSquaresSolver(max_evaluations=2000)

    renderer = None
    if render:
        logger.info("Creating visualizer...")
        renderer = HullWhiteVisualizer()

    logger.info("Creating pipeline...")
    pipeline = HullWhitePipeline(solver=solver, renderer=renderer)

    return {
        'solver': solver,
        'pipeline': pipeline,
        'visualizer': renderer
    }


def run_analysis(components: Dict, source: PriceSource, symbol: str, start: str, end: str,
                 config: ForecastConfig, output_dir: Path, logger: logging.Logger,
                 timer: Optional[StageTimer] = None) -> HullWhiteResult:
    """Run the forecast, then write records and charts to output_dir"""
    logger.info(f"Starting analysis for {symbol}...")
    timer = timer or StageTimer(logger)

    try:
        pipeline = components['pipeline']
        visualizer = components['visualizer']

        plot_dir = output_dir / "plots"
        plot_dir.mkdir(parents=True, exist_ok=True)
        mode = 'variance' if config.variance else 'volatility'

        with timer.stage('forecast'):
            result = pipeline.run_symbol(
                source=source,
                symbol=symbol,
                start=start,
                end=end,
                config=config,
                chart_path=plot_dir / f"{symbol}_{mode}_forecast.png"
            )

        if visualizer is not None:
            with timer.stage('residual plots'):
                visualizer.plot_residuals(
                    result.fit,
                    title=symbol,
                    save_path=plot_dir / f"{symbol}_{mode}_residuals.png"
                )

        with timer.stage('write records'):
            records_file = output_dir / f"{symbol}_{mode}_forecast.csv"
            result.to_dataframe().to_csv(records_file)
        logger.info(f"Saved {len(result.records)} records to {records_file}")

        for name, fit in (('variance', result.variance_fit), ('volatility', result.volatility_fit)):
            logger.info(
                f"{name} model: kappa={fit.params.kappa:.6g}"
                + (f", zeta={fit.params.zeta:.6g}" if fit.params.zeta is not None else "")
                + f", rmse={fit.rmse:.6g}"
            )

        logger.info("Analysis completed successfully")
        return result

    except Exception as e:
        logger.error(f"Error in analysis pipeline: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def cleanup(components: Dict, logger: logging.Logger):
    """Clean up resources"""
    visualizer = components.get('visualizer')
    if visualizer is not None:
        visualizer.close_all()
    logger.info("Closed all figures")


def main():
    """Main entry point with configuration and setup"""
    root_dir = Path(__file__).parent
    output_dir = root_dir / "results"
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(output_dir)
    logger.info("Starting Hull-White forecast...")
    timer = StageTimer(logger)

    config = ForecastConfig(
        prediction_period=PREDICTION_PERIOD,
        days_to_drop=DAYS_TO_DROP,
        kappa0=KAPPA0,
        zeta0=ZETA0,
        variance=VARIANCE,
        testing=TESTING
    ).validate()

    with timer.stage('setup'):
        source = YahooPriceSource(cache_dir=str(root_dir / "data_manager" / "data"))
        components = initialize_components(logger)

    try:
        result = run_analysis(components, source, TICKER, START_DATE, END_DATE,
                              config, output_dir, logger, timer)
        logger.info("\n" + result.to_dataframe().to_string())
        logger.info(timer.report())
    finally:
        cleanup(components, logger)


if __name__ == '__main__':
    main()
