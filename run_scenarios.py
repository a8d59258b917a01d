#!/usr/bin/env python
"""
Full scenario pipeline for the retail sales / policy rate analysis.
Coordinates data retrieval, alignment, exploration, regression fitting and
scenario projection.
"""
import argparse
import sys
import logging
import traceback
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to path
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from config import PipelineConfig
from data_manager.aligner import align_series
from data_manager.data_validator import SeriesValidator
from data_manager.database import ObservationStore
from data_manager.fred_loader import FredClient, SeriesLoader
from models import AlignedSeries
from regression.exploration import correlation_matrix, lagged_correlations, seasonal_profile
from utils.reporting import coefficient_table, describe_scenarios, fit_statistics, scenario_table
from utils.visualization import ScenarioVisualizer
from workflows.run_scenario_sequence import (
    build_scenarios,
    default_policies,
    default_specs,
    run_scenario_sequence,
)


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
    log_file = log_dir / f"scenario_run_{timestamp}.log"

    # Handlers go on the root logger so module loggers propagate to them
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    return logging.getLogger("scenario_runner")


def load_macro_data(config: PipelineConfig, logger: logging.Logger) -> AlignedSeries:
    """Fetch (or read cached) series, report quality issues and align them"""
    logger.info("Loading macro series...")

    try:
        with ObservationStore(config.db_path) as store:
            loader = SeriesLoader(FredClient(api_key=config.api_key), store)
            raw = loader.load(config.series, config.start, config.end, force=config.force_refresh)

        _, report = SeriesValidator().validate_all(raw)
        for name, issues in report.items():
            for issue in issues:
                logger.warning(issue)

        aligned = align_series(raw, start=config.start, end=config.end)
        logger.info(
            f"Aligned {len(aligned.names)} series over {len(aligned)} months "
            f"({aligned.start:%Y-%m} to {aligned.end:%Y-%m})"
        )
        return aligned

    except Exception as e:
        logger.error(f"Error loading data: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def run_analysis(aligned: AlignedSeries, config: PipelineConfig,
                 logger: logging.Logger, save_plots: bool = True) -> Dict:
    """Explore the data, fit the specifications, project scenarios and write outputs"""
    logger.info("Starting analysis pipeline...")
    output_dir = config.output_dir
    tables_dir = output_dir / "tables"
    tables_dir.mkdir(parents=True, exist_ok=True)

    try:
        # Exploration
        corr = correlation_matrix(aligned)
        corr.to_csv(tables_dir / "correlations.csv")
        lag_corr = lagged_correlations(aligned, config.target, config.driving_variable,
                                       max_lag=12)
        lag_corr.to_csv(tables_dir / "lagged_correlations.csv", index=False)
        seasonal = seasonal_profile(aligned, config.target)
        seasonal.to_csv(tables_dir / "seasonal_profile.csv")

        # Fit and project
        last_rate = aligned.column(config.driving_variable).dropna().iloc[-1]
        results = run_scenario_sequence(
            aligned,
            specs=default_specs(config),
            scenarios=build_scenarios(config, last_rate),
            driving_variable=config.driving_variable,
            policies=default_policies(aligned, config),
            max_workers=config.max_workers,
        )

        if results['models']:
            fit_statistics(results['models']).to_csv(tables_dir / "fit_statistics.csv")
        for spec_name, model in results['models'].items():
            coefficient_table(model).to_csv(tables_dir / f"{spec_name}_coefficients.csv")
            (tables_dir / f"{spec_name}_summary.txt").write_text(model.summary)

        last_actual = aligned.column(config.target).dropna().iloc[-1]
        narrative: List[str] = []
        for spec_name, forecasts in results['forecasts'].items():
            scenario_table(forecasts).to_csv(tables_dir / f"{spec_name}_scenarios.csv")
            narrative.append(f"[{spec_name}]")
            narrative.extend(describe_scenarios(forecasts, last_actual, config.target))
        for spec_name, message in results['failures'].items():
            narrative.append(f"[{spec_name}] skipped: {message}")
        (output_dir / "summary.txt").write_text("\n".join(narrative) + "\n")

        if save_plots:
            logger.info("Generating visualizations...")
            plot_dir = output_dir / "plots"
            plot_dir.mkdir(parents=True, exist_ok=True)
            with ScenarioVisualizer() as viz:
                viz.plot_series(aligned, title="Aligned macro series",
                                save_path=plot_dir / "series.png")
                viz.plot_correlation_heatmap(corr, title="Correlations",
                                             save_path=plot_dir / "correlations.png")
                for spec_name, model in results['models'].items():
                    viz.plot_fit(model, aligned.column(config.target),
                                 save_path=plot_dir / f"{spec_name}_fit.png")
                for spec_name, forecasts in results['forecasts'].items():
                    viz.plot_scenarios(aligned.column(config.target), forecasts,
                                       title=f"{spec_name}: {config.target} scenarios",
                                       save_path=plot_dir / f"{spec_name}_scenarios.png")

        logger.info("Pipeline completed successfully")
        return results

    except Exception as e:
        logger.error(f"Error in analysis pipeline: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Project retail sales under policy-rate scenarios")
    parser.add_argument("--start", default=None, help="First month (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="Last month (YYYY-MM-DD)")
    parser.add_argument("--max-lag", type=int, default=None, help="Distributed lag order")
    parser.add_argument("--horizon", type=int, default=None, help="Months to project")
    parser.add_argument("--income-growth", type=float, default=None,
                        help="Annual income growth used in projections (0.02 = 2%%)")
    parser.add_argument("--db-path", type=Path, default=None, help="DuckDB cache file")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output directory")
    parser.add_argument("--refresh", action="store_true", help="Ignore cached observations")
    parser.add_argument("--workers", type=int, default=None, help="Threads for scenario runs")
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    overrides = {
        'start': args.start,
        'end': args.end,
        'max_lag': args.max_lag,
        'horizon': args.horizon,
        'income_annual_growth': args.income_growth,
        'db_path': args.db_path,
        'output_dir': args.output_dir,
        'max_workers': args.workers,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    overrides['force_refresh'] = args.refresh
    return PipelineConfig.from_env(**overrides)


def main(argv: Optional[List[str]] = None):
    """Main entry point with configuration and setup"""
    args = parse_args(argv)
    config = config_from_args(args)
    config.output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(config.output_dir)
    logger.info("Starting scenario pipeline...")

    try:
        aligned = load_macro_data(config, logger)
        run_analysis(aligned, config, logger, save_plots=not args.no_plots)
    except Exception as e:
        logger.error(f"Pipeline failed: {str(e)}")
        raise


if __name__ == '__main__':
    main()
