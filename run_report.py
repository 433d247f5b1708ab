#!/usr/bin/env python3
"""
Wearable Activity Report - Main Script

One-shot pipeline for:
1. Loading the daily activity, heart-rate, hourly and sleep exports
2. Cleaning and wear-time filtering of the activity table
3. Restricting the other tables to valid activity days
4. Computing category shares and grouped medians
5. Rendering the charts and the narrative of findings
"""

import argparse
import yaml
from pathlib import Path
import logging
from typing import Dict

from data_loading import load_dataset, create_data_summary, DEFAULT_FILES
from preprocessing import (
    clean_activity, prepare_sleep, decompose_timestamp,
    restrict_to_activity_days, DATE_FORMAT, DATETIME_FORMAT,
    MIN_TOTAL_ACTIVITY_MINUTES
)
from aggregation import compute_aggregates
from reporting import render_charts, build_narrative, write_narrative


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# table name -> combined date-time column
TIMESTAMP_COLUMNS = {
    'heart_rate': 'Time',
    'hourly_calories': 'ActivityHour',
    'hourly_intensity': 'ActivityHour',
    'hourly_steps': 'ActivityHour',
}


def load_config(config_path: str) -> dict:
    """Load YAML configuration file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f)


def create_default_config() -> dict:
    """Create default configuration template."""
    return {
        'project': {
            'name': 'wearable-activity-report',
            'output_dir': './output',
        },
        'data': {
            'data_dir': './data',
            'files': dict(DEFAULT_FILES),
        },
        'parsing': {
            'date_format': DATE_FORMAT,
            'datetime_format': DATETIME_FORMAT,
        },
        'filtering': {
            'min_total_activity_minutes': MIN_TOTAL_ACTIVITY_MINUTES,
        },
        'report': {
            'dpi': 150,
            'write_narrative': True,
        },
    }


def build_report(cfg: dict) -> Dict:
    """
    Run the report pipeline from a configuration dict.

    Args:
        cfg: Configuration (see create_default_config); missing keys use defaults

    Returns:
        Dict with the cleaned tables, aggregates, exclusion counts and the
        paths of the rendered charts
    """
    logger.info("=" * 80)
    logger.info("Wearable Activity Report")
    logger.info("=" * 80)

    project_cfg = cfg.get('project', {})
    data_cfg = cfg.get('data', {})
    parsing_cfg = cfg.get('parsing', {})
    filtering_cfg = cfg.get('filtering', {})
    report_cfg = cfg.get('report', {})

    output_dir = Path(project_cfg.get('output_dir', './output'))
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Output directory: {output_dir}")

    date_format = parsing_cfg.get('date_format', DATE_FORMAT)
    datetime_format = parsing_cfg.get('datetime_format', DATETIME_FORMAT)
    min_minutes = filtering_cfg.get('min_total_activity_minutes', MIN_TOTAL_ACTIVITY_MINUTES)

    # ========================================================================
    # STEP 1: Load input tables
    # ========================================================================
    logger.info("\n[STEP 1] Loading input tables...")
    raw = load_dataset(Path(data_cfg.get('data_dir', './data')), data_cfg.get('files'))
    for name, df in raw.items():
        summary = create_data_summary(df)
        logger.info(f"  {name}: {summary['n_rows']} rows, {summary['n_subjects']} subjects")

    # ========================================================================
    # STEP 2: Clean and filter the activity table
    # ========================================================================
    logger.info("\n[STEP 2] Cleaning activity and sleep tables...")
    activity, n_excluded = clean_activity(raw['activity'], date_format, min_minutes)
    exclusion = {
        'total': len(raw['activity']),
        'excluded': n_excluded,
        'threshold_minutes': min_minutes,
    }
    if len(activity) == 0:
        logger.warning(f"  All {exclusion['total']} activity records were excluded; "
                       f"activity charts and hourly medians will be empty")

    sleep = prepare_sleep(raw['sleep'], datetime_format)
    sleep_summary = create_data_summary(sleep, time_col='Date')
    logger.info(f"  Sleep records: {sleep_summary['n_rows']} from {sleep_summary['n_subjects']} subjects")

    # ========================================================================
    # STEP 3: Restrict heart-rate and hourly tables to valid activity days
    # ========================================================================
    logger.info("\n[STEP 3] Restricting heart-rate and hourly tables...")
    restricted = {}
    for name, column in TIMESTAMP_COLUMNS.items():
        decomposed = decompose_timestamp(raw[name], column, datetime_format)
        logger.info(f"  {name}:")
        restricted[name] = restrict_to_activity_days(decomposed, activity)

    # ========================================================================
    # STEP 4: Aggregate
    # ========================================================================
    logger.info("\n[STEP 4] Computing aggregates...")
    aggregates = compute_aggregates(activity, sleep, restricted)
    for category, share in aggregates['time_share'].items():
        logger.info(f"  Time share - {category}: {share:.2f}%")
    logger.info(f"  Computed {len(aggregates['medians'])} grouped medians")

    # ========================================================================
    # STEP 5: Render charts and narrative
    # ========================================================================
    logger.info("\n[STEP 5] Rendering report...")
    charts = render_charts(
        {'activity': activity, 'sleep': sleep},
        aggregates,
        output_dir,
        dpi=report_cfg.get('dpi', 150)
    )

    narrative = build_narrative(aggregates, exclusion)
    if report_cfg.get('write_narrative', True):
        write_narrative(narrative, charts, output_dir, title=project_cfg.get('name', 'Wearable Activity Report'))

    logger.info("\n" + "=" * 80)
    logger.info("FINDINGS")
    logger.info("=" * 80)
    for line in narrative:
        logger.info(f"  {line}")

    logger.info("\n" + "=" * 80)
    logger.info("Report completed successfully!")
    logger.info(f"Output saved to: {output_dir}")
    logger.info("=" * 80)

    return {
        'activity': activity,
        'sleep': sleep,
        'restricted': restricted,
        'aggregates': aggregates,
        'exclusion': exclusion,
        'charts': charts,
        'narrative': narrative,
    }


def run_report_pipeline(config_path: str) -> Dict:
    """
    Main pipeline execution.

    Args:
        config_path: Path to YAML configuration file
    """
    cfg = load_config(config_path) or {}
    return build_report(cfg)


def main():
    """Command-line interface."""
    parser = argparse.ArgumentParser(
        description='Wearable Activity Report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
            # Run with existing config
            python run_report.py --config config.yaml

            # Create default config template
            python run_report.py --config config.yaml --create-config
            """
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        required=True,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Create default config template'
    )

    args = parser.parse_args()

    config_path = Path(args.config)

    if args.create_config:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.dump(create_default_config(), f, default_flow_style=False)
        print(f"Created default config template: {config_path}")
        print("Please edit the config file with your data paths and settings.")
        return

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    run_report_pipeline(str(config_path))


if __name__ == '__main__':
    main()
