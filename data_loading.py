#!/usr/bin/env python3
"""
Data Loading Module

Utilities for loading the wearable-device CSV exports used by the report.
Supports daily activity, heart-rate seconds, hourly calories, hourly
intensities, hourly steps and daily sleep tables.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

logger = logging.getLogger(__name__)


DEFAULT_FILES = {
    'activity': 'dailyActivity_merged.csv',
    'heart_rate': 'heartrate_seconds_merged.csv',
    'hourly_calories': 'hourlyCalories_merged.csv',
    'hourly_intensity': 'hourlyIntensities_merged.csv',
    'hourly_steps': 'hourlySteps_merged.csv',
    'sleep': 'sleepDay_merged.csv',
}

REQUIRED_COLUMNS = {
    'activity': [
        'Id', 'ActivityDate', 'TotalSteps', 'TotalDistance',
        'VeryActiveDistance', 'ModeratelyActiveDistance',
        'LightActiveDistance', 'SedentaryActiveDistance',
        'VeryActiveMinutes', 'FairlyActiveMinutes',
        'LightlyActiveMinutes', 'SedentaryMinutes', 'Calories',
    ],
    'heart_rate': ['Id', 'Time', 'Value'],
    'hourly_calories': ['Id', 'ActivityHour', 'Calories'],
    'hourly_intensity': ['Id', 'ActivityHour', 'TotalIntensity'],
    'hourly_steps': ['Id', 'ActivityHour', 'StepTotal'],
    'sleep': ['Id', 'SleepDay', 'TotalMinutesAsleep', 'TotalTimeInBed'],
}

# Parsed later by the cleaner, never coerced to numbers here
DATE_COLUMNS = {'ActivityDate', 'Time', 'ActivityHour', 'SleepDay'}


def load_table(data_path: Path, table: str) -> pd.DataFrame:
    """
    Load one CSV export and coerce its numeric columns.

    Args:
        data_path: Path to the CSV file
        table: Logical table name (key of REQUIRED_COLUMNS)

    Returns:
        DataFrame with every required column present; date/time columns are
        left as strings
    """
    data_path = Path(data_path)

    if table not in REQUIRED_COLUMNS:
        raise ValueError(f"Unknown table '{table}'. Expected one of: {sorted(REQUIRED_COLUMNS)}")

    if not data_path.exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")

    try:
        df = pd.read_csv(data_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise IOError(f"Failed to read {data_path}: {str(e)}")

    df.columns = [c.strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS[table] if c not in df.columns]
    if missing:
        raise ValueError(f"{data_path.name}: missing required columns {missing}. Columns: {df.columns.tolist()}")

    blank = df[REQUIRED_COLUMNS[table]].isna().sum()
    blank = blank[blank > 0]
    if len(blank) > 0:
        raise ValueError(f"{data_path.name}: blank values in required columns {blank.to_dict()}")

    for col in REQUIRED_COLUMNS[table]:
        if col in DATE_COLUMNS:
            continue
        try:
            df[col] = pd.to_numeric(df[col])
        except (ValueError, TypeError) as e:
            raise ValueError(f"{data_path.name}: column '{col}' is not numeric: {e}")

    logger.info(f"Loaded {len(df)} rows from {data_path}")
    return df


def load_dataset(data_dir: Path, files: Optional[Dict[str, str]] = None) -> Dict[str, pd.DataFrame]:
    """
    Load all six tables from a directory.

    Args:
        data_dir: Directory holding the CSV exports
        files: Optional overrides of DEFAULT_FILES (table name -> file name)

    Returns:
        Dict of table name -> DataFrame
    """
    data_dir = Path(data_dir)

    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    file_names = dict(DEFAULT_FILES)
    if files:
        file_names.update(files)

    tables = {}
    for table, file_name in file_names.items():
        tables[table] = load_table(data_dir / file_name, table)

    return tables


def create_data_summary(data_df: pd.DataFrame,
                        time_col: Optional[str] = None,
                        id_col: str = 'Id') -> Dict:
    """
    Create summary statistics for a table.

    Args:
        data_df: Data DataFrame
        time_col: Name of a parsed datetime column (optional)
        id_col: Name of the subject column

    Returns:
        Dict with row count, subject count and time range
    """
    summary = {
        'n_rows': len(data_df),
        'n_subjects': data_df[id_col].nunique() if id_col in data_df.columns else 0,
    }

    if time_col is not None and time_col in data_df.columns and len(data_df) > 0:
        summary['time_start'] = data_df[time_col].min()
        summary['time_end'] = data_df[time_col].max()

    return summary
