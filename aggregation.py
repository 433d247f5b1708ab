"""
Aggregation Module

Summary statistics over the cleaned tables: activity category shares,
grouped medians by hour-of-day and weekday, descriptive statistics and
density curves for continuous measures.
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Tuple
from scipy.stats import gaussian_kde

from preprocessing import ACTIVITY_MINUTE_COLUMNS, ACTIVITY_DISTANCE_COLUMNS


CATEGORY_LABELS = ['Very Active', 'Fairly Active', 'Lightly Active', 'Sedentary']

# table name -> value column
GROUPED_METRICS = {
    'heart_rate': 'Value',
    'hourly_calories': 'Calories',
    'hourly_intensity': 'TotalIntensity',
    'hourly_steps': 'StepTotal',
}

GROUP_BY = ['Hour', 'Weekday']

ACTIVITY_SUMMARY_COLUMNS = ['TotalSteps', 'TotalDistance', 'Calories', 'TotalActivityMinutes']
SLEEP_SUMMARY_COLUMNS = ['TotalMinutesAsleep', 'TotalTimeInBed', 'SleepHours', 'AsleepPercentage']


def _total_activity_minutes(activity: pd.DataFrame) -> float:
    total = activity['TotalActivityMinutes'].sum() if len(activity) > 0 else 0
    if total <= 0:
        raise ValueError("Cannot compute category shares: no recorded activity minutes")
    return float(total)


def category_time_share(activity: pd.DataFrame) -> pd.Series:
    """Percentage of all recorded activity minutes spent in each category."""
    total = _total_activity_minutes(activity)
    shares = activity[ACTIVITY_MINUTE_COLUMNS].sum() / total * 100.0
    shares.index = CATEGORY_LABELS
    return shares


def category_distance_share(activity: pd.DataFrame) -> pd.Series:
    """
    Per-category distance sums relative to the total activity minutes.

    The divisor is minutes, not distance, so the values are not a true
    percentage breakdown and do not sum to 100. The formula is kept as the
    report has always computed it.
    """
    total = _total_activity_minutes(activity)
    shares = activity[ACTIVITY_DISTANCE_COLUMNS].sum() / total * 100.0
    shares.index = CATEGORY_LABELS
    return shares


def grouped_median(df: pd.DataFrame, value_col: str, by: str) -> pd.Series:
    """
    Median of a metric within each hour-of-day or weekday bucket.

    Args:
        df: Table with the value column and the grouping column
        value_col: Metric to summarize
        by: 'Hour' or 'Weekday'

    Returns:
        Series indexed by group, in hour or calendar order. Groups with no
        rows are omitted.
    """
    if by not in GROUP_BY:
        raise ValueError(f"Unsupported grouping '{by}'. Expected one of: {GROUP_BY}")

    medians = df.groupby(by, observed=True)[value_col].median()
    return medians.sort_index()


def compute_grouped_medians(tables: Dict[str, pd.DataFrame]) -> Dict[str, pd.Series]:
    """
    Hour-of-day and weekday medians for heart rate and the hourly tables.

    Sleep hours by weekday are added when a prepared sleep table is present.
    Keys look like 'heart_rate_by_hour' or 'hourly_steps_by_weekday'.
    """
    medians = {}
    for table, value_col in GROUPED_METRICS.items():
        if table not in tables:
            continue
        for by in GROUP_BY:
            medians[f'{table}_by_{by.lower()}'] = grouped_median(tables[table], value_col, by)

    if 'sleep' in tables:
        medians['sleep_hours_by_weekday'] = grouped_median(tables['sleep'], 'SleepHours', 'Weekday')

    return medians


def describe_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Count, mean, median, std, min and max per column (one row per column)."""
    stats = df[columns].agg(['count', 'mean', 'median', 'std', 'min', 'max'])
    return stats.T


def density_curve(values, n_points: int = 200) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gaussian kernel density estimate evaluated on a regular grid.

    Args:
        values: 1-D array-like of observations (NaNs are ignored)
        n_points: Number of grid points

    Returns:
        Tuple of (grid, density). Both empty when fewer than two distinct
        values are available.
    """
    data = np.asarray(values, dtype=float)
    data = data[~np.isnan(data)]

    if len(np.unique(data)) < 2:
        return np.array([]), np.array([])

    kde = gaussian_kde(data)
    # three kernel bandwidths past the extremes
    pad = 3.0 * np.sqrt(kde.covariance[0, 0])
    grid = np.linspace(data.min() - pad, data.max() + pad, n_points)
    return grid, kde(grid)


def compute_aggregates(activity: pd.DataFrame,
                       sleep: pd.DataFrame,
                       restricted: Dict[str, pd.DataFrame]) -> Dict:
    """
    Compute every aggregate the report renders.

    Args:
        activity: Filtered activity table
        sleep: Prepared sleep table
        restricted: Heart-rate and hourly tables restricted to valid days

    Returns:
        Dict with 'time_share', 'distance_share', 'medians',
        'activity_summary' and 'sleep_summary'. The shares are empty when
        no activity day survived filtering.
    """
    tables = dict(restricted)
    tables['sleep'] = sleep

    if len(activity) > 0:
        time_share = category_time_share(activity)
        distance_share = category_distance_share(activity)
    else:
        time_share = pd.Series(dtype=float)
        distance_share = pd.Series(dtype=float)

    return {
        'time_share': time_share,
        'distance_share': distance_share,
        'medians': compute_grouped_medians(tables),
        'activity_summary': describe_columns(activity, ACTIVITY_SUMMARY_COLUMNS),
        'sleep_summary': describe_columns(sleep, SLEEP_SUMMARY_COLUMNS),
    }
