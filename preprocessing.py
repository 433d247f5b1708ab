#!/usr/bin/env python3
"""
Table Preprocessing Module

Cleans the loaded exports before aggregation:
- Date and timestamp parsing (date, hour-of-day, weekday)
- Derived columns (total activity minutes, sleep hours, asleep percentage)
- Wear-time filtering of the daily activity table
- Restriction of per-subject tables to the surviving (subject, date) pairs
"""

import logging
from typing import Tuple

import pandas as pd

logger = logging.getLogger(__name__)


DATE_FORMAT = '%m/%d/%Y'
DATETIME_FORMAT = '%m/%d/%Y %I:%M:%S %p'
MIN_TOTAL_ACTIVITY_MINUTES = 240

ACTIVITY_MINUTE_COLUMNS = [
    'VeryActiveMinutes',
    'FairlyActiveMinutes',
    'LightlyActiveMinutes',
    'SedentaryMinutes',
]

ACTIVITY_DISTANCE_COLUMNS = [
    'VeryActiveDistance',
    'ModeratelyActiveDistance',
    'LightActiveDistance',
    'SedentaryActiveDistance',
]

WEEKDAY_ORDER = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

JOIN_KEYS = ['Id', 'Date']


def _parse_datetimes(values: pd.Series, fmt: str, column: str) -> pd.Series:
    # to_datetime turns blanks into NaT, which would then match as a join key
    n_blank = int(values.isna().sum())
    if n_blank > 0:
        raise ValueError(f"Failed to parse '{column}': {n_blank} blank value(s)")
    try:
        parsed = pd.to_datetime(values, format=fmt)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Failed to parse '{column}' with format '{fmt}': {e}")
    if parsed.isna().any():
        raise ValueError(f"Failed to parse '{column}' with format '{fmt}': unparsed values")
    return parsed


def _weekday(timestamps: pd.Series) -> pd.Categorical:
    return pd.Categorical(timestamps.dt.day_name(), categories=WEEKDAY_ORDER, ordered=True)


def parse_activity_dates(df: pd.DataFrame, date_format: str = DATE_FORMAT) -> pd.DataFrame:
    out = df.copy()
    out['Date'] = _parse_datetimes(out['ActivityDate'], date_format, 'ActivityDate').dt.normalize()
    out['Weekday'] = _weekday(out['Date'])
    return out


def add_total_activity_minutes(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out['TotalActivityMinutes'] = out[ACTIVITY_MINUTE_COLUMNS].sum(axis=1)
    return out


def filter_activity_records(df: pd.DataFrame,
                            min_total_activity_minutes: float = MIN_TOTAL_ACTIVITY_MINUTES) -> pd.DataFrame:
    """
    Keep days with steps, calories and enough recorded minutes.

    A day counts only if the device logged steps and calories and the four
    minute categories add up to at least ``min_total_activity_minutes``
    (the device was worn long enough to trust the record).

    Args:
        df: Activity table with TotalActivityMinutes already derived
        min_total_activity_minutes: Wear-time threshold in minutes

    Returns:
        Filtered copy with a fresh index
    """
    mask = (
        (df['TotalSteps'] > 0)
        & (df['Calories'] > 0)
        & (df['TotalActivityMinutes'] >= min_total_activity_minutes)
    )
    return df[mask].reset_index(drop=True)


def clean_activity(df: pd.DataFrame,
                   date_format: str = DATE_FORMAT,
                   min_total_activity_minutes: float = MIN_TOTAL_ACTIVITY_MINUTES) -> Tuple[pd.DataFrame, int]:
    """
    Parse, derive and filter the daily activity table.

    Returns:
        Tuple of (filtered activity table, number of excluded rows)
    """
    prepared = add_total_activity_minutes(parse_activity_dates(df, date_format))
    filtered = filter_activity_records(prepared, min_total_activity_minutes)
    n_excluded = len(prepared) - len(filtered)
    logger.info(f"  Excluded {n_excluded} of {len(prepared)} activity records "
                f"(threshold {min_total_activity_minutes} min)")
    return filtered, n_excluded


def prepare_sleep(df: pd.DataFrame, datetime_format: str = DATETIME_FORMAT) -> pd.DataFrame:
    out = df.copy()
    sleep_day = _parse_datetimes(out['SleepDay'], datetime_format, 'SleepDay')
    out['Date'] = sleep_day.dt.normalize()
    out['Weekday'] = _weekday(sleep_day)
    out['SleepHours'] = out['TotalMinutesAsleep'] / 60.0
    # zero time in bed has no asleep share
    in_bed = out['TotalTimeInBed'].where(out['TotalTimeInBed'] > 0)
    out['AsleepPercentage'] = out['TotalMinutesAsleep'] / in_bed * 100.0
    return out


def decompose_timestamp(df: pd.DataFrame,
                        column: str,
                        datetime_format: str = DATETIME_FORMAT) -> pd.DataFrame:
    """
    Split a combined date-time column into Date, Hour and Weekday.

    Args:
        df: Heart-rate or hourly table
        column: Name of the date-time column ('Time' or 'ActivityHour')
        datetime_format: strptime-style format of the column

    Returns:
        Copy with the column parsed and Date/Hour/Weekday added
    """
    out = df.copy()
    out[column] = _parse_datetimes(out[column], datetime_format, column)
    out['Date'] = out[column].dt.normalize()
    out['Hour'] = out[column].dt.hour
    out['Weekday'] = _weekday(out[column])
    return out


def restrict_to_activity_days(df: pd.DataFrame, activity: pd.DataFrame) -> pd.DataFrame:
    """
    Inner-join a table against the (Id, Date) pairs of the filtered activity table.

    Rows on days that did not survive activity filtering are dropped. The
    key set is de-duplicated first so no row is repeated by the join.
    """
    # merge would pair NaT with NaT
    for name, table in (('table', df), ('activity', activity)):
        if table[JOIN_KEYS].isna().any().any():
            raise ValueError(f"Blank Id or Date in {name} rows; cannot restrict to activity days")

    keys = activity[JOIN_KEYS].drop_duplicates()
    restricted = df.merge(keys, on=JOIN_KEYS, how='inner')
    logger.info(f"  Kept {len(restricted)}/{len(df)} rows on valid activity days")
    return restricted
