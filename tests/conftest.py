"""Shared fixtures: a small synthetic copy of the six wearable exports."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pandas as pd
import pytest

# Allow running tests without `pip install -e .` by making the flat modules importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

SUBJECT_A = 1111111111
SUBJECT_B = 2222222222
FIRST_DAY = datetime(2016, 4, 1)
N_DAYS = 7
TIMESTAMP_FMT = '%m/%d/%Y %I:%M:%S %p'


def _activity_rows():
    rows = []
    for subject in (SUBJECT_A, SUBJECT_B):
        for i in range(N_DAYS):
            day = FIRST_DAY + timedelta(days=i)
            rows.append({
                'Id': subject,
                'ActivityDate': f'{day.month}/{day.day}/{day.year}',
                'TotalSteps': 8000 + i * 100,
                'TotalDistance': 6.0,
                'TrackerDistance': 6.0,
                'LoggedActivitiesDistance': 0.0,
                'VeryActiveDistance': 2.0,
                'ModeratelyActiveDistance': 1.0,
                'LightActiveDistance': 3.0,
                'SedentaryActiveDistance': 0.0,
                'VeryActiveMinutes': 30,
                'FairlyActiveMinutes': 20,
                'LightlyActiveMinutes': 200,
                'SedentaryMinutes': 700,
                'Calories': 2000 + i * 10,
            })
    df = pd.DataFrame(rows)

    # Subject A wore no tracker on 4/1/2016
    a_first = (df['Id'] == SUBJECT_A) & (df['ActivityDate'] == '4/1/2016')
    df.loc[a_first, ['TotalSteps', 'TotalDistance', 'VeryActiveDistance',
                     'ModeratelyActiveDistance', 'LightActiveDistance']] = 0
    # Subject B wore it for under four hours on 4/2/2016
    b_second = (df['Id'] == SUBJECT_B) & (df['ActivityDate'] == '4/2/2016')
    df.loc[b_second, ['VeryActiveMinutes', 'FairlyActiveMinutes',
                      'LightlyActiveMinutes', 'SedentaryMinutes']] = [0, 0, 50, 150]
    return df


def _timestamps():
    for subject in (SUBJECT_A, SUBJECT_B):
        for i in range(N_DAYS):
            day = FIRST_DAY + timedelta(days=i)
            for hour in range(24):
                yield subject, day + timedelta(hours=hour)


def _heart_rate_rows():
    rows = []
    for subject, ts in _timestamps():
        rows.append({'Id': subject, 'Time': (ts + timedelta(seconds=5)).strftime(TIMESTAMP_FMT), 'Value': 60 + ts.hour})
        rows.append({'Id': subject, 'Time': (ts + timedelta(minutes=30)).strftime(TIMESTAMP_FMT), 'Value': 62 + ts.hour})
    return pd.DataFrame(rows)


def _hourly_rows(value_col, base):
    rows = []
    for subject, ts in _timestamps():
        row = {'Id': subject, 'ActivityHour': ts.strftime(TIMESTAMP_FMT), value_col: base + ts.hour}
        if value_col == 'TotalIntensity':
            row['AverageIntensity'] = (base + ts.hour) / 60.0
        rows.append(row)
    return pd.DataFrame(rows)


def _sleep_rows():
    rows = []
    for subject in (SUBJECT_A, SUBJECT_B):
        for i in range(1, N_DAYS):
            day = FIRST_DAY + timedelta(days=i)
            asleep = 420 if subject == SUBJECT_A else 360 + i * 10
            rows.append({
                'Id': subject,
                'SleepDay': day.strftime(TIMESTAMP_FMT),
                'TotalSleepRecords': 1,
                'TotalMinutesAsleep': asleep,
                'TotalTimeInBed': asleep + 30,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def raw_tables():
    return {
        'activity': _activity_rows(),
        'heart_rate': _heart_rate_rows(),
        'hourly_calories': _hourly_rows('Calories', 50),
        'hourly_intensity': _hourly_rows('TotalIntensity', 5),
        'hourly_steps': _hourly_rows('StepTotal', 100),
        'sleep': _sleep_rows(),
    }


@pytest.fixture
def data_dir(tmp_path, raw_tables):
    from data_loading import DEFAULT_FILES

    directory = tmp_path / 'data'
    directory.mkdir()
    for table, df in raw_tables.items():
        df.to_csv(directory / DEFAULT_FILES[table], index=False)
    return directory


@pytest.fixture
def report_config(tmp_path, data_dir):
    return {
        'project': {'name': 'test-report', 'output_dir': str(tmp_path / 'output')},
        'data': {'data_dir': str(data_dir)},
        'report': {'dpi': 40},
    }
