"""End-to-end tests for the report pipeline and its configuration."""

import sys

import pandas as pd
import pytest
import yaml

import run_report
from data_loading import DEFAULT_FILES
from run_report import build_report, create_default_config, load_config, run_report_pipeline


def test_build_report_end_to_end(report_config, tmp_path):
    result = build_report(report_config)

    assert result['exclusion'] == {'total': 14, 'excluded': 2, 'threshold_minutes': 240}
    assert len(result['activity']) == 12
    assert set(result['restricted']) == {'heart_rate', 'hourly_calories', 'hourly_intensity', 'hourly_steps'}

    activity_pairs = set(zip(result['activity']['Id'], result['activity']['Date']))
    for table in result['restricted'].values():
        assert set(zip(table['Id'], table['Date'])) <= activity_pairs

    output_dir = tmp_path / 'output'
    assert (output_dir / 'report.md').exists()
    assert len(result['charts']) == 7 + 9
    # no structured export of aggregates
    assert not list(output_dir.glob('*.csv'))
    assert not list(output_dir.glob('*.json'))


def test_report_is_idempotent(report_config):
    first = build_report(report_config)['aggregates']
    second = build_report(report_config)['aggregates']

    pd.testing.assert_series_equal(first['time_share'], second['time_share'])
    pd.testing.assert_series_equal(first['distance_share'], second['distance_share'])
    assert first['medians'].keys() == second['medians'].keys()
    for key in first['medians']:
        pd.testing.assert_series_equal(first['medians'][key], second['medians'][key])


def test_narrative_can_be_disabled(report_config, tmp_path):
    report_config['report']['write_narrative'] = False
    result = build_report(report_config)

    assert result['narrative']
    assert not (tmp_path / 'output' / 'report.md').exists()


def test_missing_input_file_aborts(report_config, data_dir):
    (data_dir / DEFAULT_FILES['hourly_steps']).unlink()

    with pytest.raises(FileNotFoundError):
        build_report(report_config)


def test_custom_wear_threshold(report_config):
    report_config['filtering'] = {'min_total_activity_minutes': 100}
    result = build_report(report_config)

    assert result['exclusion']['excluded'] == 1


def test_default_config_round_trip(tmp_path):
    path = tmp_path / 'config.yaml'
    with open(path, 'w') as f:
        yaml.dump(create_default_config(), f, default_flow_style=False)

    cfg = load_config(str(path))

    assert cfg['filtering']['min_total_activity_minutes'] == 240
    assert cfg['parsing']['datetime_format'] == '%m/%d/%Y %I:%M:%S %p'
    assert cfg['data']['files'] == DEFAULT_FILES


def test_run_report_pipeline_from_yaml(report_config, tmp_path):
    path = tmp_path / 'config.yaml'
    with open(path, 'w') as f:
        yaml.dump(report_config, f)

    result = run_report_pipeline(str(path))

    assert len(result['activity']) == 12


def test_cli_creates_config(monkeypatch, tmp_path):
    path = tmp_path / 'conf' / 'report.yaml'
    monkeypatch.setattr(sys, 'argv', ['run_report.py', '--config', str(path), '--create-config'])

    run_report.main()

    assert load_config(str(path))['project']['name'] == 'wearable-activity-report'


def test_cli_missing_config(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, 'argv', ['run_report.py', '--config', str(tmp_path / 'absent.yaml')])

    with pytest.raises(FileNotFoundError):
        run_report.main()


def test_report_when_every_day_fails_wear_time(report_config, tmp_path):
    report_config['filtering'] = {'min_total_activity_minutes': 10_000}

    result = build_report(report_config)

    assert result['exclusion']['excluded'] == 14
    assert len(result['activity']) == 0
    assert all(len(t) == 0 for t in result['restricted'].values())
    names = {p.name for p in result['charts']}
    assert 'pie_time_share.png' not in names
    assert 'density_total_steps.png' not in names
    # sleep is not restricted to activity days
    assert 'box_sleep_hours_weekday.png' in names
    assert result['narrative'][0].startswith('14 of 14 daily activity records were excluded')
    assert (tmp_path / 'output' / 'report.md').exists()
