"""Tests for runner and endpoint observation CSV exports."""
import csv
import json

from reporting.csv_reporter import (
    endpoint_outcome,
    write_endpoint_observations_csv,
    write_runner_report,
)


def summary(runner_id, state='completed', endpoints=None, **overrides):
    data = {
        'runner_id': runner_id,
        'url': f'https://shop.example.com/s/{runner_id}',
        'state': state,
        'failure': None,
        'warnings': [],
        'error': None,
        'health_check_passed': True,
        'critical_failure': False,
        'stats': {'total_requests': 12, 'console_errors': 1, 'server_errors': 0,
                  'critical_endpoints_tracked': len(endpoints or {})},
        'endpoints': endpoints or {},
        'context_closed': True,
        'started_at': '2026-10-19T10:00:00',
        'finished_at': '2026-10-19T10:00:30',
    }
    data.update(overrides)
    return data


def read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.DictReader(f))


def test_endpoint_outcome():
    assert endpoint_outcome(None) == 'NOT_SEEN'
    assert endpoint_outcome({'body': 'OK (200)'}) == 'SUCCESS'
    assert endpoint_outcome({'error': 'HTTP 503'}) == 'FAILED'


def test_runner_report_one_row_per_runner(tmp_path):
    summaries = [
        summary(0, endpoints={'/health': {'status': 200, 'body': 'OK (200)'}}),
        summary(1, state='aborted', failure='CriticalEndpointFailure', critical_failure=True,
                warnings=['FrameLoadTimeout', 'HealthGateTimeout'],
                endpoints={'/getStore': {'status': 200, 'body': {'error': True}}}),
    ]
    path = write_runner_report(summaries, path=str(tmp_path / 'runners.csv'))

    rows = read_rows(path)
    assert [row['state'] for row in rows] == ['completed', 'aborted']
    assert rows[0]['endpoint_health'] == 'SUCCESS'
    assert rows[0]['endpoint_getStore'] == 'NOT_SEEN'
    assert rows[1]['failure'] == 'CriticalEndpointFailure'
    assert rows[1]['warnings'] == 'FrameLoadTimeout;HealthGateTimeout'
    assert rows[1]['total_requests'] == '12'


def test_runner_report_handles_crashed_runner_without_stats(tmp_path):
    crashed = summary(2, state='errored', stats={}, endpoints={}, error='boom')
    path = write_runner_report([crashed], path=str(tmp_path / 'runners.csv'))
    row = read_rows(path)[0]
    assert row['total_requests'] == '0'
    assert row['error'] == 'boom'


def test_runner_report_skips_empty(tmp_path):
    assert write_runner_report([], directory=str(tmp_path)) is None
    assert list(tmp_path.iterdir()) == []


def test_observation_rows(tmp_path):
    summaries = [
        summary(0, endpoints={
            '/getStore': {'url': 'https://api.test/getStore', 'status': 200,
                          'body': {'error': False}, 'timestamp': 't1'},
            '/health': {'url': 'https://api.test/health', 'status': 503,
                        'error': 'HTTP 503', 'timestamp': 't2'},
        }),
        summary(1),
    ]
    path = write_endpoint_observations_csv(summaries, directory=str(tmp_path))

    rows = read_rows(path)
    assert len(rows) == 2
    store, health = rows
    assert store['outcome'] == 'SUCCESS'
    assert json.loads(store['body']) == {'error': False}
    assert health['outcome'] == 'FAILED'
    assert health['error'] == 'HTTP 503'
    assert health['body'] == ''


def test_observations_skip_when_nothing_seen(tmp_path):
    assert write_endpoint_observations_csv([summary(0)], directory=str(tmp_path)) is None
