"""
CSV reporting module for exporting runner outcomes and endpoint observations.
"""
import csv
import json
import logging
import os
from datetime import datetime

from config import CRITICAL_ENDPOINTS

RUNNER_FIELDNAMES = [
    'runner_id',
    'url',
    'state',
    'failure',
    'warnings',
    'error',
    'health_check_passed',
    'critical_failure',
    'total_requests',
    'console_errors',
    'server_errors',
    'critical_endpoints_tracked',
    'started_at',
    'finished_at',
] + [f"endpoint{name.replace('/', '_')}" for name in CRITICAL_ENDPOINTS]

OBSERVATION_FIELDNAMES = [
    'runner_id',
    'endpoint',
    'url',
    'status',
    'outcome',
    'error',
    'body',
    'timestamp',
]


def _default_path(prefix, directory=None):
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return os.path.join(directory or os.getcwd(), f"{prefix}_{timestamp}.csv")


def endpoint_outcome(observation):
    if observation is None:
        return 'NOT_SEEN'
    return 'FAILED' if 'error' in observation else 'SUCCESS'


def runner_row(summary):
    """Flatten one runner summary into a CSV row."""
    stats = summary.get('stats') or {}
    endpoints = summary.get('endpoints') or {}
    row = {
        'runner_id': summary['runner_id'],
        'url': summary['url'],
        'state': summary['state'],
        'failure': summary.get('failure') or '',
        'warnings': ';'.join(summary.get('warnings') or []),
        'error': summary.get('error') or '',
        'health_check_passed': summary.get('health_check_passed', False),
        'critical_failure': summary.get('critical_failure', False),
        'total_requests': stats.get('total_requests', 0),
        'console_errors': stats.get('console_errors', 0),
        'server_errors': stats.get('server_errors', 0),
        'critical_endpoints_tracked': stats.get('critical_endpoints_tracked', 0),
        'started_at': summary.get('started_at') or '',
        'finished_at': summary.get('finished_at') or '',
    }
    for name in CRITICAL_ENDPOINTS:
        row[f"endpoint{name.replace('/', '_')}"] = endpoint_outcome(endpoints.get(name))
    return row


def write_runner_report(summaries, path=None, directory=None):
    """Write one row per runner. Returns the file path, or None if nothing was written."""
    if not summaries:
        logging.warning("No runner summaries to write to CSV")
        return None

    path = path or _default_path('runner_report', directory)
    try:
        with open(path, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=RUNNER_FIELDNAMES, extrasaction='ignore')
            writer.writeheader()
            for summary in summaries:
                writer.writerow(runner_row(summary))
        logging.info(f"Runner report written to: {path}")
        return path
    except OSError as e:
        logging.error(f"Error writing runner report CSV: {e}")
        return None


def write_endpoint_observations_csv(summaries, path=None, directory=None):
    """Write one row per stored critical endpoint observation across all runners."""
    rows = []
    for summary in summaries:
        for endpoint, observation in (summary.get('endpoints') or {}).items():
            body = observation.get('body')
            rows.append({
                'runner_id': summary['runner_id'],
                'endpoint': endpoint,
                'url': observation.get('url', ''),
                'status': observation.get('status', ''),
                'outcome': endpoint_outcome(observation),
                'error': observation.get('error', ''),
                'body': json.dumps(body) if body is not None else '',
                'timestamp': observation.get('timestamp', ''),
            })

    if not rows:
        logging.warning("No endpoint observations collected to write to CSV")
        return None

    path = path or _default_path('endpoint_observations', directory)
    try:
        with open(path, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=OBSERVATION_FIELDNAMES)
            writer.writeheader()
            writer.writerows(rows)
        logging.info(f"Endpoint observations written to: {path}")
        return path
    except OSError as e:
        logging.error(f"Error writing endpoint observations CSV: {e}")
        return None
