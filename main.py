"""
Entry point for the Playwright stress runner.
"""
import asyncio
import logging

from config import RUNNER_CONFIG
from reporting.csv_reporter import write_endpoint_observations_csv, write_runner_report
from session.launcher import run_stress_test
from tracking.session_tracker import initialize_tracker
from utils.helpers import load_candidate_urls, reset_output_dirs
from utils.logging_utils import setup_logging


async def main():
    """Main function."""
    setup_logging()

    if RUNNER_CONFIG.get('reset_output_dirs', True):
        reset_output_dirs(RUNNER_CONFIG['logs_dir'], RUNNER_CONFIG['screenshots_dir'])

    urls = load_candidate_urls(RUNNER_CONFIG['url_source'], RUNNER_CONFIG['url_key'])
    logging.info(f"Candidate URLs: {urls}")

    tracker = None
    if RUNNER_CONFIG.get('enable_session_tracking', True):
        tracker = initialize_tracker(RUNNER_CONFIG.get('tracking_report_interval', 300))
        tracker.start_tracking()

    logging.info("=" * 80)
    logging.info(f"STRESS RUN: {RUNNER_CONFIG['runner_count']} runner(s)")
    logging.info("=" * 80)

    try:
        summaries = await run_stress_test(urls, tracker=tracker)
    finally:
        if tracker is not None:
            final_report = await tracker.stop_tracking()
            if final_report:
                tracker.write_tracking_report_csv(final_report)

    if RUNNER_CONFIG.get('csv_report', True):
        write_runner_report(summaries)
        write_endpoint_observations_csv(summaries)

    completed = len([s for s in summaries if s['state'] == 'completed'])
    logging.info(f"All runners completed: {completed} completed, {len(summaries) - completed} not completed")
    return summaries


if __name__ == '__main__':
    asyncio.run(main())
