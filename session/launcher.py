"""
Fans out runners concurrently against one shared browser.
"""
import logging
import random

from playwright.async_api import async_playwright

from config import RUNNER_CONFIG
from scenario.scenario import Scenario
from session.runner import Runner, crash_summary
from utils.helpers import run_concurrent_with_timeout


async def run_isolated(browser, runner_id, url, **runner_kwargs):
    """Build and run one runner; anything escaping it is caught here and never reaches siblings."""
    try:
        # Runner() opens log files and can fail too
        runner = Runner(url, browser, runner_id, **runner_kwargs)
        await runner.run()
        return runner.summary()
    except Exception as e:
        return crash_summary(runner_id, url, e)


async def launch_sessions(browser, urls, runner_count, scenario_factory=Scenario,
                          chooser=random.choice, tracker=None, **runner_kwargs):
    """Launch runner_count runners concurrently, each on a randomly chosen URL.

    Args:
        browser: Shared Playwright browser
        urls: Candidate URLs; each runner picks one independently
        runner_count: Number of concurrent runners
        scenario_factory: Scenario class/callable passed to every runner
        chooser: Function picking one URL from the list
        tracker: Optional SessionTracker
        **runner_kwargs: Extra Runner keyword arguments (logs_dir, screenshots_dir, ...)

    Returns:
        list: One summary dict per runner, in runner id order
    """
    if not urls:
        logging.warning("No candidate URLs - no runners launched")
        return []

    assignments = []
    for i in range(runner_count):
        url = chooser(urls)
        if tracker is not None:
            tracker.register_session(i, url)
        assignments.append((i, url))

    logging.info(f"Launching {len(assignments)} runner(s) concurrently...")
    results = await run_concurrent_with_timeout([
        run_isolated(browser, runner_id, url, scenario_factory=scenario_factory,
                     tracker=tracker, **runner_kwargs)
        for runner_id, url in assignments
    ])

    summaries = []
    for (runner_id, url), result in zip(assignments, results):
        if isinstance(result, BaseException):
            result = crash_summary(runner_id, url, result)
        if tracker is not None:
            tracker.unregister_session(runner_id, reason=result['state'])
        summaries.append(result)

    by_state = {}
    for summary in summaries:
        by_state[summary['state']] = by_state.get(summary['state'], 0) + 1
    logging.info(f"All runners finished: {by_state}")

    return summaries


async def run_stress_test(urls, runner_count=None, headless=None, tracker=None, **launch_kwargs):
    """Start one shared Chromium browser, run all runners, then close the browser once."""
    runner_count = runner_count if runner_count is not None else RUNNER_CONFIG['runner_count']
    headless = headless if headless is not None else RUNNER_CONFIG['headless']

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless, args=RUNNER_CONFIG['browser_args'])
        logging.info("Browser started")
        try:
            return await launch_sessions(browser, urls, runner_count, tracker=tracker, **launch_kwargs)
        finally:
            await browser.close()
            logging.info("Browser closed")
