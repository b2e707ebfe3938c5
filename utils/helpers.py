"""
Helper utility functions for the Playwright stress runner.
"""
import asyncio
import json
import logging
import os
import shutil
from datetime import datetime


def reset_output_dirs(*dirs):
    """Remove and recreate output folders (logs, screenshots).

    Safe to call repeatedly; call once before any runner starts.
    """
    for directory in dirs:
        if os.path.exists(directory):
            shutil.rmtree(directory, ignore_errors=True)
        os.makedirs(directory, exist_ok=True)
        logging.info(f"Reset output folder: {directory}")


def load_candidate_urls(path, key='urls'):
    """Load the candidate URL list from a JSON file.

    Args:
        path: Path to a JSON file such as {"urls": ["https://...", ...]}
        key: Key holding the URL list

    Returns:
        list: Candidate URLs (may be empty)

    Raises:
        ValueError: If the key is missing or does not hold a list
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    urls = data.get(key) if isinstance(data, dict) else None
    if not isinstance(urls, list):
        raise ValueError(f"{path}: expected a list of URLs under '{key}'")

    urls = [url for url in urls if isinstance(url, str) and url]
    logging.info(f"Loaded {len(urls)} candidate URL(s) from {path}")
    return urls


def timestamp_for_filename(now=None):
    """ISO-8601 timestamp with ':' and '.' replaced so it is safe in file names."""
    now = now or datetime.now()
    return now.isoformat().replace(':', '-').replace('.', '-')


async def run_concurrent_with_timeout(coroutines, timeout=None, return_exceptions=True):
    """Run multiple coroutines concurrently with optional timeout.

    Args:
        coroutines: List of coroutines to run
        timeout: Optional timeout in seconds
        return_exceptions: If True, exceptions are returned as results

    Returns:
        List of results
    """
    # Create tasks immediately so they start running in parallel
    tasks = [asyncio.create_task(coro) for coro in coroutines]

    if timeout:
        try:
            results = await asyncio.wait_for(
                asyncio.gather(*tasks, return_exceptions=return_exceptions),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            # Cancel all tasks on timeout
            for task in tasks:
                if not task.done():
                    task.cancel()
            raise
    else:
        results = await asyncio.gather(*tasks, return_exceptions=return_exceptions)

    return results
