"""
Browser and iframe utilities for the Playwright stress runner.
"""
import os

from playwright.async_api import Error as PlaywrightError

from config import IFRAME_SELECTOR
from utils.helpers import timestamp_for_filename


class FrameNotFoundError(Exception):
    """The application iframe is missing or its content frame is inaccessible."""


async def get_iframe_content_frame(page, selector=IFRAME_SELECTOR):
    """Return the content frame of the application iframe.

    Raises:
        FrameNotFoundError: If the element or its content frame is missing
    """
    iframe_element = await page.query_selector(selector)
    if iframe_element is None:
        raise FrameNotFoundError(f"{selector} not found")

    iframe = await iframe_element.content_frame()
    if iframe is None:
        raise FrameNotFoundError(f"Could not access {selector} content")

    return iframe


def screenshot_filename(runner_id, label=None):
    """runner-<id>[-<label>]-<timestamp>.png"""
    label_part = f"-{label}" if label else ""
    return f"runner-{runner_id}{label_part}-{timestamp_for_filename()}.png"


async def capture_iframe_screenshot(page, runner_id, logger, label=None,
                                    screenshots_dir='screenshots', selector=IFRAME_SELECTOR):
    """Capture a PNG of the application iframe element only.

    Failures are logged and never raised.

    Returns:
        str or None: Path of the saved screenshot
    """
    try:
        filename = screenshot_filename(runner_id, label)
        filepath = os.path.join(screenshots_dir, filename)

        iframe_element = await page.query_selector(selector)
        if iframe_element is None:
            logger.error(f"{selector} not found for screenshot")
            return None

        os.makedirs(screenshots_dir, exist_ok=True)
        await iframe_element.screenshot(path=filepath)

        logger.info(f"Screenshot saved: {filename}")
        return filepath
    except (PlaywrightError, OSError) as e:
        what = f" for {label}" if label else ""
        logger.error(f"Screenshot failed{what}: {e}")
        return None
