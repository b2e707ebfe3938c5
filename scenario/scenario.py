"""
Scripted user interaction run after the page is loaded and gating passes.

All components live inside the application iframe; each step waits for its
XPath selector to be visible, clicks it and pauses briefly.
"""
from browser.browser_utils import capture_iframe_screenshot, get_iframe_content_frame
from config import RUNNER_CONFIG, SCENARIO_STEPS, TIMEOUTS


class ScenarioStepError(Exception):
    """A scripted step could not be completed."""


class Scenario:
    """Fixed, ordered sequence of UI actions inside the application iframe."""

    def __init__(self, page, console_logger, network_logger, runner_id,
                 steps=None, screenshots_dir=None):
        self.page = page
        self.console_logger = console_logger
        self.network_logger = network_logger
        self.runner_id = runner_id
        self.steps = steps if steps is not None else SCENARIO_STEPS
        self.screenshots_dir = screenshots_dir or RUNNER_CONFIG['screenshots_dir']

    async def execute(self):
        """Run every step in order; the first failing step aborts the rest."""
        self.console_logger.info("Starting scenario execution...")

        try:
            for index, step in enumerate(self.steps, start=1):
                await self.run_step(step)
                await capture_iframe_screenshot(
                    self.page, self.runner_id, self.console_logger,
                    label=f"step{index}", screenshots_dir=self.screenshots_dir,
                )
            self.console_logger.info("Scenario execution completed successfully")
        except Exception as e:
            self.console_logger.error(f"Scenario execution failed: {e}")
            raise

    async def run_step(self, step):
        name = step['name']
        description = step.get('description', 'element')
        selector = f"xpath={step['xpath']}"

        self.console_logger.info(f"{name}: Looking for {description} inside iframe...")

        try:
            iframe = await get_iframe_content_frame(self.page)

            await iframe.wait_for_selector(selector, timeout=TIMEOUTS['step_wait'], state='visible')
            self.console_logger.info(f"{name}: {description} found, clicking...")

            await iframe.click(selector)
            self.console_logger.info(f"{name}: {description} clicked successfully")

            # Let actions triggered by the click run
            await self.page.wait_for_timeout(step.get('pause_ms', 1000))
        except Exception as e:
            self.console_logger.error(f"{name} failed: {e}")
            raise ScenarioStepError(f"{name} failed: {e}") from e
