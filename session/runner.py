"""
Runner for one headless browser stress session.

A runner owns one isolated browser context on a shared browser. It wires the
critical endpoint monitor to the page, navigates, waits for the application
iframe and the /health gate, and runs the scripted scenario only when no
critical endpoint has failed. The context is closed on every exit path; the
shared browser is never touched.
"""
import asyncio
import logging
import time
from datetime import datetime
from enum import Enum

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser.browser_utils import (
    FrameNotFoundError,
    capture_iframe_screenshot,
    get_iframe_content_frame,
)
from browser.critical_monitor import CriticalEndpointMonitor
from config import HEALTH_ENDPOINT, IFRAME_SELECTOR, RUNNER_CONFIG, TIMEOUTS
from scenario.scenario import Scenario
from utils.logging_utils import close_runner_loggers, create_runner_loggers


class SessionState(Enum):
    """Lifecycle states of one runner.

    HEALTH_GATE_PASSED means a /health response was observed, whatever its
    status; whether it returned 200 is in the summary as health_check_passed.
    A non-200 /health marks a critical failure, so such a session aborts at
    CRITICAL_CHECK.
    """

    INIT = 'init'
    CONTEXT_CREATED = 'context_created'
    NAVIGATED = 'navigated'
    FRAME_MONITORED = 'frame_monitored'
    HEALTH_GATE_PENDING = 'health_gate_pending'
    HEALTH_GATE_PASSED = 'health_gate_passed'
    HEALTH_GATE_TIMED_OUT = 'health_gate_timed_out'
    CRITICAL_CHECK = 'critical_check'
    SCENARIO_RUN = 'scenario_run'
    COMPLETED = 'completed'
    ABORTED = 'aborted'
    ERRORED = 'errored'


TERMINAL_STATES = (SessionState.COMPLETED, SessionState.ABORTED, SessionState.ERRORED)


class NavigationError(Exception):
    """Navigation to the target URL failed."""


class Runner:
    """Drives one session end to end against a target URL."""

    def __init__(self, url, browser, runner_id=0, scenario_factory=Scenario,
                 logs_dir=None, screenshots_dir=None, tracker=None, log_to_console=True):
        """
        Args:
            url: Target URL for this session
            browser: Shared Playwright browser (only used to create a context)
            runner_id: Identifier used in log lines and artifact names
            scenario_factory: Callable (page, console_logger, network_logger, runner_id)
                returning an object with an async execute()
            logs_dir: Folder for runner log files
            screenshots_dir: Folder for iframe screenshots
            tracker: Optional SessionTracker notified of state transitions
        """
        self.url = url
        self.browser = browser
        self.id = runner_id
        self.scenario_factory = scenario_factory
        self.screenshots_dir = screenshots_dir or RUNNER_CONFIG['screenshots_dir']
        self.tracker = tracker

        self.console_logger, self.network_logger = create_runner_loggers(
            runner_id, logs_dir or RUNNER_CONFIG['logs_dir'], to_console=log_to_console
        )
        self.event_handler = CriticalEndpointMonitor(self.console_logger, self.network_logger)

        self.context = None
        self.page = None
        self.iframe = None

        self.state = SessionState.INIT
        self.state_history = [(SessionState.INIT, time.time())]
        self.failure = None  # fatal failure kind
        self.warnings = []  # non-fatal failure kinds
        self.error = None
        self.context_closed = False
        self.started_at = None
        self.finished_at = None

    def _transition(self, state):
        self.state = state
        self.state_history.append((state, time.time()))
        self.console_logger.debug(f"State -> {state.value}")
        if self.tracker is not None:
            self.tracker.update_state(self.id, state.value)

    async def run(self):
        """Execute the session and return its terminal SessionState."""
        self.started_at = datetime.now().isoformat()
        try:
            # Isolated context, like incognito mode
            self.context = await self.browser.new_context()
            self.page = await self.context.new_page()
            self.event_handler.attach(self.page)
            self._transition(SessionState.CONTEXT_CREATED)

            await self.navigate()
            self._transition(SessionState.NAVIGATED)

            await self.monitor_iframe()
            self._transition(SessionState.FRAME_MONITORED)

            await self.wait_for_app_ready()

            self._transition(SessionState.CRITICAL_CHECK)
            if self.event_handler.has_critical_failure():
                self.console_logger.error(
                    "Critical endpoint failure detected - stopping runner and taking screenshot"
                )
                self.failure = 'CriticalEndpointFailure'
                await self.capture_screenshot()
                self._transition(SessionState.ABORTED)
                return self.state

            await self.capture_screenshot('before-scenario')

            self._transition(SessionState.SCENARIO_RUN)
            await self.execute_scenario()

            await self.capture_screenshot('after-scenario')

            self.log_response_summary()
            self._transition(SessionState.COMPLETED)
        except Exception as e:
            self.console_logger.error(f"Error: {e}")
            self.error = str(e)
            if self.failure is None:
                self.failure = type(e).__name__
            self._transition(SessionState.ERRORED)
        finally:
            # Body checks started during the scenario belong to this session's outcome
            await self.event_handler.settle()
            await self.cleanup()
            self.finished_at = datetime.now().isoformat()
            close_runner_loggers(self.console_logger, self.network_logger)

        return self.state

    async def navigate(self):
        self.console_logger.info(f"Opening: {self.url}")
        try:
            await self.page.goto(self.url, wait_until='networkidle')
        except Exception as e:
            self.failure = 'NavigationFailure'
            raise NavigationError(f"Navigation to {self.url} failed: {e}") from e
        self.console_logger.info(f"Loaded: {self.url}")

    async def monitor_iframe(self):
        """Wait for the application iframe; a missing frame leaves the session degraded."""
        try:
            self.console_logger.info(f"Waiting for {IFRAME_SELECTOR}...")
            await self.page.wait_for_selector(IFRAME_SELECTOR, timeout=TIMEOUTS['iframe_wait'])
            self.console_logger.info(f"{IFRAME_SELECTOR} found")
            self.iframe = await get_iframe_content_frame(self.page)
        except (FrameNotFoundError, PlaywrightError) as e:
            self.warnings.append('FrameNotFound')
            self.console_logger.error(f"Iframe monitoring failed: {e}")
            return

        self.console_logger.info(f"{IFRAME_SELECTOR} URL: {self.iframe.url}")

        try:
            await self.iframe.wait_for_load_state('networkidle')
        except PlaywrightError:
            self.warnings.append('FrameLoadTimeout')
            self.console_logger.warning(f"{IFRAME_SELECTOR} did not reach networkidle state")

        self.console_logger.info(f"{IFRAME_SELECTOR} loaded and monitored")

    async def wait_for_app_ready(self):
        """Block on the /health response (bounded), then let pending body checks settle.

        The gate is passed once /health has been observed; a non-200 status
        is left to the critical check that follows.
        """
        self._transition(SessionState.HEALTH_GATE_PENDING)
        self.console_logger.info(f"Waiting for {HEALTH_ENDPOINT} endpoint...")

        observed = self.event_handler.get_endpoint_response(HEALTH_ENDPOINT) is not None
        if not observed:
            try:
                await self.page.wait_for_event(
                    'response',
                    predicate=lambda response: response.url.endswith(HEALTH_ENDPOINT),
                    timeout=TIMEOUTS['health_wait'],
                )
                observed = True
            except PlaywrightTimeoutError as e:
                self.console_logger.error(f"Health check timeout: {e}")
            except PlaywrightError as e:
                self.console_logger.error(f"Health check wait failed: {e}")

        # Give the monitor a moment to process responses
        await asyncio.sleep(TIMEOUTS['settle_delay'])
        await self.event_handler.settle()

        if not observed:
            self.warnings.append('HealthGateTimeout')
            self._transition(SessionState.HEALTH_GATE_TIMED_OUT)
            return

        if self.event_handler.has_health_check_passed():
            self.console_logger.info("App is ready: Health check passed")
        else:
            self.console_logger.warning("Health endpoint called but did not return OK status")
        self._transition(SessionState.HEALTH_GATE_PASSED)

    async def execute_scenario(self):
        try:
            scenario = self.scenario_factory(
                self.page, self.console_logger, self.network_logger, self.id
            )
            await scenario.execute()
        except Exception as e:
            self.failure = 'ScenarioStepFailure'
            self.console_logger.error(f"Scenario execution error: {e}")
            raise

    async def capture_screenshot(self, label=None):
        if self.page is None:
            return None
        return await capture_iframe_screenshot(
            self.page, self.id, self.console_logger,
            label=label, screenshots_dir=self.screenshots_dir,
        )

    async def cleanup(self):
        """Close this runner's context exactly once; the browser is shared and stays open."""
        context, self.context = self.context, None
        if context is None or self.context_closed:
            return
        self.context_closed = True
        try:
            await context.close()
            self.console_logger.info("Closed browser context")
        except PlaywrightError as e:
            self.console_logger.warning(f"Error closing browser context: {e}")
        finally:
            self.event_handler.cancel_pending()

    def log_response_summary(self):
        responses = self.event_handler.get_all_responses_as_object()
        stats = self.event_handler.get_stats()

        self.console_logger.info("=== Runner Summary ===")
        self.console_logger.info(f"Total Requests: {stats['total_requests']}")
        self.console_logger.info(f"Console Errors: {stats['console_errors']}")
        self.console_logger.info(f"Server Errors: {stats['server_errors']}")
        self.console_logger.info(f"Critical Endpoints Tracked: {stats['critical_endpoints_tracked']}")

        for endpoint, data in responses.items():
            self.console_logger.info(f"{endpoint}: {'FAILED' if 'error' in data else 'SUCCESS'}")

    def get_event_handler(self):
        return self.event_handler

    def get_critical_endpoint_responses(self):
        return self.event_handler.get_all_responses_as_object()

    def summary(self):
        """Plain dict describing the session outcome, for reports and the API."""
        return {
            'runner_id': self.id,
            'url': self.url,
            'state': self.state.value,
            'failure': self.failure,
            'warnings': list(self.warnings),
            'error': self.error,
            'health_check_passed': self.event_handler.has_health_check_passed(),
            'critical_failure': self.event_handler.has_critical_failure(),
            'stats': self.event_handler.get_stats(),
            'endpoints': self.event_handler.get_all_responses_as_object(),
            'context_closed': self.context_closed,
            'started_at': self.started_at,
            'finished_at': self.finished_at,
        }


def crash_summary(runner_id, url, error):
    """Summary for a runner whose task failed outside its own boundary."""
    logging.error(f"Runner {runner_id} failed with exception: {error}")
    return {
        'runner_id': runner_id,
        'url': url,
        'state': SessionState.ERRORED.value,
        'failure': type(error).__name__,
        'warnings': [],
        'error': str(error),
        'health_check_passed': False,
        'critical_failure': False,
        'stats': {},
        'endpoints': {},
        'context_closed': None,
        'started_at': None,
        'finished_at': datetime.now().isoformat(),
    }
