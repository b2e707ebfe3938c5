"""
Critical endpoint monitoring for a single runner.

Tracks request/error counters and the outcome of a fixed set of critical API
endpoints. A failed critical endpoint sets a sticky flag that gates the
scripted scenario; the /health endpoint is judged on HTTP status alone, in
any status band.
"""
import asyncio
import json
from datetime import datetime

from browser.event_handler import EventHandler, classify_status
from config import (
    API_PATH_MARKER,
    CRITICAL_ENDPOINTS,
    HEALTH_ENDPOINT,
    SHORT_LINK_MARKER,
    THRESHOLDS,
    TRACKING_MARKERS,
)


def match_critical_endpoint(url, endpoints=CRITICAL_ENDPOINTS):
    """Return the first critical endpoint name the URL ends with, or None."""
    for endpoint in endpoints:
        if url.endswith(endpoint):
            return endpoint
    return None


class CriticalEndpointMonitor(EventHandler):
    """Event handler with per-session counters and critical endpoint gating."""

    def __init__(self, console_logger, network_logger, critical_endpoints=CRITICAL_ENDPOINTS):
        super().__init__(console_logger, network_logger)
        self.critical_endpoints = tuple(critical_endpoints)

        self.error_count = 0
        self.request_count = 0
        self.server_error_count = 0

        # Sticky: only ever set to True
        self.critical_endpoint_failed = False
        self.health_check_passed = False

        # endpoint name -> latest observation (last write wins)
        self.critical_endpoint_responses = {}

        self._pending_checks = set()

    def on_console_error(self, message):
        self.error_count += 1

        if self.error_count > THRESHOLDS['console_errors']:
            self.console_logger.error(f"High console error count: {self.error_count}")

        if 'Failed to load resource' in message:
            self.console_logger.warning(f"Resource loading failed: {message}")

    def on_request(self, request):
        self.request_count += 1
        url = request.url

        if API_PATH_MARKER in url:
            self.network_logger.info(f"API call: {request.method} {url}")

        # Logged only; the request is not aborted
        if any(marker in url for marker in TRACKING_MARKERS):
            self.network_logger.info(f"Tracking request observed: {url}")

    def on_server_error(self, response):
        self.server_error_count += 1
        url = response.url
        status = response.status

        self.network_logger.error(f"Server error {status}: {url}")

        if SHORT_LINK_MARKER in url:
            self.network_logger.error(f"Critical: Short URL service failed - {url}")

        if self.server_error_count > THRESHOLDS['server_errors']:
            self.network_logger.error(f"High server error count: {self.server_error_count}")

    def on_client_error(self, response):
        status = response.status
        url = response.url

        if status == 404:
            self.network_logger.warning(f"Resource not found: {url}")
        elif status in (401, 403):
            self.network_logger.error(f"Authentication/Authorization failed: {status} {url}")

    def handle_response(self, response):
        super().handle_response(response)

        # /health is judged on status alone, so non-2xx answers count too
        if (classify_status(response.status) != 'success'
                and match_critical_endpoint(response.url, self.critical_endpoints) == HEALTH_ENDPOINT):
            self.check_health_endpoint(response)

    def on_success(self, response):
        endpoint_name = match_critical_endpoint(response.url, self.critical_endpoints)
        if endpoint_name is None:
            return

        if endpoint_name == HEALTH_ENDPOINT:
            self.check_health_endpoint(response)
            return

        # Body reads are async; track the task so the runner can settle it
        task = asyncio.ensure_future(self.check_critical_endpoint(response))
        self._pending_checks.add(task)
        task.add_done_callback(self._pending_checks.discard)

    def check_health_endpoint(self, response):
        """Judge /health by HTTP status only; the body is never read."""
        url = response.url
        status = response.status

        if status == 200:
            self.health_check_passed = True
            self._store(HEALTH_ENDPOINT, url, status, body='OK (200)')
            self.network_logger.info(f"[Critical Endpoint] {HEALTH_ENDPOINT}: SUCCESS (HTTP 200)")
        else:
            self.network_logger.error(f"Critical endpoint {HEALTH_ENDPOINT} returned status {status}")
            self.critical_endpoint_failed = True
            self._store(HEALTH_ENDPOINT, url, status, error=f"HTTP {status}")

    async def check_critical_endpoint(self, response):
        """Evaluate one successful response from a critical endpoint."""
        url = response.url
        endpoint_name = match_critical_endpoint(url, self.critical_endpoints)
        if endpoint_name is None:
            return

        if endpoint_name == HEALTH_ENDPOINT:
            self.check_health_endpoint(response)
            return

        status = response.status

        try:
            body = await response.json()
        except Exception as e:
            self.network_logger.error(f"Critical endpoint {endpoint_name} did not return valid JSON: {e}")
            self.critical_endpoint_failed = True
            self._store(endpoint_name, url, status, error=f"Failed to parse JSON response: {e}")
            return

        self._store(endpoint_name, url, status, body=body)

        if isinstance(body, dict) and body.get('error') is True:
            self.network_logger.error(f"Critical endpoint failed: {endpoint_name} returned error:true")
            self.network_logger.error(f"Response: {json.dumps(body)}")
            self.critical_endpoint_failed = True
        else:
            self.network_logger.info(f"[Critical Endpoint] {endpoint_name}: SUCCESS")

    def _store(self, endpoint_name, url, status, body=None, error=None):
        observation = {
            'url': url,
            'timestamp': datetime.now().isoformat(),
            'status': status,
        }
        if error is not None:
            observation['error'] = error
        else:
            observation['body'] = body
        self.critical_endpoint_responses[endpoint_name] = observation

    async def settle(self):
        """Wait for in-flight critical endpoint evaluations to finish."""
        while True:
            pending = [task for task in self._pending_checks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel_pending(self):
        """Cancel evaluations still in flight; called once the page is gone."""
        for task in list(self._pending_checks):
            task.cancel()
        self._pending_checks.clear()

    def has_critical_failure(self):
        return self.critical_endpoint_failed

    def has_health_check_passed(self):
        return self.health_check_passed

    def get_critical_endpoint_responses(self):
        return self.critical_endpoint_responses

    def get_endpoint_response(self, endpoint_name):
        return self.critical_endpoint_responses.get(endpoint_name)

    def get_all_responses_as_object(self):
        """All stored observations as a plain dict copy."""
        return dict(self.critical_endpoint_responses)

    def get_stats(self):
        return {
            'total_requests': self.request_count,
            'console_errors': self.error_count,
            'server_errors': self.server_error_count,
            'critical_endpoints_tracked': len(self.critical_endpoint_responses),
            'critical_endpoints_failed': self.critical_endpoint_failed,
        }
