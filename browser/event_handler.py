"""
Event handler for browser console and network events.

Turns raw Playwright console/request/response notifications into classified
hook calls. Hooks are no-ops here; subclasses supply behavior.
"""
from config import NETWORK_RESOURCE_TYPES


def classify_status(status):
    """Return the status band name for a response status, or None.

    'success' for 2xx, 'client_error' for 4xx, 'server_error' for 5xx.
    Anything outside [200, 600) falls in no band.
    """
    if 500 <= status < 600:
        return 'server_error'
    if 400 <= status < 500:
        return 'client_error'
    if 200 <= status < 300:
        return 'success'
    return None


class EventHandler:
    """Dispatches page console and network events to overridable hooks."""

    def __init__(self, console_logger, network_logger):
        self.console_logger = console_logger
        self.network_logger = network_logger

    def attach(self, page):
        """Wire the three entry points to the page's event stream."""
        page.on('console', self.handle_console)
        page.on('request', self.handle_request)
        page.on('response', self.handle_response)

    def handle_console(self, msg):
        """Handle a browser console message."""
        msg_type = msg.type
        text = msg.text

        self.console_logger.info(f"[Browser {msg_type.upper()}] {text}")

        if msg_type == 'error':
            self.on_console_error(text)
        elif msg_type == 'warning':
            self.on_console_warning(text)
        elif msg_type == 'log':
            self.on_console_log(text)

    def handle_request(self, request):
        """Handle an outgoing network request."""
        # Only XHR and fetch go to the network log
        if request.resource_type in NETWORK_RESOURCE_TYPES:
            self.network_logger.info(f"[Network] → {request.method} {request.url}")

        self.on_request(request)

    def handle_response(self, response):
        """Handle a network response and classify it by status band."""
        status = response.status
        url = response.url

        if response.request.resource_type in NETWORK_RESOURCE_TYPES:
            self.network_logger.info(f"[Network] ← {status} {url}")

        band = classify_status(status)
        if band == 'server_error':
            self.on_server_error(response)
        elif band == 'client_error':
            self.on_client_error(response)
        elif band == 'success':
            self.on_success(response)

    # === Hooks for custom behavior ===

    def on_console_error(self, message):
        pass

    def on_console_warning(self, message):
        pass

    def on_console_log(self, message):
        pass

    def on_request(self, request):
        pass

    def on_success(self, response):
        pass

    def on_client_error(self, response):
        self.network_logger.warning(f"Client error: {response.status} {response.url}")

    def on_server_error(self, response):
        self.network_logger.error(f"Server error: {response.status} {response.url}")
