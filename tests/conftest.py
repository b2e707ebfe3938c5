"""Shared fakes for Playwright pages, contexts and network events."""
from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


def make_request(url, method='GET', resource_type='fetch'):
    request = MagicMock()
    request.url = url
    request.method = method
    request.resource_type = resource_type
    return request


def make_response(url, status=200, body=None, resource_type='fetch', json_error=None):
    response = MagicMock()
    response.url = url
    response.status = status
    response.request = make_request(url, resource_type=resource_type)
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=body)
    return response


def make_console(msg_type, text):
    msg = MagicMock()
    msg.type = msg_type
    msg.text = text
    return msg


class FakePage:
    """Page double that replays canned responses through registered listeners."""

    def __init__(self, responses=(), late_responses=(), frame_present=True,
                 frame_idle=True, goto_error=None):
        self.handlers = defaultdict(list)
        self.responses = list(responses)
        self.late_responses = list(late_responses)
        self.frame_present = frame_present
        self.goto_error = goto_error
        self.goto_calls = []

        self.frame = MagicMock()
        self.frame.url = 'https://app.example.com/frame'
        if frame_idle:
            self.frame.wait_for_load_state = AsyncMock()
        else:
            self.frame.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError('frame not idle'))
        self.frame.wait_for_selector = AsyncMock()
        self.frame.click = AsyncMock()

        self.element = MagicMock()
        self.element.content_frame = AsyncMock(return_value=self.frame)
        self.element.screenshot = AsyncMock()

        self.wait_for_timeout = AsyncMock()

    def on(self, event, handler):
        self.handlers[event].append(handler)

    def emit(self, event, payload):
        for handler in self.handlers[event]:
            handler(payload)

    def _deliver(self, response):
        self.emit('request', response.request)
        self.emit('response', response)

    async def goto(self, url, wait_until=None):
        self.goto_calls.append((url, wait_until))
        if self.goto_error is not None:
            raise self.goto_error
        for response in self.responses:
            self._deliver(response)

    async def wait_for_selector(self, selector, timeout=None, state=None):
        if not self.frame_present:
            raise PlaywrightTimeoutError(f'Timeout {timeout}ms exceeded waiting for {selector}')

    async def query_selector(self, selector):
        return self.element if self.frame_present else None

    async def wait_for_event(self, event, predicate=None, timeout=None):
        for response in self.late_responses:
            self._deliver(response)
            if predicate is None or predicate(response):
                return response
        raise PlaywrightTimeoutError(f'Timeout {timeout}ms exceeded while waiting for event "{event}"')


class FakeContext:
    def __init__(self, page, close_error=None):
        self.page = page
        self.new_page = AsyncMock(return_value=page)
        self.close = AsyncMock(side_effect=close_error)


class FakeBrowser:
    """Hands out one FakeContext per new_context() call, in order."""

    def __init__(self, pages):
        self.contexts = [FakeContext(page) for page in pages]
        self._next = iter(self.contexts)
        self.new_context = AsyncMock(side_effect=lambda *a, **kw: next(self._next))
        self.close = AsyncMock()


class PassingScenario:
    instances = []

    def __init__(self, page, console_logger, network_logger, runner_id):
        self.page = page
        self.runner_id = runner_id
        self.executed = False
        PassingScenario.instances.append(self)

    async def execute(self):
        self.executed = True


class FailingScenario(PassingScenario):
    async def execute(self):
        raise PlaywrightError('Step 2 failed: element not visible')


HEALTHY_RESPONSES = [
    ('https://api.example.com/v1/getStore', 200, {'error': False, 'data': {'id': 1}}),
    ('https://api.example.com/v1/getToken', 200, {'error': False, 'token': 'abc'}),
    ('https://api.example.com/health', 200, None),
]


def healthy_responses():
    return [make_response(url, status, body) for url, status, body in HEALTHY_RESPONSES]


@pytest.fixture
def loggers():
    return MagicMock(name='console_logger'), MagicMock(name='network_logger')


@pytest.fixture(autouse=True)
def reset_scenarios():
    PassingScenario.instances = []
    yield
    PassingScenario.instances = []


@pytest.fixture
def runner_dirs(tmp_path):
    return {
        'logs_dir': str(tmp_path / 'logs'),
        'screenshots_dir': str(tmp_path / 'screenshots'),
        'log_to_console': False,
    }
