"""Tests for the scripted Scenario steps."""
from unittest.mock import MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config import SCENARIO_STEPS
from conftest import FakePage
from scenario.scenario import Scenario, ScenarioStepError

STEPS = [
    {'name': 'Step 1', 'description': 'button', 'xpath': '//button[1]', 'pause_ms': 1000},
    {'name': 'Step 2', 'description': 'radio input', 'xpath': '//input', 'pause_ms': 2000},
]


def make_scenario(page, tmp_path, steps=STEPS):
    return Scenario(page, MagicMock(), MagicMock(), 5, steps=steps, screenshots_dir=str(tmp_path))


async def test_steps_run_in_order_inside_iframe(tmp_path):
    page = FakePage()
    await make_scenario(page, tmp_path).execute()

    waits = page.frame.wait_for_selector.call_args_list
    assert [c.args[0] for c in waits] == ['xpath=//button[1]', 'xpath=//input']
    assert all(c.kwargs == {'timeout': 10000, 'state': 'visible'} for c in waits)
    assert [c.args[0] for c in page.frame.click.call_args_list] == ['xpath=//button[1]', 'xpath=//input']
    assert [c.args[0] for c in page.wait_for_timeout.call_args_list] == [1000, 2000]

    shots = [c.kwargs['path'] for c in page.element.screenshot.call_args_list]
    assert len(shots) == 2
    assert 'runner-5-step1-' in shots[0]
    assert 'runner-5-step2-' in shots[1]


async def test_failing_step_stops_remaining_steps(tmp_path):
    page = FakePage()
    page.frame.wait_for_selector.side_effect = [None, PlaywrightTimeoutError('not visible')]
    scenario = make_scenario(page, tmp_path, steps=STEPS + [
        {'name': 'Step 3', 'xpath': '//never', 'pause_ms': 0},
    ])

    with pytest.raises(ScenarioStepError, match='Step 2 failed'):
        await scenario.execute()

    assert page.frame.click.call_count == 1
    assert page.frame.wait_for_selector.call_count == 2


async def test_missing_iframe_fails_step(tmp_path):
    page = FakePage(frame_present=False)
    with pytest.raises(ScenarioStepError, match='not found'):
        await make_scenario(page, tmp_path).execute()


def test_default_steps_come_from_config():
    scenario = Scenario(MagicMock(), MagicMock(), MagicMock(), 0)
    assert scenario.steps is SCENARIO_STEPS
    assert len(SCENARIO_STEPS) == 4
