"""
FastAPI-based REST API for remote control and monitoring of the stress runner.

Provides endpoints for:
- API health and host resource usage
- Starting a stress run in the background
- Run status, tracker summary and per-runner outcomes
"""
import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

import psutil
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from config import RUNNER_CONFIG
from session.launcher import run_stress_test
from tracking.session_tracker import initialize_tracker
from utils.helpers import load_candidate_urls, reset_output_dirs

app = FastAPI(
    title="Playwright Stress Runner API",
    description="REST API for monitoring and controlling browser stress runs",
    version="1.0.0"
)

_api_start_time = time.time()

# Stress run status
_stress_test_running = False
_stress_test_task: Optional[asyncio.Task] = None
_stress_test_start_time: Optional[float] = None
_last_results: List[Dict] = []
_tracker = None


class SystemMetrics(BaseModel):
    """Host resource usage."""
    cpu_percent: float
    memory_percent: float
    memory_available_gb: float
    memory_used_gb: float
    memory_total_gb: float


class HealthStatus(BaseModel):
    """Health status response model."""
    status: str
    timestamp: str
    uptime_seconds: float
    system_metrics: SystemMetrics


class StressRunConfig(BaseModel):
    """Optional overrides for a stress run."""
    runner_count: Optional[int] = None
    headless: Optional[bool] = None
    url_source: Optional[str] = None


class StressRunStatus(BaseModel):
    running: bool
    started_at: Optional[str] = None
    elapsed_seconds: Optional[float] = None
    tracker: Optional[Dict] = None
    results: List[Dict]


def get_system_metrics() -> SystemMetrics:
    memory = psutil.virtual_memory()
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=memory.percent,
        memory_available_gb=round(memory.available / (1024 ** 3), 2),
        memory_used_gb=round(memory.used / (1024 ** 3), 2),
        memory_total_gb=round(memory.total / (1024 ** 3), 2),
    )


@app.get("/", response_model=Dict)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Playwright Stress Runner API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "stress_test_start": "/stress-test/start",
            "stress_test_status": "/stress-test/status",
            "runner": "/runners/{runner_id}",
        }
    }


@app.get("/health", response_model=HealthStatus)
async def health_check():
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        uptime_seconds=round(time.time() - _api_start_time, 2),
        system_metrics=get_system_metrics(),
    )


async def run_stress_test_background(urls: List[str], runner_count: int, headless: bool):
    """Run a stress run as a background task and keep its summaries."""
    global _stress_test_running, _stress_test_start_time, _last_results, _tracker

    try:
        logging.info("=" * 80)
        logging.info("STRESS RUN STARTED VIA API")
        logging.info("=" * 80)

        if RUNNER_CONFIG.get('reset_output_dirs', True):
            reset_output_dirs(RUNNER_CONFIG['logs_dir'], RUNNER_CONFIG['screenshots_dir'])

        _tracker = initialize_tracker(RUNNER_CONFIG.get('tracking_report_interval', 300))
        _tracker.start_tracking()
        try:
            _last_results = await run_stress_test(
                urls, runner_count=runner_count, headless=headless, tracker=_tracker
            )
        finally:
            await _tracker.stop_tracking()

        logging.info("STRESS RUN COMPLETED")
    except Exception as e:
        logging.exception(f"Error in stress run: {e}")
    finally:
        _stress_test_running = False
        _stress_test_start_time = None


@app.post("/stress-test/start", response_model=Dict)
async def start_stress_test(config: Optional[StressRunConfig] = None):
    """Start a stress run with optional overrides of config.py settings."""
    global _stress_test_running, _stress_test_task, _stress_test_start_time, _last_results

    if _stress_test_running:
        raise HTTPException(
            status_code=409,
            detail="Stress run is already running. Use /stress-test/status to check status."
        )

    config = config or StressRunConfig()
    runner_count = config.runner_count if config.runner_count is not None else RUNNER_CONFIG['runner_count']
    headless = config.headless if config.headless is not None else RUNNER_CONFIG['headless']
    url_source = config.url_source or RUNNER_CONFIG['url_source']

    if runner_count < 1:
        raise HTTPException(status_code=422, detail="runner_count must be at least 1")

    try:
        urls = load_candidate_urls(url_source, RUNNER_CONFIG['url_key'])
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Could not load candidate URLs: {e}")

    if not urls:
        raise HTTPException(status_code=400, detail=f"No candidate URLs in {url_source}")

    _stress_test_running = True
    _stress_test_start_time = time.time()
    _last_results = []
    _stress_test_task = asyncio.create_task(run_stress_test_background(urls, runner_count, headless))

    return {
        'status': 'started',
        'timestamp': datetime.now().isoformat(),
        'config': {
            'runner_count': runner_count,
            'headless': headless,
            'url_source': url_source,
            'candidate_urls': len(urls),
        }
    }


@app.get("/stress-test/status", response_model=StressRunStatus)
async def stress_test_status():
    elapsed = round(time.time() - _stress_test_start_time, 2) if _stress_test_start_time else None
    return StressRunStatus(
        running=_stress_test_running,
        started_at=datetime.fromtimestamp(_stress_test_start_time).isoformat() if _stress_test_start_time else None,
        elapsed_seconds=elapsed,
        tracker=_tracker.get_session_summary() if _tracker is not None else None,
        results=_last_results,
    )


@app.get("/runners/{runner_id}", response_model=Dict)
async def runner_result(runner_id: int):
    for result in _last_results:
        if result['runner_id'] == runner_id:
            return result
    raise HTTPException(status_code=404, detail=f"No result for runner {runner_id}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
