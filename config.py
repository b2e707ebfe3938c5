"""
Configuration constants for the Playwright stress runner.
"""

# ============================================================================
# RUNNER CONFIGURATION
# ============================================================================
RUNNER_CONFIG = {
    'url_source': 'url/urls.json',  # JSON file with candidate URLs
    'url_key': 'urls',  # Key in the JSON file holding the URL list
    'runner_count': 1,  # Number of concurrent sessions (each gets its own browser context)
    'headless': True,  # Run the shared browser headless
    'browser_args': [],  # Extra Chromium launch arguments
    'logs_dir': 'logs',  # Per-runner console/network log files
    'screenshots_dir': 'screenshots',  # Iframe screenshots (runner-<id>-<label>-<timestamp>.png)
    'reset_output_dirs': True,  # Remove and recreate logs/screenshots folders before launch
    # Session Tracking Configuration
    'enable_session_tracking': True,  # Track runner states with periodic reports
    'tracking_report_interval': 300,  # Seconds between periodic tracking reports (default: 5 minutes)
    # CSV Export Configuration
    'csv_report': True,  # Write runner summary and endpoint observation CSVs at the end
}

# ============================================================================
# TIMEOUTS - milliseconds unless noted
# ============================================================================
TIMEOUTS = {
    'iframe_wait': 10000,  # Wait for iframe#iframeFE to appear
    'health_wait': 30000,  # Wait for the /health response
    'settle_delay': 0.1,  # Seconds to let endpoint body parsing catch up after /health
    'step_wait': 10000,  # Wait for each scenario selector to become visible
}

# ============================================================================
# ALERT THRESHOLDS - logged on every event once exceeded
# ============================================================================
THRESHOLDS = {
    'console_errors': 10,
    'server_errors': 5,
}

# ============================================================================
# CRITICAL ENDPOINTS - matched by URL suffix
# ============================================================================
HEALTH_ENDPOINT = '/health'

CRITICAL_ENDPOINTS = (
    '/getStore',
    '/getToken',
    '/getOrderTypeData',
    '/getDataAuthStore',
    HEALTH_ENDPOINT,
)

# Resource types that are written to the network log
NETWORK_RESOURCE_TYPES = ('xhr', 'fetch')

# Short link service path that gets an elevated log line on 5xx
SHORT_LINK_MARKER = 'getbyalias'

# URL markers for tracking/analytics requests (logged only, never aborted)
TRACKING_MARKERS = ('analytics', 'tracking')

# API path convention
API_PATH_MARKER = '/api/'

# ============================================================================
# APPLICATION FRAME AND SCRIPTED SCENARIO
# ============================================================================
IFRAME_SELECTOR = 'iframe#iframeFE'

SCENARIO_STEPS = [
    {
        'name': 'Step 1',
        'description': 'button',
        'xpath': '//*[@id="root"]/div/div/div[1]/div[1]/div[1]/div/div[4]/button',
        'pause_ms': 1000,
    },
    {
        'name': 'Step 2',
        'description': 'button',
        'xpath': '//*[@id="root"]/div/div/div[1]/div[1]/div[3]/div/div[2]/div/div/div/div/button',
        'pause_ms': 2000,
    },
    {
        'name': 'Step 3',
        'description': 'radio input',
        'xpath': '//*[@id="input"]/span/input',
        'pause_ms': 1000,
    },
    {
        'name': 'Step 4',
        'description': 'add to cart button',
        'xpath': '//*[@id="addToCartModal"]/button',
        'pause_ms': 1000,
    },
]
