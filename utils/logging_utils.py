"""
Logging utilities for the Playwright stress runner.
"""
import logging
import os
from datetime import datetime

# Global logging configuration
LOG_FILENAME = None  # Will be set on first setup

RUNNER_LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level=logging.INFO):
    """Setup root logging to both console and file."""
    global LOG_FILENAME

    # Generate log filename with timestamp
    if LOG_FILENAME is None:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        LOG_FILENAME = f"stress_runner_{timestamp}.log"

    # Create root logger
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    try:
        file_handler = logging.FileHandler(LOG_FILENAME, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logging.info(f"Logging to file: {LOG_FILENAME}")
    except OSError as e:
        logging.warning(f"Could not setup file logging: {e}")

    return LOG_FILENAME


def runner_log_formatter(runner_id):
    """Formatter producing `[timestamp] [Runner <id>] [LEVEL] message` lines."""
    return logging.Formatter(
        f'[%(asctime)s] [Runner {runner_id}] [%(levelname)s] %(message)s',
        datefmt=RUNNER_LOG_DATEFMT,
    )


def _build_runner_logger(name, runner_id, log_file, to_console):
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    # Runner lines go only to the runner's own streams
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = runner_log_formatter(runner_id)

    if to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def create_runner_loggers(runner_id, logs_dir='logs', to_console=True):
    """Create the console and network loggers for one runner.

    Args:
        runner_id: Runner identifier used in the line prefix and file names
        logs_dir: Folder holding runner-<id>-console.log and runner-<id>-network.log
        to_console: Also echo lines to stderr

    Returns:
        tuple: (console_logger, network_logger)
    """
    os.makedirs(logs_dir, exist_ok=True)

    console_logger = _build_runner_logger(
        f"runner.{runner_id}.console",
        runner_id,
        os.path.join(logs_dir, f"runner-{runner_id}-console.log"),
        to_console,
    )
    network_logger = _build_runner_logger(
        f"runner.{runner_id}.network",
        runner_id,
        os.path.join(logs_dir, f"runner-{runner_id}-network.log"),
        to_console,
    )
    return console_logger, network_logger


def close_runner_loggers(*loggers):
    """Detach and close all handlers of the given runner loggers."""
    for logger in loggers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
