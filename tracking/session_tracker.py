"""
Session tracking module for monitoring concurrent runners.
Tracks runner lifecycle states and provides periodic reports.
"""
import asyncio
import csv
import logging
import os
import time
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional


class SessionTracker:
    """Tracks concurrent runner sessions and their lifecycle states."""

    def __init__(self, report_interval: int = 300):
        """
        Initialize the session tracker.

        Args:
            report_interval: Interval in seconds for periodic reports (default: 300 = 5 minutes)
        """
        self.report_interval = report_interval
        self.sessions: Dict[int, Dict] = {}  # runner_id -> session data
        self.periodic_reports: List[Dict] = []
        self.tracking_task: Optional[asyncio.Task] = None
        self.is_tracking = False
        self.start_time = None

    def register_session(self, runner_id: int, url: str):
        """Register a new active runner."""
        self.sessions[runner_id] = {
            'runner_id': runner_id,
            'url': url,
            'state': 'init',
            'start_time': time.time(),
            'last_activity': time.time(),
            'status': 'active',
        }
        logging.info(f"[TRACKER] Registered runner {runner_id}: {url}")

    def update_state(self, runner_id: int, state: str):
        """Record a lifecycle state transition for a runner."""
        session = self.sessions.get(runner_id)
        if session is None:
            return
        session['state'] = state
        session['last_activity'] = time.time()

    def unregister_session(self, runner_id: int, reason: str = 'completed'):
        """Mark a runner as inactive, keeping its data for reporting."""
        session = self.sessions.get(runner_id)
        if session is None:
            return
        session['status'] = 'inactive'
        session['end_time'] = time.time()
        session['duration_seconds'] = session['end_time'] - session['start_time']
        session['end_reason'] = reason

        logging.info(f"[TRACKER] Unregistered runner {runner_id} (Reason: {reason}, Duration: {session['duration_seconds']:.2f}s)")

    def get_active_session_count(self) -> int:
        return len([s for s in self.sessions.values() if s['status'] == 'active'])

    def get_session_summary(self) -> Dict:
        """
        Get current summary of all tracked runners.

        Returns:
            Dictionary with counts per status and per lifecycle state
        """
        active = [s for s in self.sessions.values() if s['status'] == 'active']
        inactive = [s for s in self.sessions.values() if s['status'] == 'inactive']

        return {
            'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3],
            'total_active_sessions': len(active),
            'total_inactive_sessions': len(inactive),
            'total_sessions_tracked': len(self.sessions),
            'sessions_by_state': dict(Counter(s['state'] for s in self.sessions.values())),
            'active_session_details': [
                {
                    'runner_id': s['runner_id'],
                    'url': s['url'],
                    'state': s['state'],
                    'duration_seconds': round(time.time() - s['start_time'], 2),
                }
                for s in active
            ],
        }

    def generate_periodic_report(self) -> Dict:
        summary = self.get_session_summary()
        report = {
            'report_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'uptime_seconds': round(time.time() - self.start_time, 2) if self.start_time else 0,
            **summary
        }
        self.periodic_reports.append(report)
        return report

    def log_periodic_report(self, report: Dict):
        """Log the periodic report."""
        logging.info("=" * 80)
        logging.info(f"PERIODIC RUNNER TRACKING REPORT - {report['report_time']}")
        logging.info("=" * 80)
        logging.info(f"Uptime: {report['uptime_seconds']:.2f} seconds")
        logging.info(f"Active Runners: {report['total_active_sessions']}")
        logging.info(f"Finished Runners: {report['total_inactive_sessions']}")
        logging.info(f"Runners Tracked: {report['total_sessions_tracked']}")

        logging.info("Runners by State:")
        for state, count in sorted(report['sessions_by_state'].items()):
            logging.info(f"  {state}: {count}")

        for session in report['active_session_details']:
            logging.info(f"  Runner {session['runner_id']}: {session['state']} ({session['duration_seconds']:.2f}s) {session['url']}")

        logging.info("=" * 80)

    async def periodic_reporting_loop(self):
        """Background task that generates reports every report_interval seconds."""
        logging.info(f"[TRACKER] Starting periodic reporting (interval: {self.report_interval}s)")

        while self.is_tracking:
            await asyncio.sleep(self.report_interval)

            if self.is_tracking:
                report = self.generate_periodic_report()
                self.log_periodic_report(report)

    def start_tracking(self):
        """Start the periodic reporting task."""
        if not self.is_tracking:
            self.is_tracking = True
            self.start_time = time.time()
            self.tracking_task = asyncio.create_task(self.periodic_reporting_loop())
            logging.info(f"[TRACKER] Runner tracking started (reports every {self.report_interval}s)")

    async def stop_tracking(self):
        """Stop the periodic reporting task and log a final report."""
        if self.is_tracking:
            self.is_tracking = False
            if self.tracking_task:
                self.tracking_task.cancel()
                try:
                    await self.tracking_task
                except asyncio.CancelledError:
                    pass

            final_report = self.generate_periodic_report()
            self.log_periodic_report(final_report)
            logging.info("[TRACKER] Runner tracking stopped")
            return final_report
        return None

    def write_tracking_report_csv(self, report: Dict, directory: Optional[str] = None):
        """Append a tracking report row to a CSV file."""
        filename = f"runner_tracking_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        filepath = os.path.join(directory or os.getcwd(), filename)

        try:
            file_exists = os.path.exists(filepath)
            with open(filepath, 'a', newline='', encoding='utf-8') as csvfile:
                fieldnames = [
                    'report_time',
                    'uptime_seconds',
                    'total_active_sessions',
                    'total_inactive_sessions',
                    'total_sessions_tracked',
                ]
                writer = csv.DictWriter(csvfile, fieldnames=fieldnames, extrasaction='ignore')
                if not file_exists:
                    writer.writeheader()
                writer.writerow(report)

            logging.info(f"[TRACKER] Report written to: {filepath}")
            return filepath
        except OSError as e:
            logging.error(f"[TRACKER] Error writing tracking report CSV: {e}")
            return None


# Global tracker instance
_tracker_instance: Optional[SessionTracker] = None


def get_tracker() -> SessionTracker:
    """Get or create the global session tracker instance."""
    global _tracker_instance
    if _tracker_instance is None:
        _tracker_instance = SessionTracker(report_interval=300)
    return _tracker_instance


def initialize_tracker(report_interval: int = 300):
    """Initialize a fresh global session tracker."""
    global _tracker_instance
    _tracker_instance = SessionTracker(report_interval=report_interval)
    return _tracker_instance
