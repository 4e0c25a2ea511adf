"""
Application startup functions.
"""

import threading

from src.config import app_config

# Set by initialize_integrity_monitor; setting it stops the monitor loop
_monitor_stop_event = None
_monitor_thread = None
_last_monitor_report = None


def run_integrity_monitor_once(app, storage=None):
    """Run one report-only integrity scan and log the outcome."""
    global _last_monitor_report
    from src.services.integrity import IntegrityScanner
    from src.services.storage import get_storage_service

    with app.app_context():
        scanner = IntegrityScanner(
            storage or get_storage_service(),
            max_workers=app_config.INTEGRITY_SCAN_WORKERS,
            strict=app_config.INTEGRITY_STRICT_MODE,
        )
        report = scanner.scan(cancel_event=_monitor_stop_event)

    if report.broken_files:
        app.logger.warning(
            f"Integrity monitor: {report.broken_files} broken file references "
            f"({report.success_rate}% valid). Run the cleanup to fix them."
        )
    else:
        app.logger.info(f"Integrity monitor: all {report.total_files} file references resolve")
    _last_monitor_report = report
    return report


def get_integrity_monitor_status():
    report = _last_monitor_report
    return {
        'running': _monitor_thread is not None and _monitor_thread.is_alive(),
        'interval_minutes': app_config.INTEGRITY_MONITOR_INTERVAL_MINUTES,
        'last_summary': report.summary() if report is not None else None,
    }


def initialize_integrity_monitor(app):
    """Start the periodic integrity scan thread if enabled."""
    global _monitor_stop_event, _monitor_thread

    if not app_config.ENABLE_INTEGRITY_MONITOR:
        app.logger.info("Integrity monitor not started (ENABLE_INTEGRITY_MONITOR=false)")
        return

    interval_seconds = max(1, app_config.INTEGRITY_MONITOR_INTERVAL_MINUTES) * 60
    _monitor_stop_event = threading.Event()

    def run_periodic_scan():
        app.logger.info(f"Integrity monitor started - scanning every {interval_seconds // 60} minutes")
        while not _monitor_stop_event.is_set():
            try:
                run_integrity_monitor_once(app)
            except Exception as e:
                app.logger.error(f"Error in integrity monitor: {e}", exc_info=True)
            _monitor_stop_event.wait(interval_seconds)

    _monitor_thread = threading.Thread(target=run_periodic_scan, daemon=True, name="IntegrityMonitor")
    _monitor_thread.start()


def stop_integrity_monitor(timeout=5):
    if _monitor_stop_event is not None:
        _monitor_stop_event.set()
    if _monitor_thread is not None:
        _monitor_thread.join(timeout)


def run_startup_tasks(app):
    """Run all startup tasks that need to happen after app creation."""
    initialize_integrity_monitor(app)
