"""
Tests for the report-only integrity monitor.
"""

from src.config import startup
from src.database import db
from src.models import ScriptFile

from conftest import FakeStorage, make_script, make_script_file, make_user


def test_single_run_reports_without_changing_rows(app):
    script = make_script(make_user())
    missing = make_script_file(script, '/api/files/scripts/1_abcdef_gone.pdf')

    report = startup.run_integrity_monitor_once(app, storage=FakeStorage({'scripts/1_abcdef_gone.pdf': False}))

    assert report.broken_files == 1
    assert db.session.get(ScriptFile, missing.id) is not None
    assert startup.get_integrity_monitor_status()['last_summary'] == report.summary()


def test_disabled_monitor_does_not_start(app, monkeypatch):
    monkeypatch.setattr(startup.app_config, 'ENABLE_INTEGRITY_MONITOR', False)
    monkeypatch.setattr(startup, '_monitor_thread', None)

    startup.initialize_integrity_monitor(app)

    assert startup.get_integrity_monitor_status()['running'] is False
