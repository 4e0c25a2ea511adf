#!/usr/bin/env python3
"""Remove database references to files that no longer exist in storage.

Runs a fresh scan, then deletes broken script file rows and clears broken
cover image and profile photo fields. Stored bytes are never deleted.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.app import app  # noqa: E402
from src.config import app_config  # noqa: E402
from src.services.integrity import IntegrityScanner, ReconciliationEngine  # noqa: E402
from src.services.storage import get_storage_service  # noqa: E402


def parse_args():
    p = argparse.ArgumentParser(description='Clean up broken file references')
    p.add_argument('--dry-run', action='store_true', help='Report what would change without writing')
    p.add_argument('--strict', action='store_true', default=app_config.INTEGRITY_STRICT_MODE)
    p.add_argument('--workers', type=int, default=app_config.INTEGRITY_SCAN_WORKERS)
    p.add_argument('--report-json', type=str, default=None)
    return p.parse_args()


def main():
    args = parse_args()
    storage = get_storage_service()

    with app.app_context():
        report = IntegrityScanner(storage, max_workers=args.workers, strict=args.strict).scan()
        if report.aborted:
            print('ERROR: scan did not finish, nothing reconciled', file=sys.stderr)
            return 2
        result = ReconciliationEngine().reconcile(report, dry_run=args.dry_run)

    output = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'report': report.summary(),
        'broken': [item.to_dict() for item in report.broken_references],
        **result.to_dict(),
    }
    if args.report_json:
        with open(args.report_json, 'w', encoding='utf-8') as fp:
            json.dump(output, fp, ensure_ascii=False, indent=2)

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0 if not result.errors else 1


if __name__ == '__main__':
    raise SystemExit(main())
