#!/usr/bin/env python3
"""Scan every stored file reference and print the integrity report as JSON."""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.app import app  # noqa: E402
from src.config import app_config  # noqa: E402
from src.services.integrity import IntegrityScanner  # noqa: E402
from src.services.storage import get_storage_service  # noqa: E402


def parse_args():
    p = argparse.ArgumentParser(description='Check that every file reference in the database resolves in storage')
    p.add_argument('--strict', action='store_true', default=app_config.INTEGRITY_STRICT_MODE,
                   help='Report URLs with an unrecognized format as broken')
    p.add_argument('--workers', type=int, default=app_config.INTEGRITY_SCAN_WORKERS)
    p.add_argument('--report-json', type=str, default=None, help='Also write the report to this file')
    return p.parse_args()


def main():
    args = parse_args()
    storage = get_storage_service()

    with app.app_context():
        report = IntegrityScanner(storage, max_workers=args.workers, strict=args.strict).scan()

    output = {'timestamp': datetime.now(timezone.utc).isoformat(), 'backend': storage.backend_kind, **report.to_dict()}
    if args.report_json:
        with open(args.report_json, 'w', encoding='utf-8') as fp:
            json.dump(output, fp, ensure_ascii=False, indent=2)

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0 if report.broken_files == 0 else 1


if __name__ == '__main__':
    raise SystemExit(main())
