#!/usr/bin/env python3
"""Print the storage configuration and where stored file URLs point."""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.app import app  # noqa: E402
from src.services.integrity import storage_status  # noqa: E402
from src.services.storage import get_storage_service  # noqa: E402


def main():
    with app.app_context():
        status = storage_status(get_storage_service())

    print(json.dumps({'timestamp': datetime.now(timezone.utc).isoformat(), **status}, ensure_ascii=False, indent=2))
    for warning in status['warnings']:
        print(f'WARNING: {warning}', file=sys.stderr)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
