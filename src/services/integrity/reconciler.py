"""
Reconciliation of broken file references found by a scan.

Each broken item is fixed in its own commit. Script file rows are deleted,
cover images and profile photos are set to NULL. Stored bytes are never
touched.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from src.database import db
from src.models import Script, ScriptFile, User
from src.services.script_files import promote_latest_version
from src.services.storage.exceptions import ReconciliationWriteError

from .catalog import COVER_IMAGES, PROFILE_PHOTOS, SCRIPT_FILES
from .report import BrokenReference, IntegrityReport

logger = logging.getLogger(__name__)

_APPLIED = 'applied'
_SKIPPED = 'skipped'


@dataclass
class ReconciliationResult:
    script_files_removed: int = 0
    cover_images_cleared: int = 0
    profile_photos_cleared: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total_items_cleaned(self) -> int:
        return self.script_files_removed + self.cover_images_cleared + self.profile_photos_cleared

    def to_dict(self):
        return {
            'script_files_removed': self.script_files_removed,
            'cover_images_cleared': self.cover_images_cleared,
            'profile_photos_cleared': self.profile_photos_cleared,
            'total_items_cleaned': self.total_items_cleaned,
            'skipped': self.skipped,
            'errors': list(self.errors),
            'dry_run': self.dry_run,
        }


class ReconciliationEngine:
    """Apply the corrections a report calls for, one item at a time."""

    _COUNTERS = {
        SCRIPT_FILES: 'script_files_removed',
        COVER_IMAGES: 'cover_images_cleared',
        PROFILE_PHOTOS: 'profile_photos_cleared',
    }

    def __init__(self, session=None):
        self.session = session or db.session

    def reconcile(self, report: IntegrityReport, dry_run: bool = False) -> ReconciliationResult:
        result = ReconciliationResult(dry_run=dry_run)

        for item in report.broken_references:
            try:
                outcome = self._apply(item, dry_run)
                if not dry_run and outcome == _APPLIED:
                    self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                error = ReconciliationWriteError(
                    f"Failed to fix {item.category} {item.reference_id}: {e}",
                    category=item.category, reference_id=item.reference_id,
                )
                logger.error(str(error))
                result.errors.append(str(error))
                continue

            if outcome == _SKIPPED:
                result.skipped += 1
                continue

            counter = self._COUNTERS[item.category]
            setattr(result, counter, getattr(result, counter) + 1)
            if not dry_run:
                logger.info("Reconciled %s %s (%s)", item.category, item.reference_id, item.url)

        logger.info(
            "Reconciliation %s: %d cleaned, %d skipped, %d errors",
            'dry run' if dry_run else 'finished', result.total_items_cleaned, result.skipped, len(result.errors),
        )
        return result

    def _apply(self, item: BrokenReference, dry_run: bool) -> str:
        if item.category == SCRIPT_FILES:
            return self._remove_script_file(item, dry_run)
        if item.category == COVER_IMAGES:
            return self._clear_field(Script, 'cover_image_url', item, dry_run)
        if item.category == PROFILE_PHOTOS:
            return self._clear_field(User, 'photo_url', item, dry_run)
        raise ValueError(f"Unknown reference category: {item.category}")

    def _remove_script_file(self, item: BrokenReference, dry_run: bool) -> str:
        script_file = self.session.get(ScriptFile, item.reference_id)
        if script_file is None or script_file.file_url != item.url:
            logger.info("Skipping script file %s: row gone or URL changed since scan", item.reference_id)
            return _SKIPPED
        if dry_run:
            return _APPLIED

        script_id, file_type, was_latest = script_file.script_id, script_file.file_type, script_file.is_latest
        self.session.delete(script_file)
        if was_latest:
            promote_latest_version(script_id, file_type, session=self.session)
        return _APPLIED

    def _clear_field(self, model, field_name: str, item: BrokenReference, dry_run: bool) -> str:
        row = self.session.get(model, item.reference_id)
        if row is None or getattr(row, field_name) != item.url:
            logger.info("Skipping %s %s: row gone or URL changed since scan", item.category, item.reference_id)
            return _SKIPPED
        if not dry_run:
            setattr(row, field_name, None)
        return _APPLIED
