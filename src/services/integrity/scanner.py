"""
Integrity scanner: checks every stored file reference against the storage
service and reports the ones whose object is definitely gone.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .catalog import CATEGORIES, FileReference, ReferenceCatalog
from .report import REASON_MISSING, REASON_UNPARSEABLE, BrokenReference, IntegrityReport

logger = logging.getLogger(__name__)

# Worker result for references that were never probed because the scan was cancelled
_SKIPPED = object()


class IntegrityScanner:
    """Classify file references as valid or broken.

    Only an explicit "object is absent" answer from storage makes a reference
    broken. Backend errors and timeouts leave it valid. URLs the key codec
    cannot parse are valid too, unless ``strict`` is set.

    Database reads happen on the calling thread only; the thread pool is used
    for existence checks.
    """

    def __init__(self, storage, catalog: Optional[ReferenceCatalog] = None, max_workers: int = 8,
                 strict: bool = False):
        self.storage = storage
        self.catalog = catalog or ReferenceCatalog()
        self.max_workers = max(1, int(max_workers))
        self.strict = strict

    def _probe(self, ref: FileReference, cancel_event: Optional[threading.Event]):
        if cancel_event is not None and cancel_event.is_set():
            return _SKIPPED
        key = self.storage.extract_key(ref.url)
        if key is None:
            return key, None
        try:
            return key, self.storage.exists(key)
        except Exception as e:
            logger.warning("Existence check for %s %s raised %s, treating as unknown", ref.category, ref.reference_id, e)
            return key, None

    def _check_all(self, refs: List[FileReference], cancel_event):
        if not refs:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='integrity-scan') as executor:
            return list(executor.map(lambda ref: self._probe(ref, cancel_event), refs))

    def scan(self, cancel_event: Optional[threading.Event] = None) -> IntegrityReport:
        report = IntegrityReport(strict=self.strict)
        references = self.catalog.all_references()

        for category in CATEGORIES:
            refs = references.get(category, [])
            section = report.categories[category]
            results = self._check_all(refs, cancel_event)

            for ref, result in zip(refs, results):
                if result is _SKIPPED:
                    report.aborted = True
                    continue

                key, exists = result
                reason = None
                if key is None:
                    section.unverifiable += 1
                    if self.strict:
                        reason = REASON_UNPARSEABLE
                elif exists is False:
                    reason = REASON_MISSING
                elif exists is None:
                    logger.info("Could not verify %s %s (%s); keeping it", category, ref.reference_id, key)

                if reason is not None and not self.catalog.still_referenced(ref):
                    # Row deleted or re-pointed while the scan was running
                    if key is None:
                        section.unverifiable -= 1
                    logger.debug("Dropping %s %s from report: reference changed during scan", category, ref.reference_id)
                    continue

                section.total += 1
                if reason is None:
                    section.valid += 1
                    continue

                section.broken += 1
                section.issues.append(BrokenReference(
                    category=category,
                    reference_id=ref.reference_id,
                    owner_id=ref.owner_id,
                    owner_label=ref.owner_label,
                    field=ref.field,
                    url=ref.url,
                    key=key,
                    reason=reason,
                    extra=dict(ref.extra),
                ))

        logger.info(
            "Integrity scan finished: %d references, %d valid, %d broken%s",
            report.total_files, report.valid_files, report.broken_files,
            ' (aborted)' if report.aborted else '',
        )
        return report
