"""File reference integrity: catalog, scanner, reconciler and status report."""

from .catalog import CATEGORIES, COVER_IMAGES, PROFILE_PHOTOS, SCRIPT_FILES, FileReference, ReferenceCatalog
from .reconciler import ReconciliationEngine, ReconciliationResult
from .report import BrokenReference, CategoryReport, IntegrityReport
from .scanner import IntegrityScanner
from .status import storage_status

__all__ = [
    'CATEGORIES',
    'COVER_IMAGES',
    'PROFILE_PHOTOS',
    'SCRIPT_FILES',
    'FileReference',
    'ReferenceCatalog',
    'ReconciliationEngine',
    'ReconciliationResult',
    'BrokenReference',
    'CategoryReport',
    'IntegrityReport',
    'IntegrityScanner',
    'storage_status',
]
