"""
Integrity report produced by a scan. Built fresh every time, never stored.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .catalog import CATEGORIES, COVER_IMAGES, PROFILE_PHOTOS, SCRIPT_FILES

REASON_MISSING = 'missing'
REASON_UNPARSEABLE = 'unparseable'

_RECOMMENDATION_TEXT = {
    SCRIPT_FILES: '{count} script files are missing and should be re-uploaded or removed from database',
    COVER_IMAGES: '{count} cover images are missing and should be re-uploaded or references cleared',
    PROFILE_PHOTOS: '{count} user profile photos are missing and should be re-uploaded or references cleared',
}


@dataclass
class BrokenReference:
    category: str
    reference_id: int
    owner_id: int
    owner_label: str
    field: str
    url: str
    key: Optional[str]
    reason: str
    extra: Dict[str, object] = field(default_factory=dict)

    def to_dict(self):
        data = {
            'id': self.reference_id,
            'owner_id': self.owner_id,
            'owner_label': self.owner_label,
            'field': self.field,
            'url': self.url,
            'key': self.key,
            'reason': self.reason,
        }
        data.update(self.extra)
        return data


@dataclass
class CategoryReport:
    category: str
    total: int = 0
    valid: int = 0
    broken: int = 0
    unverifiable: int = 0
    issues: List[BrokenReference] = field(default_factory=list)

    def to_dict(self):
        return {
            'total': self.total,
            'valid': self.valid,
            'broken': self.broken,
            'unverifiable': self.unverifiable,
            'issues': [issue.to_dict() for issue in self.issues],
        }


@dataclass
class IntegrityReport:
    categories: Dict[str, CategoryReport] = field(
        default_factory=lambda: {name: CategoryReport(name) for name in CATEGORIES}
    )
    strict: bool = False
    aborted: bool = False

    @property
    def total_files(self) -> int:
        return sum(c.total for c in self.categories.values())

    @property
    def valid_files(self) -> int:
        return sum(c.valid for c in self.categories.values())

    @property
    def broken_files(self) -> int:
        return sum(c.broken for c in self.categories.values())

    @property
    def success_rate(self) -> int:
        if self.total_files == 0:
            return 100
        return round(self.valid_files / self.total_files * 100)

    @property
    def status(self) -> str:
        return 'healthy' if self.broken_files == 0 else 'issues_found'

    @property
    def broken_references(self) -> List[BrokenReference]:
        return [issue for name in CATEGORIES for issue in self.categories[name].issues]

    def recommendations(self) -> List[str]:
        if self.broken_files == 0:
            recs = [
                'File system is healthy - all references point to existing files',
                'Consider implementing periodic health checks to maintain file integrity',
            ]
        else:
            recs = [f'Found {self.broken_files} broken file references that should be cleaned up']
            for name in CATEGORIES:
                broken = self.categories[name].broken
                if broken:
                    recs.append(_RECOMMENDATION_TEXT[name].format(count=broken))
            recs.append('Run the automated cleanup script to remove broken references')
            recs.append('Implement file validation before saving to database in the future')
        unverifiable = sum(c.unverifiable for c in self.categories.values())
        if unverifiable and not self.strict:
            recs.append(f'{unverifiable} references use an unrecognized URL format and were not verified')
        if self.aborted:
            recs.append('The scan was cancelled before it finished; counts are partial')
        return recs

    def summary(self):
        return {
            'total_files': self.total_files,
            'valid_files': self.valid_files,
            'broken_files': self.broken_files,
            'success_rate': self.success_rate,
        }

    def to_dict(self):
        """Serialize deterministically; the caller adds any timestamp."""
        return {
            'status': self.status,
            'summary': self.summary(),
            'details': {name: self.categories[name].to_dict() for name in CATEGORIES},
            'recommendations': self.recommendations(),
            'strict': self.strict,
            'aborted': self.aborted,
        }
