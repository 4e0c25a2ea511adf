"""
Read-only enumeration of every database field that points at a stored file.
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Optional

from src.database import db
from src.models import Script, ScriptFile, User

SCRIPT_FILES = 'script_files'
COVER_IMAGES = 'cover_images'
PROFILE_PHOTOS = 'profile_photos'

CATEGORIES = (SCRIPT_FILES, COVER_IMAGES, PROFILE_PHOTOS)


@dataclass(frozen=True)
class FileReference:
    """One persisted URL and the row that holds it."""

    category: str
    reference_id: int
    owner_id: int
    owner_label: str
    field: str
    url: str
    extra: Dict[str, object] = dataclasses.field(default_factory=dict, compare=False, hash=False)


class ReferenceCatalog:
    """Enumerates file references grouped by category, ordered by id."""

    def __init__(self, session=None):
        self.session = session or db.session

    def script_files(self) -> List[FileReference]:
        rows = (
            self.session.query(ScriptFile, Script)
            .join(Script, ScriptFile.script_id == Script.id)
            .filter(ScriptFile.file_url.isnot(None), ScriptFile.file_url != '')
            .order_by(ScriptFile.id)
            .all()
        )
        return [
            FileReference(
                category=SCRIPT_FILES,
                reference_id=script_file.id,
                owner_id=script.id,
                owner_label=script.title,
                field='file_url',
                url=script_file.file_url,
                extra={
                    'file_name': script_file.file_name,
                    'file_type': script_file.file_type,
                    'file_size': script_file.file_size,
                    'version': script_file.version,
                    'is_latest': script_file.is_latest,
                },
            )
            for script_file, script in rows
        ]

    def cover_images(self) -> List[FileReference]:
        scripts = (
            self.session.query(Script)
            .filter(Script.cover_image_url.isnot(None), Script.cover_image_url != '')
            .order_by(Script.id)
            .all()
        )
        return [
            FileReference(
                category=COVER_IMAGES,
                reference_id=script.id,
                owner_id=script.id,
                owner_label=script.title,
                field='cover_image_url',
                url=script.cover_image_url,
            )
            for script in scripts
        ]

    def profile_photos(self) -> List[FileReference]:
        users = (
            self.session.query(User)
            .filter(User.photo_url.isnot(None), User.photo_url != '')
            .order_by(User.id)
            .all()
        )
        return [
            FileReference(
                category=PROFILE_PHOTOS,
                reference_id=user.id,
                owner_id=user.id,
                owner_label=user.display_name,
                field='photo_url',
                url=user.photo_url,
                extra={'email': user.email},
            )
            for user in users
        ]

    def all_references(self) -> Dict[str, List[FileReference]]:
        return {
            SCRIPT_FILES: self.script_files(),
            COVER_IMAGES: self.cover_images(),
            PROFILE_PHOTOS: self.profile_photos(),
        }

    def current_url(self, category: str, reference_id: int) -> Optional[str]:
        """Return the URL the row holds right now, or None when the row is gone."""
        if category == SCRIPT_FILES:
            row = (
                self.session.query(ScriptFile.file_url)
                .join(Script, ScriptFile.script_id == Script.id)
                .filter(ScriptFile.id == reference_id)
                .first()
            )
        elif category == COVER_IMAGES:
            row = self.session.query(Script.cover_image_url).filter(Script.id == reference_id).first()
        elif category == PROFILE_PHOTOS:
            row = self.session.query(User.photo_url).filter(User.id == reference_id).first()
        else:
            raise ValueError(f"Unknown reference category: {category}")
        return row[0] if row else None

    def still_referenced(self, ref: FileReference) -> bool:
        return self.current_url(ref.category, ref.reference_id) == ref.url
