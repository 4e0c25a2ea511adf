"""
Utility functions package for the ScripTrack application.

This package contains various utility modules for:
- Upload validation
- Database schema helpers
"""

from .file_validation import (
    validate_upload,
    SCRIPT_MAX_SIZE,
    IMAGE_MAX_SIZE
)

from .database import (
    add_column_if_not_exists,
    create_index_if_not_exists
)

__all__ = [
    # Upload validation
    'validate_upload',
    'SCRIPT_MAX_SIZE',
    'IMAGE_MAX_SIZE',
    # Database
    'add_column_if_not_exists',
    'create_index_if_not_exists',
]
