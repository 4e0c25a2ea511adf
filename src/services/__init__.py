"""
Service layer for business logic.
"""

from .script_files import *

__all__ = [
    # Script file services
    'add_script_file',
    'delete_script_file',
    'promote_latest_version',
    'clear_cover_image',
    'clear_profile_photo',
    'latest_files',
    'delete_script',
]
