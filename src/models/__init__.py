"""
Database models package for the ScripTrack application.

This package contains all database models organized by domain:
- User model (owner of profile photo references)
- Script and ScriptFile models (cover image and script file references)
- Collaboration models that hang off a script (assignments, feedback,
  activity log, meetings) and are removed with it
"""

# Import database instance
from src.database import db

# Import all models
from .user import User, USER_ROLES
from .script import Script, ScriptFile, SCRIPT_FILE_TYPES
from .collaboration import Assignment, Feedback, Activity, Meeting

# Export all models
__all__ = [
    # Database instance
    'db',
    # User models
    'User',
    'USER_ROLES',
    # Script models
    'Script',
    'ScriptFile',
    'SCRIPT_FILE_TYPES',
    # Collaboration models
    'Assignment',
    'Feedback',
    'Activity',
    'Meeting',
]
