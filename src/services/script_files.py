"""
Script file versioning and single-reference deletion.

For every (script, file_type) pair, versions increase monotonically and
exactly one row carries ``is_latest`` while any row exists.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from src.database import db
from src.models import Activity, SCRIPT_FILE_TYPES, Script, ScriptFile, User
from src.services.storage.exceptions import StorageError

logger = logging.getLogger(__name__)


def _log_activity(script_id, user_id, activity_type, description, session):
    session.add(Activity(script_id=script_id, user_id=user_id, type=activity_type, description=description))


def _delete_stored_object(storage, url, what):
    """Best-effort byte deletion. Failures are logged; the row change still happens."""
    if storage is None or not url:
        return
    key = storage.extract_key(url)
    if key is None:
        logger.warning("Cannot derive a storage key for %s (%s); leaving stored object alone", what, url)
        return
    try:
        storage.delete(key)
    except (StorageError, OSError) as e:
        logger.warning("Failed to delete %s from storage: %s", what, e)


def promote_latest_version(script_id, file_type, session=None):
    """
    Mark the highest remaining version of (script_id, file_type) as latest.

    Does not commit.

    Returns:
        The promoted ScriptFile, or None when no version is left
    """
    session = session or db.session
    rows = (
        session.query(ScriptFile)
        .filter(ScriptFile.script_id == script_id, ScriptFile.file_type == file_type)
        .order_by(ScriptFile.version.desc())
        .all()
    )
    for index, row in enumerate(rows):
        row.is_latest = index == 0
    return rows[0] if rows else None


def add_script_file(script, file_type, file_name, file_url, file_size, uploaded_by, session=None):
    """
    Add a new version of a script document.

    The previous latest row is demoted and the new row inserted in one
    transaction, with an activity entry.

    Returns:
        The new ScriptFile
    """
    session = session or db.session
    file_type = (file_type or '').upper()
    if file_type not in SCRIPT_FILE_TYPES:
        raise ValueError(f"Unknown script file type: {file_type}")
    try:
        file_size = int(file_size)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid file size: {file_size!r}")
    if file_size < 0:
        raise ValueError(f"Invalid file size: {file_size}")

    try:
        current_max = (
            session.query(func.max(ScriptFile.version))
            .filter(ScriptFile.script_id == script.id, ScriptFile.file_type == file_type)
            .scalar()
        )
        session.query(ScriptFile).filter(
            ScriptFile.script_id == script.id,
            ScriptFile.file_type == file_type,
            ScriptFile.is_latest.is_(True),
        ).update({ScriptFile.is_latest: False}, synchronize_session='fetch')

        new_file = ScriptFile(
            script_id=script.id,
            file_type=file_type,
            file_name=file_name,
            file_url=file_url,
            file_size=file_size,
            version=(current_max or 0) + 1,
            is_latest=True,
            uploaded_by=uploaded_by,
        )
        session.add(new_file)
        _log_activity(script.id, uploaded_by, 'FILE_UPLOADED',
                      f'Uploaded {file_type.lower()} "{file_name}" (version {new_file.version})', session)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Added %s v%d to script %s", file_type, new_file.version, script.id)
    return new_file


def delete_script_file(file_id, storage, deleted_by=None, session=None):
    """
    Delete one script file version, its stored bytes (best effort) and
    promote the previous version when the deleted one was latest.

    Returns:
        Dictionary describing the deleted row, or None if it does not exist
    """
    session = session or db.session
    script_file = session.get(ScriptFile, file_id)
    if script_file is None:
        return None

    deleted = script_file.to_dict()
    script_title = script_file.script.title if script_file.script else ''
    _delete_stored_object(storage, script_file.file_url, f'script file {file_id}')

    try:
        session.delete(script_file)
        if deleted['is_latest']:
            promote_latest_version(deleted['script_id'], deleted['file_type'], session=session)
        _log_activity(deleted['script_id'], deleted_by, 'FILE_DELETED',
                      f'Deleted script file "{deleted["file_name"]}" from "{script_title}"', session)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    return deleted


def clear_cover_image(script_id, storage, deleted_by=None, session=None):
    """Delete a script's cover image and set the field to NULL. Returns the script or None."""
    session = session or db.session
    script = session.get(Script, script_id)
    if script is None or not script.cover_image_url:
        return None

    _delete_stored_object(storage, script.cover_image_url, f'cover image of script {script_id}')
    try:
        script.cover_image_url = None
        _log_activity(script.id, deleted_by, 'FILE_DELETED', f'Deleted cover image from script "{script.title}"', session)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    return script


def clear_profile_photo(user_id, storage, session=None):
    """Delete a user's profile photo and set the field to NULL. Returns the user or None."""
    session = session or db.session
    user = session.get(User, user_id)
    if user is None or not user.photo_url:
        return None

    _delete_stored_object(storage, user.photo_url, f'profile photo of user {user_id}')
    try:
        user.photo_url = None
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    return user


def latest_files(script):
    """Return {file_type: ScriptFile} for the latest version of each type."""
    return {f.file_type: f for f in script.files if f.is_latest}


def delete_script(script_id, session=None):
    """
    Delete a script with its files, assignments, feedback, activity and
    meetings in one transaction. Stored bytes are left in place.

    Returns:
        True if the script existed
    """
    session = session or db.session
    script = session.get(Script, script_id)
    if script is None:
        return False
    try:
        session.delete(script)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info("Deleted script %s and its dependent rows", script_id)
    return True
