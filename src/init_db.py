"""
Database initialization and schema upgrades.

This module handles:
- Database schema creation
- Columns added to tables created by older releases
- Indexes backing the script file version invariant
"""

from sqlalchemy import text

from src.database import db
from src.utils import add_column_if_not_exists, create_index_if_not_exists


def initialize_database(app):
    """
    Initialize database schema and run upgrades.

    This function should be called within an app context.
    """
    db.create_all()

    engine = db.engine

    # Enable WAL mode for SQLite (better concurrent write performance)
    if engine.name == 'sqlite' and engine.url.database not in (None, '', ':memory:'):
        try:
            with engine.connect() as conn:
                conn.execute(text('PRAGMA journal_mode=WAL'))
                conn.commit()
                app.logger.info("SQLite WAL mode enabled for better concurrency")
        except Exception as e:
            app.logger.warning(f"Could not enable WAL mode: {e}")

    # File reference columns that did not exist in the first schema
    if add_column_if_not_exists(engine, 'user', 'photo_url', 'VARCHAR(1000)'):
        app.logger.info("Added photo_url column to user table")
    if add_column_if_not_exists(engine, 'script', 'cover_image_url', 'VARCHAR(1000)'):
        app.logger.info("Added cover_image_url column to script table")

    # Version numbers must be unique per (script, file_type)
    if create_index_if_not_exists(engine, 'uq_script_file_version', 'script_file',
                                  'script_id, file_type, version', unique=True):
        app.logger.info("Created unique index uq_script_file_version on script_file")
    if create_index_if_not_exists(engine, 'ix_script_file_latest', 'script_file',
                                  'script_id, file_type, is_latest'):
        app.logger.info("Created index ix_script_file_latest on script_file")
