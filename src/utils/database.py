"""
Schema upgrade helpers for databases created by older releases.

Must work on SQLite and PostgreSQL. Table names are always quoted because
"user" is a reserved word in PostgreSQL.
"""

from sqlalchemy import inspect, text


def _quote(engine, identifier):
    if engine.name == 'mysql':
        return f'`{identifier}`'
    return f'"{identifier}"'


def add_column_if_not_exists(engine, table_name, column_name, column_type):
    """
    Add a nullable column when an existing table lacks it.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column to add
        column_type: SQL type, e.g. 'VARCHAR(1000)'

    Returns:
        bool: True if the column was added
    """
    inspector = inspect(engine)
    if table_name not in inspector.get_table_names():
        return False
    if column_name in [col['name'] for col in inspector.get_columns(table_name)]:
        return False

    if engine.name == 'postgresql':
        column_type = column_type.replace('DATETIME', 'TIMESTAMP')

    with engine.connect() as conn:
        conn.execute(text(
            f'ALTER TABLE {_quote(engine, table_name)} ADD COLUMN {_quote(engine, column_name)} {column_type}'
        ))
        conn.commit()
    return True


def create_index_if_not_exists(engine, index_name, table_name, columns, unique=False):
    """
    Create an index unless one with the same name already exists.

    Args:
        columns: Column list as SQL, comma-separated for composite indexes

    Returns:
        bool: True if the index was created
    """
    inspector = inspect(engine)
    if table_name not in inspector.get_table_names():
        return False

    existing = {idx['name'] for idx in inspector.get_indexes(table_name)}
    existing.update(c['name'] for c in inspector.get_unique_constraints(table_name))
    if index_name in existing:
        return False

    unique_clause = 'UNIQUE ' if unique else ''
    with engine.connect() as conn:
        conn.execute(text(
            f'CREATE {unique_clause}INDEX {index_name} ON {_quote(engine, table_name)} ({columns})'
        ))
        conn.commit()
    return True
