from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from coachbook.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=config.DATABASE_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False

SLOT_COLUMNS = ['date', 'time']


def _has_index(inspector, table_name: str, columns: list[str], unique: bool = False) -> bool:
    """True when an index (or, for ``unique``, a UNIQUE constraint) already covers ``columns``."""
    indexes = inspector.get_indexes(table_name)
    if any(index['column_names'] == columns and (index['unique'] or not unique) for index in indexes):
        return True
    if unique:
        constraints = inspector.get_unique_constraints(table_name)
        return any(constraint['column_names'] == columns for constraint in constraints)
    return False


def ensure_booking_schema() -> None:
    """Backfill columns and slot indexes on databases created before they existed."""
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        inspector = inspect(engine)
        table_names = inspector.get_table_names()

        with engine.begin() as connection:
            if 'bookings' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('bookings')}
                migration_steps = [
                    ('health_information', 'ALTER TABLE bookings ADD COLUMN health_information VARCHAR'),
                    ('created_at', 'ALTER TABLE bookings ADD COLUMN created_at TIMESTAMP'),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

                if not _has_index(inspector, 'bookings', SLOT_COLUMNS, unique=True):
                    connection.execute(text('CREATE UNIQUE INDEX uq_bookings_slot ON bookings(date, time)'))
                if not _has_index(inspector, 'bookings', ['user_id']):
                    connection.execute(text('CREATE INDEX idx_bookings_user ON bookings(user_id)'))

            if 'blackouts' in table_names and not _has_index(inspector, 'blackouts', SLOT_COLUMNS, unique=True):
                connection.execute(text('CREATE UNIQUE INDEX uq_blackouts_slot ON blackouts(date, time)'))

        _booking_schema_checked = True
