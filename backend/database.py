import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")


def build_engine(database_url: str, **kwargs):
    if database_url and database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, echo=config.SQL_ECHO, **kwargs)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

SCHEDULING_INDEXES = {
    'time_slot_days': [
        'CREATE INDEX IF NOT EXISTS idx_time_slot_days_admin_date ON time_slot_days(admin_id, date)',
    ],
    'appointments': [
        'CREATE INDEX IF NOT EXISTS idx_appointments_admin_date ON appointments(admin_id, date)',
        'CREATE INDEX IF NOT EXISTS idx_appointments_student ON appointments(student_id)',
        'CREATE INDEX IF NOT EXISTS idx_appointments_team ON appointments(team_id)',
    ],
    'notifications': [
        'CREATE INDEX IF NOT EXISTS idx_notifications_user_created ON notifications(user_id, created_at)',
    ],
}


def ensure_scheduling_schema(bind=None) -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        bind = bind or engine
        existing_tables = set(inspect(bind).get_table_names())

        with bind.begin() as connection:
            for table_name, statements in SCHEDULING_INDEXES.items():
                if table_name not in existing_tables:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _scheduling_schema_checked = True
