import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base  # noqa: E402
from backend.models import appointment, notification, team, time_slot, user  # noqa: E402,F401
from backend.services.time_slot_day_service import SlotDefinition, TimeSlotDayService  # noqa: E402

ADMIN_ID = 'adm1'
BOOKING_DATE = date(2025, 11, 1)


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(tmp_path):
    """Sessions on a file database so that threads get their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'scheduling.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def open_calendar(db_session):
    def _create(*times: str, admin_id: str = ADMIN_ID, day: date = BOOKING_DATE):
        return TimeSlotDayService(db_session).create_or_update_day(
            admin_id,
            day,
            [SlotDefinition(slot_time) for slot_time in times],
        )

    return _create
