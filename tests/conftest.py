import os
import uuid
from datetime import timedelta

# Settings require DATABASE_URL at import time; tests build their own engines.
os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-experiences.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.api.deps import get_clock  # noqa: E402
from app.core.clock import FixedClock  # noqa: E402
from app.db.session import Base, get_db, make_engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.audit_log import AuditLog  # noqa: E402, F401
from app.models.booking import Booking  # noqa: E402, F401
from app.models.experience import Experience  # noqa: E402
from app.models.promo_code import PromoCode  # noqa: E402
from app.models.time_slot import TimeSlot  # noqa: E402
from app.services.booking_service import BookingRequest, CustomerInfo  # noqa: E402
from app.services.slot_inventory import create_time_slot  # noqa: E402
from tests.constants import NOW, TEST_EMAIL  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def make_experience(db):
    def _make(**overrides) -> Experience:
        fields = dict(
            id=str(uuid.uuid4()),
            title="Kayaking in Udupi",
            category="adventure",
            location="Udupi",
            duration="3 hours",
            price=100000,
            max_group_size=10,
            is_active=True,
        )
        fields.update(overrides)
        e = Experience(**fields)
        db.add(e)
        db.commit()
        return e
    return _make


@pytest.fixture
def make_slot(db, make_experience):
    def _make(experience: Experience | None = None, days_ahead: int = 3, start: str = "10:00", end: str = "13:00", **kwargs) -> TimeSlot:
        experience = experience or make_experience()
        slot = create_time_slot(db, experience, NOW.date() + timedelta(days=days_ahead), start, end, **kwargs)
        db.commit()
        return slot
    return _make


@pytest.fixture
def make_promo(db):
    def _make(**overrides) -> PromoCode:
        fields = dict(
            id=str(uuid.uuid4()),
            code="SAVE10",
            description="10% off",
            discount_type="percentage",
            discount_value=10,
            minimum_order_value=0,
            maximum_discount_amount=None,
            usage_limit_total=None,
            usage_limit_per_user=1,
            usage_total=0,
            valid_from=NOW - timedelta(days=1),
            valid_until=NOW + timedelta(days=30),
            applicable_categories=[],
            applicable_experiences=[],
            excluded_experiences=[],
            days_of_week=[],
            is_active=True,
        )
        fields.update(overrides)
        p = PromoCode(**fields)
        db.add(p)
        db.commit()
        return p
    return _make


@pytest.fixture
def booking_request():
    def _make(slot: TimeSlot, guests: int = 2, email: str = TEST_EMAIL, promo_code: str | None = None) -> BookingRequest:
        return BookingRequest(
            experience_id=slot.experience_id,
            time_slot_id=slot.id,
            customer=CustomerInfo(name="Asha Rao", email=email, phone="+91 98450 12345"),
            number_of_guests=guests,
            promo_code=promo_code,
        )
    return _make


@pytest.fixture
def fresh_slot(db, session_factory):
    """Re-read a slot through a new session, i.e. the committed state."""
    def _read(slot_id: str) -> TimeSlot:
        # a lazy refresh in the test session holds the SQLite write lock until it ends
        db.rollback()
        s = session_factory()
        try:
            return s.get(TimeSlot, slot_id)
        finally:
            s.close()
    return _read


@pytest.fixture
def client(session_factory, clock):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
