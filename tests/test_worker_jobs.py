from datetime import timedelta

from sqlalchemy import select

from app.core.clock import FixedClock
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.services.booking_service import create_booking
from app.services.cancellation_service import cancel_booking
from app.tasks.worker_jobs import complete_finished_bookings
from tests.constants import NOW


def _status(session_factory, booking_id):
    s = session_factory()
    try:
        return s.get(Booking, booking_id).status
    finally:
        s.close()


def test_completes_only_finished_confirmed_bookings(db, session_factory, make_slot, booking_request, clock):
    done = create_booking(db, booking_request(make_slot(days_ahead=2, start="08:00", end="10:00")), clock=clock)
    later = create_booking(db, booking_request(make_slot(days_ahead=5)), clock=clock)
    cancelled = create_booking(db, booking_request(make_slot(days_ahead=2)), clock=clock)
    cancel_booking(db, cancelled.booking_reference, clock=clock)

    # 2 days ahead at 10:00 IST is 04:30 UTC
    result = complete_finished_bookings(db, clock=FixedClock(NOW + timedelta(days=2) - timedelta(hours=1)))

    assert result == {"completed": 1}
    assert _status(session_factory, done.id) == "completed"
    assert _status(session_factory, later.id) == "confirmed"
    assert _status(session_factory, cancelled.id) == "cancelled"
    assert db.execute(select(AuditLog.entity_id).where(AuditLog.action == "booking.complete")).scalars().all() == [done.id]
    db.rollback()


def test_slot_still_running_is_left_alone(db, make_slot, booking_request, clock):
    b = create_booking(db, booking_request(make_slot(days_ahead=2, start="10:00", end="13:00")), clock=clock)

    # 12:00 IST on the slot date
    result = complete_finished_bookings(db, clock=FixedClock(NOW.replace(hour=6, minute=30) + timedelta(days=2)))

    assert result == {"completed": 0}
    assert b.status == "confirmed"
