from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.db.session import SessionLocal
from app.models.booking import Booking
from app.models.time_slot import TimeSlot
from app.services.audit_service import log_audit


def complete_finished_bookings(db: Session | None = None, clock: Clock = system_clock):
    """Mark confirmed bookings whose slot has ended as completed."""
    own_session = db is None
    if own_session:
        db = SessionLocal()
    now = clock.now()
    try:
        try:
            rows = db.execute(
                select(Booking, TimeSlot)
                .join(TimeSlot, TimeSlot.id == Booking.time_slot_id)
                .where(Booking.status == "confirmed", TimeSlot.slot_date <= now.astimezone(ZoneInfo(settings.TIMEZONE)).date())
                .with_for_update(of=Booking)
            ).all()
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        completed = 0
        for b, slot in rows:
            if slot.ends_at(settings.TIMEZONE) > now:
                continue
            b.status = "completed"
            b.completed_at = now
            log_audit(db, "system", "booking.complete", "booking", b.id, {"bookingReference": b.booking_reference})
            completed += 1
        db.commit()
        if completed:
            logger.info("completed {} finished bookings", completed)
        return {"completed": completed}
    finally:
        if own_session:
            db.close()
