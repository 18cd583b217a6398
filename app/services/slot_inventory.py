"""Slot capacity accounting.

`reserve` and `release` only flush; the caller's unit of work decides whether
the change commits together with the booking row or is rolled back.
"""

import uuid
from datetime import date, datetime, timedelta, timezone

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    DeadlinePassedError,
    InsufficientCapacityError,
    NotFoundError,
    OverReleaseError,
    SlotUnavailableError,
    ValidationError,
)
from app.db.retry import with_conflict_retry
from app.models.experience import Experience
from app.models.time_slot import TimeSlot


def load_slot(db: Session, slot_id: str, lock: bool = False) -> TimeSlot | None:
    stmt = select(TimeSlot).where(TimeSlot.id == slot_id).execution_options(populate_existing=True)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def reserve(db: Session, slot_id: str, guests: int, now: datetime) -> TimeSlot:
    if guests < 1:
        raise ValidationError("Number of guests must be at least 1", slot_id=slot_id)

    def _attempt() -> TimeSlot:
        slot = load_slot(db, slot_id, lock=True)
        if not slot:
            raise NotFoundError("Time slot not found", slot_id=slot_id)
        if not slot.is_active:
            raise SlotUnavailableError("Time slot is not available", slot_id=slot_id)
        if now > slot.cancellation_deadline:
            raise DeadlinePassedError("Booking deadline has passed for this time slot", slot_id=slot_id)
        if slot.available_spots < guests:
            raise InsufficientCapacityError(
                f"Only {slot.available_spots} spots available, but {guests} requested",
                slot_id=slot_id,
                available=slot.available_spots,
            )
        slot.booked_count += guests
        db.flush()
        return slot

    slot = with_conflict_retry(db, "slot reserve", _attempt, slot_id=slot_id)
    logger.debug("reserved {} on slot {} ({}/{})", guests, slot_id, slot.booked_count, slot.total_capacity)
    return slot


def release(db: Session, slot_id: str, guests: int) -> TimeSlot:
    def _attempt() -> TimeSlot:
        slot = load_slot(db, slot_id, lock=True)
        if not slot:
            raise NotFoundError("Time slot not found", slot_id=slot_id)
        if guests > slot.booked_count:
            raise OverReleaseError(
                f"Cannot release {guests} spots, only {slot.booked_count} booked",
                slot_id=slot_id,
            )
        slot.booked_count -= guests
        db.flush()
        return slot

    slot = with_conflict_retry(db, "slot release", _attempt, slot_id=slot_id)
    logger.debug("released {} on slot {} ({}/{})", guests, slot_id, slot.booked_count, slot.total_capacity)
    return slot


def available_spots(db: Session, slot_id: str) -> int:
    slot = load_slot(db, slot_id)
    if not slot:
        raise NotFoundError("Time slot not found", slot_id=slot_id)
    return slot.available_spots


def create_time_slot(
    db: Session,
    experience: Experience,
    slot_date: date,
    start_time: str,
    end_time: str,
    total_capacity: int | None = None,
    price: int | None = None,
    special_price: int | None = None,
) -> TimeSlot:
    """Catalog helper: new slot with its cancellation deadline precomputed."""
    slot = TimeSlot(
        id=str(uuid.uuid4()),
        experience_id=experience.id,
        slot_date=slot_date,
        start_time=start_time,
        end_time=end_time,
        total_capacity=total_capacity or experience.max_group_size,
        booked_count=0,
        price=experience.price if price is None else price,
        special_price=special_price,
        is_active=True,
    )
    starts_at = slot.starts_at(settings.TIMEZONE)
    slot.cancellation_deadline = (starts_at - timedelta(hours=settings.CANCELLATION_WINDOW_HOURS)).astimezone(timezone.utc)
    db.add(slot)
    db.flush()
    return slot
