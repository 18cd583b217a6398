"""Booking cancellation.

Releasing the slot capacity and marking the booking cancelled commit
together. Promo usage is deliberately left as is: a cancelled booking keeps
its redemption.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import Clock, system_clock
from app.core.errors import (
    AlreadyCancelledError,
    AlreadyCompletedError,
    BookingError,
    DeadlinePassedError,
    InternalError,
    NotFoundError,
)
from app.models.booking import Booking, CANCELLABLE_STATUSES
from app.services import slot_inventory
from app.services.audit_service import log_audit

DEFAULT_REASON = "User cancellation"
CANCELLED_BY = ("user", "admin", "system")


def _check_cancellable(b: Booking) -> None:
    if b.status in CANCELLABLE_STATUSES:
        return
    if b.status == "completed":
        raise AlreadyCompletedError("Cannot cancel completed booking", reference=b.booking_reference)
    # cancelled or refunded
    raise AlreadyCancelledError("Booking is already cancelled", reference=b.booking_reference)


def cancel_booking(
    db: Session,
    reference: str,
    reason: Optional[str] = None,
    cancelled_by: str = "user",
    clock: Clock = system_clock,
) -> Booking:
    if cancelled_by not in CANCELLED_BY:
        raise ValueError(f"cancelled_by must be one of {CANCELLED_BY}")
    now = clock.now()
    try:
        b = db.execute(
            select(Booking)
            .where(Booking.booking_reference == (reference or "").strip().upper())
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not b:
            raise NotFoundError("Booking not found", reference=reference)
        _check_cancellable(b)

        slot = slot_inventory.load_slot(db, b.time_slot_id, lock=True)
        if not slot:
            raise NotFoundError("Time slot not found", slot_id=b.time_slot_id, reference=b.booking_reference)
        if now > slot.cancellation_deadline:
            raise DeadlinePassedError("Cancellation deadline has passed", slot_id=slot.id, reference=b.booking_reference)

        slot_inventory.release(db, slot.id, b.number_of_guests)

        b.status = "cancelled"
        b.cancelled_at = now
        b.cancelled_by = cancelled_by
        b.cancellation_reason = (reason or "").strip() or DEFAULT_REASON
        # free cancellation before the deadline: full refund of what was charged
        b.refund_amount = b.final_amount
        log_audit(db, b.customer_email if cancelled_by == "user" else cancelled_by, "booking.cancel", "booking", b.id, {
            "bookingReference": b.booking_reference,
            "reason": b.cancellation_reason,
            "refund": b.refund_amount,
            "released": b.number_of_guests,
        })
        db.commit()
    except BookingError as e:
        db.rollback()
        logger.info("cancellation of {} rejected: {}", reference, e)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("cancellation of {} failed", reference)
        raise InternalError("Failed to cancel booking", reference=reference) from e
    except Exception:
        db.rollback()
        raise

    logger.info("booking {} cancelled by {}, released {} on slot {}", b.booking_reference, cancelled_by, b.number_of_guests, b.time_slot_id)
    return b
