"""Booking creation and lookup.

`create_booking` runs one unit of work: reserve slot capacity, redeem the
promo code, price the order and insert the booking, then commit. Any
failure rolls all of it back.
"""

import math
import random
import string
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.errors import BookingError, InternalError, NotFoundError, PromoInvalidError, ValidationError
from app.core.validation import PHONE_RE, is_valid_email, normalize_email
from app.models.booking import Booking, BOOKING_STATUSES
from app.models.experience import Experience
from app.services import promo_ledger, slot_inventory
from app.services.audit_service import log_audit
from app.services.pricing import compute_price

REFERENCE_PREFIX = "HD"
REFERENCE_ATTEMPTS = 10
_REF_ALPHABET = string.ascii_uppercase + string.digits
_rng = random.SystemRandom()


class BookingStage(str, Enum):
    VALIDATING = "validating"
    RESERVING_SLOT = "reserving_slot"
    REDEEMING_PROMO = "redeeming_promo"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class CustomerInfo:
    name: str
    email: str
    phone: str = ""
    notes: str = ""


@dataclass
class BookingRequest:
    experience_id: str
    time_slot_id: str
    customer: CustomerInfo
    number_of_guests: Optional[int]
    promo_code: Optional[str] = None
    source: str = "web"


@dataclass
class BookingPage:
    items: list[Booking]
    total: int
    page: int
    page_size: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def _to_base36(n: int) -> str:
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_REF_ALPHABET[26 + r] if r < 10 else _REF_ALPHABET[r - 10])
    return "".join(reversed(digits)) or "0"


def generate_booking_reference() -> str:
    """Time-based prefix + random suffix, e.g. HD1A2B3CX7K2QP9M."""
    stamp = _to_base36(time.time_ns() // 1_000_000)[-6:]
    return REFERENCE_PREFIX + stamp + "".join(_rng.choices(_REF_ALPHABET, k=8))


def allocate_booking_reference(db: Session) -> str:
    # booking_reference must be unique
    for _ in range(REFERENCE_ATTEMPTS):
        ref = generate_booking_reference()
        exists = db.execute(select(Booking.id).where(Booking.booking_reference == ref)).first()
        if not exists:
            return ref
    raise InternalError("Could not allocate a booking reference")


def validate_request(req: BookingRequest) -> list[str]:
    errors = []
    if not req.experience_id:
        errors.append("experienceId is required")
    if not req.time_slot_id:
        errors.append("timeSlotId is required")

    customer = req.customer
    name = (customer.name or "").strip() if customer else ""
    if not name:
        errors.append("customer.name is required")
    elif len(name) > 100:
        errors.append("customer.name cannot exceed 100 characters")
    email = (customer.email or "").strip() if customer else ""
    if not email:
        errors.append("customer.email is required")
    elif not is_valid_email(email):
        errors.append("customer.email is not a valid email address")
    phone = (customer.phone or "").strip() if customer else ""
    if phone and not PHONE_RE.match(phone):
        errors.append("customer.phone is not a valid phone number")
    if customer and customer.notes and len(customer.notes) > 500:
        errors.append("customer.notes cannot exceed 500 characters")

    guests = req.number_of_guests
    if not isinstance(guests, int) or isinstance(guests, bool) or not (1 <= guests <= settings.MAX_GUESTS_PER_BOOKING):
        errors.append(f"numberOfGuests must be between 1 and {settings.MAX_GUESTS_PER_BOOKING}")
    return errors


def _persist_booking(db: Session, booking: Booking) -> None:
    db.add(booking)
    db.flush()


def create_booking(db: Session, req: BookingRequest, clock: Clock = system_clock) -> Booking:
    stage = BookingStage.VALIDATING
    errors = validate_request(req)
    if errors:
        raise ValidationError(errors)

    now = clock.now()
    email = normalize_email(req.customer.email)
    try:
        experience = db.get(Experience, req.experience_id)
        if not experience or not experience.is_active:
            raise NotFoundError("Experience not found", experience_id=req.experience_id)
        slot = slot_inventory.load_slot(db, req.time_slot_id)
        if not slot:
            raise NotFoundError("Time slot not found", slot_id=req.time_slot_id)
        if slot.experience_id != experience.id:
            raise NotFoundError(
                "Time slot does not belong to the selected experience",
                slot_id=req.time_slot_id,
                experience_id=req.experience_id,
            )

        stage = BookingStage.RESERVING_SLOT
        slot = slot_inventory.reserve(db, slot.id, req.number_of_guests, now)

        base_price = slot.effective_price
        subtotal = base_price * req.number_of_guests
        discount = 0
        promo = None
        if req.promo_code and req.promo_code.strip():
            stage = BookingStage.REDEEMING_PROMO
            promo = promo_ledger.get_promo(db, req.promo_code, lock=True)
            if not promo:
                raise PromoInvalidError("Invalid promo code", code=promo_ledger.normalize_code(req.promo_code))
            reasons = promo_ledger.validate(db, promo, email, subtotal, experience.id, experience.category, now)
            if reasons:
                raise PromoInvalidError(reasons, code=promo.code)
            discount = promo_ledger.calculate_discount(promo, subtotal)
            promo = promo_ledger.redeem(db, promo.code, email, now)

        stage = BookingStage.PERSISTING
        price = compute_price(base_price, req.number_of_guests, discount)
        booking = Booking(
            id=str(uuid.uuid4()),
            booking_reference=allocate_booking_reference(db),
            experience_id=experience.id,
            time_slot_id=slot.id,
            customer_name=req.customer.name.strip(),
            customer_email=email,
            customer_phone=(req.customer.phone or "").strip(),
            customer_notes=(req.customer.notes or "").strip(),
            number_of_guests=req.number_of_guests,
            base_price=base_price,
            total_amount=price.subtotal,
            discount_amount=price.discount,
            tax_amount=price.tax,
            final_amount=price.total,
            currency=settings.CURRENCY,
            promo_code=promo.code if promo else None,
            promo_discount_type=promo.discount_type if promo else None,
            promo_discount_value=promo.discount_value if promo else None,
            status="confirmed",  # no payment step; confirmed optimistically
            source=req.source,
            booked_at=now,
            confirmed_at=now,
        )
        _persist_booking(db, booking)
        log_audit(db, email, "booking.create", "booking", booking.id, {
            "bookingReference": booking.booking_reference,
            "timeSlotId": slot.id,
            "guests": booking.number_of_guests,
            "promoCode": booking.promo_code,
            "finalAmount": booking.final_amount,
        })
        db.commit()
        stage = BookingStage.COMMITTED
    except BookingError as e:
        db.rollback()
        logger.info("booking attempt {} at {}: {}", BookingStage.ROLLED_BACK.value, stage.value, e)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("booking attempt failed at {} (slot={})", stage.value, req.time_slot_id)
        raise InternalError("Failed to create booking", slot_id=req.time_slot_id) from e
    except Exception:
        db.rollback()
        raise

    logger.info(
        "booking {} confirmed: slot={} guests={} final={}",
        booking.booking_reference, booking.time_slot_id, booking.number_of_guests, booking.final_amount,
    )
    return booking


def get_booking_by_reference(db: Session, reference: str) -> Booking:
    b = db.execute(
        select(Booking).where(Booking.booking_reference == (reference or "").strip().upper())
    ).scalar_one_or_none()
    if not b:
        raise NotFoundError("Booking not found", reference=reference)
    return b


def list_bookings_by_email(
    db: Session,
    email: str,
    page: int = 1,
    page_size: int = 10,
    status: Optional[str] = None,
) -> BookingPage:
    errors = []
    if not is_valid_email(email):
        errors.append("Invalid email format")
    if page < 1:
        errors.append("page must be >= 1")
    if not (1 <= page_size <= 100):
        errors.append("pageSize must be between 1 and 100")
    if status and status not in BOOKING_STATUSES:
        errors.append(f"status must be one of {', '.join(BOOKING_STATUSES)}")
    if errors:
        raise ValidationError(errors)

    filters = [Booking.customer_email == normalize_email(email)]
    if status:
        filters.append(Booking.status == status)
    total = db.execute(select(func.count(Booking.id)).where(*filters)).scalar() or 0
    items = db.execute(
        select(Booking)
        .where(*filters)
        .order_by(Booking.booked_at.desc(), Booking.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).scalars().all()
    return BookingPage(items=list(items), total=int(total), page=page, page_size=page_size)
