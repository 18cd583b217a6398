import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.errors import (
    DeadlinePassedError,
    InsufficientCapacityError,
    InternalError,
    NotFoundError,
    PromoInvalidError,
    SlotUnavailableError,
    ValidationError,
)
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.services import booking_service, promo_ledger
from app.services.booking_service import BookingRequest, CustomerInfo, create_booking
from tests.constants import ANOTHER_EMAIL, TEST_EMAIL


def _count_bookings(db) -> int:
    return db.execute(select(func.count(Booking.id))).scalar()


def test_create_booking_confirms_and_freezes_pricing(db, make_slot, make_promo, booking_request, fresh_slot, clock):
    slot = make_slot(total_capacity=10)
    make_promo(code="SAVE10", discount_value=10)

    b = create_booking(db, booking_request(slot, guests=2, promo_code="save10"), clock=clock)

    assert b.status == "confirmed"
    assert b.booking_reference.startswith("HD")
    assert b.customer_email == TEST_EMAIL
    assert b.pricing.base_price == 100000
    assert (b.total_amount, b.discount_amount, b.tax_amount, b.final_amount) == (200000, 20000, 18000, 198000)
    assert b.applied_promo.code == "SAVE10"
    assert b.confirmed_at == clock.now()
    assert fresh_slot(slot.id).booked_count == 2
    assert promo_ledger.get_promo(db, "SAVE10").usage_total == 1
    assert db.execute(select(AuditLog).where(AuditLog.entity_id == b.id)).scalar_one().action == "booking.create"


def test_special_price_overrides_slot_price(db, make_slot, booking_request, clock):
    slot = make_slot(price=100000, special_price=80000)

    b = create_booking(db, booking_request(slot, guests=1), clock=clock)

    assert b.base_price == 80000
    assert b.promo_code is None
    assert b.final_amount == 88000


def test_validation_reports_every_invalid_field(db, make_slot, clock):
    slot = make_slot()
    req = BookingRequest(
        experience_id=slot.experience_id,
        time_slot_id=slot.id,
        customer=CustomerInfo(name="  ", email="asha.example.com", phone="12"),
        number_of_guests=21,
    )

    with pytest.raises(ValidationError) as exc:
        create_booking(db, req, clock=clock)

    assert len(exc.value.messages) == 4
    assert any("numberOfGuests" in m for m in exc.value.messages)


def test_missing_or_inactive_experience(db, make_experience, make_slot, booking_request, clock):
    inactive = make_experience(is_active=False)
    slot = make_slot(experience=inactive)

    with pytest.raises(NotFoundError):
        create_booking(db, booking_request(slot), clock=clock)

    req = booking_request(make_slot())
    req.experience_id = "no-such-experience"
    with pytest.raises(NotFoundError):
        create_booking(db, req, clock=clock)


def test_slot_must_belong_to_experience(db, make_experience, make_slot, booking_request, clock):
    slot = make_slot()
    req = booking_request(slot)
    req.experience_id = make_experience(title="Coffee Trail").id

    with pytest.raises(NotFoundError) as exc:
        create_booking(db, req, clock=clock)
    assert "does not belong" in exc.value.messages[0]


def test_slot_failures_propagate(db, make_slot, booking_request, clock):
    disabled = make_slot()
    disabled.is_active = False
    db.commit()
    past = make_slot(days_ahead=0)
    small = make_slot(total_capacity=1)

    with pytest.raises(SlotUnavailableError):
        create_booking(db, booking_request(disabled), clock=clock)
    with pytest.raises(DeadlinePassedError):
        create_booking(db, booking_request(past), clock=clock)
    with pytest.raises(InsufficientCapacityError) as exc:
        create_booking(db, booking_request(small, guests=2), clock=clock)
    assert exc.value.context["slot_id"] == small.id
    assert _count_bookings(db) == 0


def test_invalid_promo_rolls_back_reservation(db, make_slot, make_promo, booking_request, fresh_slot, clock):
    slot = make_slot(total_capacity=10)
    make_promo(code="BIGSPEND", minimum_order_value=10_000_000)
    slot_id = slot.id

    with pytest.raises(PromoInvalidError) as exc:
        create_booking(db, booking_request(slot, promo_code="BIGSPEND"), clock=clock)
    with pytest.raises(PromoInvalidError) as unknown:
        create_booking(db, booking_request(slot, promo_code="NOSUCHCODE"), clock=clock)

    assert "Minimum order value" in exc.value.messages[0]
    assert unknown.value.messages == ["Invalid promo code"]
    assert fresh_slot(slot_id).booked_count == 0
    assert _count_bookings(db) == 0


def test_per_user_limit(db, make_slot, make_promo, booking_request, clock):
    slot = make_slot(total_capacity=10)
    make_promo(code="ONCE", usage_limit_per_user=1)

    create_booking(db, booking_request(slot, guests=1, promo_code="ONCE"), clock=clock)
    with pytest.raises(PromoInvalidError) as exc:
        create_booking(db, booking_request(slot, guests=1, promo_code="ONCE"), clock=clock)
    other = create_booking(db, booking_request(slot, guests=1, email=ANOTHER_EMAIL, promo_code="ONCE"), clock=clock)

    assert any("per-user limit" in m for m in exc.value.messages)
    assert other.promo_code == "ONCE"
    assert promo_ledger.get_promo(db, "ONCE").usage_total == 2


def test_persist_failure_rolls_back_everything(db, make_slot, make_promo, booking_request, fresh_slot, clock, monkeypatch):
    slot = make_slot(total_capacity=6)
    make_promo(code="SAVE10")
    slot_id = slot.id
    before = fresh_slot(slot_id).available_spots

    def broken_insert(db, booking):
        raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(booking_service, "_persist_booking", broken_insert)

    with pytest.raises(InternalError):
        create_booking(db, booking_request(slot, guests=3, promo_code="SAVE10"), clock=clock)

    assert fresh_slot(slot_id).available_spots == before
    promo = promo_ledger.get_promo(db, "SAVE10")
    assert promo.usage_total == 0
    assert promo_ledger.user_redemption_count(db, promo.id, TEST_EMAIL) == 0
    assert _count_bookings(db) == 0


def test_pricing_snapshot_is_immutable(db, make_slot, booking_request, clock):
    b = create_booking(db, booking_request(make_slot()), clock=clock)

    b.final_amount = 1
    with pytest.raises(ValueError):
        db.commit()
    db.rollback()


def test_get_booking_by_reference(db, make_slot, booking_request, clock):
    b = create_booking(db, booking_request(make_slot()), clock=clock)

    assert booking_service.get_booking_by_reference(db, b.booking_reference.lower()).id == b.id
    with pytest.raises(NotFoundError):
        booking_service.get_booking_by_reference(db, "HD000000NOTHERE")


def test_list_bookings_by_email(db, make_slot, booking_request, clock):
    slot = make_slot(total_capacity=10)
    for _ in range(3):
        create_booking(db, booking_request(slot, guests=1), clock=clock)
    create_booking(db, booking_request(slot, guests=1, email=ANOTHER_EMAIL), clock=clock)

    first = booking_service.list_bookings_by_email(db, TEST_EMAIL.upper(), page=1, page_size=2)
    second = booking_service.list_bookings_by_email(db, TEST_EMAIL, page=2, page_size=2)
    cancelled = booking_service.list_bookings_by_email(db, TEST_EMAIL, status="cancelled")

    assert (len(first.items), first.total, first.total_pages, first.has_next, first.has_prev) == (2, 3, 2, True, False)
    assert (len(second.items), second.has_next, second.has_prev) == (1, False, True)
    assert cancelled.total == 0


def test_list_bookings_rejects_bad_input(db):
    with pytest.raises(ValidationError) as exc:
        booking_service.list_bookings_by_email(db, "nope", page=0, page_size=500, status="lost")

    assert len(exc.value.messages) == 4


def test_booking_references_are_unique():
    refs = {booking_service.generate_booking_reference() for _ in range(10_000)}

    assert len(refs) == 10_000
    assert all(len(r) <= 20 and r.isalnum() for r in refs)
