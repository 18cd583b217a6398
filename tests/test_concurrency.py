from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select

from app.core.errors import BookingError, InsufficientCapacityError, PromoExhaustedError, PromoInvalidError
from app.models.booking import Booking
from app.services import promo_ledger
from app.services.booking_service import create_booking


def _run_concurrently(session_factory, requests, clock):
    def attempt(req):
        s = session_factory()
        try:
            return create_booking(s, req, clock=clock)
        except BookingError as e:
            return e
        finally:
            s.close()

    with ThreadPoolExecutor(max_workers=len(requests)) as pool:
        return list(pool.map(attempt, requests))


def test_concurrent_bookings_never_oversell(session_factory, make_slot, booking_request, fresh_slot, clock):
    slot = make_slot(total_capacity=10)

    results = _run_concurrently(session_factory, [booking_request(slot, guests=3) for _ in range(8)], clock)

    booked = [r for r in results if isinstance(r, Booking)]
    rejected = [r for r in results if isinstance(r, BookingError)]
    assert len(booked) == 3
    assert all(isinstance(e, InsufficientCapacityError) for e in rejected)
    assert fresh_slot(slot.id).booked_count == 9


def test_concurrent_redemptions_respect_global_cap(db, session_factory, make_slot, make_promo, booking_request, clock):
    slot = make_slot(total_capacity=10)
    make_promo(code="FIRST3", usage_limit_total=3)
    requests = [booking_request(slot, guests=1, email=f"guest{i}@example.com", promo_code="FIRST3") for i in range(6)]

    results = _run_concurrently(session_factory, requests, clock)

    booked = [r for r in results if isinstance(r, Booking)]
    rejected = [r for r in results if isinstance(r, BookingError)]
    assert len(booked) == 3
    assert all(isinstance(e, (PromoInvalidError, PromoExhaustedError)) for e in rejected)
    assert promo_ledger.get_promo(db, "FIRST3").usage_total == 3
    assert db.execute(select(func.count(Booking.id))).scalar() == 3
    db.rollback()
