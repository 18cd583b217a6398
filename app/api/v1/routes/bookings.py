from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_clock
from app.core.clock import Clock
from app.models.booking import Booking
from app.schemas.booking import (
    AppliedPromoOut,
    BookingCancel,
    BookingCreate,
    BookingListOut,
    CustomerIn,
    BookingOut,
    CancellationOut,
    PaginationOut,
    PricingOut,
)
from app.services.booking_service import (
    BookingRequest,
    CustomerInfo,
    create_booking,
    get_booking_by_reference,
    list_bookings_by_email,
)
from app.services.cancellation_service import cancel_booking

router = APIRouter(tags=["bookings"])

def booking_out(b: Booking) -> BookingOut:
    promo = b.applied_promo
    return BookingOut(
        bookingReference=b.booking_reference,
        experienceId=b.experience_id,
        timeSlotId=b.time_slot_id,
        status=b.status,
        customerName=b.customer_name,
        customerEmail=b.customer_email,
        customerPhone=b.customer_phone or "",
        notes=b.customer_notes or "",
        numberOfGuests=b.number_of_guests,
        pricing=PricingOut(
            basePrice=b.base_price,
            totalAmount=b.total_amount,
            discountAmount=b.discount_amount,
            taxAmount=b.tax_amount,
            finalAmount=b.final_amount,
            currency=b.currency,
            totalSavings=b.total_savings,
        ),
        promoCode=AppliedPromoOut(
            code=promo.code, discountType=promo.discount_type, discountValue=promo.discount_value,
        ) if promo else None,
        bookedAt=b.booked_at.isoformat(),
        confirmedAt=b.confirmed_at.isoformat() if b.confirmed_at else None,
        cancellation=CancellationOut(
            cancelledAt=b.cancelled_at.isoformat(),
            cancelledBy=b.cancelled_by,
            reason=b.cancellation_reason,
            refundAmount=b.refund_amount,
        ) if b.cancelled_at else None,
    )

@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_public_booking(body: BookingCreate, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    customer = body.customer or CustomerIn()
    req = BookingRequest(
        experience_id=body.experienceId or "",
        time_slot_id=body.timeSlotId or "",
        customer=CustomerInfo(
            name=customer.name or "",
            email=customer.email or "",
            phone=customer.phone or "",
            notes=customer.notes or "",
        ),
        number_of_guests=body.numberOfGuests,
        promo_code=body.promoCode,
    )
    return booking_out(create_booking(db, req, clock=clock))

@router.get("/bookings/user/{email}", response_model=BookingListOut)
def list_user_bookings(email: str, page: int = 1, limit: int = 10, status: Optional[str] = None, db: Session = Depends(get_db)):
    result = list_bookings_by_email(db, email, page=page, page_size=limit, status=status)
    return BookingListOut(
        bookings=[booking_out(b) for b in result.items],
        pagination=PaginationOut(
            currentPage=result.page,
            totalPages=result.total_pages,
            totalBookings=result.total,
            hasNextPage=result.has_next,
            hasPrevPage=result.has_prev,
            limit=result.page_size,
        ),
    )

@router.get("/bookings/{reference}", response_model=BookingOut)
def get_booking(reference: str, db: Session = Depends(get_db)):
    return booking_out(get_booking_by_reference(db, reference))

@router.patch("/bookings/{reference}/cancel", response_model=BookingOut)
def cancel_public_booking(reference: str, body: BookingCancel | None = None, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    b = cancel_booking(db, reference, reason=body.reason if body else None, cancelled_by="user", clock=clock)
    return booking_out(b)
