from pydantic import BaseModel
from typing import List, Optional

# Fields are optional here; the booking service reports every missing or invalid one together
class CustomerIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

class BookingCreate(BaseModel):
    experienceId: Optional[str] = None
    timeSlotId: Optional[str] = None
    customer: Optional[CustomerIn] = None
    numberOfGuests: Optional[int] = None
    promoCode: Optional[str] = None

class BookingCancel(BaseModel):
    reason: Optional[str] = None

class PricingOut(BaseModel):
    basePrice: int
    totalAmount: int
    discountAmount: int
    taxAmount: int
    finalAmount: int
    currency: str
    totalSavings: int = 0

class AppliedPromoOut(BaseModel):
    code: str
    discountType: str
    discountValue: int

class CancellationOut(BaseModel):
    cancelledAt: Optional[str] = None
    cancelledBy: Optional[str] = None
    reason: Optional[str] = None
    refundAmount: Optional[int] = None

class BookingOut(BaseModel):
    bookingReference: str
    experienceId: str
    timeSlotId: str
    status: str
    customerName: str
    customerEmail: str
    customerPhone: str = ""
    notes: str = ""
    numberOfGuests: int
    pricing: PricingOut
    promoCode: Optional[AppliedPromoOut] = None
    bookedAt: str
    confirmedAt: Optional[str] = None
    cancellation: Optional[CancellationOut] = None

class PaginationOut(BaseModel):
    currentPage: int
    totalPages: int
    totalBookings: int
    hasNextPage: bool
    hasPrevPage: bool
    limit: int

class BookingListOut(BaseModel):
    bookings: List[BookingOut]
    pagination: PaginationOut
