from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import String, Integer, event, inspect
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base, UTCDateTime, utcnow

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed", "refunded")
CANCELLABLE_STATUSES = ("pending", "confirmed")

# Frozen at creation; see _refuse_snapshot_changes
SNAPSHOT_COLUMNS = (
    "base_price", "total_amount", "discount_amount", "tax_amount", "final_amount", "currency",
    "promo_code", "promo_discount_type", "promo_discount_value",
)


@dataclass(frozen=True)
class PriceSnapshot:
    base_price: int
    total_amount: int  # base_price * guests
    discount_amount: int
    tax_amount: int
    final_amount: int
    currency: str


@dataclass(frozen=True)
class PromoSnapshot:
    code: str
    discount_type: str
    discount_value: int


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_reference: Mapped[str] = mapped_column(String(20), unique=True, index=True)

    experience_id: Mapped[str] = mapped_column(String(36), index=True)
    time_slot_id: Mapped[str] = mapped_column(String(36), index=True)

    customer_name: Mapped[str] = mapped_column(String(100))
    customer_email: Mapped[str] = mapped_column(String(254), index=True)  # lower-case
    customer_phone: Mapped[str] = mapped_column(String(20), default="")
    customer_notes: Mapped[str] = mapped_column(String(500), default="")

    number_of_guests: Mapped[int] = mapped_column(Integer)

    base_price: Mapped[int] = mapped_column(Integer)
    total_amount: Mapped[int] = mapped_column(Integer)
    discount_amount: Mapped[int] = mapped_column(Integer, default=0)
    tax_amount: Mapped[int] = mapped_column(Integer, default=0)
    final_amount: Mapped[int] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    promo_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    promo_discount_type: Mapped[str | None] = mapped_column(String(12), nullable=True)
    promo_discount_value: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # see BOOKING_STATUSES
    source: Mapped[str] = mapped_column(String(12), default="web")  # web|mobile|api

    booked_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, index=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(12), nullable=True)  # user|admin|system
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    refund_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)

    @property
    def pricing(self) -> PriceSnapshot:
        return PriceSnapshot(
            base_price=self.base_price,
            total_amount=self.total_amount,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            final_amount=self.final_amount,
            currency=self.currency,
        )

    @property
    def applied_promo(self) -> PromoSnapshot | None:
        if not self.promo_code:
            return None
        return PromoSnapshot(self.promo_code, self.promo_discount_type, self.promo_discount_value)

    @property
    def total_savings(self) -> int:
        return self.discount_amount


@event.listens_for(Booking, "before_update")
def _refuse_snapshot_changes(mapper, connection, target: Booking):
    state = inspect(target)
    changed = [c for c in SNAPSHOT_COLUMNS if state.attrs[c].history.has_changes()]
    if not changed:
        return
    previous_status = state.attrs.status.history.deleted
    status_before = previous_status[0] if previous_status else target.status
    if status_before != "pending":
        raise ValueError(f"pricing snapshot is immutable once booking leaves pending: {', '.join(changed)}")
