from sqlalchemy import String, Integer, Boolean, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base, UTCDateTime, utcnow

DISCOUNT_TYPES = ("percentage", "fixed")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

class PromoCode(Base):
    __tablename__ = "promo_codes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True)  # stored upper-case
    description: Mapped[str] = mapped_column(String(200), default="")

    discount_type: Mapped[str] = mapped_column(String(12))        # percentage|fixed
    discount_value: Mapped[int] = mapped_column(Integer)          # whole percent, or minor units for fixed
    minimum_order_value: Mapped[int] = mapped_column(Integer, default=0)
    maximum_discount_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)

    usage_limit_total: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = unlimited
    usage_limit_per_user: Mapped[int] = mapped_column(Integer, default=1)
    usage_total: Mapped[int] = mapped_column(Integer, default=0)

    valid_from: Mapped[datetime] = mapped_column(UTCDateTime)
    valid_until: Mapped[datetime] = mapped_column(UTCDateTime, index=True)

    applicable_categories: Mapped[list] = mapped_column(JSON, default=list)
    applicable_experiences: Mapped[list] = mapped_column(JSON, default=list)
    excluded_experiences: Mapped[list] = mapped_column(JSON, default=list)
    days_of_week: Mapped[list] = mapped_column(JSON, default=list)  # lowercase weekday names
    time_window_start: Mapped[str | None] = mapped_column(String(5), nullable=True)  # HH:MM
    time_window_end: Mapped[str | None] = mapped_column(String(5), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def remaining_usage(self) -> int | None:
        if self.usage_limit_total is None:
            return None
        return max(0, self.usage_limit_total - self.usage_total)


class PromoRedemption(Base):
    """Per-user usage counter for a promo code."""

    __tablename__ = "promo_redemptions"
    __table_args__ = (
        UniqueConstraint("promo_code_id", "email", name="uq_promo_redemption_promo_email"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    promo_code_id: Mapped[str] = mapped_column(String(36), ForeignKey("promo_codes.id"), index=True)
    email: Mapped[str] = mapped_column(String(254))  # normalized lower-case
    count: Mapped[int] = mapped_column(Integer, default=0)
    last_used_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
