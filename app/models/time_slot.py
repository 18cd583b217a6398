from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from sqlalchemy import String, Date, Integer, Boolean, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base, UTCDateTime, utcnow


def _parse_hhmm(value: str) -> time:
    hh, mm = map(int, value.split(":"))
    return time(hh, mm)


class TimeSlot(Base):
    __tablename__ = "time_slots"
    __table_args__ = (
        CheckConstraint("booked_count >= 0 AND booked_count <= total_capacity", name="ck_time_slot_capacity"),
        Index("ix_time_slot_experience_date_start", "experience_id", "date", "start_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    experience_id: Mapped[str] = mapped_column(String(36), index=True)

    slot_date: Mapped[date] = mapped_column("date", Date, index=True)
    start_time: Mapped[str] = mapped_column(String(5))  # HH:MM, local to settings.TIMEZONE
    end_time: Mapped[str] = mapped_column(String(5))    # HH:MM

    total_capacity: Mapped[int] = mapped_column(Integer)
    booked_count: Mapped[int] = mapped_column(Integer, default=0)

    price: Mapped[int] = mapped_column(Integer)                           # minor units
    special_price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)  # catalog soft-disable
    cancellation_deadline: Mapped[datetime] = mapped_column(UTCDateTime)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def available_spots(self) -> int:
        return max(0, self.total_capacity - self.booked_count)

    @property
    def is_fully_booked(self) -> bool:
        return self.booked_count >= self.total_capacity

    @property
    def is_available(self) -> bool:
        return bool(self.is_active) and not self.is_fully_booked

    @property
    def effective_price(self) -> int:
        return self.special_price or self.price

    def starts_at(self, tz: str) -> datetime:
        return datetime.combine(self.slot_date, _parse_hhmm(self.start_time), tzinfo=ZoneInfo(tz))

    def ends_at(self, tz: str) -> datetime:
        return datetime.combine(self.slot_date, _parse_hhmm(self.end_time), tzinfo=ZoneInfo(tz))
