from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base, UTCDateTime, utcnow

CATEGORIES = ("adventure", "cultural", "food", "nature", "entertainment", "wellness")

class Experience(Base):
    __tablename__ = "experiences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(String(1000), default="")
    location: Mapped[str] = mapped_column(String(120), default="")
    duration: Mapped[str] = mapped_column(String(40), default="")

    price: Mapped[int] = mapped_column(Integer)  # minor units
    category: Mapped[str] = mapped_column(String(20), index=True)  # see CATEGORIES
    max_group_size: Mapped[int] = mapped_column(Integer, default=20)  # default slot capacity

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
