import uuid
from datetime import datetime, timedelta, timezone

from loguru import logger
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from app.db.session import SessionLocal
from app.models.experience import Experience
from app.models.promo_code import PromoCode
from app.models.time_slot import TimeSlot
from app.services.slot_inventory import create_time_slot

EXPERIENCES = [
    # title, category, location, duration, price (minor units), group size
    ("Kayaking in Udupi", "adventure", "Udupi, Karnataka", "3 hours", 99900, 10),
    ("Coffee Trail", "nature", "Coorg, Karnataka", "4 hours", 129900, 15),
    ("Old Delhi Food Walk", "food", "Delhi", "3 hours", 89900, 12),
    ("Hampi Heritage Tour", "cultural", "Hampi, Karnataka", "6 hours", 149900, 20),
]
SLOT_TIMES = [("07:00", "10:00"), ("15:00", "18:00")]
SEED_DAYS = 7

PROMOS = [
    dict(code="SAVE10", description="10% off on all experiences", discount_type="percentage",
         discount_value=10, minimum_order_value=50000, maximum_discount_amount=50000,
         usage_limit_total=100, usage_limit_per_user=1),
    dict(code="FLAT100", description="Flat 100 off on bookings above 1000", discount_type="fixed",
         discount_value=10000, minimum_order_value=100000,
         usage_limit_total=200, usage_limit_per_user=2),
    dict(code="ADVENTURE20", description="20% off adventure experiences", discount_type="percentage",
         discount_value=20, minimum_order_value=100000, maximum_discount_amount=100000,
         usage_limit_total=50, usage_limit_per_user=1, applicable_categories=["adventure"]),
    dict(code="WEEKEND15", description="15% off on weekend bookings", discount_type="percentage",
         discount_value=15, minimum_order_value=80000, maximum_discount_amount=75000,
         usage_limit_total=75, usage_limit_per_user=1, days_of_week=["saturday", "sunday"]),
]


def ensure_experience(db: Session, title: str, category: str, location: str, duration: str, price: int, group: int) -> Experience:
    e = db.query(Experience).filter(Experience.title == title).first()
    if e:
        return e
    e = Experience(
        id=str(uuid.uuid4()),
        title=title,
        category=category,
        location=location,
        duration=duration,
        price=price,
        max_group_size=group,
        is_active=True,
    )
    db.add(e)
    db.flush()
    return e


def ensure_promo(db: Session, now: datetime, **fields) -> None:
    if db.query(PromoCode).filter(PromoCode.code == fields["code"]).first():
        return
    db.add(PromoCode(
        id=str(uuid.uuid4()),
        valid_from=now,
        valid_until=now + timedelta(days=90),
        **fields,
    ))


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM experiences LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("experiences table not found yet, skipping seed (run alembic upgrade head)")
            return

        now = datetime.now(timezone.utc)
        today = now.date()
        for title, category, location, duration, price, group in EXPERIENCES:
            e = ensure_experience(db, title, category, location, duration, price, group)
            for day in range(1, SEED_DAYS + 1):
                d = today + timedelta(days=day)
                for start, end in SLOT_TIMES:
                    exists = db.query(TimeSlot).filter(
                        TimeSlot.experience_id == e.id,
                        TimeSlot.slot_date == d,
                        TimeSlot.start_time == start,
                    ).first()
                    if not exists:
                        create_time_slot(db, e, d, start, end)

        for p in PROMOS:
            ensure_promo(db, now, **p)
        db.commit()
        logger.info("seed: experiences, slots and promo codes ready")
    finally:
        db.close()


if __name__ == "__main__":
    run()
