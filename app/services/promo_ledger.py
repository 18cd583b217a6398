"""Promo code validation and exactly-once redemption.

Redemption counters are only touched by `redeem`, inside the caller's
transaction, so a booking that fails later takes its redemption with it.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, PromoExhaustedError, PromoInvalidError, ValidationError
from app.core.validation import is_valid_email, normalize_email
from app.db.retry import with_conflict_retry
from app.models.experience import Experience
from app.models.promo_code import DISCOUNT_TYPES, PromoCode, PromoRedemption
from app.services import promo_rules
from app.services.pricing import format_money, round_minor


@dataclass(frozen=True)
class PromoPreview:
    code: str
    description: str
    discount_type: str
    discount_value: int
    discount_display: str
    original_amount: int
    discount_amount: int
    final_amount: int
    currency: str


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def get_promo(db: Session, code: str, lock: bool = False) -> PromoCode | None:
    stmt = select(PromoCode).where(PromoCode.code == normalize_code(code)).execution_options(populate_existing=True)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def _get_redemption(db: Session, promo_id: str, email: str, lock: bool = False) -> PromoRedemption | None:
    stmt = select(PromoRedemption).where(
        PromoRedemption.promo_code_id == promo_id,
        PromoRedemption.email == normalize_email(email),
    ).execution_options(populate_existing=True)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def user_redemption_count(db: Session, promo_id: str, email: str) -> int:
    usage = _get_redemption(db, promo_id, email)
    return usage.count if usage else 0


def validate(
    db: Session,
    promo: PromoCode,
    user_email: str,
    order_value: int,
    experience_id: Optional[str],
    category: Optional[str],
    now: datetime,
) -> list[str]:
    """Return every reason the code cannot be applied; empty means valid."""
    ctx = promo_rules.PromoContext(
        promo=promo,
        user_email=normalize_email(user_email),
        user_redemptions=user_redemption_count(db, promo.id, user_email),
        order_value=order_value,
        experience_id=experience_id,
        category=category,
        now=now,
        local_now=now.astimezone(ZoneInfo(settings.TIMEZONE)),
    )
    reasons = promo_rules.evaluate(ctx)
    if reasons:
        logger.debug("promo {} rejected for {}: {}", promo.code, ctx.user_email, reasons)
    return reasons


def calculate_discount(promo: PromoCode, order_value: int) -> int:
    if promo.discount_type not in DISCOUNT_TYPES:
        raise ValueError(f"unknown discount type {promo.discount_type!r}")
    if promo.discount_type == "percentage":
        discount = Decimal(order_value) * Decimal(promo.discount_value) / Decimal(100)
    else:
        discount = Decimal(promo.discount_value)
    if promo.maximum_discount_amount is not None and discount > promo.maximum_discount_amount:
        discount = Decimal(promo.maximum_discount_amount)
    discount = min(discount, Decimal(order_value))
    return max(0, round_minor(discount))


def discount_display(promo: PromoCode) -> str:
    if promo.discount_type == "percentage":
        return f"{promo.discount_value}% OFF"
    return f"{format_money(promo.discount_value)} OFF"


def redeem(db: Session, code: str, user_email: str, now: datetime) -> PromoCode:
    """Count one redemption against the global and per-user limits."""
    email = normalize_email(user_email)

    def _attempt() -> PromoCode:
        promo = get_promo(db, code, lock=True)
        if not promo:
            raise NotFoundError("Promo code not found", code=normalize_code(code))
        if promo.usage_limit_total is not None and promo.usage_total >= promo.usage_limit_total:
            raise PromoExhaustedError("Promo code usage limit reached", code=promo.code)
        usage = _get_redemption(db, promo.id, email, lock=True)
        if usage and usage.count >= promo.usage_limit_per_user:
            raise PromoExhaustedError(
                f"You have reached the per-user limit of {promo.usage_limit_per_user} use(s) for this promo code",
                code=promo.code,
            )
        promo.usage_total += 1
        if usage:
            usage.count += 1
            usage.last_used_at = now
        else:
            db.add(PromoRedemption(
                id=str(uuid.uuid4()),
                promo_code_id=promo.id,
                email=email,
                count=1,
                last_used_at=now,
            ))
        db.flush()
        return promo

    promo = with_conflict_retry(db, "promo redeem", _attempt, code=normalize_code(code))
    logger.debug("redeemed promo {} for {} ({} used)", promo.code, email, promo.usage_total)
    return promo


def preview(
    db: Session,
    code: str,
    user_email: str,
    order_value: int,
    experience_id: Optional[str],
    now: datetime,
) -> PromoPreview:
    """Check a code for a prospective order without redeeming it."""
    errors = []
    if not normalize_code(code):
        errors.append("Promo code is required")
    if not is_valid_email(user_email):
        errors.append("Invalid email format")
    if order_value is None or order_value <= 0:
        errors.append("Order value must be greater than 0")
    if errors:
        raise ValidationError(errors)

    promo = get_promo(db, code)
    if not promo:
        raise NotFoundError("Promo code not found", code=normalize_code(code))

    category = None
    if experience_id:
        experience = db.get(Experience, experience_id)
        if experience:
            category = experience.category

    reasons = validate(db, promo, user_email, order_value, experience_id, category, now)
    if reasons:
        raise PromoInvalidError(reasons, code=promo.code)

    discount = calculate_discount(promo, order_value)
    return PromoPreview(
        code=promo.code,
        description=promo.description,
        discount_type=promo.discount_type,
        discount_value=promo.discount_value,
        discount_display=discount_display(promo),
        original_amount=order_value,
        discount_amount=discount,
        final_amount=order_value - discount,
        currency=settings.CURRENCY,
    )


def list_available(
    db: Session,
    now: datetime,
    category: Optional[str] = None,
    experience_id: Optional[str] = None,
    limit: int = 10,
) -> list[PromoCode]:
    """Active, in-window, not exhausted codes, newest first."""
    items = db.execute(
        select(PromoCode)
        .where(
            PromoCode.is_active == True,  # noqa: E712
            PromoCode.valid_from <= now,
            PromoCode.valid_until >= now,
            or_(PromoCode.usage_limit_total.is_(None), PromoCode.usage_total < PromoCode.usage_limit_total),
        )
        .order_by(PromoCode.created_at.desc())
    ).scalars().all()

    out = []
    for p in items:
        if category and p.applicable_categories and category.lower() not in p.applicable_categories:
            continue
        if experience_id and p.applicable_experiences and experience_id not in p.applicable_experiences:
            continue
        out.append(p)
    return out[:limit]
