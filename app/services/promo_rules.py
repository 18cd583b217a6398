"""Promo code eligibility rules.

Each rule looks at a PromoContext and returns a rejection reason or None.
All rules run on every check so a caller sees every violated restriction
at once.
"""

from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable, Optional

from app.models.promo_code import PromoCode, WEEKDAYS
from app.services.pricing import format_money


@dataclass(frozen=True)
class PromoContext:
    promo: PromoCode
    user_email: str
    user_redemptions: int
    order_value: int
    experience_id: Optional[str]
    category: Optional[str]
    now: datetime        # UTC
    local_now: datetime  # settings.TIMEZONE


Rule = Callable[[PromoContext], Optional[str]]


def _hhmm(value: str) -> time:
    hh, mm = map(int, value.split(":"))
    return time(hh, mm)


def active_flag(ctx: PromoContext) -> Optional[str]:
    if not ctx.promo.is_active:
        return "Promo code is inactive"
    return None


def validity_window(ctx: PromoContext) -> Optional[str]:
    if ctx.now < ctx.promo.valid_from:
        return "Promo code is not yet active"
    if ctx.now > ctx.promo.valid_until:
        return "Promo code has expired"
    return None


def global_usage_cap(ctx: PromoContext) -> Optional[str]:
    limit = ctx.promo.usage_limit_total
    if limit is not None and ctx.promo.usage_total >= limit:
        return "Promo code usage limit reached"
    return None


def minimum_order_value(ctx: PromoContext) -> Optional[str]:
    if ctx.order_value < (ctx.promo.minimum_order_value or 0):
        return f"Minimum order value of {format_money(ctx.promo.minimum_order_value)} required"
    return None


def per_user_cap(ctx: PromoContext) -> Optional[str]:
    if ctx.user_redemptions >= ctx.promo.usage_limit_per_user:
        return f"You have reached the per-user limit of {ctx.promo.usage_limit_per_user} use(s) for this promo code"
    return None


def category_allow_list(ctx: PromoContext) -> Optional[str]:
    allowed = ctx.promo.applicable_categories or []
    if allowed and ctx.category and ctx.category.lower() not in allowed:
        return "Promo code is not applicable for this experience category"
    return None


def experience_allow_list(ctx: PromoContext) -> Optional[str]:
    allowed = ctx.promo.applicable_experiences or []
    if allowed and ctx.experience_id and ctx.experience_id not in allowed:
        return "Promo code is not applicable for this experience"
    return None


def experience_deny_list(ctx: PromoContext) -> Optional[str]:
    excluded = ctx.promo.excluded_experiences or []
    if ctx.experience_id and ctx.experience_id in excluded:
        return "Promo code cannot be used for this experience"
    return None


def day_of_week(ctx: PromoContext) -> Optional[str]:
    days = ctx.promo.days_of_week or []
    if days and WEEKDAYS[ctx.local_now.weekday()] not in days:
        return "Promo code is not valid on this day of the week"
    return None


def time_of_day(ctx: PromoContext) -> Optional[str]:
    start, end = ctx.promo.time_window_start, ctx.promo.time_window_end
    if not (start and end):
        return None
    current = ctx.local_now.time().replace(second=0, microsecond=0)
    lo, hi = _hhmm(start), _hhmm(end)
    if lo <= hi:
        inside = lo <= current <= hi
    else:
        # window spans midnight, e.g. 22:00-02:00
        inside = current >= lo or current <= hi
    if not inside:
        return "Promo code is not valid at this time"
    return None


PROMO_RULES: tuple[Rule, ...] = (
    active_flag,
    validity_window,
    global_usage_cap,
    minimum_order_value,
    per_user_cap,
    category_allow_list,
    experience_allow_list,
    experience_deny_list,
    day_of_week,
    time_of_day,
)


def evaluate(ctx: PromoContext, rules: tuple[Rule, ...] = PROMO_RULES) -> list[str]:
    return [reason for reason in (rule(ctx) for rule in rules) if reason]
