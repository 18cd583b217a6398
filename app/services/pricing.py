"""Booking price computation.

All amounts are integer minor units; only the tax multiplication goes
through Decimal and is rounded half-up back to minor units.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from app.core.config import settings


@dataclass(frozen=True)
class PriceSummary:
    subtotal: int
    discount: int
    taxable_amount: int
    tax: int
    total: int


def round_minor(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_price(base_price: int, number_of_guests: int, discount_amount: int = 0, tax_rate: Decimal | float | str | None = None) -> PriceSummary:
    if number_of_guests < 1:
        raise ValueError("number_of_guests must be >= 1")
    if base_price < 0 or discount_amount < 0:
        raise ValueError("amounts must be >= 0")
    rate = settings.TAX_RATE if tax_rate is None else Decimal(str(tax_rate))
    if rate < 0:
        raise ValueError("tax_rate must be >= 0")

    subtotal = base_price * number_of_guests
    discount = min(discount_amount, subtotal)
    taxable = subtotal - discount
    tax = round_minor(Decimal(taxable) * rate)
    return PriceSummary(
        subtotal=subtotal,
        discount=discount,
        taxable_amount=taxable,
        tax=tax,
        total=taxable + tax,
    )


def format_money(amount: int, currency: str | None = None) -> str:
    return f"{Decimal(amount) / 100:.2f} {currency or settings.CURRENCY}"
