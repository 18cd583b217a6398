from decimal import Decimal

import pytest

from app.services.pricing import PriceSummary, compute_price, format_money


def test_price_breakdown():
    summary = compute_price(base_price=1000, number_of_guests=2, discount_amount=200, tax_rate=Decimal("0.10"))

    assert summary == PriceSummary(subtotal=2000, discount=200, taxable_amount=1800, tax=180, total=1980)


def test_same_inputs_same_output():
    runs = {compute_price(1000, 2, 200, 0.10) for _ in range(50)}

    assert runs == {PriceSummary(2000, 200, 1800, 180, 1980)}


def test_discount_is_capped_at_subtotal():
    summary = compute_price(500, 1, 900, Decimal("0.10"))

    assert summary.discount == 500
    assert summary.taxable_amount == 0
    assert summary.total == 0


def test_tax_rounds_half_up_to_minor_units():
    # 1005 * 0.10 = 100.5
    assert compute_price(1005, 1, 0, "0.10").tax == 101


def test_default_tax_rate_is_ten_percent():
    assert compute_price(1000, 1).tax == 100


@pytest.mark.parametrize("guests", [0, -1])
def test_rejects_non_positive_guests(guests):
    with pytest.raises(ValueError):
        compute_price(1000, guests)


def test_format_money():
    assert format_money(149900, "INR") == "1499.00 INR"
