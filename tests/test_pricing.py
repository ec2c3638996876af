from __future__ import annotations

from decimal import Decimal

from lmt_proposals import builder
from lmt_proposals.config import AgencySettings
from lmt_proposals.models import DocumentKind
from lmt_proposals.pricing import (
    base_components,
    format_currency,
    pricing_summary,
    summarize,
    to_decimal,
    whole_units,
)


def test_summary_applies_markup_then_discount():
    summary = summarize(10000, 25, 10)

    assert whole_units(summary.gross_value) == 12500
    assert whole_units(summary.discount_amount) == 1250
    assert whole_units(summary.net_payable) == 11250
    assert not summary.discount_clamped


def test_summary_clamps_discount_to_ceiling():
    summary = summarize(10000, 25, 20, max_discount_percent=10)

    assert summary.discount_percent == Decimal(10)
    assert summary.requested_discount_percent == Decimal(20)
    assert summary.discount_clamped
    assert whole_units(summary.net_payable) == 11250


def test_summary_rows_are_whole_units_in_display_order():
    rows = summarize(Decimal("9999.5"), 25, 0).rows()

    assert [label for label, _ in rows][0] == "Base package value"
    assert rows[-1] == ("Net payable", 12499)


def test_base_components_counts_nights_and_days():
    model = builder.create_from_template("signature_himalayan_escape")

    # 8500 x 1 night + 3500 x 2 days + 52000
    assert base_components(model.pricing_terms, len(model.days)) == Decimal(67500)


def test_pricing_summary_is_absent_for_plain_itinerary():
    model = builder.create_blank(DocumentKind.ITINERARY, "No prices")

    assert pricing_summary(model, AgencySettings()) is None


def test_pricing_summary_honours_enforcement_switch():
    model = builder.set_discount(builder.create_from_template("signature_himalayan_escape"), 30)
    settings = AgencySettings(markup_percent=25, max_discount_percent=10)

    enforced = pricing_summary(model, settings)
    relaxed = pricing_summary(model, settings, enforce_ceiling=False)

    assert enforced.discount_percent == Decimal(10)
    assert relaxed.discount_percent == Decimal(30)


def test_to_decimal_and_currency_formatting():
    assert to_decimal("12,500") == Decimal("12500")
    assert to_decimal(-40) == Decimal(0)
    assert to_decimal("abc") == Decimal(0)
    assert to_decimal(float("nan")) == Decimal(0)
    assert format_currency(Decimal("12500.4")) == "₹12,500"
    assert format_currency(Decimal("0.5"), "Rs.") == "Rs.1"
