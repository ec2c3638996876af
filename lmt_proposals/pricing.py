"""Quotation price calculation."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import AgencySettings
from .models import DocumentModel, PricingTerms

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)
WHOLE_UNIT = Decimal(1)


def to_decimal(value: object) -> Decimal:
    """Coerce numbers and numeric strings to a non-negative ``Decimal``."""

    if isinstance(value, Decimal):
        number = value
    else:
        if isinstance(value, str):
            value = value.strip().replace(",", "") or "0"
        try:
            as_float = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return Decimal(0)
        if not math.isfinite(as_float):
            return Decimal(0)
        number = Decimal(str(value))
    return number if number > 0 else Decimal(0)


def clamp_percentage(value: object, ceiling: Decimal = HUNDRED) -> Decimal:
    percent = to_decimal(value)
    if percent > ceiling:
        return ceiling
    return percent


def whole_units(value: Decimal) -> int:
    return int(value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP))


def format_currency(value: Decimal, symbol: str = "₹") -> str:
    return f"{symbol}{whole_units(value):,}"


@dataclass(frozen=True)
class PricingSummary:
    base_components: Decimal
    markup_percent: Decimal
    discount_percent: Decimal
    requested_discount_percent: Optional[Decimal] = None

    @property
    def markup_amount(self) -> Decimal:
        return self.base_components * self.markup_percent / HUNDRED

    @property
    def gross_value(self) -> Decimal:
        return self.base_components + self.markup_amount

    @property
    def discount_amount(self) -> Decimal:
        return self.gross_value * self.discount_percent / HUNDRED

    @property
    def net_payable(self) -> Decimal:
        return self.gross_value - self.discount_amount

    @property
    def discount_clamped(self) -> bool:
        return (
            self.requested_discount_percent is not None
            and self.requested_discount_percent != self.discount_percent
        )

    def rows(self) -> list[tuple[str, int]]:
        """Breakdown lines in whole currency units, in display order."""

        return [
            ("Base package value", whole_units(self.base_components)),
            (f"Agency markup ({self.markup_percent.normalize():f}%)", whole_units(self.markup_amount)),
            ("Gross value", whole_units(self.gross_value)),
            (f"Discount ({self.discount_percent.normalize():f}%)", whole_units(self.discount_amount)),
            ("Net payable", whole_units(self.net_payable)),
        ]


def base_components(terms: PricingTerms, day_count: int) -> Decimal:
    """Accommodation per night, transport per day and the flat package cost."""

    days = max(day_count, 1)
    nights = max(days - 1, 1)
    hotels = sum(
        (to_decimal(hotel.price_per_night) * nights for hotel in terms.hotels),
        Decimal(0),
    )
    transport = to_decimal(terms.vehicle.rate) * days
    return hotels + transport + to_decimal(terms.package_cost)


def summarize(
    base: object,
    markup_percent: object,
    discount_percent: object,
    *,
    max_discount_percent: Optional[object] = None,
) -> PricingSummary:
    requested = clamp_percentage(discount_percent)
    applied = requested
    if max_discount_percent is not None:
        applied = clamp_percentage(requested, clamp_percentage(max_discount_percent))
        if applied != requested:
            logger.warning(
                "Discount of %s%% exceeds the agency ceiling; applying %s%%",
                requested,
                applied,
            )
    return PricingSummary(
        base_components=to_decimal(base),
        markup_percent=to_decimal(markup_percent),
        discount_percent=applied,
        requested_discount_percent=requested,
    )


def pricing_summary(
    model: DocumentModel,
    settings: AgencySettings,
    *,
    enforce_ceiling: bool = True,
) -> Optional[PricingSummary]:
    """Derive the summary for a quotation; ``None`` for plain itineraries."""

    if not model.has_pricing or model.pricing_terms is None:
        return None
    terms = model.pricing_terms
    return summarize(
        base_components(terms, len(model.days)),
        settings.markup_percent,
        terms.discount_percent,
        max_discount_percent=settings.max_discount_percent if enforce_ceiling else None,
    )
