"""Built-in proposal templates and the saved blueprint library."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .catalog import DEFAULT_MEALS, HORSE_RIDE_URL
from .errors import TemplateNotFoundError
from .models import (
    DayEntry,
    DocumentKind,
    DocumentModel,
    HotelOption,
    ImageRef,
    PricingTerms,
    VehicleOption,
)

logger = logging.getLogger(__name__)


TEMPLATE_LIBRARY: Tuple[Dict[str, Any], ...] = (
    {
        "key": "darjeeling_classic",
        "label": "Darjeeling classic",
        "destination": "Darjeeling",
        "description": "Four-day hill itinerary from NJP / Bagdogra with Tiger Hill and Mirik.",
        "fields": {
            "kind": DocumentKind.ITINERARY,
            "title": "Bespoke Himalayan Journey",
            "duration_label": "3 Nights / 4 Days",
            "travel_window": "Flexible",
            "package_code": "LMT-DAR-CLASSIC",
        },
        "days": (
            {
                "heading": "NJP/ IXB To Darjeeling",
                "image": HORSE_RIDE_URL,
                "narrative": (
                    "Arrival at New Jalpaiguri Railway Station(NJP)/ Bagdogra Airport(IXB) & transfer "
                    "to Darjeeling. Check-in and evening at Mall Road."
                ),
            },
            {
                "heading": "Darjeeling Local Sightseeing",
                "image": HORSE_RIDE_URL,
                "narrative": (
                    "Early morning sunrise at Tiger Hill (2590 m). Visit Ghoom Monastery and Batasia "
                    "Loop. After breakfast, visit Japanese Temple and Peace Pagoda."
                ),
            },
            {
                "heading": "Darjeeling surrounding offbeat",
                "image": HORSE_RIDE_URL,
                "narrative": (
                    "Visit Lamahatta Eco Park, Tinchuley view point and tea gardens. Enjoy the serene "
                    "pine forests and mountain views."
                ),
            },
            {
                "heading": "Transfer to NJP/ IXB via Mirik",
                "image": HORSE_RIDE_URL,
                "narrative": (
                    "Drive via Mirik Lake. Enjoy boating and horse riding if time permits before "
                    "dropping off for your journey back home."
                ),
            },
        ),
    },
    {
        "key": "signature_himalayan_escape",
        "label": "Signature Himalayan Escape",
        "destination": "Darjeeling",
        "description": "Luxury quotation with a five-star stay, private SUV and full pricing page.",
        "fields": {
            "kind": DocumentKind.QUOTATION,
            "title": "Signature Himalayan Escape",
            "duration_label": "4 Nights / 5 Days",
            "travel_window": "Flexible 2025",
            "travelers": "02 Adults",
            "package_code": "DAR/SIG/2025",
            "inclusions": [
                "Luxury Accommodation with Breakfast & Dinner",
                "Private Dedicated Luxury SUV",
                "All Inner-line Permits & Border Taxes",
                "24/7 Concierge Support during travel",
            ],
            "exclusions": [
                "Airfare or Train tickets to reach Bagdogra/NJP",
                "Personal Laundry & Room Service",
                "Monuments & Entry Fees",
                "Traditional Tipping & Personal Gratuities",
            ],
            "booking_policy": (
                "30% advance for immediate confirmation. Balance payment 15 days prior to arrival."
            ),
            "cancellation_policy": (
                "Non-refundable if cancelled within 7 days of arrival. 50% refund before 15 days."
            ),
            "terms": "Offer valid for 48 hours. Hotel rooms are subject to real-time availability.",
        },
        "pricing": {
            "hotels": (
                {
                    "name": "The Elgin, Darjeeling",
                    "location": "Darjeeling",
                    "category": "Luxury Suite",
                    "star_rating": 5,
                    "price_per_night": 8500,
                },
            ),
            "vehicle": {"type": "4 Seater", "rate": 3500, "info": "Private Dedicated AC Innova Crysta"},
            "package_cost": 52000,
            "discount_percent": 0,
        },
        "days": (
            {
                "heading": "Gateway to the Hills",
                "narrative": (
                    "Upon arrival at NJP/Bagdogra, our representative will greet you. Enjoy a scenic "
                    "private transfer to Darjeeling, winding through lush tea estates and mist-covered "
                    "peaks. Check-in to your luxury stay and spend the evening exploring the colonial "
                    "charm of Mall Road."
                ),
                "tags": ("Meet & Greet", "Private Transfer"),
                "meals": ("Dinner",),
                "accommodation": "Premium Hill Resort",
            },
            {
                "heading": "The Golden Sunrise",
                "narrative": (
                    "Early morning drive to Tiger Hill to witness the sun rise over the Kanchenjunga "
                    "range. Visit Ghoom Monastery and Batasia Loop. After a royal breakfast, visit the "
                    "Himalayan Mountaineering Institute, Zoo, and Tibetan Refugee Center."
                ),
                "tags": ("Tiger Hill Sunrise", "Batasia Loop", "Tea Garden Visit"),
                "meals": ("Breakfast", "Dinner"),
                "accommodation": "Premium Hill Resort",
            },
        ),
    },
    {
        "key": "gangtok_darjeeling_delight",
        "label": "Gangtok & Darjeeling Delight",
        "destination": "Gangtok",
        "description": "Brochure starter with the regional activity bank and a priced closing page.",
        "fields": {
            "kind": DocumentKind.BROCHURE,
            "title": "Gangtok & Darjeeling Delight",
            "duration_label": "4 Nights / 5 Days",
            "travel_window": "October 2025",
            "travelers": "02 Adults",
            "package_code": "LMT-HML-2025",
            "inclusions": [
                "Premium Stay with Breakfast & Dinner",
                "Private Dedicated Vehicle",
                "All Permits & Taxes",
                "Meet & Greet Assistance",
            ],
            "exclusions": ["Airfare / Train tickets", "Personal Expenses", "Lunch", "Entry Fees"],
            "booking_policy": "30% advance for confirmation.",
            "cancellation_policy": "Non-refundable if cancelled within 7 days.",
            "terms": "Voucher valid only for specified dates.",
        },
        "pricing": {
            "hotels": (
                {
                    "name": "Elite Mountain Resort",
                    "location": "Gangtok",
                    "category": "Luxury Suite",
                    "star_rating": 5,
                    "price_per_night": 2500,
                },
            ),
            "vehicle": {"type": "4 Seater", "rate": 3500, "info": "Private Dedicated Luxury SUV"},
            "package_cost": 45000,
            "discount_percent": 5,
        },
        "days": (
            {
                "heading": "Darjeeling",
                "narrative": "",
                "meals": DEFAULT_MEALS,
            },
        ),
    },
)

TEMPLATE_INDEX: Dict[str, Dict[str, Any]] = {template["key"]: template for template in TEMPLATE_LIBRARY}


@dataclass(frozen=True)
class Blueprint:
    blueprint_id: str
    title: str
    destination: str
    description: str
    model: DocumentModel
    built_in: bool = False

    @property
    def duration_days(self) -> int:
        return len(self.model.days)


def _days_from_template(entries: Iterable[Dict[str, Any]]) -> List[DayEntry]:
    days: List[DayEntry] = []
    for position, entry in enumerate(entries, start=1):
        image_url = entry.get("image")
        days.append(
            DayEntry(
                day_number=position,
                heading=entry["heading"],
                narrative=entry.get("narrative", ""),
                image=ImageRef.from_url(image_url) if image_url else None,
                tags=list(entry.get("tags", ())),
                meals=list(entry.get("meals", ())),
                accommodation=entry.get("accommodation", ""),
            )
        )
    return days


def _pricing_from_template(pricing: Optional[Dict[str, Any]]) -> Optional[PricingTerms]:
    if not pricing:
        return None
    return PricingTerms(
        hotels=[HotelOption(**hotel) for hotel in pricing.get("hotels", ())],
        vehicle=VehicleOption(**pricing.get("vehicle", {})),
        package_cost=pricing.get("package_cost", 0),
        discount_percent=pricing.get("discount_percent", 0),
    )


def model_from_template(template: Dict[str, Any]) -> DocumentModel:
    """Build a fresh model from one ``TEMPLATE_LIBRARY`` entry."""

    fields = dict(template["fields"])
    kind = fields.pop("kind")
    pricing_terms = _pricing_from_template(template.get("pricing"))
    for list_field in ("inclusions", "exclusions"):
        fields[list_field] = list(fields.get(list_field, ()))
    return DocumentModel(
        reference_id=template["key"],
        kind=kind,
        has_pricing=pricing_terms is not None,
        days=_days_from_template(template.get("days", ())),
        pricing_terms=pricing_terms,
        **fields,
    )


class BlueprintLibrary:
    """Built-in templates plus blueprints saved by administrators."""

    def __init__(self, templates: Iterable[Dict[str, Any]] = TEMPLATE_LIBRARY):
        self._blueprints: Dict[str, Blueprint] = {}
        for template in templates:
            self._blueprints[template["key"]] = Blueprint(
                blueprint_id=template["key"],
                title=template["label"],
                destination=template.get("destination", ""),
                description=template.get("description", ""),
                model=model_from_template(template),
                built_in=True,
            )

    def __contains__(self, blueprint_id: str) -> bool:
        return blueprint_id in self._blueprints

    def get(self, blueprint_id: str) -> Blueprint:
        try:
            return self._blueprints[blueprint_id]
        except KeyError:
            raise TemplateNotFoundError(blueprint_id) from None

    def entries(self) -> List[Blueprint]:
        return list(self._blueprints.values())

    def save(
        self,
        model: DocumentModel,
        blueprint_id: str,
        title: str,
        destination: str = "",
        description: str = "",
    ) -> Blueprint:
        """Store a copy of ``model`` without its recipient for later reuse."""

        blueprint_id = blueprint_id.strip()
        if not blueprint_id:
            raise ValueError("Blueprint id is required.")
        existing = self._blueprints.get(blueprint_id)
        if existing is not None and existing.built_in:
            raise ValueError(f"'{blueprint_id}' is a built-in template and cannot be replaced.")
        stored = copy.deepcopy(model)
        stored.recipient = None
        blueprint = Blueprint(
            blueprint_id=blueprint_id,
            title=title.strip() or model.title,
            destination=destination.strip(),
            description=description.strip(),
            model=stored,
        )
        self._blueprints[blueprint_id] = blueprint
        logger.info("Saved blueprint %s with %d days", blueprint_id, len(stored.days))
        return blueprint

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "Blueprint": blueprint.blueprint_id,
                "Title": blueprint.title,
                "Destination": blueprint.destination,
                "Kind": blueprint.model.kind.value,
                "Days": blueprint.duration_days,
                "Built-in": blueprint.built_in,
            }
            for blueprint in self._blueprints.values()
        ]
        return pd.DataFrame(
            rows, columns=["Blueprint", "Title", "Destination", "Kind", "Days", "Built-in"]
        )
