"""Proposal model builder.

Every operation takes a :class:`DocumentModel` and returns a new one; the
argument is never mutated, so a failed step leaves the caller's model intact.
"""
from __future__ import annotations

import copy
import dataclasses
import logging
import secrets
from datetime import date
from typing import Any, Iterable, Optional

from .blueprints import BlueprintLibrary
from .catalog import DEFAULT_MEALS
from .errors import NumberingInvariantError
from .leads import Lead
from .models import DayEntry, DocumentKind, DocumentModel, ImageRef, PricingTerms, Recipient

logger = logging.getLogger(__name__)

MAX_DAYS = 10
PLACEHOLDER_HEADING = "Himalayan Exploration"
PLACEHOLDER_NARRATIVE = "Add detailed day activities here..."

REFERENCE_PREFIXES = {
    DocumentKind.ITINERARY: "LMT-ITN",
    DocumentKind.QUOTATION: "LMT-QTN",
    DocumentKind.BROCHURE: "LMT-REF",
}

_TEXT_FIELDS = {"heading", "narrative", "accommodation"}

_DEFAULT_LIBRARY: Optional[BlueprintLibrary] = None


def default_library() -> BlueprintLibrary:
    global _DEFAULT_LIBRARY
    if _DEFAULT_LIBRARY is None:
        _DEFAULT_LIBRARY = BlueprintLibrary()
    return _DEFAULT_LIBRARY


def new_reference_id(kind: DocumentKind) -> str:
    return f"{REFERENCE_PREFIXES[kind]}-{secrets.randbelow(9000) + 1000}"


def _clone(model: DocumentModel) -> DocumentModel:
    return copy.deepcopy(model)


def _renumber(days: Iterable[DayEntry]) -> list[DayEntry]:
    renumbered = []
    for position, day in enumerate(days, start=1):
        day.day_number = position
        renumbered.append(day)
    return renumbered


def _check_index(model: DocumentModel, index: int) -> None:
    if not 0 <= index < len(model.days):
        raise IndexError(f"Day index {index} is out of range for {len(model.days)} days")


def create_from_template(
    template_id: str,
    library: Optional[BlueprintLibrary] = None,
    *,
    reference_id: Optional[str] = None,
    issued_date: Optional[date] = None,
) -> DocumentModel:
    """Clone a built-in template or saved blueprint into a new document.

    Raises :class:`TemplateNotFoundError` for unknown ids before anything is
    built, so callers never see a partially populated model.
    """

    blueprint = (library or default_library()).get(template_id)
    model = _clone(blueprint.model)
    model.reference_id = reference_id or new_reference_id(model.kind)
    model.issued_date = issued_date or date.today()
    model.recipient = None
    model.days = _renumber(model.days)
    return model


def create_blank(
    kind: DocumentKind,
    title: str = "",
    *,
    reference_id: Optional[str] = None,
    issued_date: Optional[date] = None,
) -> DocumentModel:
    has_pricing = kind is not DocumentKind.ITINERARY
    return DocumentModel(
        reference_id=reference_id or new_reference_id(kind),
        title=title,
        kind=kind,
        has_pricing=has_pricing,
        issued_date=issued_date or date.today(),
        pricing_terms=PricingTerms() if has_pricing else None,
    )


def append_day(
    model: DocumentModel,
    heading: Optional[str] = None,
    narrative: Optional[str] = None,
) -> DocumentModel:
    """Append a placeholder day; a no-op once ``MAX_DAYS`` is reached."""

    updated = _clone(model)
    if len(updated.days) >= MAX_DAYS:
        logger.info("Day cap of %d reached for %s; append ignored", MAX_DAYS, model.reference_id)
        return updated
    updated.days.append(
        DayEntry(
            day_number=len(updated.days) + 1,
            heading=heading if heading is not None else PLACEHOLDER_HEADING,
            narrative=narrative if narrative is not None else PLACEHOLDER_NARRATIVE,
            meals=list(DEFAULT_MEALS) if updated.kind is DocumentKind.BROCHURE else [],
        )
    )
    return updated


def remove_day(model: DocumentModel, index: int) -> DocumentModel:
    _check_index(model, index)
    updated = _clone(model)
    del updated.days[index]
    updated.days = _renumber(updated.days)
    return updated


def move_day(model: DocumentModel, index: int, offset: int) -> DocumentModel:
    """Move a day up (negative offset) or down; the target is clamped."""

    _check_index(model, index)
    updated = _clone(model)
    target = max(0, min(len(updated.days) - 1, index + offset))
    day = updated.days.pop(index)
    updated.days.insert(target, day)
    updated.days = _renumber(updated.days)
    return updated


def duplicate_day(model: DocumentModel, index: int) -> DocumentModel:
    _check_index(model, index)
    updated = _clone(model)
    if len(updated.days) >= MAX_DAYS:
        return updated
    source = updated.days[index]
    duplicate = copy.deepcopy(source)
    if source.image is not None:
        duplicate.image = dataclasses.replace(source.image)
    updated.days.insert(index + 1, duplicate)
    updated.days = _renumber(updated.days)
    return updated


def set_day_field(model: DocumentModel, index: int, field: str, value: Any) -> DocumentModel:
    """Replace one field of a day.

    ``tags`` is special: ``value`` is a single tag whose membership is toggled.
    """

    _check_index(model, index)
    updated = _clone(model)
    day = updated.days[index]
    if field in _TEXT_FIELDS:
        setattr(day, field, "" if value is None else str(value))
    elif field == "image":
        if value is not None and not isinstance(value, ImageRef):
            raise TypeError("image must be an ImageRef or None")
        day.image = value
    elif field == "meals":
        day.meals = [str(meal) for meal in (value or ())]
    elif field == "tags":
        tag = str(value)
        if tag in day.tags:
            day.tags = [existing for existing in day.tags if existing != tag]
        else:
            day.tags = [*day.tags, tag]
    else:
        raise ValueError(f"Unknown day field '{field}'")
    return updated


def set_region(model: DocumentModel, index: int, region: str) -> DocumentModel:
    """Point a brochure day at a region, clearing its highlights."""

    updated = set_day_field(model, index, "heading", region)
    updated.days[index].tags = []
    return updated


def set_details(model: DocumentModel, **fields: Any) -> DocumentModel:
    """Replace top-level text fields such as ``title`` or ``travel_window``."""

    allowed = {
        "title",
        "duration_label",
        "travel_window",
        "travelers",
        "package_code",
        "reference_id",
        "booking_policy",
        "cancellation_policy",
        "terms",
    }
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown document fields: {', '.join(sorted(unknown))}")
    updated = _clone(model)
    for name, value in fields.items():
        setattr(updated, name, "" if value is None else str(value))
    return updated


def set_list(model: DocumentModel, field: str, items: Iterable[str]) -> DocumentModel:
    if field not in {"inclusions", "exclusions"}:
        raise ValueError(f"Unknown list field '{field}'")
    updated = _clone(model)
    setattr(updated, field, [item.strip() for item in items if item and item.strip()])
    return updated


def attach_lead(model: DocumentModel, lead: Lead) -> DocumentModel:
    """Snapshot the lead's name, destination and phone onto the document."""

    updated = _clone(model)
    updated.recipient = Recipient(
        lead_id=lead.id,
        name=lead.name,
        destination=lead.destination,
        contact=lead.phone,
    )
    return updated


def detach_lead(model: DocumentModel) -> DocumentModel:
    updated = _clone(model)
    updated.recipient = None
    return updated


def set_pricing_terms(model: DocumentModel, terms: PricingTerms) -> DocumentModel:
    updated = _clone(model)
    updated.pricing_terms = copy.deepcopy(terms)
    updated.has_pricing = True
    return updated


def set_discount(model: DocumentModel, percent: float) -> DocumentModel:
    """Record the negotiated discount; the ceiling is applied when pricing."""

    updated = _clone(model)
    if updated.pricing_terms is None:
        updated.pricing_terms = PricingTerms()
        updated.has_pricing = True
    updated.pricing_terms.discount_percent = max(float(percent), 0.0)
    return updated


def ensure_contiguous_numbering(model: DocumentModel, strict: bool = False) -> DocumentModel:
    """Verify ``day_number == position``; renumber or raise when it is not."""

    expected = list(range(1, len(model.days) + 1))
    actual = [day.day_number for day in model.days]
    if actual == expected:
        return model
    if strict:
        raise NumberingInvariantError(f"Day numbers {actual} are not contiguous from 1")
    logger.warning("Repairing day numbering %s on %s", actual, model.reference_id)
    updated = _clone(model)
    updated.days = _renumber(updated.days)
    return updated
