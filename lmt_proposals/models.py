"""Document model shared by the builder, renderer and exporters."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class DocumentKind(str, Enum):
    ITINERARY = "Itinerary"
    QUOTATION = "Quotation"
    BROCHURE = "Brochure"


@dataclass(frozen=True)
class ImageRef:
    """A day image: a remote URL or an inline payload from the normaliser."""

    url: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: str = "image/jpeg"
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.data is None):
            raise ValueError("ImageRef needs exactly one of url or data")

    @classmethod
    def from_url(cls, url: str) -> "ImageRef":
        return cls(url=url.strip())

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImageRef":
        header, _, payload = uri.partition(",")
        if not header.startswith("data:") or ";base64" not in header:
            raise ValueError("Only base64 data URIs are supported")
        mime_type = header[5:].split(";", 1)[0] or "application/octet-stream"
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError("Malformed base64 payload in data URI") from exc
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_source(cls, source: str) -> "ImageRef":
        """Parse an ``src`` value: a base64 data URI or an http(s) URL."""

        value = source.strip()
        if value.startswith("data:"):
            return cls.from_data_uri(value)
        if value.lower().startswith(("http://", "https://")):
            return cls.from_url(value)
        raise ValueError(f"Unsupported image source: {value[:40]!r}")

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    def as_data_uri(self) -> str:
        if self.data is None:
            raise ValueError("Remote images have no inline payload")
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def source(self) -> str:
        """Return a value usable as an HTML ``src`` attribute."""

        return self.url if self.url is not None else self.as_data_uri()


@dataclass(frozen=True)
class Recipient:
    """Snapshot of a lead taken when it was attached to a document."""

    lead_id: str
    name: str
    destination: str = ""
    contact: str = ""


@dataclass(frozen=True)
class HotelOption:
    name: str
    location: str = ""
    category: str = ""
    star_rating: int = 0
    price_per_night: float = 0.0
    image: Optional[str] = None


@dataclass(frozen=True)
class VehicleOption:
    type: str = "4 Seater"
    rate: float = 0.0
    info: str = ""


@dataclass
class PricingTerms:
    """Inputs of the quotation price; the summary is always derived."""

    hotels: list[HotelOption] = field(default_factory=list)
    vehicle: VehicleOption = field(default_factory=VehicleOption)
    package_cost: float = 0.0
    discount_percent: float = 0.0


@dataclass
class DayEntry:
    day_number: int
    heading: str
    narrative: str = ""
    image: Optional[ImageRef] = None
    tags: list[str] = field(default_factory=list)
    meals: list[str] = field(default_factory=list)
    accommodation: str = ""


@dataclass
class DocumentModel:
    """One itinerary, brochure or quotation proposal."""

    reference_id: str
    title: str
    kind: DocumentKind = DocumentKind.ITINERARY
    has_pricing: bool = False
    duration_label: str = ""
    travel_window: str = ""
    issued_date: date = field(default_factory=date.today)
    travelers: str = ""
    package_code: str = ""
    recipient: Optional[Recipient] = None
    days: list[DayEntry] = field(default_factory=list)
    pricing_terms: Optional[PricingTerms] = None
    inclusions: list[str] = field(default_factory=list)
    exclusions: list[str] = field(default_factory=list)
    booking_policy: str = ""
    cancellation_policy: str = ""
    terms: str = ""

    @property
    def recipient_name(self) -> Optional[str]:
        return self.recipient.name if self.recipient else None

    @property
    def recipient_destination(self) -> Optional[str]:
        return self.recipient.destination if self.recipient else None

    @property
    def recipient_contact(self) -> Optional[str]:
        return self.recipient.contact if self.recipient else None
