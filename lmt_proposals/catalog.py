"""Static destination knowledge used by the builder screens."""
from __future__ import annotations

from typing import Dict, List, Tuple

BRAND_LOGO_URL = "https://i.ibb.co/vzR0y6y/lmt-logo.png"
COVER_BANNER_URL = (
    "https://images.unsplash.com/photo-1464822759023-fed622ff2c3b?q=80&w=2000&auto=format&fit=crop"
)
HORSE_RIDE_URL = (
    "https://images.unsplash.com/photo-1553284965-83fd3e82fa5a?q=80&w=1200&auto=format&fit=crop"
)

LOGISTICS_REGIONS: Tuple[str, ...] = (
    "Darjeeling",
    "Gangtok",
    "Pelling",
    "North Sikkim",
    "Bhutan",
)

REGIONAL_ACTIVITY_BANK: Dict[str, Tuple[str, ...]] = {
    "darjeeling": (
        "Transfer to Darjeeling",
        "Darjeeling Sightseeing",
        "Lamahatta Excursion",
        "Mirik Excursion",
        "Darjeeling to IXB / NJP Transfer",
    ),
    "gangtok": (
        "Transfer to Gangtok",
        "Transfer to Lachung",
        "Lachung Sightseeing",
        "Lachung to Gangtok",
        "Gangtok Sightseeing",
    ),
    "pelling": (
        "Pelling Transfer",
        "Pelling Sightseeing",
        "Namchi & Ravangla Excursion",
        "Transfer to IXB / NJP",
    ),
}

DESTINATION_GALLERY: Dict[str, Tuple[str, ...]] = {
    "Darjeeling": (
        "https://images.unsplash.com/photo-1544735716-392fe2489ffa?auto=format&fit=crop&q=60&w=800",
        "https://images.unsplash.com/photo-1540339830252-44a38be1340a?auto=format&fit=crop&q=60&w=800",
        "https://images.unsplash.com/photo-1596202113262-959c5d011684?auto=format&fit=crop&q=60&w=800",
    ),
}

DEFAULT_MEALS: Tuple[str, ...] = ("Breakfast", "Dinner")


def activity_suggestions(region: str) -> List[str]:
    """Return the highlight options offered for a region, if any."""

    return list(REGIONAL_ACTIVITY_BANK.get((region or "").strip().lower(), ()))


def gallery_images(destination: str) -> List[str]:
    for name, urls in DESTINATION_GALLERY.items():
        if name.lower() == (destination or "").strip().lower():
            return list(urls)
    return []
