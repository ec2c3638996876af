"""Deterministic page layout for proposals.

``render_layout`` turns a :class:`DocumentModel` into an ordered sequence of
pages with an explicit :class:`PageBreak` between every pair of pages. The
PDF rasterizer and the HTML preview both consume that sequence literally.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple, Union

from .config import AgencySettings
from .errors import PageOrderError
from .models import DocumentModel, ImageRef
from .pricing import format_currency, pricing_summary
from .storage import DEFAULT_CONTENT

logger = logging.getLogger(__name__)


class PageKind(str, Enum):
    COVER = "cover"
    DAY = "day"
    SUMMARY = "summary"


@dataclass(frozen=True)
class Brand:
    name: str
    logo_url: str
    tagline: str


@dataclass(frozen=True)
class Heading:
    text: str
    level: int = 1


@dataclass(frozen=True)
class Text:
    text: str
    style: str = "body"


@dataclass(frozen=True)
class Field:
    label: str
    value: str


@dataclass(frozen=True)
class Badge:
    text: str


@dataclass(frozen=True)
class Picture:
    image: Optional[ImageRef]
    caption: str = ""

    @property
    def is_placeholder(self) -> bool:
        return self.image is None


@dataclass(frozen=True)
class Chips:
    items: Tuple[str, ...]


@dataclass(frozen=True)
class Bullets:
    title: str
    items: Tuple[str, ...]


@dataclass(frozen=True)
class Table:
    title: str
    rows: Tuple[Tuple[str, str], ...]
    emphasize_last: bool = True


Block = Union[Brand, Heading, Text, Field, Badge, Picture, Chips, Bullets, Table]


@dataclass(frozen=True)
class Page:
    kind: PageKind
    key: str
    blocks: Tuple[Block, ...]
    day_number: Optional[int] = None


@dataclass(frozen=True)
class PageBreak:
    """Forced page boundary placed after the page named by ``after``."""

    after: str


@dataclass(frozen=True)
class Layout:
    reference_id: str
    sequence: Tuple[Union[Page, PageBreak], ...]

    @property
    def pages(self) -> Tuple[Page, ...]:
        return tuple(item for item in self.sequence if isinstance(item, Page))

    @property
    def page_keys(self) -> Tuple[str, ...]:
        return tuple(page.key for page in self.pages)


def _content(content: Optional[Mapping[str, str]], key: str) -> str:
    if content is not None:
        value = content.get(key)
        if value:
            return value
    return DEFAULT_CONTENT.get(key, "")


def _cover_page(model: DocumentModel, content: Optional[Mapping[str, str]]) -> Page:
    recipient = model.recipient
    blocks: list[Block] = [
        Brand(
            name=_content(content, "agency_name"),
            logo_url=_content(content, "agency_logo"),
            tagline=_content(content, "cover_tagline"),
        ),
        Text(_content(content, "cover_heading"), style="eyebrow"),
        Heading(recipient.name if recipient else "Valued Guest", level=1),
        Heading(model.title, level=2),
        Text(model.duration_label, style="lead"),
        Field("Planned Destination", (recipient.destination if recipient else "") or "To be confirmed"),
        Field("Preferred Window", model.travel_window or "Flexible"),
    ]
    if model.travelers:
        blocks.append(Field("Travelers", model.travelers))
    blocks.extend(
        [
            Field("Ref ID", model.reference_id),
            Field("Issued On", model.issued_date.strftime("%d %b %Y")),
            Text(_content(content, "welcome_note"), style="quote"),
        ]
    )
    return Page(kind=PageKind.COVER, key="cover", blocks=tuple(blocks))


def _day_page(day) -> Page:
    blocks: list[Block] = [
        Badge(f"Day {day.day_number:02d}"),
        Heading(day.heading, level=2),
        Picture(day.image, caption=day.heading),
        Text(day.narrative),
    ]
    if day.tags:
        blocks.append(Chips(tuple(day.tags)))
    details = []
    if day.meals:
        details.append(f"Meals: {', '.join(day.meals)}")
    if day.accommodation:
        details.append(f"Stay: {day.accommodation}")
    if details:
        blocks.append(Text(" | ".join(details), style="muted"))
    return Page(
        kind=PageKind.DAY,
        key=f"day-{day.day_number}",
        blocks=tuple(blocks),
        day_number=day.day_number,
    )


def _summary_page(
    model: DocumentModel,
    content: Optional[Mapping[str, str]],
    settings: AgencySettings,
    enforce_ceiling: bool,
) -> Page:
    blocks: list[Block] = [Heading("Inclusions & Investment", level=2)]
    blocks.append(Bullets("Inclusions", tuple(model.inclusions)))
    blocks.append(Bullets("Exclusions", tuple(model.exclusions)))

    summary = pricing_summary(model, settings, enforce_ceiling=enforce_ceiling)
    if summary is not None:
        symbol = _content(content, "currency_symbol")
        rows = (
            ("Gross value", format_currency(summary.gross_value, symbol)),
            (
                f"Discount ({summary.discount_percent.normalize():f}%)",
                f"- {format_currency(summary.discount_amount, symbol)}",
            ),
            ("Net payable", format_currency(summary.net_payable, symbol)),
        )
        blocks.append(Table("Investment Summary", rows))

    policies = (
        ("Booking Policy", model.booking_policy),
        ("Cancellation Policy", model.cancellation_policy),
        ("Terms", model.terms),
    )
    for label, value in policies:
        if value:
            blocks.append(Field(label, value))
    blocks.append(Text(_content(content, "footer_contact"), style="footer"))
    return Page(kind=PageKind.SUMMARY, key="summary", blocks=tuple(blocks))


def render_layout(
    model: DocumentModel,
    content: Optional[Mapping[str, str]] = None,
    settings: Optional[AgencySettings] = None,
    *,
    enforce_ceiling: bool = True,
) -> Layout:
    """Project ``model`` into cover, day pages and (for quotes) a summary."""

    pages = [_cover_page(model, content)]
    pages.extend(_day_page(day) for day in sorted(model.days, key=lambda day: day.day_number))
    if model.has_pricing:
        pages.append(_summary_page(model, content, settings or AgencySettings(), enforce_ceiling))
    return Layout(reference_id=model.reference_id, sequence=_with_breaks(pages))


def _with_breaks(pages) -> Tuple[Union[Page, PageBreak], ...]:
    sequence: list[Union[Page, PageBreak]] = []
    for position, page in enumerate(pages):
        if position:
            sequence.append(PageBreak(after=pages[position - 1].key))
        sequence.append(page)
    return tuple(sequence)


def _order_problems(layout: Layout) -> list[str]:
    problems = []
    pages = layout.pages
    if not pages or pages[0].kind is not PageKind.COVER:
        problems.append("the first page is not the cover")
    if sum(1 for page in pages if page.kind is PageKind.COVER) != 1:
        problems.append("there is not exactly one cover page")
    day_numbers = [page.day_number for page in pages if page.kind is PageKind.DAY]
    if day_numbers != list(range(1, len(day_numbers) + 1)):
        problems.append(f"day pages are ordered {day_numbers}")
    summaries = [index for index, page in enumerate(pages) if page.kind is PageKind.SUMMARY]
    if summaries and summaries != [len(pages) - 1]:
        problems.append("the summary page is not last")
    for previous, current in zip(layout.sequence, layout.sequence[1:]):
        if isinstance(previous, Page) and isinstance(current, Page):
            problems.append(f"no page break between {previous.key} and {current.key}")
    return problems


def verify_page_order(layout: Layout, strict: bool = False) -> Layout:
    """Check the cover, days, summary ordering; repair it unless ``strict``."""

    problems = _order_problems(layout)
    if not problems:
        return layout
    message = "; ".join(problems)
    if strict:
        raise PageOrderError(message)
    logger.warning("Repairing page order for %s: %s", layout.reference_id, message)
    pages = layout.pages
    covers = [page for page in pages if page.kind is PageKind.COVER][:1]
    days = sorted(
        (page for page in pages if page.kind is PageKind.DAY),
        key=lambda page: page.day_number or 0,
    )
    summaries = [page for page in pages if page.kind is PageKind.SUMMARY][:1]
    return Layout(reference_id=layout.reference_id, sequence=_with_breaks(covers + days + summaries))


# ---------------------------------------------------------------------------
# HTML projection
# ---------------------------------------------------------------------------


PREVIEW_CSS = """
<style>
.lmt-doc { font-family: Georgia, 'Times New Roman', serif; color: #0f172a; }
.lmt-page { background: #ffffff; border: 1px solid #e2e8f0; border-radius: 12px;
            padding: 32px 40px; margin: 0 auto 24px; max-width: 794px; }
.lmt-page-cover { background: #001e42; color: #ffffff; }
.lmt-page-break { page-break-after: always; break-after: page; height: 0; }
.lmt-brand { display: flex; align-items: center; gap: 12px; }
.lmt-brand img { height: 40px; background: #ffffff; border-radius: 8px; padding: 4px; }
.lmt-eyebrow { text-transform: uppercase; letter-spacing: 0.3em; font-size: 11px; opacity: 0.7; }
.lmt-lead { font-size: 18px; font-style: italic; }
.lmt-muted { color: #64748b; font-size: 13px; }
.lmt-quote { font-style: italic; border-left: 3px solid #f26522; padding-left: 12px; }
.lmt-footer { color: #64748b; font-size: 12px; border-top: 1px solid #e2e8f0; padding-top: 12px; }
.lmt-badge { display: inline-block; background: #f26522; color: #ffffff; border-radius: 999px;
             padding: 4px 14px; font-weight: 700; font-size: 12px; }
.lmt-picture img { width: 100%; border-radius: 10px; }
.lmt-placeholder { height: 180px; border: 2px dashed #cbd5e1; border-radius: 10px; display: flex;
                   align-items: center; justify-content: center; color: #94a3b8; }
.lmt-chip { display: inline-block; border: 1px solid #f26522; color: #f26522; border-radius: 999px;
            padding: 2px 10px; margin: 0 6px 6px 0; font-size: 12px; }
.lmt-field span { display: block; font-size: 10px; text-transform: uppercase; opacity: 0.7; }
.lmt-table { width: 100%; border-collapse: collapse; }
.lmt-table td { padding: 6px 4px; border-bottom: 1px solid #e2e8f0; }
.lmt-table tr:last-child td { font-weight: 700; }
@media print { .lmt-page { border: none; margin: 0; } }
</style>
"""


def _block_html(block: Block) -> str:
    if isinstance(block, Brand):
        return (
            f'<div class="lmt-brand"><img src="{html.escape(block.logo_url)}" alt="">'
            f"<div><strong>{html.escape(block.name)}</strong><br>"
            f'<span class="lmt-eyebrow">{html.escape(block.tagline)}</span></div></div>'
        )
    if isinstance(block, Heading):
        level = min(max(block.level, 1), 4)
        return f"<h{level}>{html.escape(block.text)}</h{level}>"
    if isinstance(block, Text):
        if not block.text:
            return ""
        body = "<br>".join(html.escape(line) for line in block.text.splitlines())
        return f'<p class="lmt-{block.style}">{body}</p>'
    if isinstance(block, Field):
        return (
            f'<div class="lmt-field"><span>{html.escape(block.label)}</span>'
            f"{html.escape(block.value)}</div>"
        )
    if isinstance(block, Badge):
        return f'<span class="lmt-badge">{html.escape(block.text)}</span>'
    if isinstance(block, Picture):
        if block.image is None:
            return '<div class="lmt-placeholder">Image coming soon</div>'
        return (
            f'<div class="lmt-picture"><img src="{html.escape(block.image.source())}" '
            f'alt="{html.escape(block.caption)}"></div>'
        )
    if isinstance(block, Chips):
        return "<div>" + "".join(
            f'<span class="lmt-chip">{html.escape(item)}</span>' for item in block.items
        ) + "</div>"
    if isinstance(block, Bullets):
        if not block.items:
            return ""
        items = "".join(f"<li>{html.escape(item)}</li>" for item in block.items)
        return f"<h4>{html.escape(block.title)}</h4><ul>{items}</ul>"
    if isinstance(block, Table):
        rows = "".join(
            f"<tr><td>{html.escape(label)}</td><td style=\"text-align:right\">{html.escape(value)}</td></tr>"
            for label, value in block.rows
        )
        return f'<h4>{html.escape(block.title)}</h4><table class="lmt-table">{rows}</table>'
    raise TypeError(f"Unsupported block {block!r}")


def render_html(layout: Layout) -> str:
    """Return an HTML fragment for the preview pane and print fallback."""

    parts = [PREVIEW_CSS, f'<div class="lmt-doc" data-reference="{html.escape(layout.reference_id)}">']
    for item in layout.sequence:
        if isinstance(item, PageBreak):
            parts.append(f'<div class="lmt-page-break" data-after="{html.escape(item.after)}"></div>')
            continue
        parts.append(f'<section class="lmt-page lmt-page-{item.kind.value}" data-page="{item.key}">')
        parts.extend(_block_html(block) for block in item.blocks)
        parts.append("</section>")
    parts.append("</div>")
    return "".join(parts)
