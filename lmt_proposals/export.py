"""Export dispatcher: paginated PDF download and outbound chat message."""
from __future__ import annotations

import asyncio
import html
import io
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Protocol, Tuple
from urllib.parse import quote

import requests
from PIL import Image as PILImage, UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Flowable,
    Image,
    PageBreak as ForcedPageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table as PdfTable,
    TableStyle,
)

from .errors import (
    MissingRecipientError,
    OperationTimeoutError,
    PageOrderError,
    RasterizationUnavailableError,
)
from .layout import (
    Badge,
    Brand,
    Bullets,
    Chips,
    Field,
    Heading,
    Layout,
    Page,
    PageBreak,
    Picture,
    Table,
    Text,
    render_html,
)
from .models import DocumentModel, ImageRef
from .storage import DEFAULT_CONTENT

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 2.0
DEFAULT_MARGIN_MM = 10
MAX_PICTURE_HEIGHT_RATIO = 0.45
REMOTE_FETCH_TIMEOUT = 20
WHATSAPP_ENDPOINT = "https://wa.me"

ACCENT = colors.HexColor("#f26522")
NAVY = colors.HexColor("#001e42")
MUTED = colors.HexColor("#64748b")

RemoteFetcher = Callable[[str], Optional[bytes]]


def fetch_remote_image(url: str, timeout: float = REMOTE_FETCH_TIMEOUT) -> Optional[bytes]:
    """Download ``url`` for embedding; ``None`` when it cannot be fetched."""

    try:
        response = requests.get(url, timeout=timeout, headers={"Accept": "image/*"})
    except requests.RequestException as exc:
        logger.warning("Could not fetch image %s: %s", url, exc)
        return None
    if not response.ok or not response.content:
        logger.warning("Image %s returned HTTP %s", url, response.status_code)
        return None
    return response.content


@dataclass(frozen=True)
class RenderedDocument:
    data: bytes
    page_order: Tuple[str, ...]
    page_count: int


class Rasterizer(Protocol):
    def render(self, layout: Layout) -> RenderedDocument:
        ...


class _PageMarker(Flowable):
    """Zero-size flowable that records where a layout page starts."""

    def __init__(self, key: str, written: List[Tuple[str, int]]):
        super().__init__()
        self.key = key
        self._written = written

    def wrap(self, availWidth, availHeight):
        return 0, 0

    def draw(self):
        self._written.append((self.key, self.canv.getPageNumber()))


def _pdf_text(value: str) -> str:
    # Base-14 fonts have no rupee glyph.
    escaped = html.escape(value or "").replace("₹", "INR ")
    return escaped.replace("\n", "<br/>")


class ReportLabRasterizer:
    """Draw a :class:`Layout` onto A4 portrait pages with reportlab.

    Pages are written strictly in ``layout.sequence`` order and every
    :class:`PageBreak` becomes a forced physical page break. Photos are
    resampled to ``scale`` pixels per point of drawn width so they stay
    sharp when printed.
    """

    def __init__(
        self,
        scale: float = DEFAULT_SCALE,
        margin_mm: float = DEFAULT_MARGIN_MM,
        fetch_remote: Optional[RemoteFetcher] = None,
    ):
        if scale <= 0:
            raise ValueError("scale must be positive")
        self.scale = scale
        self.margin = margin_mm * mm
        self.fetch_remote = fetch_remote
        self._styles = self._build_styles()

    @staticmethod
    def _build_styles():
        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(name="Eyebrow", parent=styles["Normal"], fontSize=8, textColor=MUTED, leading=10))
        styles.add(ParagraphStyle(name="Lead", parent=styles["Normal"], fontSize=13, leading=17, fontName="Helvetica-Oblique"))
        styles.add(ParagraphStyle(name="BodySmall", parent=styles["Normal"], fontSize=11, leading=15))
        styles.add(ParagraphStyle(name="Muted", parent=styles["Normal"], fontSize=9, leading=12, textColor=MUTED))
        styles.add(
            ParagraphStyle(
                name="Quote",
                parent=styles["Normal"],
                fontSize=10,
                leading=14,
                fontName="Helvetica-Oblique",
                leftIndent=8,
            )
        )
        styles.add(ParagraphStyle(name="BadgeText", parent=styles["Normal"], fontSize=10, textColor=ACCENT, fontName="Helvetica-Bold"))
        styles.add(ParagraphStyle(name="Chip", parent=styles["Normal"], fontSize=9, textColor=ACCENT))
        styles.add(ParagraphStyle(name="Placeholder", parent=styles["Normal"], fontSize=10, textColor=MUTED, alignment=1))
        return styles

    def _text_style(self, style: str) -> ParagraphStyle:
        return {
            "eyebrow": self._styles["Eyebrow"],
            "lead": self._styles["Lead"],
            "muted": self._styles["Muted"],
            "quote": self._styles["Quote"],
            "footer": self._styles["Muted"],
        }.get(style, self._styles["BodySmall"])

    def _image_bytes(self, image: ImageRef) -> Optional[bytes]:
        if image.is_inline:
            return image.data
        if self.fetch_remote is None:
            return None
        return self.fetch_remote(image.url)

    def _scaled_image(self, payload: bytes, max_width: float, max_height: float) -> Optional[Image]:
        try:
            picture = PILImage.open(io.BytesIO(payload))
            picture.load()
        except (PILImage.DecompressionBombError, UnidentifiedImageError, OSError) as exc:
            logger.warning("Skipping undecodable image in PDF: %s", exc)
            return None
        width, height = picture.size
        if not width or not height:
            return None
        drawn_width = min(max_width, max_height * width / height)
        drawn_height = drawn_width * height / width
        pixel_width = max(1, round(drawn_width * self.scale))
        pixel_height = max(1, round(drawn_height * self.scale))
        resampled = picture.convert("RGB")
        if (pixel_width, pixel_height) != (width, height):
            resampled = resampled.resize((pixel_width, pixel_height), PILImage.LANCZOS)
        buffer = io.BytesIO()
        resampled.save(buffer, format="JPEG", quality=85)
        buffer.seek(0)
        return Image(buffer, width=drawn_width, height=drawn_height)

    def _picture(self, block: Picture, frame_width: float, frame_height: float) -> list:
        flowable = None
        if block.image is not None:
            payload = self._image_bytes(block.image)
            if payload:
                flowable = self._scaled_image(payload, frame_width, frame_height * MAX_PICTURE_HEIGHT_RATIO)
        if flowable is None:
            flowable = PdfTable(
                [[Paragraph("Image coming soon", self._styles["Placeholder"])]],
                colWidths=[frame_width],
                rowHeights=[60 * mm],
            )
            flowable.setStyle(
                TableStyle(
                    [
                        ("BOX", (0, 0), (-1, -1), 1, colors.lightgrey),
                        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ]
                )
            )
        return [flowable, Spacer(1, 8)]

    def _block(self, block, frame_width: float, frame_height: float) -> list:
        styles = self._styles
        if isinstance(block, Brand):
            flowables = []
            logo = None
            if block.logo_url:
                try:
                    source = ImageRef.from_source(block.logo_url)
                except ValueError as exc:
                    logger.warning("Skipping agency logo in PDF: %s", exc)
                    source = None
                payload = self._image_bytes(source) if source is not None else None
                if payload:
                    logo = self._scaled_image(payload, 40 * mm, 14 * mm)
            name = Paragraph(
                f"<b>{_pdf_text(block.name)}</b><br/><font size='8' color='#64748b'>{_pdf_text(block.tagline)}</font>",
                styles["BodySmall"],
            )
            if logo is not None:
                table = PdfTable([[logo, name]], colWidths=[45 * mm, frame_width - 45 * mm])
                table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "MIDDLE")]))
                flowables.append(table)
            else:
                flowables.append(name)
            flowables.append(Spacer(1, 24))
            return flowables
        if isinstance(block, Heading):
            style = styles["Title"] if block.level == 1 else styles["Heading2"]
            return [Paragraph(_pdf_text(block.text), style)]
        if isinstance(block, Text):
            if not block.text:
                return []
            return [Paragraph(_pdf_text(block.text), self._text_style(block.style)), Spacer(1, 6)]
        if isinstance(block, Field):
            return [
                Paragraph(
                    f"<font size='8' color='#64748b'>{_pdf_text(block.label.upper())}</font><br/>{_pdf_text(block.value)}",
                    styles["BodySmall"],
                ),
                Spacer(1, 6),
            ]
        if isinstance(block, Badge):
            return [Paragraph(_pdf_text(block.text.upper()), styles["BadgeText"]), Spacer(1, 4)]
        if isinstance(block, Picture):
            return self._picture(block, frame_width, frame_height)
        if isinstance(block, Chips):
            return [Paragraph("  ·  ".join(_pdf_text(item) for item in block.items), styles["Chip"]), Spacer(1, 6)]
        if isinstance(block, Bullets):
            if not block.items:
                return []
            flowables = [Paragraph(f"<b>{_pdf_text(block.title)}</b>", styles["BodySmall"])]
            flowables.extend(Paragraph(f"• {_pdf_text(item)}", styles["BodySmall"]) for item in block.items)
            flowables.append(Spacer(1, 10))
            return flowables
        if isinstance(block, Table):
            rows = [
                [Paragraph(_pdf_text(label), styles["BodySmall"]), Paragraph(_pdf_text(value), styles["BodySmall"])]
                for label, value in block.rows
            ]
            table = PdfTable(rows, colWidths=[frame_width * 0.6, frame_width * 0.4])
            commands = [
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
            if block.emphasize_last and rows:
                commands.append(("BACKGROUND", (0, -1), (-1, -1), colors.whitesmoke))
                commands.append(("LINEABOVE", (0, -1), (-1, -1), 1, NAVY))
            table.setStyle(TableStyle(commands))
            return [Paragraph(f"<b>{_pdf_text(block.title)}</b>", styles["Heading3"]), table, Spacer(1, 12)]
        raise TypeError(f"Unsupported block {block!r}")

    def render(self, layout: Layout) -> RenderedDocument:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.margin,
            rightMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=layout.reference_id,
        )
        for item in layout.sequence:
            if not isinstance(item, (Page, PageBreak)):
                raise TypeError(f"Unexpected layout item {item!r}")

        written: List[Tuple[str, int]] = []
        try:
            story: list = []
            for item in layout.sequence:
                if isinstance(item, PageBreak):
                    story.append(ForcedPageBreak())
                    continue
                story.append(_PageMarker(item.key, written))
                for block in item.blocks:
                    story.extend(self._block(block, doc.width, doc.height))
            doc.build(story)
        except Exception as exc:
            raise RasterizationUnavailableError(f"PDF engine failed: {exc}") from exc

        page_count = max((page for _, page in written), default=0)
        return RenderedDocument(
            data=buffer.getvalue(),
            page_order=tuple(key for key, _ in written),
            page_count=page_count,
        )


@dataclass(frozen=True)
class DocumentExport:
    """Result of a document export.

    ``kind`` is ``"pdf"`` when ``data`` holds the file, or ``"print"`` when
    the PDF engine was unavailable and ``html`` should be sent to the
    browser print dialog instead.
    """

    kind: str
    filename: str
    data: bytes = b""
    html: str = ""
    page_order: Tuple[str, ...] = ()

    @property
    def is_pdf(self) -> bool:
        return self.kind == "pdf"

    @property
    def mime_type(self) -> str:
        return "application/pdf" if self.is_pdf else "text/html"


def document_filename(kind, recipient_name: Optional[str]) -> str:
    label = getattr(kind, "value", kind) or "Document"
    name = re.sub(r"\s+", "_", (recipient_name or "").strip()) or "Guest"
    name = re.sub(r"[^\w.-]", "", name) or "Guest"
    return f"{label}_{name}.pdf"


def export_as_document(
    layout: Layout,
    filename: str,
    rasterizer: Optional[Rasterizer] = None,
) -> DocumentExport:
    """Rasterize ``layout`` into a PDF, degrading to print when unavailable."""

    engine = rasterizer or ReportLabRasterizer()
    try:
        rendered = engine.render(layout)
    except RasterizationUnavailableError as exc:
        logger.warning("PDF export of %s fell back to print: %s", layout.reference_id, exc)
        return DocumentExport(kind="print", filename=filename, html=render_html(layout))

    if rendered.page_order != layout.page_keys:
        raise PageOrderError(
            f"Pages were written as {list(rendered.page_order)}, expected {list(layout.page_keys)}"
        )
    logger.info(
        "Exported %s as %s (%d pages, %d bytes)",
        layout.reference_id,
        filename,
        rendered.page_count,
        len(rendered.data),
    )
    return DocumentExport(kind="pdf", filename=filename, data=rendered.data, page_order=rendered.page_order)


async def export_as_document_async(
    layout: Layout,
    filename: str,
    rasterizer: Optional[Rasterizer] = None,
    timeout: Optional[float] = 30.0,
) -> DocumentExport:
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(export_as_document, layout, filename, rasterizer),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise OperationTimeoutError(f"PDF export did not finish within {timeout:g} seconds.") from exc


@dataclass(frozen=True)
class OutboundMessage:
    text: str
    phone: str
    link: str


def _content(content: Optional[Mapping[str, str]], key: str) -> str:
    if content is not None and content.get(key):
        return content[key]
    return DEFAULT_CONTENT.get(key, "")


def format_message(
    model: DocumentModel,
    preparer_name: str,
    content: Optional[Mapping[str, str]] = None,
) -> str:
    recipient = model.recipient_name or "Guest"
    lines = [
        f"*🌟 {model.title} 🌟*",
        f"Exclusively prepared for: *{recipient}*",
        "",
        f"Hello {recipient}, here is the day-by-day plan for your journey.",
        "",
    ]
    for day in model.days:
        lines.append(f"*DAY {day.day_number}: {day.heading.upper()}*")
        lines.append(f"📍 {day.narrative}")
        lines.append("")
    lines.extend(
        [
            "---",
            f"*Designed by:* {preparer_name}",
            _content(content, "message_tagline"),
            f"_{_content(content, 'message_motto')}_",
        ]
    )
    return "\n".join(lines)


def export_as_message(
    model: DocumentModel,
    preparer_name: str,
    content: Optional[Mapping[str, str]] = None,
) -> OutboundMessage:
    """Serialise ``model`` as a chat message addressed to its lead.

    Raises :class:`MissingRecipientError` before building anything when no
    lead is attached or its contact has no digits.
    """

    if model.recipient is None:
        raise MissingRecipientError("Attach a lead before sharing this proposal.")
    phone = re.sub(r"\D", "", model.recipient.contact or "")
    if not phone:
        raise MissingRecipientError(f"Lead {model.recipient.name} has no phone number on file.")
    text = format_message(model, preparer_name, content)
    link = f"{WHATSAPP_ENDPOINT}/{phone}?text={quote(text, safe='')}"
    return OutboundMessage(text=text, phone=phone, link=link)
