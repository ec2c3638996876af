"""Core of the Let Me Travel proposal studio."""

from .config import AgencySettings, AppConfig, configure_logging, load_config
from .errors import (
    MissingRecipientError,
    OperationInProgressError,
    OperationTimeoutError,
    ProposalError,
    RasterizationUnavailableError,
    TemplateNotFoundError,
    UnsupportedImageError,
)
from .models import DayEntry, DocumentKind, DocumentModel, ImageRef, PricingTerms, Recipient
from .assets import OperationGuard, normalize_image, normalize_image_async
from .layout import Layout, render_html, render_layout
from .export import export_as_document, export_as_message, document_filename
from .storage import ContentStore, LocalStore, SessionStore, SettingsStore

__all__ = [
    "AgencySettings",
    "AppConfig",
    "configure_logging",
    "load_config",
    "MissingRecipientError",
    "OperationInProgressError",
    "OperationTimeoutError",
    "ProposalError",
    "RasterizationUnavailableError",
    "TemplateNotFoundError",
    "UnsupportedImageError",
    "DayEntry",
    "DocumentKind",
    "DocumentModel",
    "ImageRef",
    "PricingTerms",
    "Recipient",
    "OperationGuard",
    "normalize_image",
    "normalize_image_async",
    "Layout",
    "render_html",
    "render_layout",
    "export_as_document",
    "export_as_message",
    "document_filename",
    "ContentStore",
    "LocalStore",
    "SessionStore",
    "SettingsStore",
]
