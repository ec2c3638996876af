"""Exception hierarchy for the proposal pipeline."""
from __future__ import annotations


class ProposalError(Exception):
    """Base class for recoverable proposal-studio failures."""


class TemplateNotFoundError(ProposalError, LookupError):
    """Raised when a template or blueprint id is unknown."""

    def __init__(self, template_id: str):
        super().__init__(f"No template or blueprint named '{template_id}'.")
        self.template_id = template_id


class UnsupportedImageError(ProposalError):
    """Raised when uploaded bytes cannot be decoded as a raster image."""


class MissingRecipientError(ProposalError):
    """Raised when a message export has no lead to address."""


class RasterizationUnavailableError(ProposalError):
    """Raised when the PDF engine cannot produce a document."""


class OperationTimeoutError(ProposalError):
    """Raised when a long-running operation exceeds its time budget."""


class OperationInProgressError(ProposalError):
    """Raised when the same resource already has an operation in flight."""

    def __init__(self, key: tuple):
        super().__init__("Another operation is still running for this item. Please wait.")
        self.key = key


class PermissionDeniedError(ProposalError):
    """Raised when a user lacks the capability for an action."""


class NumberingInvariantError(ProposalError, AssertionError):
    """Day numbers are not a contiguous 1-based sequence."""


class PageOrderError(ProposalError, AssertionError):
    """Rendered pages are not in cover, days, summary order."""
