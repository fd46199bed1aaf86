"""Exceptions raised by the offer services."""
from typing import Dict, List, Optional


class OfferServiceError(Exception):
    """Base class for offer service errors."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class OfferValidationError(OfferServiceError):
    """Invalid input, raised before anything is written."""

    status_code = 400


class OfferForbiddenError(OfferServiceError):
    """The caller is not allowed to perform the action."""

    status_code = 403


class OfferNotFoundError(OfferServiceError):
    status_code = 404
