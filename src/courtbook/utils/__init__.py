"""Utilities module for courtbook."""

from .config import AppConfig, ConfigLoader
from .exceptions import (
    AuthorizationError,
    BookingInputError,
    BrowserUnavailableError,
    ConfigurationError,
    CourtbookError,
    ElementNotFound,
    NavigationError,
    SiteInteractionError,
    SlotAlreadyReservedError,
    SlotUnavailableError,
    StorageError,
    SummaryError,
    VerificationPageNotFound,
    VerificationTimeoutError,
)

__all__ = [
    "AppConfig",
    "AuthorizationError",
    "BookingInputError",
    "BrowserUnavailableError",
    "ConfigLoader",
    "ConfigurationError",
    "CourtbookError",
    "ElementNotFound",
    "NavigationError",
    "SiteInteractionError",
    "SlotAlreadyReservedError",
    "SlotUnavailableError",
    "StorageError",
    "SummaryError",
    "VerificationPageNotFound",
    "VerificationTimeoutError",
]
