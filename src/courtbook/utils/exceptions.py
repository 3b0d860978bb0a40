"""Exception hierarchy for courtbook."""


class CourtbookError(Exception):
    """Base exception for all courtbook errors."""


class ConfigurationError(CourtbookError):
    """Invalid or missing configuration."""


class BrowserUnavailableError(ConfigurationError):
    """The automation browser could not be acquired.

    Raised when no browser endpoint is configured or the endpoint refuses
    the connection. Surfaced verbatim to the user, never retried.
    """

    def __init__(self, detail: str, endpoint: str | None = None) -> None:
        """Initialize BrowserUnavailableError.

        Args:
            detail: What went wrong while acquiring the browser.
            endpoint: The endpoint that was tried, if any.
        """
        self.endpoint = endpoint
        super().__init__(detail)


class AuthorizationError(CourtbookError):
    """No fresh authorization, or the subject is not on the allow-list."""


class BookingInputError(CourtbookError):
    """A requested time, date or verification code could not be understood."""


class SiteInteractionError(CourtbookError):
    """The target site did not behave the way the automation script expects."""


class ElementNotFound(SiteInteractionError):  # noqa: N818
    """A known element did not appear within its timeout."""


class NavigationError(SiteInteractionError):
    """Page navigation failed."""


class SlotUnavailableError(SiteInteractionError):
    """The requested time slot is not offered on the selected day."""

    def __init__(self, requested_time: str, available_times: list[str]) -> None:
        """Initialize SlotUnavailableError.

        Args:
            requested_time: The normalized time that was requested.
            available_times: Slot lines actually rendered by the site.
        """
        self.requested_time = requested_time
        self.available_times = available_times
        listing = ", ".join(available_times) if available_times else "none"
        super().__init__(f"{requested_time} not available. Available: {listing}")


class SlotAlreadyReservedError(SiteInteractionError):
    """The site reported the court as already reserved at confirmation."""


class VerificationPageNotFound(SiteInteractionError):  # noqa: N818
    """No open page is waiting for a verification code."""


class VerificationTimeoutError(CourtbookError):
    """No success indicator appeared after the code was submitted.

    The outcome is unknown rather than failed: the booking may have gone
    through after the wait bound elapsed.
    """


class StorageError(CourtbookError):
    """The key-value backend is unavailable or returned an error."""


class SummaryError(CourtbookError):
    """The summarizer could not produce text for availability facts."""
