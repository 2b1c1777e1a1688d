"""Error handling utilities."""

from typing import Optional


class TicketSyncError(Exception):
    """Base exception for the ticket sync backend."""
    pass


class ConfigurationError(TicketSyncError):
    """Required configuration value is missing."""
    pass


class SignatureVerificationError(TicketSyncError):
    """Intercom webhook signature verification failed."""
    pass


class UpstreamAPIError(TicketSyncError):
    """Third-party API returned an error response."""

    service = "upstream"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = (body or "")[:500]

    def log_context(self) -> dict:
        """Fields attached to log lines describing this failure."""
        return {
            "service": self.service,
            "status_code": self.status_code,
            "url": self.url,
            "response_body": self.body,
        }


class IntercomAPIError(UpstreamAPIError):
    """Intercom API error."""
    service = "intercom"


class GHLAPIError(UpstreamAPIError):
    """GoHighLevel API error."""
    service = "ghl"


class SheetsError(UpstreamAPIError):
    """Google Sheets API error."""
    service = "sheets"


class CounterStoreError(TicketSyncError):
    """Ticket counter could not be allocated and degraded mode is off."""
    pass


class BotIdentityError(TicketSyncError):
    """The bot/operator identity reached a point where a customer is required."""
    pass


class SummarizationError(TicketSyncError):
    """LLM summarization error."""
    pass


class SupabaseError(TicketSyncError):
    """Supabase operation error."""
    pass
