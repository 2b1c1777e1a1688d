"""Per-invocation bundle of configured clients passed into the sync components."""

from dataclasses import dataclass
from src.config import Settings, TICKET_SYNC_FIELDS
from src.services.ghl_client import GHLClient
from src.services.intercom_client import IntercomClient
from src.services.sheets_client import SheetsClient
from src.services.ticket_counter import TicketCounter
from src.services.ticket_log import TicketLog


@dataclass
class TicketServices:
    """Clients for one handler invocation. Use as an async context manager."""
    settings: Settings
    intercom: IntercomClient
    ghl: GHLClient
    counter: TicketCounter
    ticket_log: TicketLog

    @classmethod
    def from_settings(cls, settings: Settings) -> "TicketServices":
        """Build the bundle, failing fast on missing configuration."""
        settings.require(*TICKET_SYNC_FIELDS)
        sheets = SheetsClient(settings.google_sheet_id, settings.google_sheets_credentials)
        return cls(
            settings=settings,
            intercom=IntercomClient(settings.intercom_access_token, timeout=settings.http_timeout_seconds),
            ghl=GHLClient(
                settings.ghl_access_token,
                settings.ghl_location_id,
                timeout=settings.http_timeout_seconds,
            ),
            counter=TicketCounter(sheets, fallback_enabled=settings.counter_fallback_enabled),
            ticket_log=TicketLog(sheets),
        )

    async def __aenter__(self) -> "TicketServices":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.intercom.aclose()
        await self.ghl.aclose()
        return False
