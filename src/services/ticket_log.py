"""Append-only ticket audit log in the spreadsheet."""

from datetime import datetime, timezone
from src.models.ticket import TICKET_SOURCE, TicketCreationResult
from src.services.sheets_client import SheetsClient
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

TICKET_LOG_RANGE = "Ticket Log!A:I"


class TicketLog:
    """Writes one row per created ticket. Failures are logged, never raised."""

    def __init__(self, sheets: SheetsClient, log_range: str = TICKET_LOG_RANGE):
        self.sheets = sheets
        self.log_range = log_range

    async def record_ticket_created(
        self,
        result: TicketCreationResult,
        customer_name: str,
        customer_email: str,
    ) -> bool:
        row = [
            datetime.now(timezone.utc).isoformat(),
            result.ticket_number,
            result.ticket_id,
            result.conversation_id,
            customer_name,
            customer_email,
            result.owner,
            TICKET_SOURCE,
            "yes" if result.counter_degraded else "no",
        ]
        try:
            # RAW keeps customer text literal and "00042" zero-padded
            await self.sheets.append_row(self.log_range, row, input_option="RAW")
            return True
        except Exception as e:
            logger.warning(
                "Failed to write ticket audit log row",
                ticket_id=result.ticket_id,
                conversation_id=result.conversation_id,
                error=str(e)
            )
            return False
