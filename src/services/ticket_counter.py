"""Sequential ticket numbers backed by a single spreadsheet cell."""

import asyncio
import time
from typing import Sequence
from src.services.sheets_client import SheetsClient
from src.utils.errors import CounterStoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

COUNTER_RANGE = "Intercom Counter!B2"
# Delays before each additional attempt (3 retries after the first try)
RETRY_DELAYS_SECONDS = (1, 2, 4)
TICKET_NUMBER_WIDTH = 5


def format_ticket_number(value: int) -> str:
    return str(value).zfill(TICKET_NUMBER_WIDTH)


def fallback_ticket_number() -> str:
    """Timestamp-derived stand-in used when the counter cell is unreachable.

    The leading "T" keeps degraded numbers distinguishable from real ones.
    """
    return f"T{int(time.time() * 1000) % 10000:04d}"


def is_fallback_number(ticket_number: str) -> bool:
    return ticket_number.startswith("T")


class TicketCounter:
    """Read-increment-write allocator over the counter cell.

    There is no compare-and-swap on the cell: two concurrent allocations can
    read the same value and hand out the same number.
    """

    def __init__(
        self,
        sheets: SheetsClient,
        counter_range: str = COUNTER_RANGE,
        retry_delays: Sequence[float] = RETRY_DELAYS_SECONDS,
        fallback_enabled: bool = True,
    ):
        self.sheets = sheets
        self.counter_range = counter_range
        self.retry_delays = tuple(retry_delays)
        self.fallback_enabled = fallback_enabled

    async def _read_current(self) -> int:
        values = await self.sheets.get_values(self.counter_range)
        if not values or not values[0] or str(values[0][0]).strip() == "":
            return 0
        return int(str(values[0][0]).strip())

    async def _increment_once(self) -> int:
        current = await self._read_current()
        next_value = current + 1
        await self.sheets.update_values(self.counter_range, [[next_value]], input_option="RAW")
        return next_value

    async def next_ticket_number(self) -> str:
        """Allocate the next ticket number, zero-padded to 5 digits.

        Retries failures with exponential backoff; once retries are spent the
        timestamp fallback is returned instead of raising (unless the fallback
        has been disabled, in which case CounterStoreError is raised).
        """
        attempts = len(self.retry_delays) + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                value = await self._increment_once()
                ticket_number = format_ticket_number(value)
                logger.info(
                    "Allocated ticket number",
                    ticket_number=ticket_number,
                    attempt=attempt + 1
                )
                return ticket_number
            except Exception as e:
                last_error = e
                if attempt < len(self.retry_delays):
                    delay = self.retry_delays[attempt]
                    logger.warning(
                        "Ticket counter update failed, retrying",
                        attempt=attempt + 1,
                        max_attempts=attempts,
                        retry_in_seconds=delay,
                        error=str(e)
                    )
                    await asyncio.sleep(delay)

        if not self.fallback_enabled:
            raise CounterStoreError(
                f"Ticket counter unavailable after {attempts} attempts: {last_error}"
            ) from last_error

        ticket_number = fallback_ticket_number()
        logger.error(
            "Ticket counter unavailable, using fallback number - investigate counter store",
            counter_range=self.counter_range,
            fallback_ticket_number=ticket_number,
            attempts=attempts,
            error=str(last_error),
            counter_degraded=True
        )
        return ticket_number
