"""Manual ticket creation and raw conversation lookup for Vercel."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import json
import asyncio
import logging

from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
_logger = logging.getLogger(__name__)


async def create_ticket(conversation_id: str) -> dict:
    """Run the ticket materializer for one conversation."""
    from src.config import Settings
    from src.services.ticket_materializer import create_ticket_from_conversation
    from src.services.ticket_services import TicketServices

    settings = Settings.from_env()
    async with TicketServices.from_settings(settings) as services:
        result = await create_ticket_from_conversation(conversation_id, services)

    return {
        "success": result.status != "skipped_no_customer",
        "status": result.status,
        "ticketId": result.ticket_id,
        "ticketNumber": result.ticket_number,
    }


async def fetch_conversation(conversation_id: str) -> dict:
    from src.config import Settings
    from src.services.intercom_client import IntercomClient

    settings = Settings.from_env()
    settings.require("intercom_access_token")
    async with IntercomClient(settings.intercom_access_token, timeout=settings.http_timeout_seconds) as intercom:
        return await intercom.get_conversation_raw(conversation_id)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for Intercom conversations."""

    def _send_json(self, status_code: int, payload: dict):
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        """Create a ticket from a conversation."""
        from src.utils.errors import ConfigurationError

        try:
            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

            try:
                body = json.loads(raw_body) if raw_body else {}
            except json.JSONDecodeError:
                body = {}

            conversation_id = body.get("conversationId") if isinstance(body, dict) else None
            if not conversation_id:
                self._send_json(400, {"error": "conversationId is required"})
                return

            response = asyncio.run(create_ticket(str(conversation_id)))
            self._send_json(200, response)

        except ConfigurationError as e:
            _logger.error(f"Configuration error creating ticket: {e}")
            self._send_json(500, {"error": "Configuration error", "message": str(e)})
        except Exception as e:
            _logger.error(f"Error creating ticket: {e}", exc_info=True)
            self._send_json(500, {"error": "Failed to create ticket", "message": str(e)})

    def do_GET(self):
        """Return the raw conversation for ?conversationId=."""
        try:
            query = parse_qs(urlparse(self.path).query)
            conversation_id = (query.get("conversationId") or [""])[0]
            if not conversation_id:
                self._send_json(400, {"error": "conversationId is required"})
                return

            conversation = asyncio.run(fetch_conversation(conversation_id))
            self._send_json(200, conversation)

        except Exception as e:
            _logger.error(f"Error fetching conversation: {e}", exc_info=True)
            self._send_json(500, {"error": "Failed to fetch conversation", "message": str(e)})
