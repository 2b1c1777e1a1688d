"""Conversation reply endpoint (customer-visible comment or internal note) for Vercel."""

from http.server import BaseHTTPRequestHandler
import json
import asyncio
import logging

from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
_logger = logging.getLogger(__name__)


async def run_reply(body: dict) -> dict:
    from src.config import Settings
    from src.models.intercom import ConversationReplyRequest
    from src.services.conversation_actions import send_reply
    from src.services.intercom_client import IntercomClient

    request = ConversationReplyRequest.model_validate(body)
    settings = Settings.from_env()
    settings.require("intercom_access_token")

    async with IntercomClient(settings.intercom_access_token, timeout=settings.http_timeout_seconds) as intercom:
        return await send_reply(request, settings, intercom)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for conversation replies."""

    def _send_json(self, status_code: int, payload: dict):
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        """Reply to a conversation as an admin."""
        from pydantic import ValidationError
        from src.services.conversation_actions import InvalidActionError
        from src.utils.errors import ConfigurationError

        try:
            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

            try:
                body = json.loads(raw_body) if raw_body else {}
            except json.JSONDecodeError:
                body = {}

            if not isinstance(body, dict) or not body.get("conversationId") or not body.get("message"):
                self._send_json(400, {"error": "Conversation ID and message required"})
                return

            data = asyncio.run(run_reply(body))
            self._send_json(200, {"success": True, "data": data})

        except (InvalidActionError, ValidationError) as e:
            self._send_json(400, {"error": str(e)})
        except ConfigurationError as e:
            _logger.error(f"Configuration error sending reply: {e}")
            self._send_json(500, {"error": "Configuration error", "message": str(e)})
        except Exception as e:
            _logger.error(f"Error sending reply: {e}", exc_info=True)
            self._send_json(500, {"error": "Failed to send reply", "message": str(e)})

    def do_GET(self):
        self._send_json(405, {"error": "Method not allowed"})
