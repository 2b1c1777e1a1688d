"""Conversation actions endpoint (assign, close, snooze) for Vercel."""

from http.server import BaseHTTPRequestHandler
import json
import asyncio
import logging

from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
_logger = logging.getLogger(__name__)


async def run_action(body: dict) -> dict:
    from src.config import Settings
    from src.models.intercom import ConversationActionRequest
    from src.services.conversation_actions import perform_action
    from src.services.ghl_client import GHLClient
    from src.services.intercom_client import IntercomClient

    request = ConversationActionRequest.model_validate(body)
    settings = Settings.from_env()
    settings.require("intercom_access_token")

    async with IntercomClient(settings.intercom_access_token, timeout=settings.http_timeout_seconds) as intercom:
        if settings.missing("ghl_access_token", "ghl_location_id"):
            return await perform_action(request, settings, intercom)

        async with GHLClient(
            settings.ghl_access_token,
            settings.ghl_location_id,
            timeout=settings.http_timeout_seconds,
        ) as ghl:
            return await perform_action(request, settings, intercom, ghl)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for conversation actions."""

    def _send_json(self, status_code: int, payload: dict):
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        """Perform an action on a conversation."""
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

            if not isinstance(body, dict) or not body.get("conversationId") or not body.get("action"):
                self._send_json(400, {"error": "Conversation ID and action required"})
                return

            data = asyncio.run(run_action(body))
            self._send_json(200, {"success": True, "data": data})

        except (InvalidActionError, ValidationError) as e:
            self._send_json(400, {"error": str(e)})
        except ConfigurationError as e:
            _logger.error(f"Configuration error performing action: {e}")
            self._send_json(500, {"error": "Configuration error", "message": str(e)})
        except Exception as e:
            _logger.error(f"Error performing action: {e}", exc_info=True)
            self._send_json(500, {"error": "Failed to perform action", "message": str(e)})
