"""Conversation summary endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
import json
import asyncio
import logging

from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
_logger = logging.getLogger(__name__)


async def summarize(body: dict) -> dict:
    from src.config import Settings
    from src.services.ghl_client import GHLClient
    from src.services.summarizer import summarize_conversation

    settings = Settings.from_env()
    conversation_id = str(body["conversationId"])
    messages = body["messages"]
    opportunity_id = body.get("opportunityId")
    force_regenerate = bool(body.get("forceRegenerate", False))

    if not opportunity_id or settings.missing("ghl_access_token", "ghl_location_id"):
        return await summarize_conversation(
            conversation_id,
            messages,
            settings,
            force_regenerate=force_regenerate,
        )

    async with GHLClient(
        settings.ghl_access_token,
        settings.ghl_location_id,
        timeout=settings.http_timeout_seconds,
    ) as ghl:
        return await summarize_conversation(
            conversation_id,
            messages,
            settings,
            ghl=ghl,
            opportunity_id=str(opportunity_id),
            force_regenerate=force_regenerate,
        )


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for conversation summaries."""

    def _send_json(self, status_code: int, payload: dict):
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        """Summarize a conversation."""
        try:
            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

            try:
                body = json.loads(raw_body) if raw_body else {}
            except json.JSONDecodeError:
                body = {}

            if (
                not isinstance(body, dict)
                or not body.get("conversationId")
                or not isinstance(body.get("messages"), list)
            ):
                self._send_json(400, {"error": "Missing conversationId or messages"})
                return

            response = asyncio.run(summarize(body))
            self._send_json(200, response)

        except Exception as e:
            _logger.error(f"Error generating summary: {e}", exc_info=True)
            self._send_json(500, {"error": "Failed to generate summary", "message": str(e)})

    def do_GET(self):
        self._send_json(405, {"error": "Method not allowed"})
