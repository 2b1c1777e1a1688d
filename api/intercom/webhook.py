"""Intercom webhook endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
import json
import asyncio
import logging

from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
_logger = logging.getLogger(__name__)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for Intercom webhooks."""

    def _send_json(self, status_code: int, payload: dict):
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def _handle(self, method: str):
        try:
            from src.services.webhook_ingress import handle_webhook_request

            content_length = int(self.headers.get('Content-Length', 0))
            raw_body = self.rfile.read(content_length) if content_length > 0 else b""

            response = asyncio.run(handle_webhook_request(method, self.headers, raw_body))
            self._send_json(response.status_code, response.body)
        except Exception as e:
            _logger.error(f"Error handling Intercom webhook: {e}", exc_info=True)
            self._send_json(500, {"error": "Internal server error", "message": str(e)})

    def do_POST(self):
        """Handle webhook delivery from Intercom."""
        self._handle("POST")

    def do_GET(self):
        """Health check with configuration presence flags."""
        self._handle("GET")

    def do_PUT(self):
        self._handle("PUT")

    def do_DELETE(self):
        self._handle("DELETE")

    def do_PATCH(self):
        self._handle("PATCH")
