"""Health check: reports which integrations are configured, never their values."""

from http.server import BaseHTTPRequestHandler
import json

from src.config import Settings, TICKET_SYNC_FIELDS
from src.utils.logging_config import APP_NAME


def health_payload(settings: Settings) -> dict:
    return {
        "status": "ok",
        "service": APP_NAME,
        "ticketSyncReady": not settings.missing(*TICKET_SYNC_FIELDS),
        "config": settings.config_flags(),
    }


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the health check."""

    def do_GET(self):
        body = json.dumps(health_payload(Settings.from_env())).encode('utf-8')
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(body)

    def do_POST(self):
        self.do_GET()
