"""Test helper functions."""

import io
import json
import hmac
import hashlib
from typing import Any, Dict, Optional, Union


def generate_intercom_signature(secret: str, body: Union[str, bytes], algorithm: str = "sha256") -> str:
    """Generate a valid X-Hub-Signature header value for testing."""
    if isinstance(body, str):
        body = body.encode('utf-8')
    digest = hmac.new(
        secret.encode('utf-8'),
        body,
        getattr(hashlib, algorithm)
    ).hexdigest()
    return f"{algorithm}={digest}"


def create_webhook_notification(
    topic: str = "conversation.user.created",
    conversation_id: str = "C1",
    notification_id: Optional[str] = "notif_1",
    item: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create an Intercom webhook notification payload for testing."""
    if item is None:
        item = {"type": "conversation", "id": conversation_id}
    return {
        "type": "notification_event",
        "id": notification_id,
        "topic": topic,
        "app_id": "abc123",
        "delivery_attempts": 1,
        "created_at": 1733745600,
        "data": {"type": "notification_event_data", "item": item},
    }


class MockSocket:
    """Socket stand-in for driving BaseHTTPRequestHandler subclasses."""

    def __init__(self, raw_request: bytes):
        self._rfile = io.BytesIO(raw_request)
        self.sent = bytearray()

    def makefile(self, mode, *args, **kwargs):
        return self._rfile

    def sendall(self, data):
        self.sent.extend(data)


def call_handler(
    handler_class,
    method: str = "POST",
    path: str = "/",
    body: Union[Dict[str, Any], str, bytes, None] = None,
    headers: Optional[Dict[str, str]] = None,
):
    """
    Run a Vercel handler class against an in-memory request.

    Returns (status_code, parsed JSON body).
    """
    if isinstance(body, dict):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode('utf-8')
    body = body or b""

    lines = [f"{method} {path} HTTP/1.0", f"Content-Length: {len(body)}"]
    for key, value in (headers or {}).items():
        lines.append(f"{key}: {value}")
    raw_request = ("\r\n".join(lines) + "\r\n\r\n").encode('utf-8') + body

    sock = MockSocket(raw_request)
    handler_class(sock, ("127.0.0.1", 0), None)

    head, _, payload = bytes(sock.sent).partition(b"\r\n\r\n")
    status_code = int(head.split(b" ")[1])
    return status_code, json.loads(payload) if payload else None
