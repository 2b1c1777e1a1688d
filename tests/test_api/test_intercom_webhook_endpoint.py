"""Tests for the Intercom webhook Vercel handler."""

import json
import pytest
from unittest.mock import AsyncMock, patch
from api.intercom.webhook import handler
from src.services.webhook_ingress import WebhookResponse
from tests.utils.helpers import call_handler, create_webhook_notification, generate_intercom_signature

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.mark.unit
def test_webhook_post_passes_raw_body_and_headers():
    body = json.dumps(create_webhook_notification("conversation.user.replied", "C1"))
    signature = generate_intercom_signature(WEBHOOK_SECRET, body)

    with patch(
        "src.services.webhook_ingress.handle_webhook_request",
        new_callable=AsyncMock,
        return_value=WebhookResponse(200, {"received": True}),
    ) as mock_handle:
        status_code, response_data = call_handler(
            handler, "POST", "/api/intercom/webhook", body=body,
            headers={"Content-Type": "application/json", "X-Hub-Signature": signature},
        )

    assert status_code == 200
    assert response_data == {"received": True}
    method, headers, raw_body = mock_handle.call_args[0]
    assert method == "POST"
    assert raw_body == body.encode('utf-8')
    assert headers.get("x-hub-signature") == signature


@pytest.mark.unit
def test_webhook_get_is_health_check():
    status_code, response_data = call_handler(handler, "GET", "/api/intercom/webhook")

    assert status_code == 200
    assert response_data["status"] == "ok"
    assert response_data["config"]["hasWebhookSecret"] is True


@pytest.mark.unit
@pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
def test_webhook_other_methods_not_allowed(method):
    status_code, response_data = call_handler(handler, method, "/api/intercom/webhook", body="")

    assert status_code == 405
    assert response_data["error"] == "Method not allowed"


@pytest.mark.unit
def test_webhook_rejects_bad_signature():
    body = json.dumps(create_webhook_notification("conversation.user.replied", "C1"))

    status_code, response_data = call_handler(
        handler, "POST", "/api/intercom/webhook", body=body,
        headers={"X-Hub-Signature": "sha256=" + "0" * 64},
    )

    assert status_code == 401
    assert response_data == {"error": "Invalid signature"}


@pytest.mark.unit
def test_webhook_acknowledges_unhandled_topic():
    body = json.dumps(create_webhook_notification("conversation.admin.closed", "C1"))
    signature = generate_intercom_signature(WEBHOOK_SECRET, body)

    status_code, response_data = call_handler(
        handler, "POST", "/api/intercom/webhook", body=body,
        headers={"X-Hub-Signature": signature},
    )

    assert status_code == 200
    assert response_data["received"] is True
    assert response_data["topic"] == "conversation.admin.closed"


@pytest.mark.unit
def test_webhook_unexpected_error_returns_500():
    with patch(
        "src.services.webhook_ingress.handle_webhook_request",
        new_callable=AsyncMock,
        side_effect=RuntimeError("boom"),
    ):
        status_code, response_data = call_handler(handler, "POST", "/api/intercom/webhook", body="{}")

    assert status_code == 500
    assert response_data["message"] == "boom"
