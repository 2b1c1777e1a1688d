"""Tests for the manual ticket creation endpoint."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from api.intercom.conversation import handler
from src.models.ticket import TicketCreationResult
from src.utils.errors import ConfigurationError
from tests.utils.helpers import call_handler


def services_context():
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=MagicMock())
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.mark.unit
def test_create_ticket_requires_conversation_id():
    status_code, response_data = call_handler(handler, "POST", "/api/intercom/conversation", body={})

    assert status_code == 400
    assert response_data["error"] == "conversationId is required"


@pytest.mark.unit
def test_create_ticket_success():
    result = TicketCreationResult(
        status="created",
        conversation_id="215467",
        ticket_id="opp_1",
        ticket_number="00042",
    )

    with patch(
        "src.services.ticket_services.TicketServices.from_settings",
        return_value=services_context(),
    ), patch(
        "src.services.ticket_materializer.create_ticket_from_conversation",
        new_callable=AsyncMock,
        return_value=result,
    ) as mock_create:
        status_code, response_data = call_handler(
            handler, "POST", "/api/intercom/conversation", body={"conversationId": 215467}
        )

    assert status_code == 200
    assert response_data == {
        "success": True,
        "status": "created",
        "ticketId": "opp_1",
        "ticketNumber": "00042",
    }
    assert mock_create.call_args[0][0] == "215467"


@pytest.mark.unit
def test_create_ticket_skipped_is_not_success():
    response = {"success": False, "status": "skipped_no_customer", "ticketId": None, "ticketNumber": None}

    with patch("api.intercom.conversation.create_ticket", new_callable=AsyncMock, return_value=response):
        status_code, response_data = call_handler(
            handler, "POST", "/api/intercom/conversation", body={"conversationId": "C1"}
        )

    assert status_code == 200
    assert response_data["success"] is False


@pytest.mark.unit
def test_create_ticket_configuration_error():
    with patch(
        "api.intercom.conversation.create_ticket",
        new_callable=AsyncMock,
        side_effect=ConfigurationError("Missing required configuration: GOOGLE_SHEET_ID"),
    ):
        status_code, response_data = call_handler(
            handler, "POST", "/api/intercom/conversation", body={"conversationId": "C1"}
        )

    assert status_code == 500
    assert response_data["error"] == "Configuration error"
    assert "GOOGLE_SHEET_ID" in response_data["message"]


@pytest.mark.unit
def test_get_conversation_by_query():
    raw = {"type": "conversation", "id": "C1", "state": "open"}

    with patch("api.intercom.conversation.fetch_conversation", new_callable=AsyncMock, return_value=raw) as mock_fetch:
        status_code, response_data = call_handler(handler, "GET", "/api/intercom/conversation?conversationId=C1")

    assert status_code == 200
    assert response_data == raw
    mock_fetch.assert_awaited_once_with("C1")


@pytest.mark.unit
def test_get_conversation_requires_query():
    status_code, response_data = call_handler(handler, "GET", "/api/intercom/conversation")

    assert status_code == 400
