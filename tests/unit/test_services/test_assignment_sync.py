"""Tests for propagating Intercom assignments to ticket owner fields."""

import pytest
from src.models.intercom import Conversation
from src.models.ticket import Ticket
from src.services.assignment_sync import find_ticket_by_conversation, sync_assignment
from src.utils.errors import GHLAPIError
from tests.utils.assertions import assert_owner_fields_in_sync
from tests.utils.factories import create_conversation_data, create_opportunity_data


def pipeline(*conversation_ids):
    return [
        Ticket.model_validate(create_opportunity_data(cid, opportunity_id=f"opp_{cid}"))
        for cid in conversation_ids
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_find_ticket_by_conversation(mock_ghl):
    mock_ghl.pipeline = pipeline("C1", "C2", "C3")

    ticket = await find_ticket_by_conversation(mock_ghl, "C2")

    assert ticket.id == "opp_C2"
    assert await find_ticket_by_conversation(mock_ghl, "C9") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_find_ticket_by_conversation_matches_numeric_ids(mock_ghl):
    mock_ghl.pipeline = pipeline("12345")

    ticket = await find_ticket_by_conversation(mock_ghl, 12345)

    assert ticket.id == "opp_12345"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_assignment_reassignment(services, mock_intercom, mock_ghl):
    mock_ghl.pipeline = pipeline("C1", "C2")
    mock_intercom.get_conversation.return_value = Conversation.model_validate(
        create_conversation_data(conversation_id="C2", admin_assignee_id="4310906")
    )

    result = await sync_assignment("C2", services)

    assert result.status == "updated"
    assert result.owner == "Chloe"
    assert result.ticket_id == "opp_C2"
    mock_ghl.update_opportunity_fields.assert_awaited_once()
    ticket_id, fields = mock_ghl.update_opportunity_fields.await_args.args
    assert ticket_id == "opp_C2"
    assert_owner_fields_in_sync(fields, "Chloe")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_assignment_unknown_admin(services, mock_intercom, mock_ghl):
    mock_ghl.pipeline = pipeline("C2")
    mock_intercom.get_conversation.return_value = Conversation.model_validate(
        create_conversation_data(conversation_id="C2", admin_assignee_id="999999")
    )

    result = await sync_assignment("C2", services)

    assert result.owner == "Unknown"
    _, fields = mock_ghl.update_opportunity_fields.await_args.args
    assert_owner_fields_in_sync(fields, "Unknown")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_assignment_unassigned(services, mock_intercom, mock_ghl):
    mock_ghl.pipeline = pipeline("C2")
    mock_intercom.get_conversation.return_value = Conversation.model_validate(
        create_conversation_data(conversation_id="C2", admin_assignee_id=None)
    )

    result = await sync_assignment("C2", services)

    assert result.owner == "Unassigned"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_assignment_no_ticket_is_noop(services, mock_intercom, mock_ghl):
    mock_ghl.pipeline = pipeline("C1")
    mock_intercom.get_conversation.return_value = Conversation.model_validate(
        create_conversation_data(conversation_id="C5", admin_assignee_id="4310906")
    )

    result = await sync_assignment("C5", services)

    assert result.status == "not_found"
    assert result.owner == "Chloe"
    mock_ghl.update_opportunity_fields.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sync_assignment_propagates_update_error(services, mock_intercom, mock_ghl):
    mock_ghl.pipeline = pipeline("C2")
    mock_intercom.get_conversation.return_value = Conversation.model_validate(
        create_conversation_data(conversation_id="C2", admin_assignee_id="4310906")
    )
    mock_ghl.update_opportunity_fields.side_effect = GHLAPIError("server error", status_code=502)

    with pytest.raises(GHLAPIError):
        await sync_assignment("C2", services)
