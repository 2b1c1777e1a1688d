"""Propagate Intercom assignment changes to the ticket owner fields."""

from typing import Optional
from src.models.ticket import AssignmentSyncResult, Ticket, owner_fields
from src.services.assignees import map_assignee
from src.services.ghl_client import GHLClient
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


async def find_ticket_by_conversation(ghl: GHLClient, conversation_id: str) -> Optional[Ticket]:
    """Scan the tickets pipeline for the ticket linked to a conversation.

    There is no indexed lookup on the custom field, so this walks every page.
    """
    async for ticket in ghl.iter_pipeline_opportunities():
        if ticket.conversation_id == str(conversation_id):
            return ticket
    return None


async def apply_owner(ghl: GHLClient, ticket_id: str, owner: str) -> None:
    """Write both mirrored owner fields in one update."""
    await ghl.update_opportunity_fields(ticket_id, owner_fields(owner))


async def sync_assignment(conversation_id: str, services) -> AssignmentSyncResult:
    """Copy the conversation's current admin assignee onto its ticket.

    The webhook payload is not trusted for the assignee: the conversation is
    re-fetched first. Search/update errors propagate to the caller.
    """
    conversation = await services.intercom.get_conversation(conversation_id)
    owner = map_assignee(conversation.admin_assignee_id)

    ticket = await find_ticket_by_conversation(services.ghl, conversation_id)
    if ticket is None or not ticket.id:
        logger.info(
            "No ticket found for reassigned conversation",
            conversation_id=conversation_id,
            owner=owner
        )
        return AssignmentSyncResult(status="not_found", conversation_id=conversation_id, owner=owner)

    await apply_owner(services.ghl, ticket.id, owner)
    logger.info(
        "Updated ticket owner",
        conversation_id=conversation_id,
        ticket_id=ticket.id,
        admin_assignee_id=conversation.admin_assignee_id,
        owner=owner
    )
    return AssignmentSyncResult(
        status="updated",
        conversation_id=conversation_id,
        owner=owner,
        ticket_id=ticket.id,
    )
