"""Agent actions on Intercom conversations (assign, close, snooze, reply)."""

from types import SimpleNamespace
from typing import Any, Optional, Union
from src.config import Settings
from src.models.intercom import ConversationActionRequest, ConversationReplyRequest
from src.services.assignees import admin_id_for
from src.services.assignment_sync import sync_assignment
from src.services.ghl_client import GHLClient
from src.services.intercom_client import IntercomClient
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ACTIONS = ("assign", "close", "snooze")


class InvalidActionError(ValueError):
    """Action request cannot be performed as given."""
    pass


def resolve_admin_id(
    request: Union[ConversationActionRequest, ConversationReplyRequest],
    settings: Settings,
) -> Optional[str]:
    """Explicit admin ID, then the agent's mapped ID, then the configured default."""
    return (
        request.intercomAdminId
        or admin_id_for(request.agentName)
        or settings.intercom_admin_id
    )


async def perform_action(
    request: ConversationActionRequest,
    settings: Settings,
    intercom: IntercomClient,
    ghl: Optional[GHLClient] = None,
) -> dict[str, Any]:
    """
    Run one conversation action.

    For ``assign`` the ticket owner is synced afterwards when a CRM client
    is given; a CRM failure there is logged and does not undo the assignment.

    Raises:
        InvalidActionError: Unknown action or no admin ID available
        IntercomAPIError: Intercom rejected the action
    """
    action = request.action.lower()
    if action not in ACTIONS:
        raise InvalidActionError(f"Invalid action: {request.action}")

    admin_id = resolve_admin_id(request, settings)
    if not admin_id:
        raise InvalidActionError("No Intercom admin ID for this action")

    conversation_id = request.conversationId
    logger.info(
        "Performing conversation action",
        action=action,
        conversation_id=conversation_id,
        agent_name=request.agentName,
        admin_id=admin_id
    )

    if action == "close":
        return await intercom.close_conversation(conversation_id, admin_id)
    if action == "snooze":
        return await intercom.snooze_conversation(conversation_id, admin_id, request.snoozedUntil)

    acting_admin_id = settings.intercom_admin_id or admin_id
    data = await intercom.assign_conversation(conversation_id, acting_admin_id, admin_id)

    if ghl is not None:
        try:
            await sync_assignment(conversation_id, SimpleNamespace(intercom=intercom, ghl=ghl))
        except Exception as e:
            logger.error(
                "Ticket owner sync failed after assignment",
                exc_info=True,
                conversation_id=conversation_id,
                error=str(e)
            )
    return data


async def send_reply(
    request: ConversationReplyRequest,
    settings: Settings,
    intercom: IntercomClient,
) -> dict[str, Any]:
    """Reply to a conversation as the resolved admin (comment, or note when isNote)."""
    admin_id = resolve_admin_id(request, settings)
    if not admin_id:
        raise InvalidActionError("No Intercom admin ID for this reply")

    message_type = "note" if request.isNote else "comment"
    logger.info(
        "Sending conversation reply",
        conversation_id=request.conversationId,
        message_type=message_type,
        agent_name=request.agentName,
        admin_id=admin_id
    )
    return await intercom.reply_to_conversation(
        request.conversationId,
        admin_id,
        request.message,
        message_type=message_type,
    )
