"""Test data factories using Faker."""

from faker import Faker
from typing import Optional
from src.models.ticket import TicketField

fake = Faker()

BOT_NAME = "Fin"
BOT_EMAIL = "operator+123@intercom.io"


def create_conversation_data(
    conversation_id: Optional[str] = None,
    admin_assignee_id=None,
    contact_id: Optional[str] = None,
    author: Optional[dict] = None,
    user: Optional[dict] = None,
) -> dict:
    """Create an Intercom conversation snapshot."""
    data = {
        "type": "conversation",
        "id": conversation_id or str(fake.random_int(min=100000, max=999999)),
        "state": "open",
        "admin_assignee_id": admin_assignee_id,
        "team_assignee_id": None,
        "source": {
            "type": "conversation",
            "body": f"<p>{fake.sentence()}</p>",
            "author": author or {"type": "bot", "id": "bot_1", "name": BOT_NAME, "email": BOT_EMAIL},
            "created_at": 1733745600,
        },
        "contacts": {
            "type": "contact.list",
            "contacts": [{"type": "contact", "id": contact_id}] if contact_id else [],
        },
    }
    if user is not None:
        data["user"] = user
    return data


def create_contact_data(
    contact_id: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> dict:
    """Create an Intercom contact record."""
    return {
        "type": "contact",
        "id": contact_id or fake.uuid4(),
        "role": "user",
        "name": name if name is not None else fake.name(),
        "email": email if email is not None else fake.email(),
    }


def create_crm_contact_data(
    contact_id: Optional[str] = None,
    email: Optional[str] = None,
    name: Optional[str] = None,
    tags: Optional[list] = None,
) -> dict:
    """Create a GoHighLevel contact."""
    return {
        "id": contact_id or fake.lexify("????????????????????"),
        "email": email or fake.email(),
        "contactName": name or fake.name(),
        "tags": tags if tags is not None else [],
    }


def create_opportunity_data(
    conversation_id: str,
    opportunity_id: Optional[str] = None,
    owner: str = "Unassigned",
) -> dict:
    """Create a GoHighLevel ticket opportunity as returned by search."""
    return {
        "id": opportunity_id or fake.lexify("????????????????????"),
        "name": f"[Intercom] #{fake.random_int(min=1, max=99999):05d} - {fake.first_name()}",
        "pipelineId": "p14Is7nXjiqS6MVI0cCk",
        "pipelineStageId": "3f3482b8-14c4-4de2-8a3c-4a336d01bb6e",
        "status": "open",
        "customFields": [
            {"id": TicketField.INTERCOM_CONVERSATION_ID.value, "fieldValueString": conversation_id},
            {"id": TicketField.TICKET_OWNER.value, "fieldValueString": owner},
            {"id": TicketField.INTERCOM_AGENT.value, "fieldValueString": owner},
        ],
    }
