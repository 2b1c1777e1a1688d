"""Intercom payload models (webhook notifications, conversations, contacts)."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class IntercomModel(BaseModel):
    """Intercom sends some IDs as integers; keep them as strings."""
    model_config = ConfigDict(coerce_numbers_to_str=True)


class Author(IntercomModel):
    """Author of a conversation source or part (user, lead, admin, bot)."""
    id: Optional[str] = None
    type: Optional[str] = Field(None, description="user, lead, admin, bot, team")
    name: Optional[str] = None
    email: Optional[str] = None


class ConversationSource(IntercomModel):
    """Message that started the conversation."""
    author: Optional[Author] = None
    body: Optional[str] = None
    created_at: Optional[int] = None


class ContactRef(IntercomModel):
    """Contact reference embedded in a conversation (id only, usually)."""
    id: str
    type: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class ContactList(IntercomModel):
    contacts: list[ContactRef] = Field(default_factory=list)


class Conversation(IntercomModel):
    """Conversation snapshot as returned by GET /conversations/:id."""
    id: str
    state: Optional[str] = None
    admin_assignee_id: Optional[str] = Field(None, description="Assigned admin, null when unassigned")
    team_assignee_id: Optional[str] = None
    source: Optional[ConversationSource] = None
    contacts: Optional[ContactList] = None
    conversation_parts: Optional[dict[str, Any]] = None
    user: Optional[Author] = Field(None, description="Legacy customer object on older payloads")

    @property
    def first_contact(self) -> Optional[ContactRef]:
        if self.contacts and self.contacts.contacts:
            return self.contacts.contacts[0]
        return None


class Contact(IntercomModel):
    """Full contact record from GET /contacts/:id."""
    id: str
    type: Optional[str] = None
    role: Optional[str] = Field(None, description="user or lead")
    name: Optional[str] = None
    email: Optional[str] = None


class Customer(BaseModel):
    """Resolved end customer of a conversation."""
    name: str
    email: str


class WebhookData(BaseModel):
    item: Optional[dict[str, Any]] = None


class WebhookNotification(IntercomModel):
    """Envelope Intercom posts to the webhook endpoint."""
    type: Optional[str] = Field(None, description="Always notification_event")
    id: Optional[str] = Field(None, description="Notification ID, stable across redeliveries")
    topic: Optional[str] = None
    delivery_attempts: Optional[int] = None
    data: WebhookData = Field(default_factory=WebhookData)

    @property
    def conversation_id(self) -> Optional[str]:
        item = self.data.item or {}
        item_id = item.get("id")
        return str(item_id) if item_id not in (None, "") else None


class ConversationActionRequest(IntercomModel):
    """Body of POST /api/intercom/actions."""
    conversationId: str
    action: str = Field(..., description="assign, close or snooze")
    agentName: Optional[str] = None
    intercomAdminId: Optional[str] = None
    snoozedUntil: Optional[int] = Field(None, description="Unix seconds; defaults to 24h from now")


class ConversationReplyRequest(IntercomModel):
    """Body of POST /api/intercom/reply."""
    conversationId: str
    message: str
    isNote: bool = Field(False, description="Internal note instead of a customer-visible comment")
    agentName: Optional[str] = None
    intercomAdminId: Optional[str] = None
