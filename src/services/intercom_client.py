"""Intercom REST API client."""

import time
from typing import Any, Optional
from src.models.intercom import Contact, Conversation
from src.services.http_client import APIClient
from src.utils.errors import IntercomAPIError


class IntercomClient(APIClient):
    """Reads conversations/contacts and performs admin actions on conversations."""

    base_url = "https://api.intercom.io"
    error_class = IntercomAPIError
    API_VERSION = "2.11"

    def default_headers(self, access_token: str) -> dict[str, str]:
        headers = super().default_headers(access_token)
        headers["Intercom-Version"] = self.API_VERSION
        return headers

    async def get_conversation(self, conversation_id: str) -> Conversation:
        """Fetch the authoritative conversation snapshot."""
        data = await self.request("GET", f"/conversations/{conversation_id}")
        return Conversation.model_validate(data)

    async def get_conversation_raw(self, conversation_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/conversations/{conversation_id}")

    async def get_contact(self, contact_id: str) -> Contact:
        data = await self.request("GET", f"/contacts/{contact_id}")
        return Contact.model_validate(data)

    async def assign_conversation(self, conversation_id: str, admin_id: str, assignee_id: str) -> dict[str, Any]:
        """Assign a conversation to an admin, acting as admin_id."""
        return await self.request(
            "POST",
            f"/conversations/{conversation_id}/parts",
            json={
                "message_type": "assignment",
                "type": "admin",
                "admin_id": admin_id,
                "assignee_id": assignee_id,
            },
        )

    async def reply_to_conversation(
        self,
        conversation_id: str,
        admin_id: str,
        body: str,
        message_type: str = "comment",
    ) -> dict[str, Any]:
        """Post an admin reply; message_type "note" keeps it internal."""
        return await self.request(
            "POST",
            f"/conversations/{conversation_id}/reply",
            json={
                "message_type": message_type,
                "type": "admin",
                "admin_id": admin_id,
                "body": body,
            },
        )

    async def close_conversation(self, conversation_id: str, admin_id: str) -> dict[str, Any]:
        return await self.request(
            "POST",
            f"/conversations/{conversation_id}/parts",
            json={"message_type": "close", "type": "admin", "admin_id": admin_id},
        )

    async def snooze_conversation(
        self,
        conversation_id: str,
        admin_id: str,
        snoozed_until: Optional[int] = None,
    ) -> dict[str, Any]:
        """Snooze a conversation; defaults to 24 hours from now."""
        if snoozed_until is None:
            snoozed_until = int(time.time()) + 24 * 3600
        return await self.request(
            "POST",
            f"/conversations/{conversation_id}/parts",
            json={
                "message_type": "snoozed",
                "type": "admin",
                "admin_id": admin_id,
                "snoozed_until": snoozed_until,
            },
        )
