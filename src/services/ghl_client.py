"""GoHighLevel (LeadConnector) REST API client."""

from typing import Any, AsyncIterator, Optional
import httpx
from src.models.ticket import CRMContact, CustomField, GHL_PIPELINE_ID, Ticket
from src.services.http_client import APIClient
from src.utils.errors import GHLAPIError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Opportunity search page size and a hard stop for runaway pagination
SEARCH_PAGE_LIMIT = 100
SEARCH_MAX_PAGES = 50


class GHLClient(APIClient):
    """Contacts and opportunities for one location."""

    base_url = "https://services.leadconnectorhq.com"
    error_class = GHLAPIError
    API_VERSION = "2021-07-28"

    def __init__(
        self,
        access_token: str,
        location_id: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(access_token, timeout=timeout, transport=transport)
        self.location_id = location_id

    def default_headers(self, access_token: str) -> dict[str, str]:
        headers = super().default_headers(access_token)
        headers["Version"] = self.API_VERSION
        return headers

    # Contacts

    async def search_contacts(self, email: str) -> list[CRMContact]:
        data = await self.request(
            "GET",
            "/contacts/",
            params={"locationId": self.location_id, "query": email, "limit": 20},
        )
        return [CRMContact.model_validate(c) for c in data.get("contacts") or []]

    async def get_contact(self, contact_id: str) -> CRMContact:
        data = await self.request("GET", f"/contacts/{contact_id}")
        return CRMContact.model_validate(data.get("contact") or data)

    async def create_contact(self, email: str, name: str, tags: list[str]) -> CRMContact:
        data = await self.request(
            "POST",
            "/contacts/",
            json={
                "locationId": self.location_id,
                "email": email,
                "name": name,
                "tags": tags,
                "source": "Intercom",
            },
        )
        return CRMContact.model_validate(data.get("contact") or data)

    async def add_contact_tags(self, contact_id: str, tags: list[str]) -> None:
        await self.request("POST", f"/contacts/{contact_id}/tags", json={"tags": tags})

    # Opportunities

    async def create_opportunity(self, ticket: Ticket) -> Ticket:
        payload = ticket.to_create_payload()
        payload["locationId"] = self.location_id
        data = await self.request("POST", "/opportunities/", json=payload)
        return Ticket.model_validate(data.get("opportunity") or data)

    async def get_opportunity(self, opportunity_id: str) -> Ticket:
        data = await self.request("GET", f"/opportunities/{opportunity_id}")
        return Ticket.model_validate(data.get("opportunity") or data)

    async def update_opportunity_fields(self, opportunity_id: str, fields: list[CustomField]) -> dict[str, Any]:
        """Write custom fields on one opportunity in a single PUT."""
        custom_fields = []
        for field in fields:
            entry = {"field_value": field.field_value}
            if field.id:
                entry["id"] = field.id
            if field.key:
                entry["key"] = field.key
            custom_fields.append(entry)
        return await self.request(
            "PUT",
            f"/opportunities/{opportunity_id}",
            json={"customFields": custom_fields},
        )

    async def iter_pipeline_opportunities(self, pipeline_id: str = GHL_PIPELINE_ID) -> AsyncIterator[Ticket]:
        """Yield every opportunity in the pipeline, following cursor pagination."""
        params: dict[str, Any] = {
            "location_id": self.location_id,
            "pipeline_id": pipeline_id,
            "limit": SEARCH_PAGE_LIMIT,
        }
        for _ in range(SEARCH_MAX_PAGES):
            data = await self.request("GET", "/opportunities/search", params=params)
            opportunities = data.get("opportunities") or []
            for opportunity in opportunities:
                yield Ticket.model_validate(opportunity)

            meta = data.get("meta") or {}
            if len(opportunities) < SEARCH_PAGE_LIMIT or not meta.get("startAfterId"):
                return
            params["startAfter"] = meta.get("startAfter")
            params["startAfterId"] = meta.get("startAfterId")

        logger.warning(
            "Opportunity search stopped at page limit",
            pipeline_id=pipeline_id,
            max_pages=SEARCH_MAX_PAGES
        )
