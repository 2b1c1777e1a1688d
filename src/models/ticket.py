"""GoHighLevel ticket (opportunity) and contact models."""

from enum import Enum
from typing import Any, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# Tickets pipeline and its "Open" stage
GHL_PIPELINE_ID = "p14Is7nXjiqS6MVI0cCk"
GHL_STAGE_OPEN = "3f3482b8-14c4-4de2-8a3c-4a336d01bb6e"

TICKET_SOURCE = "Intercom"
INTERCOM_TAG = "intercom"


class TicketField(str, Enum):
    """Custom field IDs on ticket opportunities."""
    INTERCOM_CONVERSATION_ID = "gk2kXQuactrb8OdIJ3El"
    TICKET_SOURCE = "ZfA3rPJQiSU8wRuEFWYP"
    CUSTOMER_EMAIL = "tpihNBgeALeCppnY3ir5"
    # Mirrored owner fields; both always carry the same agent name
    TICKET_OWNER = "VYv1QpVAAgns13227Pii"
    INTERCOM_AGENT = "TIkNFiv8JUDvj0FMVF0E"


# Key of the opportunity custom field holding the cached AI summary
SUMMARY_CACHE_FIELD_KEY = "opportunity.ai_summary_cache"


class CustomField(BaseModel):
    """Custom field value; GHL reads and writes it under different names."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    key: Optional[str] = None
    field_value: Any = Field(
        None,
        validation_alias=AliasChoices("field_value", "fieldValueString", "value", "fieldValue"),
        serialization_alias="field_value",
    )


def owner_fields(owner: str) -> list[CustomField]:
    """Both ticket owner fields set to the same value."""
    return [
        CustomField(id=TicketField.TICKET_OWNER.value, field_value=owner),
        CustomField(id=TicketField.INTERCOM_AGENT.value, field_value=owner),
    ]


class Ticket(BaseModel):
    """Ticket opportunity in the tickets pipeline."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    location_id: Optional[str] = Field(None, alias="locationId")
    name: str
    pipeline_id: str = Field(GHL_PIPELINE_ID, alias="pipelineId")
    pipeline_stage_id: str = Field(GHL_STAGE_OPEN, alias="pipelineStageId")
    contact_id: Optional[str] = Field(None, alias="contactId")
    status: str = "open"
    custom_fields: list[CustomField] = Field(default_factory=list, alias="customFields")

    def custom_field(self, field: TicketField) -> Optional[str]:
        for custom in self.custom_fields:
            if custom.id == field.value and custom.field_value is not None:
                return str(custom.field_value)
        return None

    @property
    def conversation_id(self) -> Optional[str]:
        return self.custom_field(TicketField.INTERCOM_CONVERSATION_ID)

    def to_create_payload(self) -> dict:
        """Body for POST /opportunities/."""
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})
        payload["customFields"] = [
            {"id": f.id, "field_value": f.field_value}
            for f in self.custom_fields
        ]
        return payload


class CRMContact(BaseModel):
    """GoHighLevel contact."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = Field(None, validation_alias=AliasChoices("name", "contactName"))
    tags: list[str] = Field(default_factory=list)


class TicketCreationResult(BaseModel):
    """Outcome of materializing a ticket from a conversation."""
    status: Literal["created", "already_exists", "skipped_no_customer"]
    conversation_id: str
    ticket_id: Optional[str] = None
    ticket_number: Optional[str] = None
    ticket_name: Optional[str] = None
    contact_id: Optional[str] = None
    owner: Optional[str] = None
    counter_degraded: bool = False


class AssignmentSyncResult(BaseModel):
    """Outcome of propagating an assignment to the CRM."""
    status: Literal["updated", "not_found"]
    conversation_id: str
    owner: str
    ticket_id: Optional[str] = None
