"""Create CRM tickets from new Intercom conversations.

The steps run strictly in order, each feeding the next:

    conversation -> existing ticket check -> customer -> ticket number
        -> owner -> CRM contact -> opportunity -> audit row

Nothing is rolled back when a later step fails. A number allocated before
a failed contact or opportunity write is simply spent; the existing ticket
check makes the redelivered webhook safe to process again.
"""

from src.models.ticket import (
    TICKET_SOURCE,
    CustomField,
    Ticket,
    TicketCreationResult,
    TicketField,
    owner_fields,
)
from src.services.assignees import map_assignee
from src.services.assignment_sync import find_ticket_by_conversation
from src.services.contacts import find_or_create_contact
from src.services.identity import resolve_customer
from src.services.ticket_counter import is_fallback_number
from src.utils.logging import get_structured_logger, log_timing, mask_email

logger = get_structured_logger(__name__)

TICKET_NAME_PREFIX = "[Intercom]"


def ticket_name(ticket_number: str, customer_name: str) -> str:
    return f"{TICKET_NAME_PREFIX} #{ticket_number} - {customer_name}"


def build_ticket(
    conversation_id: str,
    ticket_number: str,
    customer_name: str,
    customer_email: str,
    contact_id: str,
    owner: str,
) -> Ticket:
    """Opportunity for a new ticket in the "Open" stage of the tickets pipeline."""
    return Ticket(
        name=ticket_name(ticket_number, customer_name),
        contact_id=contact_id,
        custom_fields=[
            CustomField(id=TicketField.INTERCOM_CONVERSATION_ID.value, field_value=str(conversation_id)),
            CustomField(id=TicketField.TICKET_SOURCE.value, field_value=TICKET_SOURCE),
            CustomField(id=TicketField.CUSTOMER_EMAIL.value, field_value=customer_email),
            *owner_fields(owner),
        ],
    )


async def create_ticket_from_conversation(conversation_id: str, services) -> TicketCreationResult:
    """Materialize a ticket for a conversation.

    Args:
        conversation_id: Intercom conversation ID from the webhook event
        services: TicketServices bundle (intercom, ghl, counter, ticket_log)

    Returns:
        TicketCreationResult; ``skipped_no_customer`` and ``already_exists``
        mean nothing was written.

    Raises:
        UpstreamAPIError, BotIdentityError, CounterStoreError from the
        individual steps; the caller decides how to report them.
    """
    conversation_id = str(conversation_id)

    with log_timing("create_ticket_from_conversation", logger, conversation_id=conversation_id):
        conversation = await services.intercom.get_conversation(conversation_id)

        existing = await find_ticket_by_conversation(services.ghl, conversation_id)
        if existing is not None:
            logger.info(
                "Ticket already exists for conversation, skipping",
                conversation_id=conversation_id,
                ticket_id=existing.id
            )
            return TicketCreationResult(
                status="already_exists",
                conversation_id=conversation_id,
                ticket_id=existing.id,
                ticket_name=existing.name,
            )

        customer = await resolve_customer(conversation, services.intercom)
        if customer is None:
            logger.warning(
                "No valid customer for conversation, not creating ticket",
                conversation_id=conversation_id
            )
            return TicketCreationResult(status="skipped_no_customer", conversation_id=conversation_id)

        ticket_number = await services.counter.next_ticket_number()
        owner = map_assignee(conversation.admin_assignee_id)
        contact_id = await find_or_create_contact(services.ghl, customer.email, customer.name)

        ticket = build_ticket(
            conversation_id,
            ticket_number,
            customer.name,
            customer.email,
            contact_id,
            owner,
        )
        created = await services.ghl.create_opportunity(ticket)

        result = TicketCreationResult(
            status="created",
            conversation_id=conversation_id,
            ticket_id=created.id,
            ticket_number=ticket_number,
            ticket_name=ticket.name,
            contact_id=contact_id,
            owner=owner,
            counter_degraded=is_fallback_number(ticket_number),
        )
        logger.info(
            "Created ticket from conversation",
            conversation_id=conversation_id,
            ticket_id=created.id,
            ticket_number=ticket_number,
            contact_id=contact_id,
            owner=owner,
            customer_email=mask_email(customer.email),
            counter_degraded=result.counter_degraded
        )

        await services.ticket_log.record_ticket_created(result, customer.name, customer.email)
        return result
