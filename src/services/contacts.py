"""Find-or-create CRM contacts for Intercom customers."""

import json
import re
from typing import Optional
from src.models.ticket import INTERCOM_TAG
from src.services.ghl_client import GHLClient
from src.services.identity import is_bot_identity
from src.utils.errors import BotIdentityError, GHLAPIError
from src.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

_CONTACT_ID_PATTERN = re.compile(r'"?contactId"?\s*[:=]\s*"?([A-Za-z0-9_-]+)')


def extract_duplicate_contact_id(error: GHLAPIError) -> Optional[str]:
    """Contact ID reported by a "contact already exists" error, if this is one."""
    if error.status_code not in (400, 409, 422) or not error.body:
        return None

    try:
        body = json.loads(error.body)
    except ValueError:
        body = None

    if isinstance(body, dict):
        meta = body.get("meta") or {}
        contact_id = meta.get("contactId") or body.get("contactId")
        if contact_id:
            return str(contact_id)

    if "duplicat" not in error.body.lower() and "contactid" not in error.body.lower():
        return None
    match = _CONTACT_ID_PATTERN.search(error.body)
    return match.group(1) if match else None


async def find_or_create_contact(ghl: GHLClient, email: str, name: str) -> str:
    """Return the CRM contact ID for a customer, creating the contact if needed.

    Raises BotIdentityError for an empty email or the bot identity; the bot
    must never be stored as a CRM contact. API errors propagate.
    """
    if not email or not email.strip():
        raise BotIdentityError("Refusing to resolve a CRM contact without an email")
    if is_bot_identity(name, email):
        raise BotIdentityError(f"Refusing to store bot identity as a CRM contact: {mask_email(email)}")

    email = email.strip()
    masked = mask_email(email)

    candidates = await ghl.search_contacts(email)
    matches = [
        c for c in candidates
        if c.email
        and c.email.strip().lower() == email.lower()
        and not is_bot_identity(c.name, c.email)
    ]

    if matches:
        contact = matches[0]
        if INTERCOM_TAG not in contact.tags:
            await ghl.add_contact_tags(contact.id, [INTERCOM_TAG])
            logger.info("Tagged existing contact", contact_id=contact.id, tag=INTERCOM_TAG)
        logger.info("Found existing contact", contact_id=contact.id, customer_email=masked)
        return contact.id

    logger.info("Creating new contact", customer_email=masked)
    try:
        contact = await ghl.create_contact(email, name, tags=[INTERCOM_TAG])
        logger.info("Created new contact", contact_id=contact.id, customer_email=masked)
        return contact.id
    except GHLAPIError as e:
        duplicate_id = extract_duplicate_contact_id(e)
        if not duplicate_id:
            raise

    # Another request created this contact between our search and create
    logger.warning(
        "Contact already exists, recovering from duplicate-create race",
        contact_id=duplicate_id,
        customer_email=masked
    )
    existing = await ghl.get_contact(duplicate_id)
    if is_bot_identity(existing.name, existing.email):
        raise BotIdentityError(
            f"Duplicate contact {duplicate_id} for {masked} resolved to the bot identity"
        )
    return existing.id
