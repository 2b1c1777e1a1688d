"""Customer identity resolution for Intercom conversations.

Intercom's automated agent ("Fin") shows up as the contact, the source
author or the legacy user depending on how a conversation started, and no
single flag marks it as a bot. Every extraction point below therefore runs
the same ``is_bot_identity`` check before accepting a candidate.
"""

from typing import Optional
from src.models.intercom import Conversation, Customer
from src.services.intercom_client import IntercomClient
from src.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

BOT_NAME = "Fin"
BOT_EMAIL_MARKERS = ("operator+", "@intercom.io")
DEFAULT_CUSTOMER_NAME = "Intercom Customer"


def is_bot_identity(name: Optional[str] = None, email: Optional[str] = None) -> bool:
    """True for the Intercom operator/bot identity."""
    if name and name.strip() == BOT_NAME:
        return True
    if email:
        lowered = email.lower()
        return any(marker in lowered for marker in BOT_EMAIL_MARKERS)
    return False


def _accept(name: Optional[str], email: Optional[str], source: str) -> Optional[Customer]:
    """Customer from a candidate identity, or None if it is unusable."""
    email = (email or "").strip()
    if not email:
        logger.debug("Candidate identity has no email", identity_source=source)
        return None
    if is_bot_identity(name, email):
        logger.info(
            "Skipping bot identity",
            identity_source=source,
            candidate_email=mask_email(email)
        )
        return None
    return Customer(name=(name or "").strip() or DEFAULT_CUSTOMER_NAME, email=email)


async def resolve_customer(conversation: Conversation, intercom: IntercomClient) -> Optional[Customer]:
    """Find the real end customer of a conversation, first valid match wins.

    1. First attached contact, fetched in full from Intercom.
    2. Source author when it is a user.
    3. Legacy ``user`` object.

    Returns None when only the bot (or nobody usable) is present.
    """
    contact_ref = conversation.first_contact
    if contact_ref is not None:
        contact = await intercom.get_contact(contact_ref.id)
        customer = _accept(contact.name, contact.email, "contact")
        if customer:
            return customer

    author = conversation.source.author if conversation.source else None
    if author is not None and author.type == "user":
        customer = _accept(author.name, author.email, "source_author")
        if customer:
            return customer

    if conversation.user is not None:
        customer = _accept(conversation.user.name, conversation.user.email, "legacy_user")
        if customer:
            return customer

    logger.warning(
        "No valid customer identity found for conversation",
        conversation_id=conversation.id,
        has_contact=contact_ref is not None,
        author_type=author.type if author else None,
        has_legacy_user=conversation.user is not None
    )
    return None
