"""Intercom webhook delivery deduplication using the Supabase webhook_deliveries table."""

import hashlib
import json
import logging
from typing import Optional
from src.config import Settings
from src.models.intercom import WebhookNotification
from src.services.supabase_client import insert_webhook_delivery, webhook_delivery_exists

logger = logging.getLogger(__name__)


def generate_delivery_id(notification: WebhookNotification, body: dict) -> Optional[str]:
    """
    Deterministic delivery ID for deduplication.

    Intercom keeps the notification ``id`` stable across redeliveries. Without
    it, fall back to a hash of topic, item and item update time so a genuinely
    new event on the same conversation is not mistaken for a redelivery.
    """
    if notification.id:
        return str(notification.id)

    item = notification.data.item or {}
    if not notification.topic or not item.get("id"):
        return None

    key = json.dumps(
        {
            "topic": notification.topic,
            "item_id": str(item.get("id")),
            "updated_at": item.get("updated_at"),
            "created_at": body.get("created_at"),
        },
        sort_keys=True,
    )
    return hashlib.sha1(key.encode()).hexdigest()


async def is_duplicate_delivery(settings: Settings, delivery_id: Optional[str]) -> bool:
    """
    Check whether a delivery was already processed.

    Returns False when dedup is not configured or the store fails; a dedup
    outage must never block ticket processing.
    """
    if not delivery_id or not settings.supabase_configured:
        return False

    try:
        if await webhook_delivery_exists(settings, delivery_id):
            logger.info(f"Duplicate webhook delivery detected: {delivery_id}")
            return True
        return False
    except Exception as e:
        logger.warning(f"Error checking duplicate delivery (non-fatal): {e}")
        return False


async def mark_delivery_processed(
    settings: Settings,
    delivery_id: Optional[str],
    notification: WebhookNotification,
) -> None:
    """Record a delivery after it was dispatched successfully."""
    if not delivery_id or not settings.supabase_configured:
        return

    try:
        await insert_webhook_delivery(
            settings,
            delivery_id,
            notification.topic,
            notification.conversation_id,
        )
    except Exception as e:
        logger.warning(f"Failed to record webhook delivery (non-fatal): {e}")
