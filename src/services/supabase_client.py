"""Supabase client wrapper with async context manager support."""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.config import Settings
from src.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

WEBHOOK_DELIVERIES_TABLE = "webhook_deliveries"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client(settings: Settings) -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        if not settings.supabase_configured:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(settings.supabase_url, settings.supabase_service_role_key, options)
        logger.info("Supabase client initialized", extra={"supabase_url": settings.supabase_url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client(self.settings)
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "error_type": exc_type.__name__}
            )
        return False


async def webhook_delivery_exists(settings: Settings, delivery_id: str) -> bool:
    """Check if a webhook delivery was already processed."""
    async with SupabaseClient(settings) as client:
        try:
            result = (
                client.table(WEBHOOK_DELIVERIES_TABLE)
                .select("delivery_id")
                .eq("delivery_id", delivery_id)
                .execute()
            )
            return len(result.data) > 0
        except Exception as e:
            raise SupabaseError(f"Failed to check webhook delivery: {e}")


async def insert_webhook_delivery(
    settings: Settings,
    delivery_id: str,
    topic: Optional[str],
    conversation_id: Optional[str],
) -> None:
    """Record a processed webhook delivery."""
    async with SupabaseClient(settings) as client:
        try:
            client.table(WEBHOOK_DELIVERIES_TABLE).insert({
                "delivery_id": delivery_id,
                "topic": topic,
                "conversation_id": conversation_id,
            }).execute()
        except Exception as e:
            # Ignore duplicate key errors (idempotency)
            if "duplicate key" not in str(e).lower():
                raise SupabaseError(f"Failed to insert webhook delivery: {e}")
