"""Shared pytest fixtures and configuration."""

import os
import pytest
from types import SimpleNamespace
from unittest.mock import Mock, AsyncMock, MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("INTERCOM_ACCESS_TOKEN", "test-intercom-token")
os.environ.setdefault("INTERCOM_WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("GHL_ACCESS_TOKEN", "test-ghl-token")
os.environ.setdefault("GHL_LOCATION_ID", "test-location")
os.environ.setdefault("GOOGLE_SHEET_ID", "test-sheet")
os.environ.setdefault("GOOGLE_SHEETS_CREDENTIALS", '{"type": "service_account"}')
os.environ.setdefault("LLM_PROVIDER", "anthropic")
os.environ.setdefault("LLM_MODEL", "claude-sonnet-4-20250514")
os.environ.setdefault("LOG_MASK_SENSITIVE", "true")

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def settings():
    """Fully configured settings (Supabase dedup off)."""
    from src.config import Settings

    return Settings(
        intercom_access_token="test-intercom-token",
        intercom_webhook_secret=WEBHOOK_SECRET,
        intercom_admin_id="1755792",
        ghl_access_token="test-ghl-token",
        ghl_location_id="test-location",
        google_sheet_id="test-sheet",
        google_sheets_credentials='{"type": "service_account"}',
        anthropic_api_key="test-anthropic-key",
    )


@pytest.fixture
def mock_intercom():
    """Mock Intercom client."""
    client = Mock()
    client.get_conversation = AsyncMock()
    client.get_conversation_raw = AsyncMock()
    client.get_contact = AsyncMock()
    client.assign_conversation = AsyncMock(return_value={"type": "conversation"})
    client.close_conversation = AsyncMock(return_value={"type": "conversation"})
    client.snooze_conversation = AsyncMock(return_value={"type": "conversation"})
    client.reply_to_conversation = AsyncMock(return_value={"type": "conversation_part"})
    return client


@pytest.fixture
def mock_ghl():
    """Mock GoHighLevel client with an empty pipeline by default."""
    client = Mock()
    client.search_contacts = AsyncMock(return_value=[])
    client.get_contact = AsyncMock()
    client.create_contact = AsyncMock()
    client.add_contact_tags = AsyncMock()
    client.create_opportunity = AsyncMock()
    client.get_opportunity = AsyncMock()
    client.update_opportunity_fields = AsyncMock(return_value={})

    client.pipeline = []

    async def iter_pipeline_opportunities(pipeline_id=None):
        for ticket in client.pipeline:
            yield ticket

    client.iter_pipeline_opportunities = MagicMock(side_effect=iter_pipeline_opportunities)
    return client


@pytest.fixture
def mock_counter():
    counter = Mock()
    counter.next_ticket_number = AsyncMock(return_value="00042")
    return counter


@pytest.fixture
def mock_ticket_log():
    ticket_log = Mock()
    ticket_log.record_ticket_created = AsyncMock(return_value=True)
    return ticket_log


@pytest.fixture
def services(settings, mock_intercom, mock_ghl, mock_counter, mock_ticket_log):
    """Service bundle wired with mocks."""
    return SimpleNamespace(
        settings=settings,
        intercom=mock_intercom,
        ghl=mock_ghl,
        counter=mock_counter,
        ticket_log=mock_ticket_log,
    )


@pytest.fixture
def mock_sheets():
    """Mock Sheets client holding a counter value."""
    sheets = Mock()
    sheets.get_values = AsyncMock(return_value=[["41"]])
    sheets.update_values = AsyncMock(return_value={})
    sheets.append_row = AsyncMock(return_value={})
    return sheets


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = Mock()
    client.table = Mock(return_value=Mock())
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
