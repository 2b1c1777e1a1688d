"""LLM conversation summaries using LangChain with structured output, cached on the ticket."""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError
from src.config import Settings
from src.models.summary import CachedSummary, ConversationSummary
from src.models.ticket import SUMMARY_CACHE_FIELD_KEY, CustomField
from src.services.ghl_client import GHLClient
from src.utils.errors import SummarizationError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

SUMMARY_SYSTEM_PROMPT = """You are an expert customer support analyst. Analyze conversations and provide actionable insights for support agents.

Be concise and actionable. Focus on what the agent needs to know RIGHT NOW."""


def get_llm_model(settings: Settings):
    """Get configured LLM model."""
    provider = settings.llm_provider
    model_name = settings.llm_model

    logger.debug(
        "Getting LLM model",
        llm_provider=provider,
        llm_model=model_name
    )

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise SummarizationError("ANTHROPIC_API_KEY not set")
        return ChatAnthropic(model=model_name, api_key=settings.anthropic_api_key, temperature=0.3, max_tokens=500)
    elif provider == "openai":
        if not settings.openai_api_key:
            raise SummarizationError("OPENAI_API_KEY not set")
        return ChatOpenAI(model=model_name, api_key=settings.openai_api_key, temperature=0.3, max_tokens=500)
    else:
        raise SummarizationError(f"Unsupported LLM provider: {provider}")


def conversation_fingerprint(messages: list[dict[str, Any]]) -> tuple[int, str]:
    """(message count, last message id) used as the summary cache key."""
    if not messages:
        return 0, ""
    last = messages[-1] if isinstance(messages[-1], dict) else {}
    last_id = last.get("id") or last.get("created_at") or ""
    return len(messages), str(last_id)


def _message_time(created_at: Any) -> datetime:
    """Message timestamp from Unix seconds or an ISO string; now when missing or unreadable."""
    text = str(created_at).strip() if created_at is not None else ""
    try:
        if isinstance(created_at, (int, float)) or text.isdigit():
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        if text:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.debug("Unreadable message timestamp", created_at=text)
    return datetime.now(timezone.utc)


def format_conversation(messages: list[dict[str, Any]]) -> str:
    """Render messages as a plain transcript for the prompt; non-object entries are skipped."""
    lines = []
    for message in messages:
        if not isinstance(message, dict):
            continue
        author = message.get("author") or {}
        speaker = author.get("name") if author.get("type") == "admin" and author.get("name") else "Customer"
        stamp = _message_time(message.get("created_at")).astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        lines.append(f"[{stamp}] {speaker}: {message.get('body') or '(no text)'}")
    return "\n\n".join(lines)


async def generate_summary(messages: list[dict[str, Any]], settings: Settings, model=None) -> ConversationSummary:
    """Ask the LLM for a structured summary of the conversation."""
    model = model or get_llm_model(settings)
    transcript = format_conversation(messages)

    try:
        structured_llm = model.with_structured_output(ConversationSummary)
        with log_timing("generate_summary", logger, message_count=len(messages)):
            summary = await structured_llm.ainvoke([
                SystemMessage(content=SUMMARY_SYSTEM_PROMPT),
                HumanMessage(content=f"Analyze this customer support conversation:\n\n{transcript}"),
            ])
    except (ValidationError, ValueError) as e:
        raise SummarizationError(f"Failed to parse LLM summary: {e}") from e

    if not isinstance(summary, ConversationSummary):
        raise SummarizationError("LLM did not return a structured summary")
    return summary


async def get_cached_summary(ghl: GHLClient, opportunity_id: str) -> Optional[CachedSummary]:
    """Cached summary stored on the opportunity, or None (errors included)."""
    try:
        ticket = await ghl.get_opportunity(opportunity_id)
        for custom in ticket.custom_fields:
            if custom.key == SUMMARY_CACHE_FIELD_KEY and custom.field_value:
                raw = custom.field_value
                data = json.loads(raw) if isinstance(raw, str) else raw
                return CachedSummary.model_validate(data)
        logger.debug("No cached summary on opportunity", opportunity_id=opportunity_id)
        return None
    except Exception as e:
        logger.warning("Failed to read cached summary", opportunity_id=opportunity_id, error=str(e))
        return None


async def cache_summary(
    ghl: GHLClient,
    opportunity_id: str,
    summary: ConversationSummary,
    message_count: int,
    last_message_id: str,
) -> bool:
    """Store the summary on the opportunity. Failures are logged only."""
    cached = CachedSummary(
        summary=summary,
        messageCount=message_count,
        lastMessageId=last_message_id,
        cachedAt=datetime.now(timezone.utc).isoformat(),
    )
    try:
        await ghl.update_opportunity_fields(
            opportunity_id,
            [CustomField(key=SUMMARY_CACHE_FIELD_KEY, field_value=cached.model_dump_json())],
        )
        logger.info("Cached conversation summary", opportunity_id=opportunity_id)
        return True
    except Exception as e:
        logger.warning("Failed to cache summary", opportunity_id=opportunity_id, error=str(e))
        return False


async def summarize_conversation(
    conversation_id: str,
    messages: list[dict[str, Any]],
    settings: Settings,
    ghl: Optional[GHLClient] = None,
    opportunity_id: Optional[str] = None,
    force_regenerate: bool = False,
    model=None,
) -> dict[str, Any]:
    """
    Summarize a conversation, reusing the cached summary while the
    conversation is unchanged.

    Returns the response body: success, summary, conversationId, cached
    (and cachedAt on a cache hit).
    """
    message_count, last_message_id = conversation_fingerprint(messages)
    use_cache = ghl is not None and bool(opportunity_id)

    if use_cache and not force_regenerate:
        cached = await get_cached_summary(ghl, opportunity_id)
        if cached and cached.matches(message_count, last_message_id):
            logger.info(
                "Summary cache hit",
                conversation_id=conversation_id,
                opportunity_id=opportunity_id
            )
            return {
                "success": True,
                "summary": cached.summary.model_dump(),
                "conversationId": conversation_id,
                "cached": True,
                "cachedAt": cached.cachedAt,
            }

    logger.info(
        "Generating new summary",
        conversation_id=conversation_id,
        message_count=message_count,
        force_regenerate=force_regenerate
    )
    summary = await generate_summary(messages, settings, model=model)

    if use_cache:
        await cache_summary(ghl, opportunity_id, summary, message_count, last_message_id)

    return {
        "success": True,
        "summary": summary.model_dump(),
        "conversationId": conversation_id,
        "cached": False,
    }
