"""Conversation summary models."""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class ConversationSummary(BaseModel):
    """Structured summary returned by the LLM for a support conversation."""
    mainIssue: str = Field(..., description="One sentence describing the customer's main problem or question")
    customerSentiment: Literal["positive", "neutral", "negative", "urgent"] = Field(
        ...,
        description="Overall customer sentiment"
    )
    keyPoints: list[str] = Field(..., description="2-4 key points from the conversation")
    suggestedActions: list[str] = Field(..., description="2-3 recommended next steps for the agent")
    previousInteractions: int = Field(0, ge=0, description="Estimated number of previous interactions")
    estimatedResolutionTime: str = Field(..., description='Like "5-10 min", "30 min", "1-2 hours"')
    priority: Literal["low", "medium", "high", "urgent"] = Field(..., description="Suggested priority")


class CachedSummary(BaseModel):
    """Summary cached on the ticket, keyed by the conversation fingerprint."""
    summary: ConversationSummary
    messageCount: int
    lastMessageId: str = ""
    cachedAt: Optional[str] = None

    def matches(self, message_count: int, last_message_id: str) -> bool:
        return self.messageCount == message_count and self.lastMessageId == last_message_id
