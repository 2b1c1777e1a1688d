"""Intercom webhook ingress: verify, parse, dispatch, acknowledge.

    Received -> SignatureChecked -> Parsed -> Dispatched -> Acknowledged
    Received -> Rejected (401)

Kept independent of the HTTP server so the Vercel handler stays a thin
adapter and the state machine can be exercised directly in tests.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Optional, Union
from pydantic import ValidationError
from src.config import Settings, TICKET_SYNC_FIELDS
from src.models.intercom import WebhookNotification
from src.services.assignment_sync import sync_assignment
from src.services.ticket_materializer import create_ticket_from_conversation
from src.services.ticket_services import TicketServices
from src.services.webhook_dedup import generate_delivery_id, is_duplicate_delivery, mark_delivery_processed
from src.services.webhook_verifier import SIGNATURE_HEADER, verify_intercom_request
from src.utils.errors import BotIdentityError, ConfigurationError, SignatureVerificationError, UpstreamAPIError
from src.utils.logging import correlation_context, get_structured_logger

logger = get_structured_logger(__name__)

TOPIC_CONVERSATION_CREATED = "conversation.user.created"
TOPIC_ADMIN_ASSIGNED = "conversation.admin.assigned"
TOPIC_USER_REPLIED = "conversation.user.replied"
TOPIC_ADMIN_CLOSED = "conversation.admin.closed"

# Topics acknowledged without any processing
ACKNOWLEDGED_TOPICS = frozenset({TOPIC_USER_REPLIED, TOPIC_ADMIN_CLOSED})

TopicHandler = Callable[[str, Any], Awaitable[Any]]

TOPIC_HANDLERS: dict[str, TopicHandler] = {
    TOPIC_CONVERSATION_CREATED: create_ticket_from_conversation,
    TOPIC_ADMIN_ASSIGNED: sync_assignment,
}


@dataclass
class WebhookResponse:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


class BadRequestError(ValueError):
    """Webhook body cannot be processed."""
    pass


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup (works for dicts and http.client messages)."""
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                return candidate
    return value


def parse_notification(raw_body: bytes) -> tuple[WebhookNotification, dict]:
    """Parse the verified body into a notification envelope."""
    try:
        body = json.loads(raw_body) if raw_body else None
    except (ValueError, UnicodeDecodeError):
        raise BadRequestError("Request body is not valid JSON")

    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")

    try:
        notification = WebhookNotification.model_validate(body)
    except ValidationError as e:
        raise BadRequestError(f"Malformed notification: {e.error_count()} validation error(s)")

    if notification.topic in TOPIC_HANDLERS and not notification.conversation_id:
        raise BadRequestError(f"Missing data.item.id for topic {notification.topic}")

    return notification, body


def _acknowledge(topic: Optional[str], **extra: Any) -> WebhookResponse:
    body = {
        "received": True,
        "topic": topic,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    body.update(extra)
    return WebhookResponse(200, body)


async def dispatch_notification(
    notification: WebhookNotification,
    settings: Settings,
    services_factory: Callable[[Settings], TicketServices] = TicketServices.from_settings,
) -> Any:
    """Run the handler for the notification topic; None when there is nothing to do."""
    topic = notification.topic
    handler = TOPIC_HANDLERS.get(topic)

    if handler is None:
        if topic in ACKNOWLEDGED_TOPICS:
            logger.info("Acknowledged webhook topic, no action", topic=topic)
        else:
            logger.info("Unhandled webhook topic, ignoring", topic=topic)
        return None

    async with services_factory(settings) as services:
        return await handler(notification.conversation_id, services)


async def handle_webhook_request(
    method: str,
    headers: Mapping[str, str],
    raw_body: Union[bytes, str],
    settings: Optional[Settings] = None,
    services_factory: Callable[[Settings], TicketServices] = TicketServices.from_settings,
) -> WebhookResponse:
    """
    Process one webhook HTTP request.

    Returns:
        200 {received, topic, timestamp} once dispatched (including no-op
        topics and data-validity aborts), 401 on a bad signature, 400 on an
        unusable body, 405 on other methods, 500 {error, message} on
        configuration or handler failures.
    """
    settings = settings or Settings.from_env()
    method = method.upper()

    if method == "GET":
        return WebhookResponse(200, {
            "status": "ok",
            "endpoint": "intercom/webhook",
            "config": settings.config_flags(),
        })

    if method != "POST":
        return WebhookResponse(405, {"error": "Method not allowed"})

    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")

    with correlation_context() as correlation_id:
        try:
            settings.require(*TICKET_SYNC_FIELDS)

            signature = _header(headers, SIGNATURE_HEADER)
            if not verify_intercom_request(settings.intercom_webhook_secret, raw_body, signature):
                raise SignatureVerificationError("Invalid webhook signature")

            notification, body = parse_notification(raw_body)
            topic = notification.topic
            logger.info(
                "Webhook received",
                topic=topic,
                conversation_id=notification.conversation_id,
                notification_id=notification.id,
                delivery_attempts=notification.delivery_attempts
            )

            delivery_id = None
            if topic in TOPIC_HANDLERS:
                delivery_id = generate_delivery_id(notification, body)
                if await is_duplicate_delivery(settings, delivery_id):
                    return _acknowledge(topic, duplicate=True)

            try:
                result = await dispatch_notification(notification, settings, services_factory)
            except BotIdentityError as e:
                logger.error(
                    "Bot identity reached ticket creation, acknowledging without retry",
                    topic=topic,
                    conversation_id=notification.conversation_id,
                    error=str(e)
                )
                result = None

            await mark_delivery_processed(settings, delivery_id, notification)

            if result is not None:
                logger.info(
                    "Webhook processed",
                    topic=topic,
                    conversation_id=notification.conversation_id,
                    result_status=getattr(result, "status", None)
                )
            return _acknowledge(topic)

        except ConfigurationError as e:
            logger.error("Webhook configuration error", error=str(e))
            return WebhookResponse(500, {"error": "Configuration error", "message": str(e)})

        except SignatureVerificationError:
            return WebhookResponse(401, {"error": "Invalid signature"})

        except BadRequestError as e:
            logger.warning("Rejected webhook body", error=str(e))
            return WebhookResponse(400, {"error": str(e)})

        except UpstreamAPIError as e:
            logger.error(
                "Upstream API error processing webhook",
                exc_info=True,
                error=str(e),
                **e.log_context()
            )
            return WebhookResponse(500, {
                "error": "Webhook processing failed",
                "message": str(e),
                "correlationId": correlation_id,
            })

        except Exception as e:
            logger.error("Error processing webhook", exc_info=True, error=str(e))
            return WebhookResponse(500, {
                "error": "Webhook processing failed",
                "message": str(e),
                "correlationId": correlation_id,
            })
