"""Media provider notification handling.

The provider posts a notification when eager derivatives finish or a
moderation decision is made. Nothing is persisted; notifications are logged
and always acknowledged so the provider does not retry.
"""

from typing import Any

from mediavault.errors import ApiErrorCode, InvalidRequestError
from mediavault.logging import get_logger

logger = get_logger(__name__)


def _log_eager(payload: dict[str, Any]) -> None:
    eager = payload.get("eager") or []
    logger.info(
        "webhook_eager_complete",
        public_id=payload.get("public_id"),
        derivatives=len(eager) if isinstance(eager, list) else 0,
    )


def _log_moderation(payload: dict[str, Any]) -> None:
    logger.info(
        "webhook_moderation",
        public_id=payload.get("public_id"),
        moderation_status=payload.get("moderation_status"),
    )


NOTIFICATION_HANDLERS = {
    "eager": _log_eager,
    "moderation": _log_moderation,
}


def handle_notification(payload: Any) -> dict:
    """Log a provider notification and acknowledge it.

    Raises:
        InvalidRequestError: If the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Invalid payload")

    notification_type = payload.get("notification_type")
    logger.info("webhook_received", notification_type=notification_type)

    handler = (
        NOTIFICATION_HANDLERS.get(notification_type)
        if isinstance(notification_type, str)
        else None
    )
    try:
        if handler is not None:
            handler(payload)
        else:
            logger.info("webhook_unhandled", notification_type=notification_type)
    except Exception:
        logger.exception("webhook_handler_failed", notification_type=notification_type)

    return {"success": True}
