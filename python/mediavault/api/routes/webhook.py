"""Media provider webhook.

Public endpoint: the provider cannot present a session token.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body

from mediavault.responses import success_response
from mediavault.services import webhooks as webhook_service

router = APIRouter()


@router.post("/webhook")
def receive_notification(payload: Annotated[Any, Body()] = None) -> dict:
    """Log a provider notification and acknowledge it.

    Returns 400 unless the body is a JSON object; otherwise always 200.
    """
    result = webhook_service.handle_notification(payload)
    return success_response(result)
