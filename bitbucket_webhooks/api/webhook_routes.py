import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from bitbucket_webhooks.api.deps import get_dispatcher
from bitbucket_webhooks.core.errors import (
    NotImplementedEventError,
    UnauthorizedError,
    WebhookError,
)
from bitbucket_webhooks.services.dispatcher import EVENT_KEY_HEADER, EventDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


def _status_for(error: WebhookError) -> int:
    if isinstance(error, UnauthorizedError):
        return 401
    if isinstance(error, NotImplementedEventError):
        return 501
    return 400


@router.post("/webhooks/bitbucket")
async def bitbucket_webhook(
    request: Request,
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    # Read the raw body once; the signature covers these exact bytes
    try:
        body = await request.body()
    except ClientDisconnect:
        # The dispatcher reports an unread body as MissingPayloadError
        body = None
    if dispatcher.preserve_body:
        request.state.raw_body = body

    event_key = request.headers.get(EVENT_KEY_HEADER, "")

    try:
        event = dispatcher.handle(request.headers, body)
    except WebhookError as e:
        status_code = _status_for(e)
        reason = getattr(e, "reason", e.kind)
        logger.warning(
            "WEBHOOK_AUDIT event=%s status=%d error=%s",
            event_key or "-",
            status_code,
            reason.value,
        )
        return JSONResponse(
            {"error": e.kind.value, "detail": str(e)},
            status_code=status_code,
        )

    logger.info("WEBHOOK_AUDIT event=%s status=200 kind=%s", event_key, event.kind.value)
    return {"kind": event.kind.value, "event": event.model_dump(by_alias=True)}
