from bitbucket_webhooks.schemas.events import EventKind, EventRecord
from bitbucket_webhooks.services.dispatcher import EventDispatcher
from bitbucket_webhooks.services.signature import sign_payload, verify_signature

__all__ = [
    "EventDispatcher",
    "EventKind",
    "EventRecord",
    "sign_payload",
    "verify_signature",
]
