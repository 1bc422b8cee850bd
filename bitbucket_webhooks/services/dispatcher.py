import logging
from typing import BinaryIO, Mapping, Optional, Union

from pydantic import ValidationError

from bitbucket_webhooks.core.config import Settings
from bitbucket_webhooks.core.errors import (
    DecodeError,
    MissingEventKeyError,
    MissingPayloadError,
    MissingSignatureError,
    SignatureError,
    UnauthorizedError,
)
from bitbucket_webhooks.schemas.events import DiagnosticPing, EventRecord
from bitbucket_webhooks.services.event_registry import DIAGNOSTIC_EVENT_KEYS, lookup
from bitbucket_webhooks.services.signature import SIGNATURE_HEADER, verify_signature

EVENT_KEY_HEADER = "X-Event-Key"

Body = Union[bytes, bytearray, BinaryIO]


def _get_header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        value = next(
            (v for k, v in headers.items() if k.lower() == lowered), None
        )
    return value or ""


class EventDispatcher:
    """Turns a Bitbucket webhook delivery into a validated event record.

    The secret and options are fixed at construction, so one instance can be
    shared by concurrent requests.
    """

    def __init__(
        self,
        secret: Union[bytes, str] = b"",
        preserve_body: bool = False,
        require_hmac: bool = False,
    ):
        if isinstance(secret, str):
            secret = secret.encode()
        if require_hmac and not secret:
            raise ValueError("require_hmac needs a webhook secret to verify against")
        self._secret = secret
        self.preserve_body = preserve_body
        self.require_hmac = require_hmac
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventDispatcher":
        return cls(
            secret=settings.WEBHOOK_SECRET.get_secret_value(),
            preserve_body=settings.PRESERVE_BODY,
            require_hmac=settings.REQUIRE_HMAC,
        )

    @property
    def verifies_signatures(self) -> bool:
        return bool(self._secret)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(secret={'***' if self._secret else ''!r}, "
            f"preserve_body={self.preserve_body}, require_hmac={self.require_hmac})"
        )

    def decode(self, event_key: str, payload: bytes) -> EventRecord:
        """Decode ``payload`` into the record registered for ``event_key``"""
        if event_key in DIAGNOSTIC_EVENT_KEYS:
            return DiagnosticPing(test=True)

        model = lookup(event_key)
        try:
            return model.model_validate_json(payload)
        except ValidationError as e:
            raise DecodeError(event_key, f"{e.error_count()} validation error(s)") from e

    def parse(self, event_key: str, payload: bytes) -> EventRecord:
        """Decode and structurally validate ``payload``"""
        event = self.decode(event_key, payload)
        event.validate_structure()
        return event

    def verify(self, headers: Mapping[str, str], payload: bytes) -> None:
        """Check the X-Hub-Signature header, raising UnauthorizedError on failure"""
        signature = _get_header(headers, SIGNATURE_HEADER)
        try:
            if self.require_hmac and not signature:
                raise MissingSignatureError()
            if self._secret:
                verify_signature(payload, signature, self._secret)
        except SignatureError as e:
            raise UnauthorizedError(e.kind, str(e)) from e

    def handle(self, headers: Mapping[str, str], body: Optional[Body]) -> EventRecord:
        """
        Process a single webhook delivery.

        Args:
            headers: Request headers; lookups are case-insensitive
            body: Raw request body, either bytes or a binary stream

        Returns:
            The decoded and validated event record
        """
        event_key = _get_header(headers, EVENT_KEY_HEADER)
        if not event_key:
            raise MissingEventKeyError()

        if event_key in DIAGNOSTIC_EVENT_KEYS:
            self.logger.info("Diagnostic ping received: %s", event_key)
            return DiagnosticPing(test=True)

        payload = self._read_body(body)
        self.verify(headers, payload)

        event = self.parse(event_key, payload)
        self.logger.debug("Decoded %s event as %s", event_key, event.kind.value)
        return event

    def _read_body(self, body: Optional[Body]) -> bytes:
        if body is None:
            raise MissingPayloadError()

        if isinstance(body, (bytes, bytearray)):
            payload = bytes(body)
        else:
            start = body.tell() if self.preserve_body and body.seekable() else None
            try:
                payload = body.read()
            except (OSError, ValueError) as e:
                raise MissingPayloadError() from e
            if start is not None:
                # Rewind so later consumers see the body untouched
                body.seek(start)

        if not payload:
            raise MissingPayloadError()
        return payload
