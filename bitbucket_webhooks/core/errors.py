from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MISSING_EVENT_KEY = "missing_event_key"
    UNKNOWN_EVENT_KEY = "unknown_event_key"
    NOT_IMPLEMENTED = "not_implemented"
    MISSING_PAYLOAD = "missing_payload"
    DECODE_ERROR = "decode_error"
    INVALID_PAYLOAD = "invalid_payload"
    UNAUTHORIZED = "unauthorized"

    # Signature verification failures, reported as UNAUTHORIZED by the dispatcher
    MISSING_SECRET = "missing_secret"
    EMPTY_PAYLOAD = "empty_payload"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    MALFORMED_DIGEST = "malformed_digest"
    SIGNATURE_MISMATCH = "signature_mismatch"
    MISSING_SIGNATURE = "missing_signature"


class WebhookError(Exception):
    """Base class for every failure while processing a webhook delivery"""

    kind: ErrorKind

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.kind.value.replace("_", " "))


class MissingEventKeyError(WebhookError):
    kind = ErrorKind.MISSING_EVENT_KEY

    def __init__(self):
        super().__init__("X-Event-Key header is missing or empty")


class UnknownEventKeyError(WebhookError):
    kind = ErrorKind.UNKNOWN_EVENT_KEY

    def __init__(self, event_key: str):
        self.event_key = event_key
        super().__init__(f"'{event_key}' is not a known Bitbucket event key")


class NotImplementedEventError(WebhookError):
    kind = ErrorKind.NOT_IMPLEMENTED

    def __init__(self, event_key: str):
        self.event_key = event_key
        super().__init__(f"'{event_key}' events are not implemented")


class MissingPayloadError(WebhookError):
    kind = ErrorKind.MISSING_PAYLOAD

    def __init__(self):
        super().__init__("request body is empty or could not be read")


class DecodeError(WebhookError):
    """Payload could not be decoded into the record for its event key.

    The underlying pydantic error is chained as ``__cause__``.
    """

    kind = ErrorKind.DECODE_ERROR

    def __init__(self, event_key: str, detail: str):
        self.event_key = event_key
        super().__init__(f"could not decode '{event_key}' payload: {detail}")


class InvalidPayloadError(WebhookError):
    kind = ErrorKind.INVALID_PAYLOAD

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} cannot be empty")


class UnauthorizedError(WebhookError):
    """Signature verification failed; the verifier error is chained as ``__cause__``"""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, reason: ErrorKind, detail: str):
        self.reason = reason
        super().__init__(f"could not validate signature: {detail}")


class SignatureError(WebhookError):
    pass


class MissingSecretError(SignatureError):
    kind = ErrorKind.MISSING_SECRET

    def __init__(self):
        super().__init__("a digest was supplied but no webhook secret is set")


class EmptyPayloadError(SignatureError):
    kind = ErrorKind.EMPTY_PAYLOAD

    def __init__(self):
        super().__init__("payload cannot be empty")


class UnsupportedAlgorithmError(SignatureError):
    kind = ErrorKind.UNSUPPORTED_ALGORITHM

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(
            f"invalid hash prefix, expected 'sha256=' or 'sha1=' but got: '{prefix}'"
        )


class MalformedDigestError(SignatureError):
    kind = ErrorKind.MALFORMED_DIGEST

    def __init__(self):
        super().__init__("digest is not valid hex")


class SignatureMismatchError(SignatureError):
    kind = ErrorKind.SIGNATURE_MISMATCH

    def __init__(self):
        super().__init__("HMAC signatures do not match")


class MissingSignatureError(SignatureError):
    kind = ErrorKind.MISSING_SIGNATURE

    def __init__(self):
        super().__init__("X-Hub-Signature header is required")
