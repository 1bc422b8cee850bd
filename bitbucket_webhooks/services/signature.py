"""HMAC verification for the X-Hub-Signature header.

Bitbucket Server signs the raw request body with the webhook secret and sends
``sha256=<hex digest>``. ``sha1=`` digests are still accepted for older
servers. The digest must be checked against the bytes exactly as received,
before any JSON decoding.
"""
import binascii
import hashlib
import hmac
import logging

from bitbucket_webhooks.core.errors import (
    EmptyPayloadError,
    MalformedDigestError,
    MissingSecretError,
    SignatureMismatchError,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature"

SUPPORTED_ALGORITHMS = {
    "sha256": hashlib.sha256,
    "sha1": hashlib.sha1,
}


def sign_payload(payload: bytes, secret: bytes, algorithm: str = "sha256") -> str:
    """Build an X-Hub-Signature value for ``payload``"""
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithmError(algorithm)
    digest = hmac.new(secret, payload, SUPPORTED_ALGORITHMS[algorithm]).hexdigest()
    return f"{algorithm}={digest}"


def verify_signature(payload: bytes, encoded_digest: str, secret: bytes) -> None:
    """
    Check ``encoded_digest`` against the HMAC of ``payload`` under ``secret``.

    An empty digest skips verification: signatures are only checked when the
    sender supplies one. Callers that need a signature on every delivery must
    reject requests without the header before calling this.

    Raises:
        MissingSecretError: a digest was supplied but ``secret`` is empty
        EmptyPayloadError: ``payload`` is empty
        UnsupportedAlgorithmError: the digest prefix is not sha256= or sha1=
        MalformedDigestError: the digest is not valid hex
        SignatureMismatchError: the digest does not match
    """
    if not encoded_digest:
        return

    if not secret:
        raise MissingSecretError()

    if not payload:
        raise EmptyPayloadError()

    algorithm, separator, encoded = encoded_digest.partition("=")
    if not separator or algorithm not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithmError(algorithm)

    try:
        received = binascii.unhexlify(encoded)
    except (binascii.Error, ValueError) as e:
        raise MalformedDigestError() from e

    expected = hmac.new(secret, payload, SUPPORTED_ALGORITHMS[algorithm]).digest()

    if not hmac.compare_digest(received, expected):
        raise SignatureMismatchError()

    logger.debug("Webhook %s signature verified", algorithm)
