"""Offline verification of attestations.

``verify_attestation`` reproduces the bridge contract's acceptance rule so
an attestation can be checked before it is submitted: signatures are
base64 decoded, empty or duplicated sets are rejected, and every registered
public key is tried against every signature until ``threshold`` distinct
keys have produced a valid match.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature

from bridge_attest.keys import load_public_key

__all__ = ["VerificationResult", "verify_attestation", "verify_signature"]

LOGGER = logging.getLogger(__name__)


def verify_signature(message: bytes, signature_b64: str, public_key_b64: str) -> bool:
    """Return ``True`` when ``signature_b64`` is valid for ``message``.

    Malformed base64 or key material yields ``False`` rather than an error.
    """

    try:
        public_key = load_public_key(public_key_b64)
        signature = base64.b64decode(signature_b64, validate=True)
    except (ValueError, binascii.Error):
        return False
    try:
        public_key.verify(signature, message)
    except InvalidSignature:
        return False
    return True


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of :func:`verify_attestation`.

    Attributes:
        ok: Whether the threshold was met.
        matched_keys: Public keys (base64) that validated a signature, in
            the order they were registered.
        reason: Short failure description when ``ok`` is false.
    """

    ok: bool
    matched_keys: tuple[str, ...] = ()
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok


def verify_attestation(
    message: bytes,
    signatures: Iterable[str],
    public_keys: Sequence[str],
    threshold: int,
) -> VerificationResult:
    """Check an attestation the way the bridge contract does.

    Args:
        message: Canonical message bytes.
        signatures: Base64 signatures, for example ``Attestation.signatures``.
        public_keys: Registered base64 public keys.
        threshold: Number of distinct keys that must validate.

    Returns:
        A :class:`VerificationResult`.
    """

    sigs = list(signatures)
    if threshold < 1:
        return VerificationResult(False, reason="threshold must be at least 1")
    if not sigs:
        return VerificationResult(False, reason="no signatures")
    if len(set(sigs)) != len(sigs):
        return VerificationResult(False, reason="duplicate signatures")
    if len(sigs) < threshold:
        return VerificationResult(False, reason="threshold not met")
    if not public_keys:
        return VerificationResult(False, reason="no registered signers")

    matched: list[str] = []
    # a key listed twice still counts once
    for key in dict.fromkeys(public_keys):
        for signature in sigs:
            if verify_signature(message, signature, key):
                matched.append(key)
                break
        if len(matched) >= threshold:
            return VerificationResult(True, tuple(matched))

    LOGGER.debug(
        "Attestation below threshold",
        extra={"matched": len(matched), "threshold": threshold},
    )
    return VerificationResult(False, tuple(matched), reason="threshold not met")
