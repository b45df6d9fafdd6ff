"""Exception taxonomy shared by the attestation pipeline."""

from __future__ import annotations

__all__ = [
    "BridgeAttestError",
    "ConfigurationError",
    "InvalidFieldError",
    "KeyNotFoundError",
    "KeyUnavailableError",
    "SigningFailureError",
    "SubmissionFailureError",
]


class BridgeAttestError(Exception):
    """Base class for every error raised by :mod:`bridge_attest`."""


class ConfigurationError(BridgeAttestError, ValueError):
    """Raised when the run configuration is incomplete or inconsistent."""


class InvalidFieldError(BridgeAttestError, ValueError):
    """Raised when a canonical message field is missing or malformed.

    Attributes:
        field: Name of the offending field.
        reason: Human readable explanation.
    """

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"invalid field {field!r}: {reason}")
        self.field = field
        self.reason = reason


class KeyNotFoundError(BridgeAttestError, LookupError):
    """Raised by a key provider when an identifier has no stored key."""

    def __init__(self, party: str, detail: str | None = None) -> None:
        message = f"no key stored for trusted party {party!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.party = party


class KeyUnavailableError(BridgeAttestError):
    """Raised by the signer when a required party's key cannot be loaded."""

    def __init__(self, party: str | None, message: str) -> None:
        super().__init__(message)
        self.party = party


class SigningFailureError(BridgeAttestError):
    """Raised when the underlying Ed25519 operation fails."""

    def __init__(self, party: str | None, message: str) -> None:
        super().__init__(message)
        self.party = party


class SubmissionFailureError(BridgeAttestError):
    """Raised by chain clients when the bridge contract rejects an operation."""
