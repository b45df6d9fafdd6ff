"""
Threshold-aware Ed25519 signing of canonical bridge messages.

Provides:
- Ed25519Signer(private_key): single-key signer producing raw signatures
- Attestation: ordered base64 signatures plus the names of their signers
- sign(message, policy, parties, key_provider): quorum-driven attestation

Signatures are pure Ed25519 (RFC 8032) over the exact message bytes. There
is no pre-hash step: the contract calls ``ed25519_verify`` on the raw
message, and Ed25519 hashes internally with SHA-512.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from bridge_attest.errors import (
    KeyNotFoundError,
    KeyUnavailableError,
    SigningFailureError,
)
from bridge_attest.keys import KeyProvider, TrustedParty, load_private_key, public_key_base64
from bridge_attest.quorum import QuorumPolicy

__all__ = ["Attestation", "AttestationSigner", "Ed25519Signer", "sign"]

LOGGER = logging.getLogger(__name__)


class Ed25519Signer:
    """
    Signing abstraction over one trusted party's Ed25519 key.

    Args:
    ----
        private_key: PKCS#8 PEM/DER bytes, a raw 32-byte seed, or an already
            parsed :class:`Ed25519PrivateKey`.
        party: Optional name of the owning trusted party, used in errors.

    Attributes:
    ----------
        algorithm: Always ``"ed25519"``.
        public_key_base64: Raw public key, base64 encoded (contract form).
        public_key_hex: Raw public key, hex encoded.

    """

    algorithm = "ed25519"

    def __init__(
        self,
        private_key: bytes | Ed25519PrivateKey,
        *,
        party: str | None = None,
    ) -> None:
        self.party = party
        if isinstance(private_key, Ed25519PrivateKey):
            self._priv = private_key
        else:
            try:
                self._priv = load_private_key(bytes(private_key))
            except ValueError as exc:
                raise SigningFailureError(
                    party, f"malformed key material for {party or 'signer'}: {exc}"
                ) from exc
        self.public_key_base64 = public_key_base64(self._priv)
        self.public_key_hex = base64.b64decode(self.public_key_base64).hex()

    def sign(self, message: bytes) -> bytes:
        """Return the raw 64-byte Ed25519 signature over ``message``."""

        try:
            return self._priv.sign(message)
        except Exception as exc:
            raise SigningFailureError(
                self.party, f"Ed25519 signing failed for {self.party or 'signer'}: {exc}"
            ) from exc

    def sign_base64(self, message: bytes) -> str:
        return base64.b64encode(self.sign(message)).decode("ascii")


@dataclass(frozen=True, slots=True)
class Attestation:
    """Ordered signatures over one canonical message.

    Attributes:
        signatures: Base64 signatures in configuration order.
        signers: Names of the parties that produced each signature.
    """

    signatures: tuple[str, ...]
    signers: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.signatures) != len(self.signers):
            raise ValueError("signatures and signers must have the same length")

    def __len__(self) -> int:
        return len(self.signatures)

    def __iter__(self) -> Iterator[str]:
        return iter(self.signatures)

    def __getitem__(self, index: int) -> str:
        return self.signatures[index]

    def to_list(self) -> list[str]:
        """Return the signatures as the list the execute message expects."""

        return list(self.signatures)


def _party_name(party: TrustedParty | str) -> str:
    return party.name if isinstance(party, TrustedParty) else party


class AttestationSigner:
    """Produce attestations under a fixed quorum policy.

    Args:
        policy: Quorum policy of the run.
        parties: Trusted parties in configuration order.
        key_provider: Source of the parties' private keys.
        max_workers: When greater than one, signatures are computed on a
            thread pool. Results are always recombined in configuration
            order.
    """

    def __init__(
        self,
        policy: QuorumPolicy,
        parties: Sequence[TrustedParty | str],
        key_provider: KeyProvider,
        *,
        max_workers: int = 1,
    ) -> None:
        self.policy = policy
        self.parties: tuple[str, ...] = tuple(_party_name(p) for p in parties)
        self.key_provider = key_provider
        self.max_workers = max(1, max_workers)

    def _load_signer(self, party: str) -> Ed25519Signer:
        try:
            material = self.key_provider.load_private_key(party)
        except KeyNotFoundError as exc:
            raise KeyUnavailableError(
                party, f"key for trusted party {party!r} is unavailable: {exc}"
            ) from exc
        except OSError as exc:
            raise KeyUnavailableError(
                party, f"key for trusted party {party!r} could not be read: {exc}"
            ) from exc
        return Ed25519Signer(material, party=party)

    def select_signers(self) -> list[Ed25519Signer]:
        """Load the keys of the parties that will sign, in order.

        Strict policies (all parties, first party only) require every
        selected key. Lenient policies (any one, k-of-n) skip parties whose
        key is missing and take the next configured one.

        Raises:
            KeyUnavailableError: If the quorum cannot be met.
            SigningFailureError: If a loaded key is malformed.
        """

        required = self.policy.required_signers(len(self.parties))
        if self.policy.is_strict:
            return [self._load_signer(party) for party in self.parties[:required]]

        signers: list[Ed25519Signer] = []
        for party in self.parties:
            try:
                signers.append(self._load_signer(party))
            except KeyUnavailableError as exc:
                LOGGER.warning(
                    "Skipping trusted party without key",
                    extra={"party": party, "quorum": str(self.policy)},
                    exc_info=exc,
                )
                continue
            if len(signers) == required:
                return signers
        raise KeyUnavailableError(
            None,
            f"quorum {self.policy} needs {required} signer(s) but only "
            f"{len(signers)} key(s) could be loaded",
        )

    def sign(self, message: bytes) -> Attestation:
        """Sign ``message`` with the selected parties.

        Returns:
            A complete attestation. Nothing is returned on failure.
        """

        if not isinstance(message, (bytes, bytearray)):
            raise TypeError("message must be bytes")
        payload = bytes(message)
        signers = self.select_signers()

        if self.max_workers > 1 and len(signers) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in submission order
                signatures = tuple(pool.map(lambda s: s.sign_base64(payload), signers))
        else:
            signatures = tuple(signer.sign_base64(payload) for signer in signers)

        attestation = Attestation(
            signatures=signatures,
            signers=tuple(signer.party or "" for signer in signers),
        )
        LOGGER.info(
            "Produced attestation",
            extra={
                "quorum": str(self.policy),
                "signers": list(attestation.signers),
                "message_length": len(payload),
            },
        )
        return attestation


def sign(
    message: bytes,
    policy: QuorumPolicy,
    parties: Sequence[TrustedParty | str],
    key_provider: KeyProvider,
) -> Attestation:
    """Sign ``message`` under ``policy`` with the ordered ``parties``."""

    return AttestationSigner(policy, parties, key_provider).sign(message)
