"""Trusted party key material: parsing helpers and key providers.

Key files follow the layout produced by the bridge key ceremony::

    keys/<party>-ed25519priv.pem          PKCS#8 PEM private key
    keys/<party>-ed25519pub-contract.txt  base64 raw 32-byte public key

The contract's ``add_signer`` message takes the raw public key (the last 32
bytes of the DER encoding), base64 encoded, which is exactly what the
``-contract.txt`` file stores.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from bridge_attest.errors import KeyNotFoundError

__all__ = [
    "FileKeyProvider",
    "InMemoryKeyProvider",
    "KeyProvider",
    "TrustedParty",
    "load_private_key",
    "load_public_key",
    "parties_from_names",
    "public_key_base64",
]

LOGGER = logging.getLogger(__name__)

PRIVATE_KEY_SUFFIX = "-ed25519priv.pem"
PUBLIC_KEY_SUFFIX = "-ed25519pub-contract.txt"
_SEED_LENGTH = 32


@dataclass(frozen=True, slots=True)
class TrustedParty:
    """Off-chain identity whose public key is registered with the contract."""

    name: str

    def __str__(self) -> str:
        return self.name


def parties_from_names(names: Iterable[str]) -> tuple[TrustedParty, ...]:
    """Wrap configured names into :class:`TrustedParty` values, keeping order."""

    return tuple(TrustedParty(name) for name in names)


@runtime_checkable
class KeyProvider(Protocol):
    """Capability resolving trusted parties to their key material.

    Implementations must be side-effect free: loading a key never mutates
    the underlying store.
    """

    def load_private_key(self, party: str) -> bytes:
        """Return the private key of ``party`` (PEM or raw 32-byte seed).

        Raises:
            KeyNotFoundError: If no key is stored for ``party``.
        """
        ...

    def load_public_key(self, party: str) -> str:
        """Return the base64 raw public key registered for ``party``.

        Raises:
            KeyNotFoundError: If no key is stored for ``party``.
        """
        ...


def load_private_key(material: bytes) -> Ed25519PrivateKey:
    """Parse Ed25519 private key material.

    Args:
        material: PKCS#8 PEM bytes, DER bytes, or a raw 32-byte seed.

    Returns:
        The parsed private key.

    Raises:
        ValueError: If the material is not an Ed25519 private key.
    """

    if len(material) == _SEED_LENGTH:
        return Ed25519PrivateKey.from_private_bytes(bytes(material))
    try:
        if material.lstrip().startswith(b"-----BEGIN"):
            key = serialization.load_pem_private_key(material, password=None)
        else:
            key = serialization.load_der_private_key(material, password=None)
    except (TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"unable to parse private key: {exc}") from exc
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(
            f"expected an Ed25519 private key, got {type(key).__name__}"
        )
    return key


def load_public_key(public_key_b64: str) -> Ed25519PublicKey:
    """Parse a base64 raw Ed25519 public key as registered with the contract.

    Raises:
        ValueError: If the value is not valid base64 or not 32 bytes.
    """

    try:
        raw = base64.b64decode(public_key_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"public key is not valid base64: {exc}") from exc
    if len(raw) != _SEED_LENGTH:
        raise ValueError(f"public key must be 32 bytes, got {len(raw)}")
    return Ed25519PublicKey.from_public_bytes(raw)


def public_key_base64(key: Ed25519PrivateKey | Ed25519PublicKey) -> str:
    """Return the contract form (base64 of the raw 32 bytes) of a key."""

    public = key.public_key() if isinstance(key, Ed25519PrivateKey) else key
    raw = public.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return base64.b64encode(raw).decode("ascii")


class FileKeyProvider:
    """Resolve trusted parties to key files inside ``keys_dir``."""

    def __init__(self, keys_dir: Path | str = "keys") -> None:
        self.keys_dir = Path(keys_dir)

    def private_key_path(self, party: str) -> Path:
        return self.keys_dir / f"{party}{PRIVATE_KEY_SUFFIX}"

    def public_key_path(self, party: str) -> Path:
        return self.keys_dir / f"{party}{PUBLIC_KEY_SUFFIX}"

    def load_private_key(self, party: str) -> bytes:
        path = self.private_key_path(party)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise KeyNotFoundError(party, str(path)) from exc
        LOGGER.debug(
            "Loaded private key",
            extra={"party": party, "path": str(path)},
        )
        return data

    def load_public_key(self, party: str) -> str:
        """Read the ``-contract.txt`` file, deriving it from the PEM if absent."""

        path = self.public_key_path(party)
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            LOGGER.debug(
                "Public key file missing, deriving from private key",
                extra={"party": party, "path": str(path)},
            )
        material = self.load_private_key(party)
        try:
            return public_key_base64(load_private_key(material))
        except ValueError as exc:
            raise KeyNotFoundError(party, f"unreadable private key: {exc}") from exc


class InMemoryKeyProvider:
    """Key provider backed by a mapping, used for tests and embedding."""

    def __init__(
        self,
        private_keys: Mapping[str, bytes],
        public_keys: Mapping[str, str] | None = None,
    ) -> None:
        self._private = dict(private_keys)
        self._public = dict(public_keys or {})

    @classmethod
    def from_keys(cls, keys: Mapping[str, Ed25519PrivateKey]) -> InMemoryKeyProvider:
        """Build a provider from already parsed private keys."""

        private = {
            name: key.private_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PrivateFormat.Raw,
                encryption_algorithm=serialization.NoEncryption(),
            )
            for name, key in keys.items()
        }
        public = {name: public_key_base64(key) for name, key in keys.items()}
        return cls(private, public)

    def load_private_key(self, party: str) -> bytes:
        try:
            return self._private[party]
        except KeyError as exc:
            raise KeyNotFoundError(party) from exc

    def load_public_key(self, party: str) -> str:
        if party in self._public:
            return self._public[party]
        material = self.load_private_key(party)
        try:
            return public_key_base64(load_private_key(material))
        except ValueError as exc:
            raise KeyNotFoundError(party, f"unreadable private key: {exc}") from exc
