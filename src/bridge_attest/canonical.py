"""Canonical attestation messages for bridge operations.

The bridge contract rebuilds the same byte string on-chain and checks the
trusted parties' Ed25519 signatures against it, so the layout below is a
wire contract: fields are concatenated in a fixed order with no separators
and no hashing.

``link_token``::

    {source_chain_id}{ticker}{decimals}{destination_chain_id}{contract_address}

``receive``::

    {source_chain_id}{transaction_hash}{ticker}{amount}
    {destination_chain_id}{contract_address}{destination_address}

Signer registration is an owner operation and carries no signed message.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum

from bridge_attest.config_loader.models import BridgeConfig
from bridge_attest.errors import InvalidFieldError

__all__ = [
    "MessageCanonicalizer",
    "OperationKind",
    "canonicalize",
    "format_amount",
    "link_token_message",
    "receive_message",
]

_PLAIN_DECIMAL = re.compile(r"^[0-9]+(\.[0-9]+)?$")


class OperationKind(str, Enum):
    """Privileged bridge operations."""

    REGISTER_SIGNER = "add_signer"
    LINK_TOKEN = "link_token"
    RECEIVE_TRANSFER = "receive"

    @property
    def requires_attestation(self) -> bool:
        return self is not OperationKind.REGISTER_SIGNER


def _text(field: str, value: object) -> str:
    if not isinstance(value, str):
        raise InvalidFieldError(field, f"expected a string, got {type(value).__name__}")
    if not value:
        raise InvalidFieldError(field, "must not be empty")
    return value


def _count(field: str, value: object) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(
            field, f"expected an integer, got {type(value).__name__}"
        )
    if value < 0:
        raise InvalidFieldError(field, "must not be negative")
    return str(value)


def format_amount(value: object) -> str:
    """Render a transfer amount as a plain decimal string.

    Strings are kept verbatim so that ``"1000000"`` and ``"1000000.0"``
    stay distinct messages, but they must already be plain non-negative
    decimals (no sign, exponent or thousands separator). Integers use their
    ``str`` form; ``Decimal`` and ``float`` values are written positionally.

    Raises:
        InvalidFieldError: If the amount is empty, negative, non-finite or
            of an unsupported type.
    """

    if isinstance(value, bool):
        raise InvalidFieldError("amount", "booleans are not amounts")
    if isinstance(value, str):
        if not value:
            raise InvalidFieldError("amount", "must not be empty")
        if not _PLAIN_DECIMAL.match(value):
            raise InvalidFieldError(
                "amount", f"{value!r} is not a plain non-negative decimal"
            )
        return value
    if isinstance(value, int):
        if value < 0:
            raise InvalidFieldError("amount", "must not be negative")
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidFieldError("amount", "must be finite")
        value = Decimal(repr(value))
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidFieldError("amount", "must be finite")
        if value < 0:
            raise InvalidFieldError("amount", "must not be negative")
        try:
            return format(value, "f")
        except (InvalidOperation, ValueError) as exc:
            raise InvalidFieldError("amount", str(exc)) from exc
    raise InvalidFieldError("amount", f"unsupported type {type(value).__name__}")


def link_token_message(
    *,
    source_chain_id: str,
    ticker: str,
    decimals: int,
    destination_chain_id: str,
    contract_address: str,
) -> bytes:
    """Build the message the trusted parties sign to link a token."""

    parts = (
        _text("source_chain_id", source_chain_id),
        _text("ticker", ticker),
        _count("decimals", decimals),
        _text("destination_chain_id", destination_chain_id),
        _text("contract_address", contract_address),
    )
    return "".join(parts).encode("utf-8")


def receive_message(
    *,
    source_chain_id: str,
    transaction_hash: str,
    ticker: str,
    amount: object,
    destination_chain_id: str,
    contract_address: str,
    destination_address: str,
) -> bytes:
    """Build the message the trusted parties sign to credit a transfer."""

    parts = (
        _text("source_chain_id", source_chain_id),
        _text("transaction_hash", transaction_hash),
        _text("ticker", ticker),
        format_amount(amount),
        _text("destination_chain_id", destination_chain_id),
        _text("contract_address", contract_address),
        _text("destination_address", destination_address),
    )
    return "".join(parts).encode("utf-8")


def canonicalize(kind: OperationKind | str, fields: Mapping[str, object]) -> bytes | None:
    """Dispatch to the message builder of ``kind``.

    Args:
        kind: Operation kind or its execute-message name.
        fields: Keyword fields of the builder. Unknown keys are rejected.

    Returns:
        Canonical message bytes, or ``None`` for operations that are not
        attested (signer registration).

    Raises:
        InvalidFieldError: If a field is missing, unexpected or malformed.
    """

    try:
        operation = OperationKind(kind)
    except ValueError as exc:
        raise InvalidFieldError("kind", f"unknown operation {kind!r}") from exc
    if not operation.requires_attestation:
        return None
    builder = (
        link_token_message
        if operation is OperationKind.LINK_TOKEN
        else receive_message
    )
    names = _FIELDS[operation]
    missing = [name for name in names if name not in fields]
    if missing:
        raise InvalidFieldError(missing[0], "is required")
    unexpected = sorted(set(fields) - set(names))
    if unexpected:
        raise InvalidFieldError(unexpected[0], f"is not part of a {operation.value} message")
    return builder(**fields)  # type: ignore[arg-type]


_FIELDS: dict[OperationKind, tuple[str, ...]] = {
    OperationKind.LINK_TOKEN: (
        "source_chain_id",
        "ticker",
        "decimals",
        "destination_chain_id",
        "contract_address",
    ),
    OperationKind.RECEIVE_TRANSFER: (
        "source_chain_id",
        "transaction_hash",
        "ticker",
        "amount",
        "destination_chain_id",
        "contract_address",
        "destination_address",
    ),
}


class MessageCanonicalizer:
    """Build canonical messages with the chain identifiers of a run.

    ``source_chain_id`` and ``destination_chain_id`` come from the frozen
    :class:`BridgeConfig`; everything else is supplied per operation.
    """

    def __init__(self, config: BridgeConfig) -> None:
        self._config = config

    @property
    def config(self) -> BridgeConfig:
        return self._config

    def link_token(self, *, ticker: str, decimals: int, contract_address: str) -> bytes:
        return link_token_message(
            source_chain_id=self._config.require("source_chain_id"),
            ticker=ticker,
            decimals=decimals,
            destination_chain_id=self._config.require("destination_chain_id"),
            contract_address=contract_address,
        )

    def receive(
        self,
        *,
        transaction_hash: str,
        amount: object,
        contract_address: str,
        destination_address: str,
        ticker: str | None = None,
    ) -> bytes:
        """Build a receive message; ``ticker`` defaults to the configured one."""

        return receive_message(
            source_chain_id=self._config.require("source_chain_id"),
            transaction_hash=transaction_hash,
            ticker=ticker if ticker is not None else self._config.require("ticker"),
            amount=amount,
            destination_chain_id=self._config.require("destination_chain_id"),
            contract_address=contract_address,
            destination_address=destination_address,
        )
