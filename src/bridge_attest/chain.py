"""Boundary with the chain client that executes contract messages.

Transaction construction, signing with the operator wallet and broadcast are
owned by the chain client. This module only describes the capability the
submitter relies on and ships an in-memory dry-run client.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from bridge_attest.errors import SubmissionFailureError

__all__ = ["ChainClient", "DryRunChainClient", "TransactionResult"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransactionResult:
    """Outcome of an executed contract message.

    Attributes:
        transaction_hash: Hash of the broadcast transaction.
        height: Block height it was included in, when known.
        gas_used: Gas consumed, when known.
        raw: Client specific response data.
    """

    transaction_hash: str
    height: int | None = None
    gas_used: int | None = None
    raw: Mapping[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "transaction_hash": self.transaction_hash,
            "height": self.height,
            "gas_used": self.gas_used,
        }


@runtime_checkable
class ChainClient(Protocol):
    """Capability exposing a deployed bridge contract instance."""

    @property
    def address(self) -> str:
        """Bech32 address of the bridge contract."""
        ...

    def execute(self, msg: Mapping[str, object]) -> TransactionResult:
        """Execute ``msg`` against the contract.

        Implementations raise :class:`SubmissionFailureError` (or their own
        transport errors) when the contract rejects the message.
        """
        ...

    def query(self, msg: Mapping[str, object]) -> object:
        """Run a smart query against the contract."""
        ...


class DryRunChainClient:
    """Chain client that records messages instead of broadcasting them.

    Every executed message is kept in :attr:`executed`; the synthetic
    transaction hash is the SHA-256 of the canonical JSON of the message so
    repeated runs are reproducible.

    Args:
        address: Contract address reported to the canonicalizer.
        query_handler: Optional callable answering queries. By default
            ``{"signers": {}}`` is answered from the recorded ``add_signer``
            messages and any other query returns ``None``.
        reject: Optional predicate; when it returns ``True`` for a message,
            :meth:`execute` raises :class:`SubmissionFailureError`.
    """

    def __init__(
        self,
        address: str,
        *,
        query_handler: Callable[[Mapping[str, object]], object] | None = None,
        reject: Callable[[Mapping[str, object]], bool] | None = None,
    ) -> None:
        self._address = address
        self._query_handler = query_handler
        self._reject = reject
        self.executed: list[dict[str, object]] = []

    @property
    def address(self) -> str:
        return self._address

    def execute(self, msg: Mapping[str, object]) -> TransactionResult:
        message = dict(msg)
        if self._reject is not None and self._reject(message):
            raise SubmissionFailureError(
                f"dry-run client rejected {', '.join(message) or 'empty message'}"
            )
        encoded = json.dumps(message, sort_keys=True, separators=(",", ":"))
        self.executed.append(message)
        tx_hash = hashlib.sha256(encoded.encode("utf-8")).hexdigest().upper()
        LOGGER.debug(
            "Dry-run execute",
            extra={"contract": self._address, "operations": list(message)},
        )
        return TransactionResult(
            transaction_hash=tx_hash,
            height=len(self.executed),
            raw={"dry_run": True, "msg": message},
        )

    def query(self, msg: Mapping[str, object]) -> object:
        if self._query_handler is not None:
            return self._query_handler(msg)
        if "signers" in msg:
            signers: list[list[str]] = []
            for executed in self.executed:
                add = executed.get("add_signer")
                if isinstance(add, Mapping):
                    signers.append(
                        [str(add.get("public_key_base64")), str(add.get("name"))]
                    )
            return {"signers": signers}
        return None
