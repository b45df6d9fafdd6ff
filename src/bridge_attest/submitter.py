"""Assemble execute messages and hand them to the chain client.

:class:`OperationSubmitter` is a thin adapter: it shapes the payload, calls
the chain client and reports the result. Errors raised by the client are
propagated untouched.

:class:`BridgeOperator` wires configuration, keys, canonicalizer, signer and
submitter into the operator tasks (register signers, link a token, credit a
transfer).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from bridge_attest.canonical import MessageCanonicalizer, format_amount
from bridge_attest.chain import ChainClient, TransactionResult
from bridge_attest.config_loader.models import BridgeConfig
from bridge_attest.errors import ConfigurationError
from bridge_attest.keys import KeyProvider
from bridge_attest.schemas import (
    SIGNERS_QUERY,
    AddSignerMsg,
    LinkTokenMsg,
    ReceiveMsg,
    TokenMetadata,
)
from bridge_attest.signing import Attestation, AttestationSigner

__all__ = ["BridgeOperator", "OperationOutcome", "OperationSubmitter", "log_transaction"]

LOGGER = logging.getLogger(__name__)

Reporter = Callable[[TransactionResult], None]


def log_transaction(result: TransactionResult) -> None:
    """Default reporter: log the transaction hash and height."""

    LOGGER.info(
        "Transaction executed",
        extra={
            "transaction_hash": result.transaction_hash,
            "height": result.height,
            "gas_used": result.gas_used,
        },
    )


class OperationSubmitter:
    """Build execute messages and delegate them to ``client``."""

    def __init__(self, client: ChainClient, reporter: Reporter = log_transaction) -> None:
        self.client = client
        self.reporter = reporter

    def _execute(self, msg: dict[str, object]) -> TransactionResult:
        result = self.client.execute(msg)
        self.reporter(result)
        return result

    def register_signer(self, name: str, public_key_base64: str) -> TransactionResult:
        msg = AddSignerMsg(name=name, public_key_base64=public_key_base64)
        return self._execute(msg.to_execute_msg())

    def link_token(
        self,
        source_chain_id: str,
        token: TokenMetadata,
        attestation: Attestation,
    ) -> TransactionResult:
        msg = LinkTokenMsg(
            source_chain_id=source_chain_id,
            token=token,
            signatures=attestation.to_list(),
        )
        return self._execute(msg.to_execute_msg())

    def receive(
        self,
        *,
        source_chain_id: str,
        transaction_hash: str,
        ticker: str,
        amount: str,
        destination_addr: str,
        attestation: Attestation,
    ) -> TransactionResult:
        msg = ReceiveMsg(
            source_chain_id=source_chain_id,
            transaction_hash=transaction_hash,
            ticker=ticker,
            amount=amount,
            destination_addr=destination_addr,
            signatures=attestation.to_list(),
        )
        return self._execute(msg.to_execute_msg())

    def query_signers(self) -> object:
        return self.client.query(SIGNERS_QUERY)


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    """Result of an attested operation: what was signed and what was sent."""

    message: bytes
    attestation: Attestation
    result: TransactionResult


class BridgeOperator:
    """Run bridge operator tasks under one immutable configuration.

    Args:
        config: Frozen run configuration.
        key_provider: Source of the trusted parties' keys.
        client: Chain client bound to the bridge contract. Messages are
            signed over its address.
        reporter: Callback receiving every transaction result.
        max_workers: Forwarded to :class:`AttestationSigner`.

    Raises:
        ConfigurationError: If ``config.contract_address`` is set and names
            another contract than ``client.address``.
    """

    def __init__(
        self,
        config: BridgeConfig,
        key_provider: KeyProvider,
        client: ChainClient,
        *,
        reporter: Reporter = log_transaction,
        max_workers: int = 1,
    ) -> None:
        if config.contract_address and config.contract_address != client.address:
            raise ConfigurationError(
                f"configured contract address {config.contract_address!r} does not "
                f"match the chain client's contract {client.address!r}"
            )
        self.config = config
        self.key_provider = key_provider
        self.client = client
        self.canonicalizer = MessageCanonicalizer(config)
        self.signer = AttestationSigner(
            config.quorum, config.parties, key_provider, max_workers=max_workers
        )
        self.submitter = OperationSubmitter(client, reporter)

    @property
    def contract_address(self) -> str:
        """Address the contract rebuilds the signed message with."""

        return self.client.address

    def add_signers(self) -> tuple[list[TransactionResult], object]:
        """Register every party the quorum may use, then query the signers.

        Returns:
            The transaction results in registration order and the contract's
            answer to the ``signers`` query.
        """

        results = []
        for party in self.config.signing_parties:
            public_key = self.key_provider.load_public_key(party)
            results.append(self.submitter.register_signer(party, public_key))
        signers = self.submitter.query_signers()
        LOGGER.info("Registered signers", extra={"signers": signers})
        return results, signers

    def link_token(self, token: TokenMetadata) -> OperationOutcome:
        message = self.canonicalizer.link_token(
            ticker=token.ticker,
            decimals=token.decimals,
            contract_address=self.contract_address,
        )
        attestation = self.signer.sign(message)
        result = self.submitter.link_token(
            self.config.require("source_chain_id"), token, attestation
        )
        return OperationOutcome(message, attestation, result)

    def receive(
        self,
        transaction_hash: str,
        amount: object,
        destination_address: str,
        *,
        ticker: str | None = None,
    ) -> OperationOutcome:
        """Attest and submit a transfer credited to ``destination_address``."""

        effective_ticker = ticker if ticker is not None else self.config.require("ticker")
        message = self.canonicalizer.receive(
            transaction_hash=transaction_hash,
            amount=amount,
            contract_address=self.contract_address,
            destination_address=destination_address,
            ticker=effective_ticker,
        )
        attestation = self.signer.sign(message)
        result = self.submitter.receive(
            source_chain_id=self.config.require("source_chain_id"),
            transaction_hash=transaction_hash,
            ticker=effective_ticker,
            amount=format_amount(amount),
            destination_addr=destination_address,
            attestation=attestation,
        )
        return OperationOutcome(message, attestation, result)
