"""Tests for payload assembly and the end-to-end operator tasks."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping

import pytest

from bridge_attest.chain import DryRunChainClient, TransactionResult
from bridge_attest.config_loader import BridgeConfig
from bridge_attest.errors import (
    ConfigurationError,
    InvalidFieldError,
    KeyUnavailableError,
    SubmissionFailureError,
)
from bridge_attest.keys import InMemoryKeyProvider
from bridge_attest.quorum import QuorumPolicy
from bridge_attest.schemas import TokenMetadata
from bridge_attest.signing import Attestation
from bridge_attest.submitter import BridgeOperator, OperationSubmitter
from bridge_attest.verify import verify_attestation, verify_signature

CONTRACT_ADDRESS = "wasm14hj2tavq8fpesdwxxcu44rty3hh90vhujrvcmstl4zr3txmfvw9s0phg4d"

TOKEN = TokenMetadata(ticker="ROIDS", name="Asteroids", image_url="", decimals=6)


def test_submitter_shapes_execute_messages(dry_run_client: DryRunChainClient) -> None:
    reported: list[TransactionResult] = []
    submitter = OperationSubmitter(dry_run_client, reporter=reported.append)
    attestation = Attestation(signatures=("c2lnMQ==", "c2lnMg=="), signers=("a", "b"))

    submitter.register_signer("trusted-party-1", "cHVia2V5")
    submitter.link_token("gaialocal-1", TOKEN, attestation)
    submitter.receive(
        source_chain_id="gaialocal-1",
        transaction_hash="ABC",
        ticker="ROIDS",
        amount="1000000",
        destination_addr="wasm1dest",
        attestation=attestation,
    )

    assert dry_run_client.executed == [
        {"add_signer": {"name": "trusted-party-1", "public_key_base64": "cHVia2V5"}},
        {
            "link_token": {
                "source_chain_id": "gaialocal-1",
                "token": {
                    "ticker": "ROIDS",
                    "name": "Asteroids",
                    "image_url": "",
                    "decimals": 6,
                },
                "signatures": ["c2lnMQ==", "c2lnMg=="],
            }
        },
        {
            "receive": {
                "source_chain_id": "gaialocal-1",
                "transaction_hash": "ABC",
                "ticker": "ROIDS",
                "amount": "1000000",
                "destination_addr": "wasm1dest",
                "signatures": ["c2lnMQ==", "c2lnMg=="],
            }
        },
    ]
    assert len(reported) == 3


def test_chain_client_errors_propagate_unmodified() -> None:
    class Boom(RuntimeError):
        pass

    class FailingClient:
        address = CONTRACT_ADDRESS

        def execute(self, msg: Mapping[str, object]) -> TransactionResult:
            raise Boom("out of gas")

        def query(self, msg: Mapping[str, object]) -> object:
            return None

    submitter = OperationSubmitter(FailingClient())
    with pytest.raises(Boom, match="out of gas"):
        submitter.register_signer("trusted-party-1", "cHVia2V5")


def test_operator_link_token(
    bridge_config: BridgeConfig,
    key_provider: InMemoryKeyProvider,
    dry_run_client: DryRunChainClient,
    public_keys: dict[str, str],
) -> None:
    operator = BridgeOperator(bridge_config, key_provider, dry_run_client)
    outcome = operator.link_token(TOKEN)

    assert outcome.message == f"gaialocal-1ROIDS6test-1{CONTRACT_ADDRESS}".encode()
    assert outcome.attestation.signers == ("trusted-party-1", "trusted-party-2")
    sent = dry_run_client.executed[-1]["link_token"]
    assert isinstance(sent, dict)
    assert sent["signatures"] == list(outcome.attestation.signatures)
    assert verify_signature(
        outcome.message, outcome.attestation[0], public_keys["trusted-party-1"]
    )
    assert verify_attestation(
        outcome.message,
        outcome.attestation,
        [public_keys["trusted-party-1"], public_keys["trusted-party-2"]],
        threshold=2,
    ).ok


def test_operator_receive_uses_client_address_and_amount_text(
    bridge_config: BridgeConfig,
    key_provider: InMemoryKeyProvider,
) -> None:
    config = dataclasses.replace(bridge_config, contract_address=None)
    client = DryRunChainClient("wasm1fromclient")
    operator = BridgeOperator(config, key_provider, client)

    outcome = operator.receive("ABC", "1000000.0", "wasm1dest")
    assert outcome.message == b"gaialocal-1ABCROIDS1000000.0test-1wasm1fromclientwasm1dest"
    sent = client.executed[-1]["receive"]
    assert isinstance(sent, dict)
    assert sent["amount"] == "1000000.0"
    assert sent["ticker"] == "ROIDS"


def test_operator_signs_over_the_executing_contract(
    bridge_config: BridgeConfig, key_provider: InMemoryKeyProvider
) -> None:
    client = DryRunChainClient(CONTRACT_ADDRESS)
    outcome = BridgeOperator(bridge_config, key_provider, client).link_token(TOKEN)
    assert outcome.message.endswith(CONTRACT_ADDRESS.encode())

    with pytest.raises(ConfigurationError, match="wasm1actualcontract"):
        BridgeOperator(
            bridge_config, key_provider, DryRunChainClient("wasm1actualcontract")
        )


def test_operator_receive_rejects_bad_amount_before_signing(
    bridge_config: BridgeConfig,
    key_provider: InMemoryKeyProvider,
    dry_run_client: DryRunChainClient,
) -> None:
    operator = BridgeOperator(bridge_config, key_provider, dry_run_client)
    with pytest.raises(InvalidFieldError):
        operator.receive("ABC", "1e6", "wasm1dest")
    assert dry_run_client.executed == []


def test_operator_does_not_submit_when_signing_fails(
    bridge_config: BridgeConfig,
    party_keys: dict,
    dry_run_client: DryRunChainClient,
) -> None:
    provider = InMemoryKeyProvider.from_keys({"trusted-party-1": party_keys["trusted-party-1"]})
    operator = BridgeOperator(bridge_config, provider, dry_run_client)
    with pytest.raises(KeyUnavailableError):
        operator.link_token(TOKEN)
    assert dry_run_client.executed == []


def test_add_signers_registers_quorum_parties(
    bridge_config: BridgeConfig,
    key_provider: InMemoryKeyProvider,
    dry_run_client: DryRunChainClient,
    public_keys: dict[str, str],
) -> None:
    operator = BridgeOperator(bridge_config, key_provider, dry_run_client)
    results, signers = operator.add_signers()
    assert len(results) == 2
    assert signers == {
        "signers": [
            [public_keys["trusted-party-1"], "trusted-party-1"],
            [public_keys["trusted-party-2"], "trusted-party-2"],
        ]
    }

    single = DryRunChainClient(CONTRACT_ADDRESS)
    config = dataclasses.replace(bridge_config, quorum=QuorumPolicy.first_party_only())
    results, _ = BridgeOperator(config, key_provider, single).add_signers()
    assert len(results) == 1
    assert single.executed[0]["add_signer"] == {
        "name": "trusted-party-1",
        "public_key_base64": public_keys["trusted-party-1"],
    }


def test_dry_run_client_rejection(
    bridge_config: BridgeConfig, key_provider: InMemoryKeyProvider
) -> None:
    client = DryRunChainClient(CONTRACT_ADDRESS, reject=lambda msg: "link_token" in msg)
    operator = BridgeOperator(bridge_config, key_provider, client)
    with pytest.raises(SubmissionFailureError):
        operator.link_token(TOKEN)


def test_dry_run_results_are_reproducible(
    bridge_config: BridgeConfig, key_provider: InMemoryKeyProvider
) -> None:
    first = BridgeOperator(
        bridge_config, key_provider, DryRunChainClient(CONTRACT_ADDRESS)
    ).link_token(TOKEN)
    second = BridgeOperator(
        bridge_config, key_provider, DryRunChainClient(CONTRACT_ADDRESS)
    ).link_token(TOKEN)
    assert first.result.transaction_hash == second.result.transaction_hash
