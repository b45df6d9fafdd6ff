"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from cryptography.hazmat.primitives import serialization  # noqa: E402
from cryptography.hazmat.primitives.asymmetric.ed25519 import (  # noqa: E402
    Ed25519PrivateKey,
)

from bridge_attest.chain import DryRunChainClient  # noqa: E402
from bridge_attest.config_loader import BridgeConfig  # noqa: E402
from bridge_attest.keys import InMemoryKeyProvider, public_key_base64  # noqa: E402
from bridge_attest.quorum import QuorumPolicy  # noqa: E402

PARTY_NAMES = ("trusted-party-1", "trusted-party-2", "trusted-party-3")
CONTRACT_ADDRESS = "wasm14hj2tavq8fpesdwxxcu44rty3hh90vhujrvcmstl4zr3txmfvw9s0phg4d"

# Deterministic (but non-trivial) seeds for reproducible signatures
_SEEDS = {
    "trusted-party-1": bytes.fromhex(
        "9f2c4b7a1d08e3f5a6b0c3d4e7f812349abcedf00123456789abcdef01234567"
    ),
    "trusted-party-2": bytes(range(32)),
    "trusted-party-3": b"abcd" * 8,
}


@pytest.fixture(autouse=True)
def _clean_bridge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host BRIDGE_* variables out of the settings under test."""

    for key in list(os.environ):
        if key.upper().startswith("BRIDGE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def party_keys() -> dict[str, Ed25519PrivateKey]:
    return {
        name: Ed25519PrivateKey.from_private_bytes(seed)
        for name, seed in _SEEDS.items()
    }


@pytest.fixture
def public_keys(party_keys: dict[str, Ed25519PrivateKey]) -> dict[str, str]:
    return {name: public_key_base64(key) for name, key in party_keys.items()}


@pytest.fixture
def key_provider(party_keys: dict[str, Ed25519PrivateKey]) -> InMemoryKeyProvider:
    return InMemoryKeyProvider.from_keys(party_keys)


@pytest.fixture
def keys_dir(tmp_path: Path, party_keys: dict[str, Ed25519PrivateKey]) -> Path:
    """Write the keys in the on-disk layout used by the operator tooling."""

    directory = tmp_path / "keys"
    directory.mkdir()
    for name, key in party_keys.items():
        pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        (directory / f"{name}-ed25519priv.pem").write_bytes(pem)
        (directory / f"{name}-ed25519pub-contract.txt").write_text(
            public_key_base64(key) + "\n", encoding="utf-8"
        )
    return directory


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig(
        source_chain_id="gaialocal-1",
        destination_chain_id="test-1",
        ticker="ROIDS",
        quorum=QuorumPolicy.all_parties(),
        parties=PARTY_NAMES[:2],
        contract_address=CONTRACT_ADDRESS,
    )


@pytest.fixture
def dry_run_client() -> DryRunChainClient:
    return DryRunChainClient(CONTRACT_ADDRESS)
