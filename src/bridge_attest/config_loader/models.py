"""Typed configuration dataclasses for :mod:`bridge_attest.config_loader`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bridge_attest.errors import ConfigurationError
from bridge_attest.quorum import QuorumKind, QuorumPolicy

DEFAULT_PARTY_NAMES: tuple[str, ...] = ("trusted-party-1", "trusted-party-2")
DEFAULT_KEYS_DIR = Path("keys")


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Immutable run configuration consumed by the canonicalizer and signer.

    Attributes:
        source_chain_id: Chain the bridged asset originates from.
        destination_chain_id: Chain hosting the bridge contract.
        ticker: Default ticker for receive operations.
        quorum: Quorum policy applied to every operation of the run.
        parties: Trusted party names in signing order.
        keys_dir: Directory holding the key files of the parties.
        contract_address: Address of the bridge contract, when known
            without asking the chain client.
    """

    source_chain_id: str | None = None
    destination_chain_id: str | None = None
    ticker: str | None = None
    quorum: QuorumPolicy = field(default_factory=QuorumPolicy.all_parties)
    parties: tuple[str, ...] = DEFAULT_PARTY_NAMES
    keys_dir: Path = DEFAULT_KEYS_DIR
    contract_address: str | None = None

    def require(self, name: str) -> str:
        """Return a configured string value or fail.

        Args:
            name: Attribute name, for example ``"source_chain_id"``.

        Raises:
            ConfigurationError: If the value is unset.
        """

        value = getattr(self, name)
        if not isinstance(value, str) or not value:
            raise ConfigurationError(f"configuration value {name!r} is not set")
        return value

    @property
    def signing_parties(self) -> tuple[str, ...]:
        """Parties that may be asked to sign under the active quorum."""

        if self.quorum.kind is QuorumKind.FIRST_PARTY_ONLY:
            return self.parties[:1]
        return self.parties
