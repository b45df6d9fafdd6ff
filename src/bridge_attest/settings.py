"""Environment-backed settings primitives for :mod:`bridge_attest`."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["BridgeAttestSettings", "get_settings"]


class BridgeAttestSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the bridge tooling.

    The settings class centralises all environment lookups so that the rest
    of the package never reads ``os.environ`` directly. All attributes
    correspond to documented environment variables and default to ``None``
    (or a sensible inline default) when the variable is not present.

    Attributes:
        source_chain_id: Chain ID of the chain the bridged asset lives on.
        destination_chain_id: Chain ID of the chain hosting the bridge
            contract.
        ticker: Default ticker used for receive operations.
        quorum: Quorum policy expression (``all``, ``first``, ``any`` or
            ``<k>-of-n``).
        only_one_signer: Legacy boolean toggle. When set it overrides
            ``quorum`` with ``first`` (true) or ``all`` (false).
        parties: Comma separated trusted party names in signing order.
        party_count: Number of ``trusted-party-<n>`` parties used when
            ``parties`` is unset.
        keys_dir: Directory holding the trusted party key files.
        contract_address: Address of the deployed bridge contract.
        config_path: Explicit path to a structured configuration file.
    """

    source_chain_id: str | None = Field(default=None, alias="BRIDGE_SOURCE_CHAIN_ID")
    destination_chain_id: str | None = Field(
        default=None, alias="BRIDGE_DESTINATION_CHAIN_ID"
    )
    ticker: str | None = Field(default=None, alias="BRIDGE_TICKER")
    quorum: str | None = Field(default=None, alias="BRIDGE_QUORUM")
    only_one_signer: bool | None = Field(default=None, alias="BRIDGE_ONLY_ONE_SIGNER")
    parties: str | None = Field(default=None, alias="BRIDGE_PARTIES")
    party_count: int | None = Field(default=None, alias="BRIDGE_PARTY_COUNT")
    keys_dir: str | None = Field(default=None, alias="BRIDGE_KEYS_DIR")
    contract_address: str | None = Field(
        default=None, alias="BRIDGE_CONTRACT_ADDRESS"
    )
    config_path: str | None = Field(default=None, alias="BRIDGE_CONFIG_PATH")

    model_config = SettingsConfigDict(
        env_file=None, extra="ignore", populate_by_name=True
    )

    @field_validator("party_count", mode="before")
    @classmethod
    def _parse_optional_int(cls, value: object) -> int | None:
        """Parse optional integer fields while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed integer when conversion succeeds, otherwise ``None``.
        """

        if value is None:
            return None
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return None

    @field_validator(
        "source_chain_id",
        "destination_chain_id",
        "ticker",
        "quorum",
        "only_one_signer",
        "parties",
        "keys_dir",
        "contract_address",
        "config_path",
        mode="before",
    )
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        """Treat empty or whitespace-only variables as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def party_names(self) -> tuple[str, ...] | None:
        """Return the configured party names in signing order.

        Returns:
            Tuple of names when ``BRIDGE_PARTIES`` is set, otherwise ``None``.
        """

        if not self.parties:
            return None
        names = tuple(item.strip() for item in self.parties.split(",") if item.strip())
        return names or None


def get_settings() -> BridgeAttestSettings:
    """Return a :class:`BridgeAttestSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return BridgeAttestSettings()
