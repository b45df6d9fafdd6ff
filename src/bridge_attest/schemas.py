"""Pydantic models describing the bridge contract's execute and query messages."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "AddSignerMsg",
    "ExecuteMsg",
    "LinkTokenMsg",
    "ReceiveMsg",
    "SIGNERS_QUERY",
    "TokenMetadata",
]

SIGNERS_QUERY: dict[str, object] = {"signers": {}}


class TokenMetadata(BaseModel):
    """Metadata of the CFT-20 token being linked."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ticker: str = Field(..., min_length=1, description="Ticker of the CFT-20 token.")
    name: str = Field(default="", description="Display name of the token.")
    image_url: str = Field(default="", description="URL of the token's image.")
    decimals: int = Field(..., ge=0, description="Number of decimals the token uses.")


class ExecuteMsg(BaseModel):
    """Base class for execute messages; subclasses set ``operation``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    operation: ClassVar[str]

    def to_execute_msg(self) -> dict[str, object]:
        """Return the JSON-ready execute message, keyed by operation name."""

        return {self.operation: self.model_dump(mode="json")}


class AddSignerMsg(ExecuteMsg):
    """Register a trusted party's public key. Owner only, not attested."""

    operation: ClassVar[str] = "add_signer"

    name: str = Field(..., min_length=1, description="Human name of the key owner.")
    public_key_base64: str = Field(
        ...,
        min_length=1,
        description="Raw 32-byte Ed25519 public key, base64 encoded.",
    )


class LinkTokenMsg(ExecuteMsg):
    """Link and enable a CFT-20 token for bridging."""

    operation: ClassVar[str] = "link_token"

    source_chain_id: str = Field(..., min_length=1)
    token: TokenMetadata
    signatures: list[str] = Field(
        ..., min_length=1, description="Base64 signatures of the trusted parties."
    )


class ReceiveMsg(ExecuteMsg):
    """Credit a transfer observed on the source chain."""

    operation: ClassVar[str] = "receive"

    source_chain_id: str = Field(..., min_length=1)
    transaction_hash: str = Field(..., min_length=1)
    ticker: str = Field(..., min_length=1)
    amount: str = Field(
        ..., min_length=1, description="Amount as a plain decimal string."
    )
    destination_addr: str = Field(..., min_length=1)
    signatures: list[str] = Field(..., min_length=1)
