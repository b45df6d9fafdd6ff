"""Bridge Attest - quorum-signed attestations for cross-chain bridge operations."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "Attestation",
    "AttestationSigner",
    "BridgeConfig",
    "BridgeOperator",
    "MessageCanonicalizer",
    "QuorumPolicy",
    "load_config",
    "sign",
]

if TYPE_CHECKING:
    from .canonical import MessageCanonicalizer
    from .config_loader import BridgeConfig, load_config
    from .quorum import QuorumPolicy
    from .signing import Attestation, AttestationSigner, sign
    from .submitter import BridgeOperator


def __getattr__(name: str) -> Any:
    """Lazily import submodules so ``cryptography`` loads only when needed."""

    module_map = {
        "Attestation": "signing",
        "AttestationSigner": "signing",
        "sign": "signing",
        "BridgeConfig": "config_loader",
        "load_config": "config_loader",
        "BridgeOperator": "submitter",
        "MessageCanonicalizer": "canonical",
        "QuorumPolicy": "quorum",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
