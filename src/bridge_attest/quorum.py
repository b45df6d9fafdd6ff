"""Quorum policies deciding which trusted parties sign an operation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import cast

from bridge_attest.errors import ConfigurationError

__all__ = ["QuorumKind", "QuorumPolicy", "parse_quorum"]

_K_OF_N_PATTERN = re.compile(r"^\s*(\d+)\s*-?\s*of\s*-?\s*n\s*$", re.IGNORECASE)


class QuorumKind(str, Enum):
    """Enumerate the supported quorum rules."""

    ALL_PARTIES = "all"
    FIRST_PARTY_ONLY = "first"
    ANY_ONE_OF_N = "any"
    K_OF_N = "k-of-n"


@dataclass(frozen=True, slots=True)
class QuorumPolicy:
    """Rule stating how many configured parties must sign.

    Attributes:
        kind: Quorum rule.
        k: Number of signers for :attr:`QuorumKind.K_OF_N`. Ignored (and
            normalised to ``None``) for the other kinds.
    """

    kind: QuorumKind
    k: int | None = None

    def __post_init__(self) -> None:
        if self.kind is QuorumKind.K_OF_N:
            if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
                raise ConfigurationError("k-of-n quorum requires an integer k >= 1")
        elif self.k is not None:
            object.__setattr__(self, "k", None)

    @classmethod
    def all_parties(cls) -> QuorumPolicy:
        return cls(QuorumKind.ALL_PARTIES)

    @classmethod
    def first_party_only(cls) -> QuorumPolicy:
        return cls(QuorumKind.FIRST_PARTY_ONLY)

    @classmethod
    def any_one_of_n(cls) -> QuorumPolicy:
        return cls(QuorumKind.ANY_ONE_OF_N)

    @classmethod
    def k_of_n(cls, k: int) -> QuorumPolicy:
        return cls(QuorumKind.K_OF_N, k)

    @classmethod
    def from_only_one_signer(cls, only_one_signer: bool) -> QuorumPolicy:
        """Translate the legacy boolean toggle into a policy."""

        return cls.first_party_only() if only_one_signer else cls.all_parties()

    def required_signers(self, party_count: int) -> int:
        """Return how many signatures an attestation must carry.

        Args:
            party_count: Number of configured trusted parties.

        Returns:
            Number of parties expected to sign.

        Raises:
            ConfigurationError: If no party is configured or ``k`` exceeds
                the number of configured parties.
        """

        if party_count < 1:
            raise ConfigurationError("at least one trusted party must be configured")
        if self.kind is QuorumKind.ALL_PARTIES:
            return party_count
        if self.kind is QuorumKind.K_OF_N:
            k = cast(int, self.k)
            if k > party_count:
                raise ConfigurationError(
                    f"quorum {k}-of-n cannot be met by {party_count} parties"
                )
            return k
        return 1

    @property
    def is_strict(self) -> bool:
        """Whether the policy names exactly which parties must sign.

        Strict policies fail as soon as one selected party has no key;
        lenient ones move on to the next configured party.
        """

        return self.kind in (QuorumKind.ALL_PARTIES, QuorumKind.FIRST_PARTY_ONLY)

    def __str__(self) -> str:
        if self.kind is QuorumKind.K_OF_N:
            return f"{self.k}-of-n"
        return self.kind.value


def parse_quorum(text: str) -> QuorumPolicy:
    """Parse a textual quorum expression.

    Accepted forms are ``all``, ``first``, ``any`` and ``<k>-of-n``
    (``2-of-n``, ``2ofn``).

    Raises:
        ConfigurationError: If the expression is not recognised.
    """

    value = text.strip().lower()
    aliases = {
        "all": QuorumKind.ALL_PARTIES,
        "all-parties": QuorumKind.ALL_PARTIES,
        "first": QuorumKind.FIRST_PARTY_ONLY,
        "first-party-only": QuorumKind.FIRST_PARTY_ONLY,
        "any": QuorumKind.ANY_ONE_OF_N,
        "any-one-of-n": QuorumKind.ANY_ONE_OF_N,
    }
    kind = aliases.get(value)
    if kind is not None:
        return QuorumPolicy(kind)
    match = _K_OF_N_PATTERN.match(value)
    if match:
        return QuorumPolicy.k_of_n(int(match.group(1)))
    raise ConfigurationError(f"unrecognised quorum policy {text!r}")
