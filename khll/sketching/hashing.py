"""Deterministic 64-bit hashing shared by all sketches.

Every sketch relies on the same assumption: for a fixed seed, the hash of a
distinct input behaves like an independent uniform draw from a fixed
integer domain. ``hash64`` produces an unsigned 64-bit fingerprint and
``HashSpace`` maps it onto a half-open domain ``[lower, upper)``. The
default domain is the signed 64-bit range ``[-2^63, 2^63)``.

Independent trials over the same data use different seeds. The seed is
concatenated after the value's text form before hashing, so ``42`` with
seed ``"s-7"`` hashes the bytes ``b"42s-7"``.

Collisions are an accepted statistical risk, never an error: with a 64-bit
output they are negligible at the cardinalities the sketches target.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Hashable

SeedType = str | int | None

HASH_BITS = 64
SIGNED_LOWER = -(1 << 63)
SIGNED_UPPER = 1 << 63


def _encode(value: Hashable, seed: SeedType) -> bytes:
    if isinstance(value, bytes):
        data = value
    elif isinstance(value, str):
        data = value.encode("utf-8")
    else:
        data = str(value).encode("utf-8")
    if seed is not None:
        data += str(seed).encode("utf-8")
    return data


def hash64(value: Hashable, seed: SeedType = None) -> int:
    """Hash a value (optionally salted by seed) to an unsigned 64-bit integer.

    Args:
        value: bytes are hashed as-is, strings as UTF-8, anything else via str().
        seed: Optional salt appended to the encoded value.

    Returns:
        Integer in [0, 2^64).
    """
    digest = hashlib.sha256(_encode(value, seed)).digest()
    return struct.unpack(">Q", digest[:8])[0]


@dataclass(frozen=True, slots=True)
class HashSpace:
    """A half-open integer hash domain ``[lower, upper)``.

    Attributes:
        lower: Smallest hash value (inclusive).
        upper: Largest hash value (exclusive).

    Example:
        space = HashSpace()              # signed 64-bit, size 2^64
        h = space.hash("alice", seed="s-1")

        toy = HashSpace(lower=0, upper=16)
        toy.size                         # 16
    """

    lower: int = SIGNED_LOWER
    upper: int = SIGNED_UPPER

    def __post_init__(self) -> None:
        if self.upper <= self.lower:
            raise ValueError(
                f"hash space must be non-empty, got [{self.lower}, {self.upper})"
            )

    @property
    def size(self) -> int:
        """Number of distinct hash values in the domain (R = upper - lower)."""
        return self.upper - self.lower

    def __contains__(self, h: int) -> bool:
        return self.lower <= h < self.upper

    def hash(self, value: Hashable, seed: SeedType = None) -> int:
        """Hash a value into this domain.

        The unsigned fingerprint is scaled onto the domain, which keeps it
        uniform for any domain size. For the default signed 64-bit space
        this is the fingerprint shifted down by 2^63.
        """
        return self.lower + ((hash64(value, seed) * self.size) >> HASH_BITS)


DEFAULT_HASH_SPACE = HashSpace()
