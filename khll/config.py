"""Estimator configuration.

EstimatorConfig bundles the constants every estimate depends on. Invalid
values are rejected when the config is built, since they would invalidate
every downstream estimate.

Environment variables read by EstimatorConfig.from_env():
    KHLL_CAPACITY: KMV sketch capacity K (default 2048)
    KHLL_PRECISION: HyperLogLog precision p, M = 2^p registers (default 10)
    KHLL_NUM_SEEDS: Number of independent trials (default 101)
    KHLL_SEED_PREFIX: Prefix of trial seed strings (default "s-")
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from khll.sketching.hyperloglog import DEFAULT_PRECISION, MAX_PRECISION, MIN_PRECISION
from khll.sketching.kmv import DEFAULT_CAPACITY

DEFAULT_NUM_SEEDS = 101
DEFAULT_SEED_PREFIX = "s-"


@dataclass(frozen=True)
class EstimatorConfig:
    """Sketch sizes and trial count.

    Attributes:
        capacity: KMV capacity K.
        precision: HyperLogLog register bits; M = 2^precision.
        num_seeds: Number of independent trials in the harness.
        seed_prefix: Seeds are ``f"{seed_prefix}{i}"`` for i = 1..num_seeds.
    """

    capacity: int = DEFAULT_CAPACITY
    precision: int = DEFAULT_PRECISION
    num_seeds: int = DEFAULT_NUM_SEEDS
    seed_prefix: str = DEFAULT_SEED_PREFIX

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError(f"capacity must be positive, got {self.capacity}")
        if not MIN_PRECISION <= self.precision <= MAX_PRECISION:
            raise ValueError(
                f"precision must be in [{MIN_PRECISION}, {MAX_PRECISION}], got {self.precision}"
            )
        if self.num_seeds <= 0:
            raise ValueError(f"num_seeds must be positive, got {self.num_seeds}")

    @property
    def num_registers(self) -> int:
        return 1 << self.precision

    @classmethod
    def from_env(cls) -> EstimatorConfig:
        """Build a config from KHLL_* environment variables, defaulting unset ones.

        Raises:
            ValueError: If a variable is not an integer or the value is invalid.
        """
        return cls(
            capacity=int(os.environ.get("KHLL_CAPACITY", DEFAULT_CAPACITY)),
            precision=int(os.environ.get("KHLL_PRECISION", DEFAULT_PRECISION)),
            num_seeds=int(os.environ.get("KHLL_NUM_SEEDS", DEFAULT_NUM_SEEDS)),
            seed_prefix=os.environ.get("KHLL_SEED_PREFIX", DEFAULT_SEED_PREFIX),
        )
