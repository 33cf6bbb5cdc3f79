"""Base protocols for the bounded-memory sketches.

Every sketch in khll summarizes an unbounded stream in memory that does not
grow with the stream. Sketches built independently (one per data partition,
one per seed) are combined with ``merge``; merging is associative and
commutative, so partition granularity and merge order never change the
result.

This module defines the protocols the implementations follow:
- Sketch: common operations (add, merge, clear, memory/item accounting)
- CardinalitySketch: sketches that estimate a distinct count
"""

from abc import ABC, abstractmethod
from typing import TypeVar

T = TypeVar("T")


class Sketch(ABC):
    """Base protocol for all sketches.

    Sketches support:
    - Adding items (with optional counts; duplicates never change the
      distinct-count estimators)
    - Merging two sketches of the same type and configuration
    - Estimating memory usage
    - Clearing state for reuse

    Sketches that hash their input accept a ``seed``. Sketches built with
    different seeds are independent draws over the same data and must not
    be merged with each other.
    """

    @abstractmethod
    def add(self, item: T, count: int = 1) -> None:
        """Add an item to the sketch.

        Args:
            item: The item to add.
            count: Number of occurrences to add (default 1).
        """

    @abstractmethod
    def merge(self, other: "Sketch") -> None:
        """Merge another sketch of the same type into this one, in place.

        After merging, this sketch summarizes the union of both streams, as
        if every item from both had been added to one sketch.

        Raises:
            TypeError: If other is not the same sketch type.
            ValueError: If other has incompatible configuration.
        """

    @property
    @abstractmethod
    def memory_bytes(self) -> int:
        """Approximate memory footprint of the sketch data structures."""

    @property
    @abstractmethod
    def item_count(self) -> int:
        """Sum of all counts added via add() (not a distinct count)."""

    @abstractmethod
    def clear(self) -> None:
        """Reset the sketch to its initial empty state."""


class CardinalitySketch(Sketch):
    """Protocol for sketches that estimate cardinality (distinct count).

    Implementations: KMVSketch, HyperLogLog
    """

    @abstractmethod
    def cardinality(self) -> float:
        """Estimate the number of distinct items added."""
