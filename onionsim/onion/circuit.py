"""
onionsim Circuit Selection

Selects the ordered relays a message traverses. A circuit is built
fresh for every message and never reused.
"""

import random
from typing import Iterable, List, Optional

from .. import ONION_LAYERS
from ..errors import InsufficientRelaysError
from ..directory.registry import RelayRecord


class CircuitBuilder:
    """
    Picks k distinct relays uniformly at random, in random order.

    The random source is injectable so that selection can be made
    deterministic in tests; production builders draw from the OS
    CSPRNG.

    Usage:
        builder = CircuitBuilder()
        circuit = builder.build_circuit(directory.list_relays(), k=3)

        # Reproducible selection
        builder = CircuitBuilder.seeded(1234)
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source (default: random.SystemRandom())
        """
        self._rng = rng if rng is not None else random.SystemRandom()

    @classmethod
    def seeded(cls, seed: int) -> 'CircuitBuilder':
        """Create a builder with a deterministic random source."""
        return cls(random.Random(seed))

    def build_circuit(
        self,
        available: Iterable[RelayRecord],
        k: int = ONION_LAYERS,
    ) -> List[RelayRecord]:
        """
        Select a circuit.

        The pool is reduced to one record per relay id and sorted
        before sampling, so the same seed and the same set of relays
        always give the same circuit regardless of input order.

        Args:
            available: Candidate relays
            k: Circuit length

        Returns:
            List of k pairwise-distinct relays, first hop first

        Raises:
            ValueError: If k < 1
            InsufficientRelaysError: If fewer than k distinct relays
                are available
        """
        if k < 1:
            raise ValueError(f"Circuit length must be at least 1, got {k}")

        unique = {}
        for record in available:
            unique.setdefault(record.relay_id, record)

        if len(unique) < k:
            raise InsufficientRelaysError(
                f"Need {k} relays for a circuit, only {len(unique)} available"
            )

        pool = [unique[rid] for rid in sorted(unique)]
        return self._rng.sample(pool, k)
