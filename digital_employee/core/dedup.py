"""
Bounded record of message identities already dispatched by this process.
"""

from collections import OrderedDict


class ProcessedIdentities:
    """
    In-memory set of dispatched message identities.

    Lives for the lifetime of the process only. Oldest identities are
    evicted once ``max_size`` is exceeded.
    """

    def __init__(self, max_size: int = 10_000):
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._seen: OrderedDict[str, None] = OrderedDict()

    def add(self, identity: str) -> bool:
        """
        Record an identity.

        Returns:
            True if the identity was new, False if it was already recorded
        """
        if identity in self._seen:
            self._seen.move_to_end(identity)
            return False
        self._seen[identity] = None
        if len(self._seen) > self.max_size:
            self._seen.popitem(last=False)
        return True

    def __contains__(self, identity: str) -> bool:
        return identity in self._seen

    def __len__(self) -> int:
        return len(self._seen)
