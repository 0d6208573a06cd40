"""Process-wide memoization for balance and settlement calculations."""

import json
import logging
from collections import OrderedDict
from collections.abc import Sequence
from typing import Any, ClassVar

from . import ledger
from .config import get_settings
from .models import Member, MemberBalance, Payment, Settlement

logger = logging.getLogger(__name__)


def make_key(prefix: str, data: Any) -> str:
    """Build a cache key from a JSON snapshot of the inputs."""
    return f"{prefix}:{json.dumps(data, sort_keys=True, default=str)}"


class CalculationCache:
    """
    In-memory LRU cache for derived calculations.

    Keys are snapshots of the inputs, so a hit is always correct for the
    inputs given; the state layer still clears the cache on every mutation
    to keep it from filling with stale snapshots. Cached values are lists of
    frozen models and are handed out as fresh lists.
    """

    _entries: ClassVar[OrderedDict[str, list[Any]]] = OrderedDict()
    _hits: ClassVar[int] = 0
    _misses: ClassVar[int] = 0

    @classmethod
    def enabled(cls) -> bool:
        return get_settings().cache_enabled

    @classmethod
    def get(cls, key: str) -> list[Any] | None:
        """Get a cached value, marking it most recently used."""
        if key in cls._entries:
            cls._entries.move_to_end(key)
            cls._hits += 1
            return list(cls._entries[key])
        cls._misses += 1
        return None

    @classmethod
    def set(cls, key: str, value: Sequence[Any]) -> None:
        """Cache a value, evicting the least recently used entries over the limit."""
        cls._entries[key] = list(value)
        cls._entries.move_to_end(key)
        max_size = max(get_settings().cache_size, 0)
        while len(cls._entries) > max_size:
            evicted, _ = cls._entries.popitem(last=False)
            logger.debug("Evicted cache entry %s", evicted.split(":", 1)[0])

    @classmethod
    def clear(cls) -> None:
        """Clear all cached calculations."""
        cls._entries.clear()

    @classmethod
    def stats(cls) -> dict[str, int]:
        return {"size": len(cls._entries), "hits": cls._hits, "misses": cls._misses}

    @classmethod
    def reset_stats(cls) -> None:
        cls._hits = 0
        cls._misses = 0

    @classmethod
    def balances(
        cls,
        members: Sequence[Member],
        payments: Sequence[Payment],
    ) -> list[MemberBalance]:
        """Memoized ledger.calculate_member_balances."""
        if not cls.enabled():
            return ledger.calculate_member_balances(members, payments)

        key = make_key(
            "balances",
            {
                "members": [m.model_dump(mode="json", include={"id", "name"}) for m in members],
                "payments": [
                    p.model_dump(mode="json", include={"id", "payer_id", "amount"})
                    for p in payments
                ],
            },
        )
        cached = cls.get(key)
        if cached is not None:
            logger.debug("Balance cache hit")
            return cached

        result = ledger.calculate_member_balances(members, payments)
        cls.set(key, result)
        return result

    @classmethod
    def settlements(cls, balances: Sequence[MemberBalance]) -> list[Settlement]:
        """Memoized ledger.calculate_minimal_settlements."""
        if not cls.enabled():
            return ledger.calculate_minimal_settlements(balances)

        key = make_key("settlements", [b.model_dump(mode="json") for b in balances])
        cached = cls.get(key)
        if cached is not None:
            logger.debug("Settlement cache hit")
            return cached

        result = ledger.calculate_minimal_settlements(balances)
        cls.set(key, result)
        return result
