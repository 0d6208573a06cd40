"""Tests for the calculation cache."""

import pytest

from warikan import ledger
from warikan.cache import CalculationCache, make_key
from warikan.config import get_settings
from warikan.models import Member, Payment


@pytest.fixture
def duo() -> tuple[list[Member], list[Payment]]:
    a = Member(id="a", name="Aki")
    b = Member(id="b", name="Ben")
    return [a, b], [Payment(payer_id="a", amount=100)]


class TestMakeKey:
    """Tests for cache key construction."""

    def test_prefix(self) -> None:
        assert make_key("balances", [1]).startswith("balances:")

    def test_key_order_independent(self) -> None:
        assert make_key("x", {"a": 1, "b": 2}) == make_key("x", {"b": 2, "a": 1})


@pytest.mark.usefixtures("cache_on")
class TestCalculationCache:
    """Tests for CalculationCache."""

    def test_balances_match_ledger(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        assert CalculationCache.balances(members, payments) == ledger.calculate_member_balances(
            members, payments
        )

    def test_second_call_hits(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        first = CalculationCache.balances(members, payments)
        second = CalculationCache.balances(members, payments)

        assert first == second
        assert first is not second
        assert CalculationCache.stats()["hits"] == 1
        assert CalculationCache.stats()["misses"] == 1

    def test_returned_list_is_a_copy(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        CalculationCache.balances(members, payments).clear()
        assert len(CalculationCache.balances(members, payments)) == 2

    def test_different_inputs_miss(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        CalculationCache.balances(members, payments)
        more = [*payments, Payment(payer_id="b", amount=40)]
        balances = CalculationCache.balances(members, more)

        assert [b.balance for b in balances] == [30, -30]
        assert CalculationCache.stats()["hits"] == 0

    def test_renamed_member_misses(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        CalculationCache.balances(members, payments)
        renamed = [members[0].model_copy(update={"name": "Akira"}), members[1]]
        balances = CalculationCache.balances(renamed, payments)
        assert balances[0].member_name == "Akira"

    def test_settlements(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        balances = CalculationCache.balances(members, payments)
        first = CalculationCache.settlements(balances)
        second = CalculationCache.settlements(balances)

        assert first == second
        assert [(s.from_member, s.to_member, s.amount) for s in first] == [("Ben", "Aki", 50)]
        assert CalculationCache.stats()["hits"] == 1

    def test_clear(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        CalculationCache.balances(members, payments)
        CalculationCache.clear()

        assert CalculationCache.stats()["size"] == 0
        CalculationCache.balances(members, payments)
        assert CalculationCache.stats()["misses"] == 2

    def test_lru_eviction(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WARIKAN_CACHE_SIZE", "2")
        get_settings.cache_clear()

        CalculationCache.set("one", [1])
        CalculationCache.set("two", [2])
        CalculationCache.get("one")  # "two" is now least recently used
        CalculationCache.set("three", [3])

        assert CalculationCache.get("one") == [1]
        assert CalculationCache.get("two") is None
        assert CalculationCache.get("three") == [3]
        assert CalculationCache.stats()["size"] == 2

    def test_disabled(
        self, monkeypatch: pytest.MonkeyPatch, duo: tuple[list[Member], list[Payment]]
    ) -> None:
        monkeypatch.setenv("WARIKAN_CACHE_ENABLED", "false")
        get_settings.cache_clear()
        members, payments = duo

        CalculationCache.balances(members, payments)
        CalculationCache.balances(members, payments)

        assert CalculationCache.stats() == {"size": 0, "hits": 0, "misses": 0}


class TestCacheDefault:
    """Tests for the cache's default setting."""

    def test_off_by_default(self, duo: tuple[list[Member], list[Payment]]) -> None:
        members, payments = duo
        assert not CalculationCache.enabled()

        first = CalculationCache.balances(members, payments)
        second = CalculationCache.balances(members, payments)

        assert first == second
        assert CalculationCache.stats() == {"size": 0, "hits": 0, "misses": 0}
