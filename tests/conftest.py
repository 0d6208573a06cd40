"""Shared test fixtures for Warikan tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from warikan.cache import CalculationCache
from warikan.config import get_settings
from warikan.models import Member
from warikan.state import WarikanStore
from warikan.storage import StateStorage


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point settings at a temp state file and start every test with a cold cache."""
    for var in ("WARIKAN_MAX_AMOUNT", "WARIKAN_CACHE_ENABLED", "WARIKAN_CACHE_SIZE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("WARIKAN_STATE_FILE", str(tmp_path / "default-state.json"))
    monkeypatch.setenv("WARIKAN_AUTOSAVE_DELAY", "0")
    get_settings.cache_clear()
    CalculationCache.clear()
    CalculationCache.reset_stats()
    yield
    get_settings.cache_clear()
    CalculationCache.clear()


@pytest.fixture
def cache_on(monkeypatch: pytest.MonkeyPatch) -> None:
    """Switch the calculation cache on."""
    monkeypatch.setenv("WARIKAN_CACHE_ENABLED", "true")
    get_settings.cache_clear()


@pytest.fixture
def members() -> list[Member]:
    """Four members in canonical order A, B, C, D."""
    return [Member(id=f"m-{name.lower()}", name=name) for name in ("A", "B", "C", "D")]


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "warikan" / "state.json"


@pytest.fixture
def storage(state_file: Path) -> StateStorage:
    return StateStorage(state_file)


@pytest.fixture
def store() -> WarikanStore:
    """An in-memory store."""
    return WarikanStore()


@pytest.fixture
def trip_store() -> WarikanStore:
    """An in-memory store with an event and three members."""
    store = WarikanStore()
    store.set_event_name("Hakone Trip")
    for name in ("Aki", "Ben", "Chie"):
        store.add_member(name)
    return store
