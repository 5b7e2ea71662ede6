"""Shared fixtures for modplanner unit tests.

GameData loads the bundled CSV tables through pandas; it is read-only, so a
single instance is shared by the whole session.
"""
import pytest

from modplanner import GameData


@pytest.fixture(scope="session")
def gd() -> GameData:
    """Real GameData using the bundled resources. Loaded once per run."""
    return GameData()


@pytest.fixture(scope="session")
def base_stats() -> dict[str, float]:
    """Round base stats so percent conversions are easy to check by hand."""
    return {
        "health": 10000, "protection": 20000, "speed": 100,
        "critDmg": 150, "potency": 0, "tenacity": 0,
        "physDmg": 1000, "specDmg": 1000,
        "physCritChance": 20, "specCritChance": 10,
        "armor": 100, "resistance": 100, "accuracy": 0, "critAvoid": 0,
    }
