"""Tests for diversification/core/registry.py."""

import pytest

from diversification.core.models import CompositionEntry
from diversification.core.registry import (
    CompositionRegistry,
    get_default_registry,
    lookup_composition,
)


def _entry(identifier, geo=None, sec=None):
    return CompositionEntry(
        identifier=identifier,
        display_name=f"{identifier} fund",
        geographic_weights=geo or {"USA": 100},
        sectoral_weights=sec or {"Technology": 100},
    )


@pytest.fixture
def registry():
    entries = {
        "WRLD": _entry("WRLD", {"USA": 60, "Europe": 40}),
        "SPY": _entry("SPY"),
        "CSPX": _entry("CSPX"),
        "EMRG": _entry("EMRG", {"China": 30, "India": 20}),
    }
    aliases = {"pe500": "spy", "SXR8": "CSPX", "GONE": "MISSING"}
    return CompositionRegistry(entries, aliases)


# ===================================================================
# lookup
# ===================================================================

class TestLookup:
    def test_direct(self, registry):
        assert registry.lookup("WRLD").identifier == "WRLD"

    def test_case_and_suffix_stripped(self, registry):
        assert registry.lookup("wrld.de").identifier == "WRLD"

    def test_alias(self, registry):
        assert registry.lookup("PE500").identifier == "SPY"

    def test_alias_with_suffix(self, registry):
        assert registry.lookup("SXR8.DE").identifier == "CSPX"

    def test_hyphen_variant(self, registry):
        assert registry.lookup("WR-LD").identifier == "WRLD"

    def test_unknown(self, registry):
        assert registry.lookup("NOPE") is None

    def test_alias_to_missing_entry(self, registry):
        assert registry.lookup("GONE") is None

    def test_empty(self, registry):
        assert registry.lookup("") is None

    def test_listing_keyed_registry(self):
        registry = CompositionRegistry({"ABC.PA": _entry("ABC.PA")})
        assert registry.lookup("ABC").identifier == "ABC.PA"

    def test_weights_not_normalised(self, registry):
        entry = registry.lookup("EMRG")
        assert sum(entry.geographic_weights.values()) == 50


class TestRegistryHelpers:
    def test_has_composition(self, registry):
        assert registry.has_composition("SPY.L")
        assert not registry.has_composition("AAPL")

    def test_contains(self, registry):
        assert "PE500" in registry
        assert "AAPL" not in registry

    def test_available_identifiers(self, registry):
        assert registry.available_identifiers() == ["WRLD", "SPY", "CSPX", "EMRG"]

    def test_len(self, registry):
        assert len(registry) == 4

    def test_aliases_copy(self, registry):
        aliases = registry.aliases()
        aliases["X"] = "Y"
        assert "X" not in registry.aliases()
        assert aliases["PE500"] == "SPY"


# ===================================================================
# Packaged registry
# ===================================================================

class TestDefaultRegistry:
    def test_vwce(self):
        entry = lookup_composition("VWCE")
        assert entry is not None
        assert entry.geographic_weights["USA"] == 62
        assert sum(entry.geographic_weights.values()) == pytest.approx(100)

    def test_exchange_listing(self):
        assert lookup_composition("VWCE.DE").identifier == "VWCE"

    def test_packaged_alias(self):
        assert lookup_composition("ACWI").identifier == "VWCE"
        assert lookup_composition("SXR8").identifier == "CSPX"

    def test_direct_entry_beats_alias(self):
        # PAEEM has its own breakdown and is also listed as an alias
        assert lookup_composition("PAEEM").identifier == "PAEEM"

    def test_unknown_stock(self):
        assert lookup_composition("AAPL") is None

    def test_cached(self):
        assert get_default_registry() is get_default_registry()
