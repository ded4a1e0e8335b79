"""Composition registry: composite instrument -> geographic / sectoral breakdown.

Lookup order for ``lookup(identifier)``:
  1. base symbol (exchange suffix stripped) against the registry keys
  2. alias table on the base symbol
  3. variants of the raw and alias-resolved forms: hyphen removed, and
     ``.PA`` / ``.L`` / ``.DE`` re-appended (for registries keyed by listing)

Weight maps are returned exactly as stored; nothing here normalises them.
"""

import logging
from functools import lru_cache
from typing import Mapping, Optional

from diversification.core.models import CompositionEntry
from diversification.core.ticker_utils import REGISTRY_EXCHANGE_SUFFIXES, base_symbol
from diversification.data.reference_data import load_composition_tables

logger = logging.getLogger(__name__)


class CompositionRegistry:
    """Read-only view over composite instrument breakdowns and their aliases."""

    def __init__(self, entries: Mapping[str, CompositionEntry],
                 aliases: Optional[Mapping[str, str]] = None):
        self._entries = {k.strip().upper(): v for k, v in entries.items()}
        self._aliases = {
            k.strip().upper(): v.strip().upper() for k, v in (aliases or {}).items()
        }

    @classmethod
    def from_packaged_data(cls) -> "CompositionRegistry":
        entries, aliases = load_composition_tables()
        return cls(entries, aliases)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: str) -> bool:
        return self.lookup(identifier) is not None

    def _direct_or_alias(self, base: str) -> Optional[CompositionEntry]:
        entry = self._entries.get(base)
        if entry is not None:
            return entry
        canonical = self._aliases.get(base)
        if canonical is not None:
            return self._entries.get(canonical)
        return None

    def _variants(self, base: str) -> list[str]:
        forms = [base, base.replace("-", "")]
        canonical = self._aliases.get(base)
        if canonical:
            forms.append(canonical)
        variants: list[str] = []
        for form in forms:
            variants.append(form)
            variants.extend(form + suffix for suffix in REGISTRY_EXCHANGE_SUFFIXES)
        return variants

    def lookup(self, identifier: str) -> Optional[CompositionEntry]:
        """Return the breakdown for *identifier*, or None when it is unknown.

        None means the holding must be treated as a non-decomposable
        individual position.
        """
        base = base_symbol(identifier)
        if not base:
            return None

        entry = self._direct_or_alias(base)
        if entry is not None:
            return entry

        for variant in self._variants(base):
            entry = self._direct_or_alias(variant)
            if entry is not None:
                return entry

        logger.debug("no composition data for %s", identifier)
        return None

    def has_composition(self, identifier: str) -> bool:
        return self.lookup(identifier) is not None

    def available_identifiers(self) -> list[str]:
        """Registry keys, in file order."""
        return list(self._entries)

    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)


@lru_cache(maxsize=1)
def get_default_registry() -> CompositionRegistry:
    """Return the process-wide registry built over the packaged tables."""
    return CompositionRegistry.from_packaged_data()


def lookup_composition(identifier: str) -> Optional[CompositionEntry]:
    """Look *identifier* up in the default registry."""
    return get_default_registry().lookup(identifier)
