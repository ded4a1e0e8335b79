"""Loaders for the static reference tables shipped with the package.

The YAML files in this directory are read once per process (``lru_cache``)
and exposed as read-only mappings, so the resolver and registry built from
them can be shared across threads without locking.
"""

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from diversification.core.errors import InvalidInputError
from diversification.core.models import Classification, CompositionEntry, normalize_label

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent
CLASSIFICATIONS_PATH = DATA_DIR / "classifications.yaml"
COMPOSITIONS_PATH = DATA_DIR / "compositions.yaml"

# Weight maps further than this from 100 are logged on load.
_WEIGHT_SUM_TOLERANCE = 0.5


def _read_yaml(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path}: expected a mapping at top level")
    return data


def _parse_classification_table(raw: Optional[dict], source: str) -> Mapping[str, Classification]:
    table: dict[str, Classification] = {}
    for identifier, record in (raw or {}).items():
        if not isinstance(record, dict):
            raise InvalidInputError(f"{source}: entry {identifier!r} is not a mapping")
        table[str(identifier).strip().upper()] = Classification(
            region=normalize_label(record.get("region")),
            sector=normalize_label(record.get("sector")),
            asset_class=normalize_label(record.get("asset_class")),
        )
    return MappingProxyType(table)


def _parse_weights(raw, identifier: str, kind: str) -> dict[str, float]:
    weights: dict[str, float] = {}
    for label, pct in (raw or {}).items():
        try:
            value = float(pct)
        except (TypeError, ValueError):
            raise InvalidInputError(
                f"composition {identifier}: {kind} weight for {label!r} is not a number"
            ) from None
        if value < 0:
            raise InvalidInputError(
                f"composition {identifier}: {kind} weight for {label!r} is negative"
            )
        weights[str(label)] = value
    total = sum(weights.values())
    if weights and abs(total - 100.0) > _WEIGHT_SUM_TOLERANCE:
        logger.warning(
            "composition %s: %s weights sum to %.1f, remainder stays unallocated",
            identifier, kind, total,
        )
    return weights


@lru_cache(maxsize=None)
def load_classification_tables(
    path: Path = CLASSIFICATIONS_PATH,
) -> tuple[Mapping[str, Classification], Mapping[str, Classification]]:
    """Load the curated classification database.

    Returns
    -------
    tuple[Mapping, Mapping]
        ``(composites, securities)``, each mapping upper-cased identifier
        to :class:`Classification`.
    """
    data = _read_yaml(Path(path))
    composites = _parse_classification_table(data.get("composites"), str(path))
    securities = _parse_classification_table(data.get("securities"), str(path))
    logger.info(
        "Loaded classification database: %d composites, %d securities",
        len(composites), len(securities),
    )
    return composites, securities


@lru_cache(maxsize=None)
def load_composition_tables(
    path: Path = COMPOSITIONS_PATH,
) -> tuple[Mapping[str, CompositionEntry], Mapping[str, str]]:
    """Load the composite registry and its alias table.

    Returns
    -------
    tuple[Mapping, Mapping]
        ``(compositions, aliases)``.  Keys are upper-cased base symbols.
    """
    data = _read_yaml(Path(path))
    entries: dict[str, CompositionEntry] = {}
    for identifier, record in (data.get("compositions") or {}).items():
        key = str(identifier).strip().upper()
        if not isinstance(record, dict):
            raise InvalidInputError(f"{path}: composition {key!r} is not a mapping")
        entries[key] = CompositionEntry(
            identifier=key,
            display_name=record.get("name", key),
            geographic_weights=_parse_weights(record.get("geographic"), key, "geographic"),
            sectoral_weights=_parse_weights(record.get("sectoral"), key, "sectoral"),
            last_updated=record.get("last_updated"),
        )

    aliases: dict[str, str] = {}
    for alias, canonical in (data.get("aliases") or {}).items():
        alias_key = str(alias).strip().upper()
        canonical_key = str(canonical).strip().upper()
        if canonical_key not in entries:
            logger.warning("alias %s points at unknown composition %s", alias_key, canonical_key)
        aliases[alias_key] = canonical_key

    logger.info(
        "Loaded composition registry %s: %d entries, %d aliases",
        data.get("version", "?"), len(entries), len(aliases),
    )
    return MappingProxyType(entries), MappingProxyType(aliases)
