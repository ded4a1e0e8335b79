"""Ticker symbol utilities: normalisation and exchange-suffix variants.

Shared by the classification resolver and the composition registry so that
``VWCE``, ``vwce.de`` and ``VWCE.AS`` all reduce to the same lookups.
"""

# Exchange suffixes retried when a bare symbol is not found, in order.
COMMON_EXCHANGE_SUFFIXES = (".PA", ".AS", ".DE", ".L", ".SW")

# Suffixes tried by the composition registry (Paris, London, Xetra).
REGISTRY_EXCHANGE_SUFFIXES = (".PA", ".L", ".DE")


def normalize_symbol(symbol: str) -> str:
    """Upper-case and trim a symbol (``' vwce.de '`` -> ``'VWCE.DE'``)."""
    return (symbol or "").strip().upper()


def base_symbol(symbol: str) -> str:
    """Strip the exchange suffix by splitting on the first dot.

    ``VWCE.DE`` -> ``VWCE``.  Note ``BRK.B`` -> ``BRK``, which is why exact
    matches are always tried before the base symbol.
    """
    return normalize_symbol(symbol).split(".")[0]


def suffix_variants(symbol: str, suffixes=COMMON_EXCHANGE_SUFFIXES) -> list[str]:
    """Return ``base + suffix`` for every suffix, in order."""
    base = base_symbol(symbol)
    return [base + suffix for suffix in suffixes]
