"""Keyword patterns for the heuristic classification fallback.

This module contains data-only definitions used by classification.py:
- REGION_PATTERNS: ordered (label, keywords) pairs for the region dimension
- SECTOR_PATTERNS: ordered (label, keywords) pairs for the sector dimension
- ASSET_CLASS_PATTERNS: ordered (label, keywords) pairs for the asset class

Lists are scanned in order and the first pattern with any keyword contained
in the lower-cased ``"{identifier} {display_name}"`` wins.  Keywords with
trailing spaces (``"us "``) are deliberate word-boundary approximations.
French keywords are kept because fund names from French brokers use them.
"""

REGION_WORLD = "World"
REGION_USA = "USA"
REGION_EUROPE = "Europe"
REGION_ASIA = "Asia"
REGION_EMERGING = "Emerging Markets"

SECTOR_DIVERSIFIED = "Diversified"
ASSET_CLASS_EQUITY = "Equity"

REGION_PATTERNS = (
    (REGION_WORLD, ("world", "monde", "global", "all-world", "acwi", "msci world", "ftse all")),
    (REGION_USA, (
        "s&p 500", "sp500", "s&p500", "us ", "usa", "united states", "america",
        "nasdaq", "dow jones", "russell",
    )),
    (REGION_EUROPE, (
        "europe", "euro", "stoxx", "eurostoxx", "cac", "dax", "ftse 100", "uk ", "eurozone",
    )),
    (REGION_ASIA, (
        "asia", "pacific", "japan", "china", "hong kong", "korea", "taiwan", "nikkei",
        "hang seng", "topix",
    )),
    (REGION_EMERGING, (
        "emerging", "émergent", "em ", "bric", "brazil", "india", "south africa", "mexico",
        "developing",
    )),
)

SECTOR_PATTERNS = (
    ("Technology", (
        "tech", "technology", "software", "cloud", "ai ", "artificial", "cyber", "digital",
        "semiconductor", "chip",
    )),
    ("Healthcare", (
        "health", "santé", "pharma", "biotech", "medical", "healthcare", "drug", "therapeut",
    )),
    ("Energy", (
        "energy", "énergie", "oil", "gas", "petrol", "solar", "wind", "clean energy", "renewable",
    )),
    ("Financials", ("financ", "bank", "insurance", "asset", "credit", "capital")),
    ("Real Estate", ("real estate", "immobilier", "reit", "property", "housing")),
    ("Consumer", (
        "consumer", "consomm", "retail", "luxury", "food", "beverage", "restaurant", "hotel",
        "travel",
    )),
    ("Industrials", (
        "industr", "manufactur", "aerospace", "defense", "transport", "logistics", "machinery",
    )),
    ("Materials", ("material", "mining", "steel", "chemical", "metal")),
    ("Telecommunications", ("telecom", "communication", "media", "5g")),
    ("Utilities", ("utility", "utilities", "electric", "water", "infrastructure")),
)

ASSET_CLASS_PATTERNS = (
    ("Bonds", (
        "bond", "obligation", "treasury", "fixed income", "debt", "sovereign",
        "corporate bond", "aggregate", "high yield",
    )),
    ("Commodities", (
        "gold", "silver", "argent", "platinum", "commodity", "commodit", "oil ", "metal",
        "agriculture",
    )),
    ("Real Estate", ("reit", "real estate", "immobilier", "property")),
    ("Crypto", ("crypto", "bitcoin", "ethereum", "btc", "eth", "blockchain", "defi")),
    ("Cash", ("cash", "money market", "liquidity", "deposit", "savings", "livret")),
)
