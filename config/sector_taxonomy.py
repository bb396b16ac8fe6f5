"""Sector keyword taxonomy with synonym groups.

Each root maps to terms that should be treated as the same sector keyword.
Groups are merged into a symmetric lookup at startup (see dealflow.keywords).
Extend by adding roots or synonyms; keep the terms lowercase.
"""

KEYWORD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "ai": ("artificial intelligence", "machine intelligence", "ai/ml", "machine learning"),
    "ai ml": ("ai", "machine learning", "artificial intelligence"),
    "machine learning": ("ml", "artificial intelligence", "ai"),
    "ml": ("machine learning", "artificial intelligence", "ai"),
    "fintech": (
        "financial technology",
        "finance technology",
        "financial services technology",
        "payments",
        "fintech",
    ),
    "financial services": ("finserv", "banking", "fintech"),
    "ecommerce": ("e-commerce", "online retail", "digital commerce"),
    "e commerce": ("ecommerce", "online retail", "digital commerce"),
    "healthtech": ("digital health", "health care technology", "healthcare"),
    "healthcare": ("health tech", "healthtech", "digital health"),
    "biotech": ("biotechnology", "life sciences"),
    "climatetech": ("climate tech", "clean tech", "cleantech", "sustainability"),
    "cleantech": ("climate tech", "sustainability"),
    "saas": ("software as a service", "cloud software", "b2b software"),
    "software as a service": ("saas", "cloud software"),
    "b2b": ("business to business",),
    "b2c": ("business to consumer",),
    "marketplace": ("platform", "two sided marketplace"),
}

TAXONOMY_VERSION = "sector-taxo-v1"
