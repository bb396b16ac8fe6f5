"""Stage ladder, traction benchmarks and geographic regions."""

# Ordered from earliest to latest; position drives the stage distance.
STAGE_ORDER: tuple[str, ...] = (
    "pre-seed",
    "seed",
    "series a",
    "series b",
    "series c",
    "series d",
    "growth",
    "late stage",
)

# Spellings seen in imports that should land on a ladder rung.
STAGE_ALIASES: dict[str, str] = {
    "preseed": "pre-seed",
    "pre seed": "pre-seed",
    "series-a": "series a",
    "series-b": "series b",
    "series-c": "series c",
    "series-d": "series d",
    "seriesa": "series a",
    "seriesb": "series b",
    "seriesc": "series c",
    "seriesd": "series d",
    "late-stage": "late stage",
    "growth stage": "growth",
    "growth-stage": "growth",
}

# Revenue a company is expected to show at each stage (USD).
STAGE_TARGETS: dict[str, int] = {
    "pre-seed": 100_000,
    "seed": 500_000,
    "series a": 3_000_000,
    "series b": 12_000_000,
    "series c": 30_000_000,
    "series d": 50_000_000,
    "growth": 80_000_000,
    "late stage": 150_000_000,
}
DEFAULT_STAGE_TARGET = 500_000

# Denominators for the growth (percent) and customer ratios.
GROWTH_BENCHMARK = 100
CUSTOMER_BENCHMARK = 1_000
MAX_TRACTION_RATIO = 2.0

REGION_MAP: dict[str, str] = {
    "north america": "americas",
    "usa": "americas",
    "united states": "americas",
    "canada": "americas",
    "latin america": "americas",
    "mexico": "americas",
    "europe": "emea",
    "middle east": "emea",
    "mena": "emea",
    "united kingdom": "emea",
    "germany": "emea",
    "france": "emea",
    "africa": "emea",
    "nigeria": "emea",
    "kenya": "emea",
    "asia": "apac",
    "asia pacific": "apac",
    "india": "apac",
    "china": "apac",
    "singapore": "apac",
    "japan": "apac",
    "australia": "apac",
}
