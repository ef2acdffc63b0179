"""SQL smoke checks for the bundled extensions."""

from core.smoke.checks import (
    SMOKE_CHECKS,
    check_bm25_search,
    check_postgis_distance,
    check_timescale_buckets,
    check_vector_ordering,
    run_smoke_checks,
)

__all__ = [
    "SMOKE_CHECKS",
    "check_bm25_search",
    "check_postgis_distance",
    "check_timescale_buckets",
    "check_vector_ordering",
    "run_smoke_checks",
]
