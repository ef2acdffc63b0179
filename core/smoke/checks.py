"""SQL smoke checks against a provisioned database.

Each check exercises one extension's SQL surface inside a transaction that is
always rolled back, so running the suite leaves no tables behind.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy import text

from core.types import SmokeResult

logger = logging.getLogger(__name__)

# Empire State Building, lon/lat (SRID 4326)
REFERENCE_POINT = (-73.9857, 40.7484)
DISTANCE_METERS = 100_000

VECTOR_ROWS = {
    1: "[1,2,3]",
    2: "[4,5,6]",
    3: "[1,2,4]",
    4: "[10,10,10]",
}
VECTOR_QUERY = "[1,2,3]"

BM25_ROWS = (
    "Ergonomic metal keyboard",
    "Plastic keyboard with backlight",
    "Running shoes for trail",
)
BM25_QUERY = "keyboard"


def _scratch_name(prefix: str) -> str:
    return f"pgstack_smoke_{prefix}_{uuid.uuid4().hex[:8]}"


def _in_rollback(engine: Any, fn: Callable[[Any], SmokeResult]) -> SmokeResult:
    with engine.connect() as conn:
        trans = conn.begin()
        try:
            return fn(conn)
        finally:
            trans.rollback()


def check_postgis_distance(engine: Any) -> SmokeResult:
    """A stored point is reported within 100 km of itself."""

    def run(conn: Any) -> SmokeResult:
        conn.execute(
            text(
                "CREATE TEMP TABLE smoke_places ("
                "id serial PRIMARY KEY, name text NOT NULL, geom geometry(Point, 4326))"
            )
        )
        lon, lat = REFERENCE_POINT
        conn.execute(
            text("INSERT INTO smoke_places (name, geom) VALUES ('reference', ST_SetSRID(ST_MakePoint(:lon, :lat), 4326))"),
            {"lon": lon, "lat": lat},
        )
        rows = conn.execute(
            text(
                """
                SELECT name
                FROM smoke_places
                WHERE ST_DWithin(
                    geom::geography,
                    ST_SetSRID(ST_MakePoint(:lon, :lat), 4326)::geography,
                    :meters
                )
                """
            ),
            {"lon": lon, "lat": lat, "meters": DISTANCE_METERS},
        ).fetchall()

        names = [str(r[0]) for r in rows]
        passed = names == ["reference"]
        return SmokeResult(
            name="postgis_distance",
            passed=passed,
            message="point found within radius" if passed else "point not found within radius",
            details={"matches": names},
        )

    return _in_rollback(engine, run)


def check_timescale_buckets(engine: Any) -> SmokeResult:
    """A hypertable answers an hourly time_bucket aggregation."""
    table = _scratch_name("metrics")
    start = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    # 3 readings in the first hour, 2 in the second
    offsets = (0, 15, 45, 60, 90)
    expected = [3, 2]

    def run(conn: Any) -> SmokeResult:
        conn.execute(
            text(f"CREATE TABLE {table} (time timestamptz NOT NULL, device text NOT NULL, value double precision)")
        )
        conn.execute(text("SELECT create_hypertable(:table, 'time')"), {"table": table})
        conn.execute(
            text(f"INSERT INTO {table} (time, device, value) VALUES (:time, 'reference', :value)"),
            [{"time": start + timedelta(minutes=m), "value": float(i)} for i, m in enumerate(offsets)],
        )
        rows = conn.execute(
            text(
                f"""
                SELECT time_bucket('1 hour', time) AS bucket, count(*) AS readings
                FROM {table}
                GROUP BY bucket
                ORDER BY bucket
                """
            )
        ).fetchall()

        counts = [int(r[1]) for r in rows]
        passed = counts == expected
        return SmokeResult(
            name="timescale_buckets",
            passed=passed,
            message="hourly buckets match" if passed else f"expected {expected} per bucket, got {counts}",
            details={"buckets": [str(r[0]) for r in rows], "counts": counts},
        )

    return _in_rollback(engine, run)


def check_vector_ordering(engine: Any) -> SmokeResult:
    """Nearest-neighbour results come back in non-decreasing distance order."""

    def run(conn: Any) -> SmokeResult:
        conn.execute(text("CREATE TEMP TABLE smoke_items (id int PRIMARY KEY, embedding vector(3))"))
        conn.execute(
            text("INSERT INTO smoke_items (id, embedding) VALUES (:id, CAST(:embedding AS vector))"),
            [{"id": k, "embedding": v} for k, v in VECTOR_ROWS.items()],
        )
        conn.execute(text("CREATE INDEX ON smoke_items USING hnsw (embedding vector_l2_ops)"))
        rows = conn.execute(
            text(
                """
                SELECT id, embedding <-> CAST(:query_vector AS vector) AS distance
                FROM smoke_items
                ORDER BY embedding <-> CAST(:query_vector AS vector)
                LIMIT :k
                """
            ),
            {"query_vector": VECTOR_QUERY, "k": len(VECTOR_ROWS)},
        ).fetchall()

        ids = [int(r[0]) for r in rows]
        distances = [float(r[1]) for r in rows]
        ordered = all(a <= b for a, b in zip(distances, distances[1:]))
        passed = ordered and bool(ids) and ids[0] == 1
        return SmokeResult(
            name="vector_ordering",
            passed=passed,
            message="distances non-decreasing" if passed else "nearest-neighbour order is wrong",
            details={"ids": ids, "distances": distances},
        )

    return _in_rollback(engine, run)


def check_bm25_search(engine: Any) -> SmokeResult:
    """A bm25 index ranks matching rows and skips the rest."""
    table = _scratch_name("docs")

    def run(conn: Any) -> SmokeResult:
        conn.execute(text(f"CREATE TABLE {table} (id serial PRIMARY KEY, description text NOT NULL)"))
        conn.execute(
            text(f"INSERT INTO {table} (description) VALUES (:description)"),
            [{"description": d} for d in BM25_ROWS],
        )
        conn.execute(
            text(f"CREATE INDEX {table}_bm25 ON {table} USING bm25 (id, description) WITH (key_field = 'id')")
        )
        rows = conn.execute(
            text(
                f"""
                SELECT description, paradedb.score(id) AS score
                FROM {table}
                WHERE description @@@ :query
                ORDER BY score DESC
                """
            ),
            {"query": BM25_QUERY},
        ).fetchall()

        matches = [str(r[0]) for r in rows]
        scores = [float(r[1]) for r in rows]
        expected = sorted(d for d in BM25_ROWS if BM25_QUERY in d.lower())
        passed = sorted(matches) == expected and all(s > 0 for s in scores)
        return SmokeResult(
            name="bm25_search",
            passed=passed,
            message="bm25 matches ranked" if passed else f"unexpected matches: {matches}",
            details={"matches": matches, "scores": scores},
        )

    return _in_rollback(engine, run)


SMOKE_CHECKS: tuple[Callable[[Any], SmokeResult], ...] = (
    check_postgis_distance,
    check_timescale_buckets,
    check_vector_ordering,
    check_bm25_search,
)


def run_smoke_checks(engine: Any, checks=SMOKE_CHECKS) -> list[SmokeResult]:
    """Run every check; a failing check does not stop the others."""
    results = []
    for check in checks:
        name = check.__name__.removeprefix("check_")
        try:
            result = check(engine)
        except Exception as exc:
            logger.warning(f"Smoke check {name} raised {type(exc).__name__}")
            result = SmokeResult(name=name, passed=False, message=f"{type(exc).__name__}: {exc}")
        else:
            log = logger.info if result.passed else logger.warning
            log(f"Smoke check {result.name}: {result.message}")
        results.append(result)
    return results
