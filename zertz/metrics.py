"""Prometheus metrics for the Zertz rules service.

Counters are labeled so the HTTP adapter's traffic can be split by
endpoint and outcome, and committed moves by move type.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter


RULES_REQUESTS: Final[Counter] = Counter(
    "zertz_rules_requests_total",
    "Total rules endpoint requests, labeled by endpoint and outcome.",
    labelnames=("endpoint", "outcome"),
)

MOVES_APPLIED: Final[Counter] = Counter(
    "zertz_moves_applied_total",
    "Total moves committed through /rules/apply_move, labeled by move_type.",
    labelnames=("move_type",),
)

GAMES_FINISHED: Final[Counter] = Counter(
    "zertz_games_finished_total",
    "Total games ended by a committed move, labeled by win_type.",
    labelnames=("win_type",),
)


def observe_request(endpoint: str, outcome: str) -> None:
    RULES_REQUESTS.labels(endpoint=endpoint, outcome=outcome).inc()
