"""
Staleness heuristic for an index

Compares the number of files an index should contain with the number of
entries in its hash cache. Individual hashes are never inspected.
"""

from ..core.models import HealthReason, HealthReport

MIN_DRIFT = 5
DRIFT_RATIO = 0.2


def drift_threshold(expected: int) -> float:
    """Largest count difference still considered healthy"""
    return max(MIN_DRIFT, DRIFT_RATIO * expected)


def classify_health(expected: int, cached: int) -> HealthReport:
    """
    Classify an index from its expected and cached file counts.

    - empty: nothing cached while files exist
    - mismatch: |expected - cached| exceeds max(5, 20% of expected)
    - ok: otherwise
    """
    if cached == 0 and expected > 0:
        return HealthReport(needs_reindex=True, reason=HealthReason.EMPTY, expected=expected, cached=cached)

    if abs(expected - cached) > drift_threshold(expected):
        return HealthReport(needs_reindex=True, reason=HealthReason.MISMATCH, expected=expected, cached=cached)

    return HealthReport(needs_reindex=False, reason=HealthReason.OK, expected=expected, cached=cached)
