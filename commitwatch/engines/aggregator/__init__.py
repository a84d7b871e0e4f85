"""Repository aggregator: on-demand ranked repository/commit view."""

from commitwatch.engines.aggregator.aggregator import aggregate, rank_repositories
from commitwatch.engines.aggregator.models import AggregateError, Aggregation

__all__ = [
    "AggregateError",
    "Aggregation",
    "aggregate",
    "rank_repositories",
]
