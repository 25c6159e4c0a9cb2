"""External graph endpoint configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_GRAPH_TIMEOUT_SECONDS = 15.0
DEFAULT_GRAPH_RATE_LIMIT = 10.0


@dataclass(frozen=True, slots=True)
class GraphConfig:
    """Holds the GraphQL endpoint and its HTTP resilience settings."""

    endpoint: str
    resilience: ResilienceConfig


def get_graph_config(*, resilience: ResilienceConfig | None = None) -> GraphConfig:
    values = require_env_vars(("REABRIDGE_GRAPH_URL",))
    endpoint = values["REABRIDGE_GRAPH_URL"].strip()
    timeout = optional_float_env("REABRIDGE_GRAPH_TIMEOUT") or DEFAULT_GRAPH_TIMEOUT_SECONDS
    calls_per_second = optional_float_env("REABRIDGE_GRAPH_RATE_LIMIT") or DEFAULT_GRAPH_RATE_LIMIT

    return GraphConfig(
        endpoint=endpoint,
        resilience=resilience
        or ResilienceConfig(
            base_url=endpoint,
            timeout_seconds=timeout,
            ratelimit=RateLimit(max_calls=max(1, int(calls_per_second)), per_seconds=1.0),
            default_headers={"Content-Type": "application/json"},
        ),
    )
