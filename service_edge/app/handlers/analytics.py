"""
Analytics family: worker invocation metrics from the vendor GraphQL API.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

from fastapi.responses import JSONResponse

from ..adapters import sample_data
from ..responses import fail_errors, json_response
from ..routing import RequestContext, ResourceFamily, RouteTable

DEFAULT_RANGE = "24h"
TIME_RANGES: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

INVOCATIONS_QUERY = """
query WorkersAnalytics($accountTag: String!, $since: Time!, $until: Time!) {
  viewer {
    accounts(filter: { accountTag: $accountTag }) {
      workersInvocationsAdaptive(
        limit: 1000
        filter: { datetime_geq: $since, datetime_leq: $until }
      ) {
        sum {
          requests
          errors
          cpuTimeUs
        }
        quantiles {
          cpuTimeP50
          cpuTimeP90
          cpuTimeP99
          durationP50
          durationP90
          durationP99
        }
      }
    }
  }
}
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_range(value: str) -> str:
    """Unknown ranges fall back to the default window."""
    return value if value in TIME_RANGES else DEFAULT_RANGE


def query_window(time_range: str, now: Callable[[], datetime] = _utcnow) -> Dict[str, str]:
    until = now()
    since = until - TIME_RANGES[resolve_range(time_range)]
    return {"since": since.isoformat(), "until": until.isoformat()}


async def get_metrics(ctx: RequestContext) -> JSONResponse:
    time_range = resolve_range(ctx.query.get("range", DEFAULT_RANGE))
    if ctx.is_local:
        return json_response(sample_data.metrics(time_range))

    variables = {"accountTag": ctx.config.account_id, **query_window(time_range)}
    upstream = await ctx.upstream.graphql(INVOCATIONS_QUERY, variables)
    if not upstream.is_json or not isinstance(upstream.payload, dict):
        return fail_errors("Failed to fetch metrics")

    errors = upstream.payload.get("errors")
    return json_response({
        "success": not errors,
        "result": upstream.payload.get("data"),
        "errors": errors,
    })


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/metrics", get_metrics)
    return ResourceFamily("metrics", ("/api/metrics",), table)
