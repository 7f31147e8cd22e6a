"""
Jobs family: the audit trail of mutating operations.
"""

from fastapi.responses import JSONResponse

from shared.errors import StoreError
from ..responses import fail, ok
from ..routing import RequestContext, ResourceFamily, RouteTable

JOB_LIST_LIMIT = 100


async def list_jobs(ctx: RequestContext) -> JSONResponse:
    try:
        jobs = await ctx.store.list_jobs(JOB_LIST_LIMIT)
    except StoreError as exc:
        return fail(exc.message or "Failed to list jobs")
    return ok(jobs)


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/jobs", list_jobs)
    return ResourceFamily("jobs", ("/api/jobs",), table)
