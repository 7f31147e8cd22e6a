"""
Workers family: scripts, their routes, secrets, settings, schedules and
workers.dev subdomains, plus zone listing for route creation.
"""

import json
from typing import Any, Dict, List

from fastapi.responses import JSONResponse

from shared.errors import UpstreamError
from shared.logging import get_logger
from ..adapters import sample_data
from ..adapters.cloudflare_client import segment
from ..domain.clone import CloneError, WorkerCloner
from ..domain.multipart import module_upload
from ..responses import fail, fail_errors, ok, passthrough
from ..routing import RequestContext, ResourceFamily, RouteTable
from .models import (
    RouteCreateRequest,
    SchedulesRequest,
    SecretRequest,
    SubdomainRequest,
    WorkerCloneRequest,
    WorkerCreateRequest,
)

logger = get_logger("edge.workers")

STARTER_SCRIPT = """export default {{
  async fetch(request, env, ctx) {{
    return new Response('Hello from {name}!');
  }},
}};"""


def _visible(scripts: List[Dict[str, Any]], hidden: List[str]) -> List[Dict[str, Any]]:
    visible = []
    for script in scripts:
        if script.get("id") in hidden:
            continue
        visible.append({**script, "name": script.get("id")})
    return visible


async def list_workers(ctx: RequestContext) -> JSONResponse:
    if ctx.is_local:
        return ok(sample_data.workers()["result"])

    upstream = await ctx.upstream.request("GET", ctx.upstream.account_path("/workers/scripts"),
                                          operation="list_workers")
    if not upstream.is_json:
        return fail_errors("Failed to list workers")
    payload = upstream.payload
    if isinstance(payload, dict) and payload.get("success") and isinstance(payload.get("result"), list):
        payload = {**payload, "result": _visible(payload["result"], ctx.config.hidden_workers)}
    return JSONResponse(payload, status_code=upstream.status_code)


async def create_worker(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(WorkerCreateRequest)
    if ctx.is_local:
        return ok(sample_data.created_worker(body.name)["result"])

    metadata = json.dumps({
        "main_module": "index.js",
        "compatibility_date": ctx.config.default_compatibility_date,
    }).encode("utf-8")
    script = STARTER_SCRIPT.format(name=body.name).encode("utf-8")

    async with ctx.jobs.track("create_worker", "worker", body.name, ctx.user_email) as job:
        upstream = await ctx.upstream.request(
            "PUT",
            ctx.upstream.script_path(body.name),
            operation="create_worker",
            files=module_upload("index.js", script, metadata),
        )
        if not upstream.ok:
            job.fail(f"Upstream returned {upstream.status_code}")
    return passthrough(upstream, "Failed to create worker")


async def get_worker(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.script_path(name), operation="get_worker")
    return passthrough(upstream, "Failed to fetch worker")


async def delete_worker(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    async with ctx.jobs.track("delete_worker", "worker", name, ctx.user_email) as job:
        upstream = await ctx.upstream.request("DELETE", ctx.upstream.script_path(name), operation="delete_worker")
        if not upstream.ok:
            job.fail(f"Upstream returned {upstream.status_code}")
    return passthrough(upstream, "Failed to delete worker")


async def clone_worker(ctx: RequestContext) -> JSONResponse:
    source = ctx.params["name"]
    body = await ctx.parse_body(WorkerCloneRequest)
    cloner = WorkerCloner(ctx.upstream, ctx.config)

    async with ctx.jobs.track("clone_worker", "worker", body.name, ctx.user_email) as job:
        try:
            upstream = await cloner.clone(source, body.name)
        except CloneError as exc:
            job.fail(exc.message)
            return fail(exc.message, 400)
        if not upstream.ok:
            job.fail(f"Upstream returned {upstream.status_code}")
    return passthrough(upstream, "Failed to create cloned worker")


async def list_worker_routes(ctx: RequestContext) -> JSONResponse:
    """Routes live on zones, so scan every zone of the account for this script."""
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker_routes(name)["result"])

    try:
        zones = await ctx.upstream.request(
            "GET", "zones",
            operation="list_zones",
            params={"account.id": ctx.config.account_id, "per_page": 50},
        )
        zone_list = zones.result()
        if not isinstance(zone_list, list):
            return ok([])

        routes: List[Dict[str, Any]] = []
        for zone in zone_list:
            zone_routes = await ctx.upstream.request(
                "GET", f"zones/{segment(zone['id'])}/workers/routes", operation="list_zone_routes"
            )
            for route in zone_routes.result(default=[]) or []:
                if route.get("script") != name:
                    continue
                routes.append({
                    "id": route.get("id"),
                    "pattern": route.get("pattern"),
                    "zone_id": zone["id"],
                    "zone_name": zone.get("name"),
                })
    except UpstreamError as exc:
        logger.error("Failed to fetch worker routes", worker=name, error=exc.message)
        return fail_errors("Failed to fetch routes")
    return ok(routes)


async def create_worker_route(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(RouteCreateRequest)
    upstream = await ctx.upstream.request(
        "POST",
        f"zones/{segment(body.zone_id)}/workers/routes",
        operation="create_route",
        json={"pattern": body.pattern, "script": ctx.params["name"]},
    )
    return passthrough(upstream, "Failed to create route")


async def delete_worker_route(ctx: RequestContext) -> JSONResponse:
    zone_id = ctx.query.get("zone_id")
    if not zone_id:
        return fail_errors("zone_id query parameter required", 400)
    upstream = await ctx.upstream.request(
        "DELETE",
        f"zones/{segment(zone_id)}/workers/routes/{segment(ctx.params['route_id'])}",
        operation="delete_route",
    )
    return passthrough(upstream, "Failed to delete route")


async def list_zones(ctx: RequestContext) -> JSONResponse:
    if ctx.is_local:
        return ok(sample_data.zones()["result"])
    upstream = await ctx.upstream.request(
        "GET", "zones", operation="list_zones", params={"status": "active", "per_page": 100}
    )
    return passthrough(upstream, "Failed to fetch zones")


async def list_worker_secrets(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker_secrets(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.script_path(name, "/secrets"),
                                          operation="list_secrets")
    return passthrough(upstream, "Failed to fetch secrets")


async def add_worker_secret(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(SecretRequest)
    upstream = await ctx.upstream.request(
        "PUT",
        ctx.upstream.script_path(ctx.params["name"], "/secrets"),
        operation="put_secret",
        json={"name": body.name, "text": body.value, "type": "secret_text"},
    )
    return passthrough(upstream, "Failed to add secret")


async def delete_worker_secret(ctx: RequestContext) -> JSONResponse:
    path = ctx.upstream.script_path(ctx.params["name"], f"/secrets/{segment(ctx.params['secret'])}")
    upstream = await ctx.upstream.request("DELETE", path, operation="delete_secret")
    return passthrough(upstream, "Failed to delete secret")


async def get_worker_settings(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker_settings(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.script_path(name, "/settings"),
                                          operation="get_settings")
    return passthrough(upstream, "Failed to fetch settings from Cloudflare API")


async def update_worker_settings(ctx: RequestContext) -> JSONResponse:
    settings = await ctx.json_body()
    upstream = await ctx.upstream.request(
        "PATCH",
        ctx.upstream.script_path(ctx.params["name"], "/settings"),
        operation="update_settings",
        files=[("settings", (None, json.dumps(settings).encode("utf-8"), "application/json"))],
    )
    return passthrough(upstream, "Failed to update settings")


async def get_worker_schedules(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker_schedules(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.script_path(name, "/schedules"),
                                          operation="get_schedules")
    return passthrough(upstream, "Failed to fetch schedules")


async def update_worker_schedules(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(SchedulesRequest)
    upstream = await ctx.upstream.request(
        "PUT",
        ctx.upstream.script_path(ctx.params["name"], "/schedules"),
        operation="update_schedules",
        json=body.schedules,
    )
    return passthrough(upstream, "Failed to update schedules")


async def get_worker_subdomain(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.worker_subdomain(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.script_path(name, "/subdomain"),
                                          operation="get_subdomain")
    return passthrough(upstream, "Failed to fetch subdomain")


async def update_worker_subdomain(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(SubdomainRequest)
    upstream = await ctx.upstream.request(
        "POST",
        ctx.upstream.script_path(ctx.params["name"], "/subdomain"),
        operation="update_subdomain",
        json={"enabled": body.enabled},
    )
    return passthrough(upstream, "Failed to update subdomain")


async def get_account_subdomain(ctx: RequestContext) -> JSONResponse:
    if ctx.is_local:
        return ok(sample_data.account_subdomain()["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.account_path("/workers/subdomain"),
                                          operation="get_account_subdomain")
    return passthrough(upstream, "Failed to fetch account subdomain")


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/workers", list_workers)
    table.add("POST", "/api/workers", create_worker)
    table.add("GET", "/api/workers/{name}", get_worker)
    table.add("DELETE", "/api/workers/{name}", delete_worker)
    table.add("POST", "/api/workers/{name}/clone", clone_worker)
    table.add("GET", "/api/workers/{name}/routes", list_worker_routes)
    table.add("POST", "/api/workers/{name}/routes", create_worker_route)
    table.add("DELETE", "/api/workers/{name}/routes/{route_id}", delete_worker_route)
    table.add("GET", "/api/workers/{name}/secrets", list_worker_secrets)
    table.add("POST", "/api/workers/{name}/secrets", add_worker_secret)
    table.add("DELETE", "/api/workers/{name}/secrets/{secret}", delete_worker_secret)
    table.add("GET", "/api/workers/{name}/settings", get_worker_settings)
    table.add("PATCH", "/api/workers/{name}/settings", update_worker_settings)
    table.add("GET", "/api/workers/{name}/schedules", get_worker_schedules)
    table.add("PUT", "/api/workers/{name}/schedules", update_worker_schedules)
    table.add("GET", "/api/workers/{name}/subdomain", get_worker_subdomain)
    table.add("PUT", "/api/workers/{name}/subdomain", update_worker_subdomain)
    table.add("GET", "/api/zones", list_zones)
    table.add("GET", "/api/workers-subdomain", get_account_subdomain)
    return ResourceFamily("workers", ("/api/workers", "/api/zones", "/api/workers-subdomain"), table)
