"""
Pages family: static-site projects, their deployments and custom domains.
"""

from fastapi.responses import JSONResponse

from ..adapters import sample_data
from ..adapters.cloudflare_client import segment
from ..responses import fail_errors, ok, passthrough
from ..routing import RequestContext, ResourceFamily, RouteTable
from .models import DomainRequest, RollbackRequest


async def list_pages(ctx: RequestContext) -> JSONResponse:
    if ctx.is_local:
        return ok(sample_data.pages()["result"])

    upstream = await ctx.upstream.request("GET", ctx.upstream.account_path("/pages/projects"),
                                          operation="list_pages")
    if not upstream.is_json:
        return fail_errors("Failed to list pages")
    payload = upstream.payload
    if isinstance(payload, dict) and payload.get("success") and isinstance(payload.get("result"), list):
        hidden = ctx.config.hidden_pages
        payload = {**payload, "result": [p for p in payload["result"] if p.get("name") not in hidden]}
    return JSONResponse(payload, status_code=upstream.status_code)


async def get_page(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.page(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.project_path(name), operation="get_page")
    return passthrough(upstream, "Failed to fetch page")


async def delete_page(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    async with ctx.jobs.track("delete_page", "page", name, ctx.user_email) as job:
        upstream = await ctx.upstream.request("DELETE", ctx.upstream.project_path(name), operation="delete_page")
        if not upstream.ok:
            job.fail(f"Upstream returned {upstream.status_code}")
    return passthrough(upstream, "Failed to delete page")


async def list_page_deployments(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.page_deployments(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.project_path(name, "/deployments"),
                                          operation="list_deployments")
    return passthrough(upstream, "Failed to fetch deployments")


async def list_page_domains(ctx: RequestContext) -> JSONResponse:
    name = ctx.params["name"]
    if ctx.is_local:
        return ok(sample_data.page_domains(name)["result"])
    upstream = await ctx.upstream.request("GET", ctx.upstream.project_path(name, "/domains"),
                                          operation="list_domains")
    return passthrough(upstream, "Failed to fetch domains")


async def add_page_domain(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(DomainRequest)
    upstream = await ctx.upstream.request(
        "POST",
        ctx.upstream.project_path(ctx.params["name"], "/domains"),
        operation="add_domain",
        json={"name": body.domain},
    )
    return passthrough(upstream, "Failed to add domain")


async def delete_page_domain(ctx: RequestContext) -> JSONResponse:
    path = ctx.upstream.project_path(ctx.params["name"], f"/domains/{segment(ctx.params['domain'])}")
    upstream = await ctx.upstream.request("DELETE", path, operation="delete_domain")
    return passthrough(upstream, "Failed to delete domain")


async def rollback_deployment(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(RollbackRequest)
    path = ctx.upstream.project_path(
        ctx.params["name"], f"/deployments/{segment(body.deployment_id)}/rollback"
    )
    upstream = await ctx.upstream.request("POST", path, operation="rollback_deployment")
    return passthrough(upstream, "Failed to roll back deployment")


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/pages", list_pages)
    table.add("GET", "/api/pages/{name}", get_page)
    table.add("DELETE", "/api/pages/{name}", delete_page)
    table.add("GET", "/api/pages/{name}/deployments", list_page_deployments)
    table.add("GET", "/api/pages/{name}/domains", list_page_domains)
    table.add("POST", "/api/pages/{name}/domains", add_page_domain)
    table.add("DELETE", "/api/pages/{name}/domains/{domain}", delete_page_domain)
    table.add("POST", "/api/pages/{name}/rollback", rollback_deployment)
    return ResourceFamily("pages", ("/api/pages",), table)
