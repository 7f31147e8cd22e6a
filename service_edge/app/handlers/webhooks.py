"""
Webhooks family: outbound notification subscriptions kept in the metadata store.
"""

from fastapi.responses import JSONResponse

from shared.errors import StoreError
from ..responses import fail, ok
from ..routing import RequestContext, ResourceFamily, RouteTable
from .models import WebhookCreateRequest, WebhookUpdateRequest


async def list_webhooks(ctx: RequestContext) -> JSONResponse:
    try:
        webhooks = await ctx.store.list_webhooks()
    except StoreError as exc:
        return fail(exc.message or "Failed to list webhooks")
    return ok(webhooks)


async def create_webhook(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(WebhookCreateRequest)
    try:
        webhook = await ctx.store.create_webhook(body.name, body.url, body.events, body.secret)
    except StoreError as exc:
        return fail(exc.message or "Failed to create webhook")
    return ok(webhook)


async def update_webhook(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(WebhookUpdateRequest)
    changes = body.changes()
    if not changes:
        return fail("No fields to update", 400)
    try:
        updated = await ctx.store.update_webhook(ctx.params["id"], changes)
    except StoreError as exc:
        return fail(exc.message or "Failed to update webhook")
    if not updated:
        return fail("Webhook not found", 404)
    return ok({"id": ctx.params["id"], **changes})


async def delete_webhook(ctx: RequestContext) -> JSONResponse:
    try:
        deleted = await ctx.store.delete_webhook(ctx.params["id"])
    except StoreError as exc:
        return fail(exc.message or "Failed to delete webhook")
    if not deleted:
        return fail("Webhook not found", 404)
    return ok({"id": ctx.params["id"]})


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/webhooks", list_webhooks)
    table.add("POST", "/api/webhooks", create_webhook)
    table.add("PUT", "/api/webhooks/{id}", update_webhook)
    table.add("DELETE", "/api/webhooks/{id}", delete_webhook)
    return ResourceFamily("webhooks", ("/api/webhooks",), table)
