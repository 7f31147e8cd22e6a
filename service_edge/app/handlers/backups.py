"""
Backups family: snapshot a worker script or page project into the object
store and restore worker scripts from it.
"""

import uuid
from datetime import datetime, timezone

from fastapi.responses import JSONResponse

from shared.errors import StoreError
from shared.logging import get_logger
from ..responses import fail, ok
from ..routing import RequestContext, ResourceFamily, RouteTable
from .models import BackupCreateRequest

logger = get_logger("edge.backups")

BACKUP_LIST_LIMIT = 100
DEFAULT_RESTORE_CONTENT_TYPE = "application/javascript"


def backup_key(prefix: str, entity_type: str, entity_name: str, backup_id: str) -> str:
    return f"{prefix}/{entity_type}/{entity_name}/{backup_id}.json"


async def list_backups(ctx: RequestContext) -> JSONResponse:
    try:
        backups = await ctx.store.list_backups(BACKUP_LIST_LIMIT)
    except StoreError as exc:
        return fail(exc.message or "Failed to list backups")
    return ok(backups)


async def create_backup(ctx: RequestContext) -> JSONResponse:
    body = await ctx.parse_body(BackupCreateRequest)
    backup_id = str(uuid.uuid4())
    key = backup_key(ctx.config.backup_key_prefix, body.entity_type, body.entity_name, backup_id)
    now = datetime.now(timezone.utc).isoformat()

    async with ctx.jobs.track("create_backup", body.entity_type, body.entity_name, ctx.user_email) as job:
        if body.entity_type == "worker":
            path = ctx.upstream.script_path(body.entity_name)
        else:
            path = ctx.upstream.project_path(body.entity_name)
        source = await ctx.upstream.request("GET", path, operation=f"backup_{body.entity_type}")
        if not source.ok:
            job.fail(f"Upstream returned {source.status_code}")
            return fail(f"Failed to fetch {body.entity_type} for backup", 500)

        try:
            size_bytes = await ctx.bucket.put(key, source.content, {
                "entity_type": body.entity_type,
                "entity_name": body.entity_name,
                "content_type": source.content_type or DEFAULT_RESTORE_CONTENT_TYPE,
                "created_at": now,
                "created_by": ctx.user_email,
            })
            await ctx.store.insert_backup(backup_id, body.entity_type, body.entity_name, key,
                                          size_bytes, ctx.user_email)
        except StoreError as exc:
            job.fail(exc.message)
            return fail(exc.message or "Failed to create backup")

    logger.info("Backup created", backup_id=backup_id, entity=body.entity_name, size_bytes=size_bytes)
    return ok({
        "id": backup_id,
        "entity_type": body.entity_type,
        "entity_name": body.entity_name,
        "object_key": key,
        "size_bytes": size_bytes,
        "created_at": now,
    })


async def restore_backup(ctx: RequestContext) -> JSONResponse:
    backup_id = ctx.params["id"]
    try:
        backup = await ctx.store.get_backup(backup_id)
    except StoreError as exc:
        return fail(exc.message or "Failed to restore backup")
    if backup is None:
        return fail("Backup not found", 404)

    async with ctx.jobs.track("restore_backup", backup["entity_type"], backup["entity_name"], ctx.user_email) as job:
        try:
            content = await ctx.bucket.get(backup["object_key"])
            metadata = await ctx.bucket.metadata(backup["object_key"]) if content is not None else {}
        except StoreError as exc:
            job.fail(exc.message)
            return fail(exc.message or "Failed to restore backup")
        if content is None:
            job.fail("Backup content not found")
            return fail("Backup content not found", 404)

        # Page projects are only acknowledged; redeploying them is out of reach here.
        if backup["entity_type"] == "worker":
            upstream = await ctx.upstream.request(
                "PUT",
                ctx.upstream.script_path(backup["entity_name"]),
                operation="restore_worker",
                content=content,
                headers={"Content-Type": metadata.get("content_type", DEFAULT_RESTORE_CONTENT_TYPE)},
            )
            if not upstream.ok:
                job.fail(f"Upstream returned {upstream.status_code}")
                return fail("Failed to restore worker", 500)

    return ok({"id": backup_id, "entity_type": backup["entity_type"], "entity_name": backup["entity_name"]})


def family() -> ResourceFamily:
    table = RouteTable()
    table.add("GET", "/api/backups", list_backups)
    table.add("POST", "/api/backups", create_backup)
    table.add("POST", "/api/backups/{id}/restore", restore_backup)
    return ResourceFamily("backups", ("/api/backups",), table)
