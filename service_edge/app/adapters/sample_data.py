"""
Canned vendor responses served when the router runs on a local host.

Timestamps are fixed so repeated local requests return identical bodies.
"""

from typing import Any, Dict, List

SAMPLE_TIME = "2024-12-01T12:00:00+00:00"
SAMPLE_CREATED = "2024-11-01T12:00:00+00:00"


def _ok(result: Any) -> Dict[str, Any]:
    return {"success": True, "result": result, "errors": [], "messages": []}


def workers() -> Dict[str, Any]:
    scripts: List[Dict[str, Any]] = [
        {"id": "api-gateway", "handlers": ["fetch"]},
        {"id": "auth-service", "handlers": ["fetch", "scheduled"]},
        {"id": "image-processor", "handlers": ["fetch"]},
    ]
    for script in scripts:
        script.update(name=script["id"], created_on=SAMPLE_CREATED, modified_on=SAMPLE_TIME)
    return _ok(scripts)


def worker(name: str) -> Dict[str, Any]:
    return _ok({
        "id": name,
        "name": name,
        "created_on": SAMPLE_CREATED,
        "modified_on": SAMPLE_TIME,
        "handlers": ["fetch"],
        "compatibility_date": "2024-12-01",
    })


def created_worker(name: str) -> Dict[str, Any]:
    return _ok({
        "id": name,
        "name": name,
        "created_on": SAMPLE_TIME,
        "modified_on": SAMPLE_TIME,
        "handlers": ["fetch"],
    })


def worker_routes(name: str) -> Dict[str, Any]:
    return _ok([
        {"id": "route-1", "pattern": f"{name}.example.com/*", "script": name,
         "zone_id": "zone-1", "zone_name": "example.com"},
    ])


def zones() -> Dict[str, Any]:
    return _ok([
        {"id": "zone-1", "name": "example.com", "status": "active"},
        {"id": "zone-2", "name": "test.com", "status": "active"},
    ])


def worker_secrets(name: str) -> Dict[str, Any]:
    return _ok([
        {"name": "API_KEY", "type": "secret_text"},
        {"name": "DATABASE_URL", "type": "secret_text"},
    ])


def worker_settings(name: str) -> Dict[str, Any]:
    return _ok({
        "bindings": [
            {"name": "KV_STORE", "type": "kv_namespace", "namespace_id": "abc123"},
            {"name": "MY_BUCKET", "type": "r2_bucket", "bucket_name": "my-bucket"},
        ],
        "usage_model": "standard",
        "compatibility_date": "2024-12-01",
        "compatibility_flags": ["nodejs_compat"],
        "logpush": False,
        "placement": {"mode": "off"},
        "tail_consumers": [],
    })


def worker_schedules(name: str) -> Dict[str, Any]:
    return _ok({
        "schedules": [
            {"cron": "*/5 * * * *", "created_on": SAMPLE_CREATED, "modified_on": SAMPLE_TIME},
            {"cron": "0 0 * * *", "created_on": SAMPLE_CREATED, "modified_on": SAMPLE_TIME},
        ],
    })


def worker_subdomain(name: str) -> Dict[str, Any]:
    return _ok({"enabled": True})


def account_subdomain() -> Dict[str, Any]:
    return _ok({"subdomain": "your-account"})


def _deployment(project: str, deployment_id: str, short_id: str) -> Dict[str, Any]:
    return {
        "id": deployment_id,
        "short_id": short_id,
        "project_name": project,
        "environment": "production",
        "url": f"https://{short_id}.{project}.pages.dev",
        "created_on": SAMPLE_TIME,
        "modified_on": SAMPLE_TIME,
        "latest_stage": {"name": "deploy", "status": "success"},
    }


def pages() -> Dict[str, Any]:
    projects = []
    for project, deployment_id, short_id in (
        ("marketing-site", "deploy-1", "abc123"),
        ("docs-portal", "deploy-2", "def456"),
    ):
        projects.append({
            "id": f"page-{project}",
            "name": project,
            "subdomain": f"{project}.pages.dev",
            "created_on": SAMPLE_CREATED,
            "production_branch": "main",
            "latest_deployment": _deployment(project, deployment_id, short_id),
        })
    return _ok(projects)


def page(name: str) -> Dict[str, Any]:
    return _ok({
        "id": f"page-{name}",
        "name": name,
        "subdomain": f"{name}.pages.dev",
        "created_on": SAMPLE_CREATED,
        "production_branch": "main",
        "build_config": {"build_command": "npm run build", "destination_dir": "dist", "root_dir": "/"},
    })


def page_deployments(name: str) -> Dict[str, Any]:
    return _ok([
        _deployment(name, "deploy-1", "abc123"),
        _deployment(name, "deploy-2", "def456"),
    ])


def page_domains(name: str) -> Dict[str, Any]:
    return _ok([
        {"id": "domain-1", "name": "www.example.com", "status": "active", "created_on": SAMPLE_TIME},
    ])


def metrics(time_range: str) -> Dict[str, Any]:
    return _ok({
        "requests": 1234567,
        "success_rate": 99.8,
        "errors": 2468,
        "cpu_time_p50": 4.2,
        "cpu_time_p90": 8.5,
        "cpu_time_p99": 15.3,
        "duration_p50": 42,
        "duration_p90": 85,
        "duration_p99": 153,
        "time_range": time_range,
    })
