"""
Tests for the jobs, webhooks and backups families.
"""

import httpx
import respx

from shared.errors import StoreError

SCRIPTS = "https://api.cloudflare.com/client/v4/accounts/acc-1/workers/scripts"


class TestJobs:
    """Test cases for GET /api/jobs."""

    def test_list_jobs(self, client, auth_headers, store):
        jobs = [{"id": "job-1", "operation_type": "delete_worker", "status": "success"}]
        store.list_jobs.return_value = jobs

        response = client.get("/api/jobs", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": jobs}
        store.list_jobs.assert_awaited_once_with(100)

    def test_store_unavailable(self, client, auth_headers, store):
        store.list_jobs.side_effect = StoreError("Metadata store unavailable")

        response = client.get("/api/jobs", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Metadata store unavailable"}


class TestWebhooks:
    """Test cases for the webhooks family."""

    def test_create(self, client, auth_headers, store):
        store.create_webhook.return_value = {"id": "wh-1", "name": "deploys", "enabled": True}

        response = client.post(
            "/api/webhooks",
            json={"name": "deploys", "url": "https://hooks.example.com", "events": ["worker.deployed"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["result"]["id"] == "wh-1"
        store.create_webhook.assert_awaited_once_with(
            "deploys", "https://hooks.example.com", ["worker.deployed"], None
        )

    def test_update_without_fields(self, client, auth_headers, store):
        response = client.put("/api/webhooks/wh-1", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No fields to update"}
        store.update_webhook.assert_not_awaited()

    def test_update_partial(self, client, auth_headers, store):
        store.update_webhook.return_value = True

        response = client.put("/api/webhooks/wh-1", json={"enabled": False}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": {"id": "wh-1", "enabled": False}}
        store.update_webhook.assert_awaited_once_with("wh-1", {"enabled": False})

    def test_update_missing(self, client, auth_headers, store):
        store.update_webhook.return_value = False

        response = client.put("/api/webhooks/wh-9", json={"name": "x"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Webhook not found"

    def test_delete(self, client, auth_headers, store):
        store.delete_webhook.return_value = True

        response = client.delete("/api/webhooks/wh-1", headers=auth_headers)

        assert response.status_code == 200
        store.delete_webhook.assert_awaited_once_with("wh-1")


class TestBackups:
    """Test cases for the backups family."""

    def test_list(self, client, auth_headers, store):
        store.list_backups.return_value = []

        response = client.get("/api/backups", headers=auth_headers)

        assert response.json() == {"success": True, "result": []}
        store.list_backups.assert_awaited_once_with(100)

    @respx.mock
    def test_create_worker_backup(self, client, auth_headers, store, bucket):
        respx.get(f"{SCRIPTS}/api-gateway").mock(return_value=httpx.Response(
            200, content=b"export default {};", headers={"Content-Type": "application/javascript"}
        ))
        bucket.put.return_value = 18

        response = client.post("/api/backups", json={"entity_type": "worker", "entity_name": "api-gateway"},
                               headers=auth_headers)

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["size_bytes"] == 18
        assert result["object_key"] == f"backups/worker/api-gateway/{result['id']}.json"

        key, content, metadata = bucket.put.await_args.args
        assert key == result["object_key"]
        assert content == b"export default {};"
        assert metadata["content_type"] == "application/javascript"
        assert metadata["created_by"] == "dev@example.com"
        store.insert_backup.assert_awaited_once_with(
            result["id"], "worker", "api-gateway", key, 18, "dev@example.com"
        )
        store.finish_job.assert_awaited_once_with("job-1", "success", None)

    @respx.mock
    def test_create_backup_of_missing_worker(self, client, auth_headers, store, bucket):
        respx.get(f"{SCRIPTS}/ghost").mock(return_value=httpx.Response(404, json={"success": False}))

        response = client.post("/api/backups", json={"entity_type": "worker", "entity_name": "ghost"},
                               headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to fetch worker for backup"}
        bucket.put.assert_not_awaited()
        store.finish_job.assert_awaited_once_with("job-1", "failed", "Upstream returned 404")

    def test_restore_unknown_backup(self, client, auth_headers, store):
        store.get_backup.return_value = None

        response = client.post("/api/backups/nope/restore", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Backup not found"}

    def test_restore_missing_object(self, client, auth_headers, store, bucket):
        store.get_backup.return_value = {
            "id": "b-1", "entity_type": "worker", "entity_name": "api-gateway", "object_key": "backups/x.json",
        }
        bucket.get.return_value = None

        response = client.post("/api/backups/b-1/restore", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Backup content not found"

    @respx.mock
    def test_restore_worker(self, client, auth_headers, store, bucket):
        store.get_backup.return_value = {
            "id": "b-1", "entity_type": "worker", "entity_name": "api-gateway", "object_key": "backups/x.json",
        }
        bucket.get.return_value = b"export default {};"
        bucket.metadata.return_value = {"content_type": "application/javascript"}
        upload = respx.put(f"{SCRIPTS}/api-gateway").mock(
            return_value=httpx.Response(200, json={"success": True, "result": {"id": "api-gateway"}})
        )

        response = client.post("/api/backups/b-1/restore", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["result"] == {"id": "b-1", "entity_type": "worker", "entity_name": "api-gateway"}
        request = upload.calls[0].request
        assert request.read() == b"export default {};"
        assert request.headers["content-type"] == "application/javascript"

    def test_restore_page_is_acknowledged(self, client, auth_headers, store, bucket):
        store.get_backup.return_value = {
            "id": "b-2", "entity_type": "page", "entity_name": "docs", "object_key": "backups/y.json",
        }
        bucket.get.return_value = b"{}"
        bucket.metadata.return_value = {}

        with respx.mock(assert_all_called=False) as router:
            upstream = router.route(host="api.cloudflare.com")
            response = client.post("/api/backups/b-2/restore", headers=auth_headers)

        assert response.status_code == 200
        assert not upstream.called
