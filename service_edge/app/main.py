"""
Edge request router for worker-manager.

Terminates dashboard HTTP traffic: answers CORS pre-flights, authenticates
``/api/*`` requests against the access layer, dispatches them through the
explicit route table and normalizes every failure into a JSON body.
"""

from typing import Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.errors import (
    AuthenticationError,
    NotFoundError,
    StoreError,
    ValidationError,
    WorkerManagerException,
)
from shared.logging import set_user_context
from shared.metrics import MetricsCollector
from .adapters import BackupBucket, CloudflareApiClient, MetadataStore
from .auth import AccessValidator
from .config import EdgeConfig, get_config
from .domain.jobs import JobRecorder
from .handlers import all_families
from .responses import apply_cors, preflight
from .routing import EdgeDispatcher, RequestContext

API_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


class EdgeRouterService(BaseService):
    """Edge router service implementation."""

    def __init__(
        self,
        config: Optional[EdgeConfig] = None,
        *,
        upstream: Optional[CloudflareApiClient] = None,
        store: Optional[MetadataStore] = None,
        bucket: Optional[BackupBucket] = None,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_config()
        self.dispatcher = EdgeDispatcher(all_families())
        self.validator = AccessValidator(config)
        super().__init__("edge", config, metrics)

        self.upstream = upstream or CloudflareApiClient(config, metrics=self.metrics, transport=transport)
        self.store = store or MetadataStore(config.postgres_dsn)
        self.bucket = bucket or BackupBucket(config.redis_url)
        self.jobs = JobRecorder(self.store)

    def _setup_middleware(self):
        super()._setup_middleware()

        # Registered last so it wraps every other layer.
        @self.app.middleware("http")
        async def cors(request: Request, call_next):
            if request.method == "OPTIONS":
                return preflight()
            response = await call_next(request)
            return apply_cors(response)

    def _metrics_path(self, request: Request) -> str:
        pattern = getattr(request.state, "route_pattern", None)
        if pattern:
            return pattern
        if request.url.path in ("/health", "/metrics"):
            return request.url.path
        return "unmatched"

    def _setup_routes(self):
        super()._setup_routes()

        @self.app.api_route("/api/{path:path}", methods=API_METHODS, include_in_schema=False)
        async def api_entrypoint(request: Request):
            return await self.handle_api(request)

        @self.app.api_route("/{path:path}", methods=API_METHODS, include_in_schema=False)
        async def not_found(request: Request):
            return JSONResponse({"error": "Not found"}, status_code=404)

    @staticmethod
    def _raw_path(request: Request) -> str:
        raw = request.scope.get("raw_path")
        if not raw:
            return request.url.path
        return raw.decode("latin-1").split("?", 1)[0]

    async def handle_api(self, request: Request) -> JSONResponse:
        """Authenticate, dispatch and convert failures at the outermost boundary."""
        try:
            is_local = self.validator.is_local_dev(request)
            if is_local:
                user_email = AccessValidator.user_email(request)
            else:
                user_email = self.validator.authenticate(request).email or "unknown"
            set_user_context(user_email)

            resolved = self.dispatcher.resolve(request.method, self._raw_path(request))
            if resolved is None:
                raise NotFoundError()
            family, route, params = resolved
            request.state.route_pattern = route.pattern
            self.logger.debug("Dispatching", family=family.name, handler=route.name)

            ctx = RequestContext(
                request=request,
                config=self.config,
                params=params,
                upstream=self.upstream,
                store=self.store,
                bucket=self.bucket,
                jobs=self.jobs,
                user_email=user_email,
                is_local=is_local,
            )
            return await route.handler(ctx)

        except AuthenticationError as exc:
            self.metrics.record_error(exc.code)
            return JSONResponse(self.error_body(exc), status_code=exc.status_code)
        except NotFoundError as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        except ValidationError as exc:
            return JSONResponse({"success": False, "error": exc.message}, status_code=exc.status_code)
        except WorkerManagerException as exc:
            self.logger.error("Request failed", code=exc.code, message=exc.message, details=exc.details)
            self.metrics.record_error(exc.code)
            return JSONResponse({"error": "Internal server error", "message": exc.message},
                                status_code=exc.status_code)
        except Exception as exc:
            self.logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
            self.metrics.record_error(type(exc).__name__)
            return JSONResponse({"error": "Internal server error", "message": str(exc)}, status_code=500)

    async def startup(self) -> None:
        try:
            await self.store.start()
        except StoreError as exc:
            # Vendor-backed routes keep working without local metadata.
            self.logger.warning("Metadata store unavailable at startup", error=exc.message)

    async def shutdown(self) -> None:
        await self.upstream.close()
        await self.store.stop()
        await self.bucket.close()

    async def _check_dependencies(self) -> Dict[str, str]:
        return {"metadata_store": "ok" if self.store.pool is not None else "unavailable"}


def create_app(config: Optional[EdgeConfig] = None, **kwargs) -> FastAPI:
    """Application factory (``uvicorn service_edge.app.main:create_app --factory``)."""
    return EdgeRouterService(config, **kwargs).app


if __name__ == "__main__":
    EdgeRouterService().run()
