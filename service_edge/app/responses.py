"""
Response helpers for the edge router: CORS headers and JSON shapes.
"""

from typing import Any, Dict, Optional

from fastapi import Response
from fastapi.responses import JSONResponse

from .adapters.cloudflare_client import UpstreamResponse

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, CF-Access-Client-Id, CF-Access-Client-Secret",
    "Access-Control-Max-Age": "86400",
}


def apply_cors(response: Response) -> Response:
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code)


def ok(result: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse:
    return json_response({"success": True, "result": result, **extra}, status_code)


def fail(error: str, status_code: int = 500) -> JSONResponse:
    """Local failure envelope with a single ``error`` string."""
    return json_response({"success": False, "error": error}, status_code)


def fail_errors(message: str, status_code: int = 500, code: Optional[int] = None) -> JSONResponse:
    """Vendor-style failure envelope with an ``errors`` list."""
    detail: Dict[str, Any] = {"message": message}
    if code is not None:
        detail["code"] = code
    return json_response({"success": False, "errors": [detail]}, status_code)


def passthrough(upstream: UpstreamResponse, failure_message: str) -> JSONResponse:
    """Relay an upstream status and JSON body; unusable bodies become a 500 envelope."""
    if not upstream.is_json:
        return fail_errors(failure_message, 500)
    return json_response(upstream.payload, upstream.status_code)
