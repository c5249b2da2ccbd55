"""
CORS helpers — beacons are sent from arbitrary CYOA hosts with credentials,
so the requesting ``Origin`` is echoed back instead of ``*``.
"""

from fastapi import Request
from fastapi.responses import Response

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def cors_headers(request: Request) -> dict[str, str]:
    origin = request.headers.get("origin")
    if not origin:
        # browsers refuse credentials alongside a wildcard origin
        return {"Access-Control-Allow-Origin": "*", "Vary": "Origin"}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


def preflight(request: Request, methods: str, headers: str = "Content-Type") -> Response:
    """Response for an ``OPTIONS`` preflight declaring one route's methods."""
    return Response(
        status_code=204,
        headers={
            **cors_headers(request),
            "Access-Control-Allow-Methods": methods,
            "Access-Control-Allow-Headers": headers,
        },
    )
