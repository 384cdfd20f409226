from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

from slack_relay.config import settings


class OpenCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose preflight answers carry an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            k: v
            for k, v in response.headers.items()
            if k not in ("content-length", "content-type")
        }
        return Response(status_code=response.status_code, headers=headers)


def cors_headers(origin: str | None) -> dict[str, str]:
    """CORS headers for responses built outside the CORS middleware."""
    if "*" in settings.CORS_ALLOW_ORIGINS:
        return {"Access-Control-Allow-Origin": "*"}
    if origin and origin in settings.CORS_ALLOW_ORIGINS:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}
