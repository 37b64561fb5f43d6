"""CORS middleware configuration"""
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.datastructures import Headers
from app.config import Settings

ALLOWED_METHODS = ["POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type"]


def cors_headers(settings: Settings, preflight: bool = False) -> dict:
    """Fixed CORS headers for the configured origin"""
    headers = {
        "Access-Control-Allow-Origin": settings.normalized_origin,
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
    }
    if preflight:
        headers["Access-Control-Max-Age"] = str(settings.cors_max_age)
    return headers


class FixedPreflightCORSMiddleware(CORSMiddleware):
    """
    Answers every preflight with the same fixed headers, whatever the
    requesting origin. Browsers enforce the origin from
    Access-Control-Allow-Origin; the POST itself is checked by the gateway.
    """

    def __init__(self, app, settings: Settings):
        super().__init__(
            app,
            allow_origins=[settings.normalized_origin],
            allow_credentials=False,
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            max_age=settings.cors_max_age,
        )
        self.settings = settings

    def preflight_response(self, request_headers: Headers) -> Response:
        return Response(status_code=200, headers=cors_headers(self.settings, preflight=True))


def setup_cors(app, settings: Settings):
    """
    Configure CORS middleware for the application

    Args:
        app: FastAPI application instance
        settings: Settings holding the single allowed origin
    """
    app.add_middleware(FixedPreflightCORSMiddleware, settings=settings)
