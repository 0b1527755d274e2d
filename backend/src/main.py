"""Custody Log Server - Entry point.

Runs the MCP server and the export download routes with HTTP transport for
Cloud Run deployment.
"""

import logging
import os
from datetime import date

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route, Mount

from .core.models import DateRange, ExportFormat
from .shell.auth import current_user_id
from .shell.errors import ExportReadError, NotAuthenticatedError
from .shell.mcp_server import mcp, get_auth_client, get_export_service


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ("/mcp", "/export")


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for Cloud Run."""
    return JSONResponse({"status": "healthy", "service": "custodylog"})


async def register_user(request: Request) -> JSONResponse:
    """Register a new user and return their API key."""
    try:
        body = await request.json()
        email = body.get("email")

        if not email or "@" not in email:
            return JSONResponse({"error": "Valid email is required"}, status_code=400)

        api_key, _ = get_auth_client().register_user(email)
        base_url = os.environ.get("BASE_URL", "http://localhost:8080")

        return JSONResponse({
            "api_key": api_key,
            "message": "Registration successful! Save your API key - it won't be shown again.",
            "mcp_url": f"{base_url}/mcp",
        })

    except Exception as e:
        logger.error("Registration failed: %s", str(e))
        return JSONResponse({"error": "Registration failed."}, status_code=500)


async def validate_key(request: Request) -> JSONResponse:
    """Validate an API key."""
    try:
        body = await request.json()
        api_key = body.get("api_key")

        if not api_key:
            return JSONResponse({"valid": False, "error": "API key required"})

        user_id = get_auth_client().validate_api_key(api_key)
        return JSONResponse({"valid": user_id is not None})

    except Exception as e:
        logger.error("Validation failed: %s", str(e))
        return JSONResponse({"valid": False, "error": "Validation failed"})


async def export_download(request: Request) -> Response:
    """Download entries for ?start=&end= as a json, csv or html file."""
    try:
        fmt = ExportFormat(request.path_params["fmt"])
        date_range = DateRange(
            start=date.fromisoformat(request.query_params["start"]),
            end=date.fromisoformat(request.query_params["end"]),
        )
    except (KeyError, ValueError):
        return JSONResponse(
            {"error": "Use /export/{json|csv|html}?start=YYYY-MM-DD&end=YYYY-MM-DD"},
            status_code=400,
        )

    try:
        export_file = get_export_service().export(date_range, fmt)
    except NotAuthenticatedError as e:
        return JSONResponse({"error": str(e)}, status_code=401)
    except ExportReadError as e:
        return JSONResponse({"error": str(e)}, status_code=502)

    return Response(
        content=export_file.content.encode("utf-8"),
        media_type=export_file.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export_file.filename}"'},
    )


# ==================== Auth Middleware ====================


class AuthMiddleware(BaseHTTPMiddleware):
    """Authenticate MCP and export requests using the API key in Authorization."""

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        user_id = get_auth_client().authenticate(request.headers.get("Authorization"))
        token = current_user_id.set(user_id)
        if user_id is not None:
            logger.debug("Authenticated user: %s", user_id[:8])
        try:
            return await call_next(request)
        finally:
            current_user_id.reset(token)


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application with MCP at root.

    The MCP streamable_http_app() handles /mcp/ internally when mounted at root.
    We use its lifespan context to ensure proper initialization.
    """
    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/auth/register", register_user, methods=["POST"]),
        Route("/auth/validate", validate_key, methods=["POST"]),
        Route("/export/{fmt}", export_download, methods=["GET"]),
        # Mount MCP app at root - it handles /mcp/ path internally
        Mount("/", app=mcp_app),
    ]

    allowed_origins = os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=allowed_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=["Content-Disposition"],
            ),
            Middleware(AuthMiddleware),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for Cloud Run
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting Custody Log server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
