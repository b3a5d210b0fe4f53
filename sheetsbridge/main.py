import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Mount

from sheetsbridge.auth import SETUP_HINT
from sheetsbridge.config import VERSION, get_settings
from sheetsbridge.logger import get_logger, setup_logging
from sheetsbridge.mcp_server import mcp
from sheetsbridge.models.common import StatusResponse
from sheetsbridge.routers.tools import router as tools_router
from sheetsbridge.tools import TOOLS

SERVER_NAME = "sheetsbridge"

logger = get_logger(__name__)


# --- Localhost-only middleware ---

class LocalhostOnlyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client_host = request.client.host if request.client else None
        if client_host not in ("127.0.0.1", "::1", "localhost"):
            return JSONResponse(
                status_code=403,
                content={"error_code": "forbidden", "message": "Localhost access only"},
            )
        return await call_next(request)


# --- FastAPI app ---

api = FastAPI(title="sheetsbridge", version=VERSION)
api.include_router(tools_router)


@api.get("/api/status")
def api_status() -> StatusResponse:
    configured = get_settings().has_credentials
    return StatusResponse(
        server=SERVER_NAME,
        version=VERSION,
        configured=configured,
        tools=list(TOOLS),
        message="Ready" if configured else "Google authentication not configured",
    )


# --- Starlette root app ---

mcp_app = mcp.http_app(path="/", stateless_http=True)

app = Starlette(
    middleware=[Middleware(LocalhostOnlyMiddleware)],
    routes=[
        Mount("/mcp", app=mcp_app),
        Mount("/", app=api),
    ],
    lifespan=mcp_app.lifespan,
)


def check_configuration() -> None:
    """Exit the process when no credential source is configured."""
    if not get_settings().has_credentials:
        print("Error: Google authentication not configured.\n", file=sys.stderr)
        print(SETUP_HINT, file=sys.stderr)
        sys.exit(1)


def run():
    settings = get_settings()
    setup_logging(settings.log_level)
    check_configuration()
    logger.info(f"Starting {SERVER_NAME} v{VERSION} ({settings.transport})...")
    if settings.transport == "http":
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    run()
