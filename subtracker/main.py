"""
FastAPI application factory
"""
import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from subtracker.config import get_settings
from subtracker.infrastructure.db.session import check_db_connection
from subtracker.api.v1 import auth, subscriptions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Logs unhandled exceptions (sync routes included) and answers 500."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("ERROR on %s %s", request.method, request.url.path)
            return Response(content="Internal Server Error", status_code=500)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="SubTracker",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    app.include_router(auth.router)
    app.include_router(subscriptions.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "subtracker.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
