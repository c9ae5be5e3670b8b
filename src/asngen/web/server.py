from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from asngen.app import App
from asngen.config import Config
from asngen.errors import UserError
from asngen.web.error_handlers import general_exception_handler, user_error_handler
from asngen.web.openapi import set_custom_openapi
from asngen.web.routers import asn_router, namespaces_router, stats_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="ASN Generator API", lifespan=lifespan)

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(asn_router, prefix="/api/v1")
    app.include_router(namespaces_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
