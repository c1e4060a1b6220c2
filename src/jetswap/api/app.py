"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jetswap import __version__
from jetswap.bridge import BridgeService, build_services
from jetswap.config import get_settings


def create_app(services: Optional[BridgeService] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        services.sessions.restore()
        yield
        # Shutdown
        services.sessions.stop()

    app = FastAPI(
        title="Jet Swap API",
        description="Market data and bridge session status",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=False,
        allow_methods=["GET", "DELETE"],
        allow_headers=["*"],
    )

    # Register routes
    from jetswap.api.routes import health, market, session

    app.include_router(health.router, tags=["Health"])
    app.include_router(market.router, prefix="/api/v1", tags=["Market"])
    app.include_router(session.router, prefix="/api/v1", tags=["Session"])

    return app
