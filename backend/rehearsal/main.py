"""Main FastAPI application for Rehearsal."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rehearsal.api import router
from rehearsal.config import Settings, settings
from rehearsal.container import build_services
from rehearsal.db import get_engine, init_db


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(chat_backend=None, db_engine=None, app_settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Tests pass their own backend, engine or settings; otherwise the
    OpenRouter backend and the configured database are used.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        configure_logging(app_settings.log_level)
        print("🚀 Starting Rehearsal Backend...")
        engine = db_engine or get_engine()
        init_db(engine)
        app.state.services = build_services(engine, app_settings, backend=chat_backend)
        print("✅ All systems ready")

        yield

        # Shutdown
        print("🛑 Shutting down...")
        app.state.services = None
        print("✅ Shutdown complete")

    app = FastAPI(
        title="Rehearsal - Conversation Practice",
        description="Role-play practice sessions with a simulated character and rubric-based feedback",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Rehearsal - Conversation Practice",
            "version": "0.1.0",
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rehearsal.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
