"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from synthgen.core.config import get_settings
from synthgen.core.logging import configure_logging
from synthgen.generation import GenerationOrchestrator, router as generation_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)
    orchestrator: GenerationOrchestrator = app.state.orchestrator
    logger.info("Starting %s...", settings.app_name)
    logger.info(
        "Templates: %s; lookup tables: %s",
        ", ".join(t.template_id for t in orchestrator.templates.list_templates()),
        ", ".join(orchestrator.lookups.names()),
    )

    yield

    logger.info("Shutting down...")


def create_app(orchestrator: GenerationOrchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    if orchestrator is None:
        orchestrator = GenerationOrchestrator.with_builtins(settings=settings)
        if settings.templates_dir:
            orchestrator.templates.load_directory(settings.templates_dir)

    app = FastAPI(
        title=settings.app_name,
        description="Template-driven synthetic record generation",
        version=settings.generator_version,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.orchestrator = orchestrator

    app.include_router(generation_router)  # /synthetic

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.generator_version,
            "endpoints": {
                "templates": "/synthetic/templates - Template registry",
                "lookups": "/synthetic/lookups - Lookup tables",
                "generate": "/synthetic/generate/{template_id} - Generate records",
                "summary": "/synthetic/summary - Recent generation runs",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
