"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.container import get_container
from src.api.routes.jobs import router as jobs_router
from src.api.routes.projects import router as projects_router
from src.shared.logging import setup_logging

log = structlog.get_logger()


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: setup logging, resume unfinished jobs. Shutdown: close clients."""
    container = get_container()
    _apply_logging_config(container)
    log.info(
        "startup_begin",
        llm_model=container.config.llm.model,
        sandbox_provider=container.config.sandbox.provider,
    )
    if container.config.jobs.resume_on_startup:
        resumed = container.dispatcher.resume_pending()
        log.info("jobs_resumed", count=len(resumed))
    log.info("startup_complete")
    yield
    log.info("shutdown_begin")
    await container.close()
    log.info("shutdown_complete")


# Create app
app = FastAPI(
    title="Sandbox CodeGen",
    version="0.1.0",
    description="Durable coding agent that builds apps inside sandboxes",
    lifespan=lifespan,
)

# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(projects_router)
app.include_router(jobs_router)


@app.get("/health")
async def health() -> dict:
    """Health check with LLM availability."""
    container = get_container()
    llm_available = await container.llm.is_available()
    return {
        "status": "ok",
        "service": "sandbox-codegen",
        "llm_model": container.config.llm.model,
        "llm_available": llm_available,
        "sandbox_provider": container.config.sandbox.provider,
    }
