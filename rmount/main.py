import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from .api import remotes
from .dependencies import (
    get_config_store,
    get_mount_supervisor,
    get_reconciler,
    get_settings,
)
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    settings = get_settings()
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Settings loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")

    config_store = get_config_store()
    if not config_store.exists():
        logging.warning(f"rclone config file not found: {config_store.path}")

    supervisor = get_mount_supervisor()
    if not await supervisor.is_available():
        logging.error(
            f"rclone was not found or does not run: {supervisor.rclone_path}. "
            f"Mounts will fail until RMOUNT_RCLONE_PATH points at a working rclone."
        )

    report = await get_reconciler().reconcile()
    if report.mounted:
        logging.info(f"Auto-mounted: {', '.join(report.mounted)}")

    yield

    # Shutdown
    logging.info("rmount shutting down, releasing all mounts...")
    await supervisor.aclose()


app = FastAPI(
    title="rmount",
    description="Mount rclone remotes as local drives",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(remotes.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.debug(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "operation": "http_request",
            "method": request.method,
            "path": request.url.path,
        },
    )
    response = await call_next(request)
    logging.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "rmount"}


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    run()
