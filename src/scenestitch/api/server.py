"""FastAPI server for scenestitch."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scenestitch.api import dependencies
from scenestitch.api.routers import core, scripts, videos, voices
from scenestitch.utils.config import load_config
from scenestitch.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Shutting down job orchestrator")
    await dependencies.shutdown_services()


def create_app() -> FastAPI:
    """Build the FastAPI application with every router mounted."""
    app = FastAPI(title="scenestitch API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(core.router)
    app.include_router(scripts.router)
    app.include_router(videos.router)
    app.include_router(voices.router)
    return app


app = create_app()


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Configure logging and serve the app with uvicorn."""
    import uvicorn

    config = load_config()
    setup_logging(config["log_level"], json_output=config["log_json"])
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    run()
