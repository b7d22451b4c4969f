import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from studyplan.api.sessions import router as sessions_router
from studyplan.config.settings import settings
from studyplan.core.logger import setup_logger
from studyplan.db.session import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging and make sure tables exist before serving.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    setup_logger(level=settings.log_level, log_file=settings.log_file)
    init_db()

    await asyncio.sleep(0)
    yield

    logger.info("Study planner API shutting down")


app = FastAPI(title="Study Planner", lifespan=lifespan)

app.include_router(sessions_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
