"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ddb_progression import __version__
from ddb_progression.config import get_settings
from ddb_progression.middleware.error_handler import setup_error_handlers
from ddb_progression.services.reference_library import get_reference_library

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("ddb_progression.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events - startup and shutdown."""
    # Startup: load the reference documents once
    library = get_reference_library()
    index = await library.get_index()
    logger.info(f"[Startup] Reference library ready with {len(index)} documents")

    yield  # Application runs here

    logger.info("[Shutdown] Progression API stopped")


app = FastAPI(
    title="DDB Progression Engine",
    description="Synthesizes class advancement timelines from D&D Beyond exports",
    version=__version__,
    lifespan=lifespan,
)


# Middleware to log ALL requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug(f"[REQUEST] {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"[RESPONSE] {request.method} {request.url.path} -> {response.status_code}")
    return response

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


setup_error_handlers(app, debug=settings.DEBUG)


@app.get("/health")
async def health_check():
    """Health check."""
    return {
        "status": "healthy",
        "system_version": settings.SYSTEM_VERSION,
        "debug_mode": settings.DEBUG
    }


# Routes
from ddb_progression.api.routes import progression
app.include_router(progression.router, prefix="/api/progression", tags=["progression"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ddb_progression.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
