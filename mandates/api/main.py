import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mandates import __version__
from mandates.core.config import get_settings
from mandates.core.logger import setup_logger
from mandates.api.routers import decisions, revocations, health
from mandates.db.session import init_db

settings = get_settings()

setup_logger(
    "mandates",
    log_dir=settings.log_dir,
    level=settings.log_level,
    file_logging=settings.log_to_file,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        init_db()
    logger.info("%s %s started", settings.app_name, __version__)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Corporate decision register with shareholder revocation workflow",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(decisions.router, prefix="/api")
app.include_router(revocations.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
