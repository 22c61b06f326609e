from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkmeta.core.config import settings
from linkmeta.dependencies.metadata_deps import get_metadata_service
from linkmeta.routers.router import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    yield
    # Shutdown: let detached image rendering finish writing to the cache
    await get_metadata_service().wait_for_background_tasks()


# Initialize FastAPI application
app = FastAPI(
    title="Linkmeta",
    description="Link metadata extraction for bookmarks",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include the centralized router
app.include_router(router, prefix="/api")
