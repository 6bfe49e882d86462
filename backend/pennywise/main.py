"""Pennywise - personal finance notifications API."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pennywise.config import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    from pennywise.database import create_tables

    create_tables()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Card due-date, utilization and budget notifications",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from pennywise.api import devices, notifications, tracking, users  # noqa: E402

app.include_router(notifications.router, prefix="/api")
app.include_router(devices.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(tracking.router, prefix="/api")
