"""
Task Tracker - tasks, epics and subtasks with overlap-free scheduling.

Run with:
    uvicorn tracker.main:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tracker.config import get_settings
from tracker.logging_config import get_logger, setup_logging
from tracker.routes import epics, subtasks, tasks, views
from tracker.routes.errors import register_exception_handlers
from tracker.storage import init_store

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Task Tracker API...")
    init_store()
    yield
    logger.info("Shutting down Task Tracker API...")


app = FastAPI(
    title=get_settings().app_name,
    description="Tasks, epics and subtasks with derived epic state and overlap-free scheduling",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(epics.router, prefix="/epics", tags=["Epics"])
app.include_router(subtasks.router, prefix="/subtasks", tags=["Subtasks"])
app.include_router(views.router, tags=["Views"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
