# CampusLink API entry point: app assembly, error envelope, startup migration

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campuslink.errors import register_exception_handlers
from campuslink.models.event import Event  # noqa: F401 (table metadata)
from campuslink.models.user import User  # noqa: F401
from campuslink.routers.events import router as events_router
from campuslink.utils.logger import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _migrate_to_head() -> None:
    from alembic import command
    from alembic.config import Config

    command.upgrade(Config(str(PROJECT_ROOT / "alembic.ini")), "head")


app = FastAPI(
    title="CampusLink API",
    description="Nearby student events and real-time event announcements",
    version="0.1.0",
)

register_exception_handlers(app)
app.include_router(events_router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: restrict to the frontend origin once it is deployed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _apply_migrations() -> None:
    """Bring users/events up to the latest Alembic revision before serving."""
    try:
        _migrate_to_head()
    except Exception as exc:
        # serve anyway: /health and the SSE stream work without PostgreSQL
        logger.warning("Startup migration skipped: %s", exc)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/", tags=["Root"])
async def index() -> dict:
    return {
        "service": "CampusLink API",
        "docs": "/docs",
        "events": "/events",
        "stream": "/events/stream",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("campuslink.main:app", host="0.0.0.0", port=8000, reload=True)
