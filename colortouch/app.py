"""FastAPI application factory for ColorTouch CRM."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import SyncError


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite (local/desktop); other databases are migrated separately
    if "sqlite" in settings.database_url:
        from .database import engine
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with AsyncExitStack() as stack:
        if settings.sync_enabled:
            from .sync.coordinator import open_coordinator
            coordinator = await stack.enter_async_context(open_coordinator(settings))
            app.state.sync_coordinator = coordinator
            coordinator.schedule_initial_sync()
        yield
        app.state.sync_coordinator = None


app = FastAPI(title=settings.app_title, lifespan=lifespan)


@app.exception_handler(SyncError)
async def sync_error_handler(request: Request, exc: SyncError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# Import and register routers
from .routers import health, leads, payments, reminders, sync  # noqa: E402

app.include_router(sync.router)
app.include_router(leads.router)
app.include_router(payments.router)
app.include_router(reminders.router)
app.include_router(health.router)
