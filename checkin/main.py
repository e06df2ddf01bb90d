import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from checkin.logging import setup_logging
from checkin.presentation.api import api
from checkin.settings import get_settings
from checkin.wiring import close_resources, open_resources

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    resources = await open_resources(settings)
    app.state.resources = resources  # expose to dependencies

    scheduler_task = None
    if settings.scheduler_enabled:
        scheduler_task = asyncio.create_task(resources.scheduler.run_forever())

    try:
        yield
    finally:
        # shutdown
        if scheduler_task is not None:
            scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await scheduler_task
        await close_resources(resources)


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Visitor Check-in API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
