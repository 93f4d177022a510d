"""aparajita FastAPI application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from aparajita.api import alerts, health, location, lookup, safe_exit, ws
from aparajita.core.config import settings
from aparajita.core.deps import get_engine
from aparajita.core.ws_manager import ws_manager
from aparajita.services.scheduler import PeriodicTask

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Bind the WebSocket stream and run the safe-exit, sweep and feed loops."""
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    ws_manager.bind_loop(asyncio.get_running_loop())
    engine.subscribe(ws.push_location_update)

    tasks: list[PeriodicTask] = []
    if settings.scheduler_enabled:
        tasks.append(PeriodicTask("safe-exit-tick", engine.tick_safe_exit, settings.safe_exit_tick_seconds))
        tasks.append(PeriodicTask("alert-sweep", engine.sweep_alerts, settings.alert_sweep_seconds))
        if engine.alert_source is not None:
            tasks.append(PeriodicTask("alert-feed", engine.sync_feed, settings.alert_feed_poll_seconds))
    for task in tasks:
        await task.start()

    logger.info("%s started (radius=%sm, ttl=%smin)", settings.app_name, engine.radius_m, settings.alert_ttl_minutes)
    try:
        yield
    finally:
        for task in tasks:
            await task.stop()
        ws_manager.bind_loop(None)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(location.router)
app.include_router(alerts.router)
app.include_router(safe_exit.router)
app.include_router(lookup.router)
app.include_router(ws.router)
