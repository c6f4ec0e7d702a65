"""
FastAPI application entry point.

Local-only control server for the desktop probe: test group runs,
autorun reminders, configuration, preferences and results.
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI

from src import __version__
from src.infra.settings import ensure_data_directories
from .routers import run, autorun, config, prefs, results
from ._channel_state import (
    get_control_channel,
    init_control_channel,
    shutdown_control_channel,
)
from .dependencies.auth import verify_api_key


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: data directories and the control channel.
    Shutdown: stops a run in flight and cancels a pending autorun prompt.
    """
    ensure_data_directories()
    init_control_channel()

    yield

    await shutdown_control_channel()

# Tag metadata for Swagger UI
tags_metadata = [
    {
        "name": "run",
        "description": "Test group runs - start, stop and status; lifecycle events on the /events WebSocket",
    },
    {
        "name": "autorun",
        "description": "Autorun reminder policy and background task scheduling",
    },
    {
        "name": "config",
        "description": "Measurement engine configuration tree, by dotted key",
    },
    {
        "name": "prefs",
        "description": "Application preferences, by dotted key",
    },
    {
        "name": "results",
        "description": "Stored results and measurements, input files",
    },
]

app = FastAPI(
    title="Probe Control API",
    lifespan=lifespan,
    description="""
## Probe Control API

Local-only control API that sequences measurement test groups and manages
the autorun reminder.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require
an `X-API-Key` header matching the `API_KEY` environment variable.

### Usage
```bash
# Start server
python main.py serve --port 8000

# Run every test group
curl -X POST http://localhost:8000/run \\
  -H "Content-Type: application/json" \\
  -d '{"target": "all"}'

# Stop it
curl -X POST http://localhost:8000/stop
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


# Health check - NO authentication (operational endpoint)
@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    channel = get_control_channel()
    return {
        "status": "ok",
        "version": __version__,
        "running": channel.sequencer.is_running,
    }


# Include routers WITH authentication dependency (when enabled)
auth_dependency = [Depends(verify_api_key)]

app.include_router(run.router, tags=["run"], dependencies=auth_dependency)
app.include_router(run.events_router, tags=["run"])
app.include_router(
    autorun.router, prefix="/autorun", tags=["autorun"], dependencies=auth_dependency
)
app.include_router(
    config.router, prefix="/config", tags=["config"], dependencies=auth_dependency
)
app.include_router(
    prefs.router, prefix="/prefs", tags=["prefs"], dependencies=auth_dependency
)
app.include_router(results.router, tags=["results"], dependencies=auth_dependency)
