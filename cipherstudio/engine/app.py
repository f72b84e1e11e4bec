from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger
from sse_starlette.sse import AppStatus

from cipherstudio.engine.log import setup_logging
from cipherstudio.engine.settings import get_settings
from cipherstudio.engine.studio import Studio


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info("CipherStudio engine starting (host={}, port={})", settings.host, settings.port)
    if settings.document_store == "local":
        prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
        logger.info("Data root: {}{}", settings.data_root, prefix_info)
    if settings.gemini_api_key is None:
        logger.warning("CIPHER_GEMINI_API_KEY not set -- tool channels disabled")
    if settings.firebase_api_key is None:
        logger.warning("CIPHER_FIREBASE_API_KEY not set -- using a local identity")

    _app.state.studio = None

    # -- SSE -------------------------------------------------------------------
    # Let event streams complete naturally on shutdown; uvicorn's graceful
    # shutdown waits for open connections to close.
    AppStatus.disable_automatic_graceful_drain()

    # -- Engine ----------------------------------------------------------------
    studio = Studio.from_settings(settings)
    identity = await studio.start()
    _app.state.studio = studio
    logger.info("Engine ready (owner={}, language={})", identity.owner_id, studio.controller.workspace.language_id)

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("CipherStudio engine shutting down")

    # 1. Signal SSE streams to close.
    AppStatus.should_exit = True

    # 2. Tear down timers, drain background writes, close the HTTP client.
    await studio.aclose()
    _app.state.studio = None
    logger.info("Engine closed")


app = FastAPI(title="CipherStudio Engine", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all backend endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# -- Routers -----------------------------------------------------------------
from cipherstudio.engine.routers.events import router as events_router  # noqa: E402
from cipherstudio.engine.routers.files import router as files_router  # noqa: E402
from cipherstudio.engine.routers.languages import router as languages_router  # noqa: E402
from cipherstudio.engine.routers.projects import router as projects_router  # noqa: E402
from cipherstudio.engine.routers.tools import router as tools_router  # noqa: E402
from cipherstudio.engine.routers.workspace import router as workspace_router  # noqa: E402

api.include_router(workspace_router)
api.include_router(languages_router)
api.include_router(files_router)
api.include_router(projects_router)
api.include_router(tools_router)
api.include_router(events_router)

app.include_router(api)
