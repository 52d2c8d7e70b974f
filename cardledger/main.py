import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cardledger.api import health_router, player_router, sell_router, trade_router
from cardledger.config import settings
from cardledger.db.database import async_session_factory, init_db
from cardledger.models.failure import InvalidRequestError, KnownError, server_error_body
from cardledger.services.card_catalog import get_card_catalog
from cardledger.services.economy import build_economy
from cardledger.storage import build_blob_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    if "sql" in settings.storage_providers:
        try:
            await init_db()
        except (SQLAlchemyError, OSError) as e:
            # The layered store falls back to the local mirror
            logger.warning("DATABASE_INIT_FAILED", extra={"reason": type(e).__name__})

    store = build_blob_store(
        settings.storage_providers, async_session_factory, settings.persist_path
    )
    app.state.economy = build_economy(store, get_card_catalog())
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardledger"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(player_router)
app.include_router(sell_router)
app.include_router(trade_router)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Return classified failures as structured bodies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
        headers={"Cache-Control": "no-store"},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and parameters are INVALID_REQUEST, not a bare 422."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")} for error in exc.errors()
    ]
    return await known_error_handler(
        request, InvalidRequestError("Malformed request.", detail={"errors": errors})
    )


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: no raw 500 reaches the caller unclassified."""
    logger.exception("UNHANDLED_ERROR")
    return JSONResponse(
        status_code=500,
        content=server_error_body(exc).model_dump(mode="json"),
        headers={"Cache-Control": "no-store"},
    )


@app.middleware("http")
async def no_store(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Economy responses are never cacheable."""
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-store"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
