import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from carfleet.config import settings
from carfleet.database import init_db
from carfleet.errors import FleetError, ValidationError, fields_from_errors
from carfleet.routers import (
    auth,
    cars,
    dashboard,
    partners,
    rentals,
    repairs,
    sales,
    write_log,
)
from carfleet.services import partner_service
from carfleet.services.file_storage import init_file_storage
from carfleet.sheets import create_store_from_config
from carfleet.utils.auth import seed_users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    await init_db()

    store = create_store_from_config(settings)
    await asyncio.to_thread(store.ensure_ready)
    await partner_service.seed_partners(store, settings.PARTNER_NAMES)
    app.state.store = store

    file_storage, folders = await asyncio.to_thread(init_file_storage, settings)
    app.state.file_storage = file_storage
    app.state.folders = folders

    count = seed_users(settings.AUTH_USERS)
    logger.info("%s ready: store=%s, %d users", settings.APP_NAME, store.key, count)
    yield
    # Shutdown (nothing to clean up)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)

    content: dict = {"error": exc.message}
    if isinstance(exc, ValidationError) and exc.fields:
        content["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = fields_from_errors(exc.errors())
    logger.info("%s %s rejected: invalid %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=400,
        content={"error": f"Missing or invalid fields: {', '.join(fields)}", "fields": fields},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s crashed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Register all routers under /api
API_PREFIX = "/api"
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(cars.router, prefix=API_PREFIX)
app.include_router(repairs.router, prefix=API_PREFIX)
app.include_router(sales.router, prefix=API_PREFIX)
app.include_router(rentals.router, prefix=API_PREFIX)
app.include_router(partners.router, prefix=API_PREFIX)
app.include_router(dashboard.router, prefix=API_PREFIX)
app.include_router(write_log.router, prefix=API_PREFIX)

# Local file storage serves uploads from here
app.mount(
    settings.UPLOADS_URL_PREFIX,
    StaticFiles(directory=settings.UPLOADS_DIR, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health_check() -> dict:
    return {"status": "ok", "version": settings.APP_VERSION}
