import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from phoneshop.api.routes.auth import router as auth_router
from phoneshop.api.routes.billing import router as billing_router
from phoneshop.api.routes.bundles import router as bundles_router
from phoneshop.api.routes.inventory import router as inventory_router
from phoneshop.api.routes.search import router as search_router
from phoneshop.core.config import settings
from phoneshop.core.exceptions import ConflictError, NotFoundError, StoreError, ValidationError
from phoneshop.db.database import init_db, is_sqlite
from phoneshop.services.audit import register_audit_handlers
from phoneshop.services.events import events

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if is_sqlite:
        init_db()
    unsubscribers = register_audit_handlers(events)
    logger.info("%s started", settings.app_name)
    try:
        yield
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(inventory_router)
app.include_router(bundles_router)
app.include_router(billing_router)
app.include_router(search_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(_: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(_: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(_: Request, exc: ConflictError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(_: Request, exc: StoreError):
    logger.warning("store error: %s", exc)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
