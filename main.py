import asyncio
import os
import sys
import threading
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import auth
import config
import database
from database import now
from errors import StoreError
from logging_config import add_context, clear_context, configure_logging
from routers import admin, analytics, collections, orders, products, settings
from schemas import field_errors
from site_settings import SiteSettingsStore

logger = structlog.get_logger(__name__)


def _fatal(message: str, exc_info) -> None:
    logger.critical(message, exc_info=exc_info)
    # no cleanup: a supervisor restarts the process
    os._exit(1)


def loop_exception_handler(loop, context) -> None:
    exc = context.get("exception")
    if exc is None:
        # transport/SSL notices carry no exception
        logger.error("Event loop error", detail=context.get("message"))
        return
    _fatal(f"Unhandled async error: {context.get('message')}", (type(exc), exc, exc.__traceback__))


def install_fatal_handlers() -> None:
    """Uncaught exceptions outside a request are logged and end the process."""
    sys.excepthook = lambda exc_type, exc, tb: _fatal("Uncaught exception", (exc_type, exc, tb))
    threading.excepthook = lambda args: _fatal(
        "Uncaught exception in thread", (args.exc_type, args.exc_value, args.exc_traceback)
    )
    asyncio.get_running_loop().set_exception_handler(loop_exception_handler)


def bootstrap(db) -> None:
    database.ensure_indexes(db)
    SiteSettingsStore(db).initialize()
    auth.ensure_default_admin(db, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    install_fatal_handlers()
    if database.db is not None:
        bootstrap(database.db)
    else:
        logger.warning("DATABASE_URL / DATABASE_NAME not set; running without a database")
    logger.info("Server started", environment=config.ENVIRONMENT)
    yield
    if database.client is not None:
        database.client.close()


app = FastAPI(title="Rahhalah Store API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if config.ENVIRONMENT == "development" else config.ALLOWED_ORIGINS,
    allow_credentials=config.ENVIRONMENT != "development",
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    clear_context()
    add_context(request_id=uuid.uuid4().hex[:12], method=request.method, path=request.url.path)
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        logger.debug("Request handled", status=response.status_code)
    return response


# Error handlers

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": field_errors(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not found - {request.url.path}"
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


# Routes
for router in (admin.router, collections.router, products.router, orders.router,
               settings.router, analytics.router):
    app.include_router(router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Rahhalah Store API"}


@app.get("/health")
def health():
    return {"success": True, "message": "Server is running", "timestamp": now().isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
