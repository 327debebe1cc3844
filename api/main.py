"""
FastAPI application for the business contact manager.

Wires the company, import and email routers onto one app, selects the
storage backend at startup and renders every error in the common
``ErrorResponse`` shape.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import settings
from api.dependencies import get_engine, get_memory_storage
from api.routers import companies, email_router, import_router
from api.schemas.common import ErrorResponse, HealthCheckResponse, utc_now
from backend.models.schema import Base


def configure_logging():
    """Send application logs to the configured log file and to stderr."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.FileHandler(settings.LOG_FILE),
            logging.StreamHandler()
        ]
    )


configure_logging()
logger = logging.getLogger(__name__)


def error_response(request: Request, status_code: int, error: str, detail=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, path=str(request.url))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode='json'))


def init_storage():
    """Prepare the configured backend: warm the memory store or create tables."""
    if settings.STORAGE_BACKEND == 'memory':
        storage = get_memory_storage()
        logger.info(f"Memory storage ready ({storage.get_companies(1, 1).total} companies)")
        return

    # Hide credentials
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[-1]}")
    try:
        Base.metadata.create_all(bind=get_engine())
        logger.info("Database tables verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION} "
                f"with {settings.STORAGE_BACKEND} storage")
    init_storage()

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS
)


# Exception handlers

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are a 400 with field-level errors."""
    errors = jsonable_encoder(exc.errors())
    logger.info(f"Rejected {request.method} {request.url.path}: {len(errors)} invalid fields")
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid request data",
                          {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(request, exc.status_code, str(exc.detail or "Request failed"))
    if getattr(exc, 'headers', None):
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort for anything the routers did not map."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}",
                 exc_info=True)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        {"message": str(exc)} if settings.DEBUG else None
    )


for router in (companies.router, import_router.router, email_router.router):
    app.include_router(router, prefix=settings.API_PREFIX)


@app.get('/', include_in_schema=False)
async def root():
    return {
        'name': settings.API_TITLE,
        'version': settings.API_VERSION,
        'docs': '/docs',
        'endpoints': {
            'companies': f"{settings.API_PREFIX}/companies",
            'import': f"{settings.API_PREFIX}/import",
            'send_email': f"{settings.API_PREFIX}/send-email",
            'health': '/health'
        }
    }


@app.get('/health', response_model=HealthCheckResponse, tags=['health'])
async def health_check():
    """
    Report service status.

    With the database backend the connection is checked with ``SELECT 1``;
    a failed check marks the service unhealthy. The memory backend has
    nothing to check.

    **Example:**
    ```bash
    curl http://localhost:8000/health
    ```
    """
    status_value = 'healthy'
    database = 'not used'

    if settings.STORAGE_BACKEND != 'memory':
        try:
            with get_engine().connect() as conn:
                conn.execute(text('SELECT 1'))
            database = 'connected'
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            database = 'disconnected'
            status_value = 'unhealthy'

    return HealthCheckResponse(
        status=status_value,
        timestamp=utc_now(),
        version=settings.API_VERSION,
        storage=settings.STORAGE_BACKEND,
        database=database
    )


@app.get(f"{settings.API_PREFIX}/ping", tags=['health'])
async def ping():
    """Liveness check for load balancers: ``{"ping": "pong"}``."""
    return {'ping': 'pong'}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status code and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
