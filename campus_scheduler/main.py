import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_scheduler.core import config
from campus_scheduler.core.errors import SchedulerError
from campus_scheduler.database import Base, engine, ensure_schema_indexes
from campus_scheduler.models import user, appointment, availability  # noqa: F401
from campus_scheduler.routes import appointment_routes, auth_routes, availability_routes

config.configure_logging()
config.validate_runtime_config()

app = FastAPI(title='Campus Scheduler API', version='1.0.0')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'message': message})


@app.middleware('http')
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info('%s %s -> %s (%.1f ms)', request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(SchedulerError)
async def handle_scheduler_error(request: Request, exc: SchedulerError):
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _failure(400, 'Invalid request')

    first = errors[0]
    if first.get('loc') and first['loc'][0] == 'path':
        return _failure(400, 'Invalid ID format')

    message = str(first.get('msg', 'Invalid request')).removeprefix('Value error, ')
    location = [part for part in first.get('loc', ()) if part not in ('body', 'query')]
    if location:
        message = f'{location[-1]}: {message}'
    return _failure(400, message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _failure(404, 'Endpoint not found')
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    message = 'Internal server error' if config.is_production() else f'Internal server error: {exc}'
    return _failure(500, message)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_schema_indexes()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/health')
def health():
    return {
        'success': True,
        'message': 'Campus Scheduler API is running',
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }


@app.get('/')
def root():
    return {
        'success': True,
        'message': 'Welcome to Campus Scheduler API',
        'version': app.version,
        'endpoints': {
            'health': '/health',
            'auth': '/api/auth',
            'availability': '/api/availability',
            'appointments': '/api/appointments',
        },
    }


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(availability_routes.router, prefix='/api/availability')
app.include_router(appointment_routes.router, prefix='/api/appointments')
