import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from campus_library.config import settings
from campus_library.database import engine, Base
from campus_library import models  # noqa: F401  registers tables on Base.metadata
from campus_library.routes import (
    auth, users, categories, books, loans, fines, settings as settings_routes,
    suggestions, favorites, notifications, channels, posts, comments, reactions, feed, dashboard
)
from campus_library.services.cache import create_cache_client
from campus_library.services.realtime import RealtimeNotifier
from campus_library.utils.errors import ApiError

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log incoming requests."""
    async def dispatch(self, request: Request, call_next):
        auth_header = request.headers.get("Authorization")
        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"{request.method} {request.url.path} - IP: {client_ip} - Auth: {'Present' if auth_header else 'Missing'}")

        response = await call_next(request)
        return response

Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the real-time notifier and the cache client, and tear them down on shutdown."""
    notifier = RealtimeNotifier()
    if settings.realtime_enabled:
        logger.info("Starting realtime notifier...")
        notifier.connect()
    else:
        logger.info("Realtime push disabled; events will be dropped")
    app.state.notifier = notifier

    app.state.cache = create_cache_client() if settings.redis_url else None
    if app.state.cache is None:
        logger.info("REDIS_URL not set; category cache disabled")

    yield

    logger.info("Stopping realtime notifier...")
    notifier.disconnect()
    if app.state.cache is not None:
        app.state.cache.close()


app = FastAPI(
    title="Campus Library API",
    description="Backend API for the university library: loans, fines, catalogue and reader channels",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": True, "message": exc.message})


def _describe_validation_error(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation failed",
            "messages": [_describe_validation_error(error) for error in exc.errors()],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"error": True, "message": "Internal server error"}
    if settings.environment == "development":
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Logging middleware (last, to log everything)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(books.router)
app.include_router(loans.router)
app.include_router(fines.router)
app.include_router(settings_routes.router)
app.include_router(suggestions.router)
app.include_router(favorites.router)
app.include_router(notifications.router)
app.include_router(channels.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(reactions.router)
app.include_router(feed.router)
app.include_router(dashboard.router)

@app.get("/")
async def root():
    return {"message": "Campus Library API", "version": "1.0.0"}

@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "campus_library.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development"
    )
