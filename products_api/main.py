import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, get_settings
from .db import Database
from .errors import register_error_handlers
from .observability import setup_logging
from .router import router as products_router

APP_NAME = "products"

logger = logging.getLogger(__name__)

# ---- Prometheus metrics ----
REQS = Counter("http_requests_total", "Total HTTP requests", ["service", "path", "method", "status"])
LAT  = Histogram("http_request_duration_seconds", "Request latency", ["service", "path", "method"])


def route_path(request: Request) -> str:
    # label by route template so /api/products/1 and /2 share a series
    route = request.scope.get("route")
    return getattr(route, "path", "<unmatched>")


def own_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    allowed_origins = [settings.frontend_url] if settings.frontend_url else []

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        db = Database(settings.database_url, schema=settings.db_schema)
        # A dead database must not keep the API from starting
        try:
            db.init()
            logger.info("Connection successful to database")
        except SQLAlchemyError as e:
            logger.error(f"Hubo un error al conectar con la base de datos: {e}")
        app.state.db = db
        yield
        db.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title="REST API FastAPI / SQLAlchemy",
        version="1.0.0",
        description="API Docs for Products",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def reject_foreign_origins(request: Request, call_next):
        origin = request.headers.get("origin")
        # same-origin calls (e.g. /docs "Try it out") also send an Origin header
        if origin is not None and origin not in allowed_origins and origin != own_origin(request):
            logger.warning(f"Rejected request from origin {origin}")
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"error": "Error de cors"})
        return await call_next(request)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        elapsed = time.time() - start
        path = route_path(request)
        REQS.labels(APP_NAME, path, request.method, response.status_code).inc()
        LAT.labels(APP_NAME, path, request.method).observe(elapsed)
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed * 1000:.1f} ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(elapsed * 1000, 1),
            },
        )
        return response

    register_error_handlers(app)

    @app.get("/api", tags=["API"])
    def api_root():
        return {"msg": "Desde la API"}

    @app.get("/health", response_class=PlainTextResponse, include_in_schema=False)
    def health():
        return "ok"

    @app.get("/health/ready", include_in_schema=False)
    def ready(request: Request):
        if not request.app.state.db.ping():
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "reason": "database_unavailable"},
            )
        return {"status": "ready"}

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(products_router)
    return app


app = create_app()
