from datetime import datetime, timezone
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cloudblitz_svc import config
from cloudblitz_svc.models import init_db
from cloudblitz_svc.services.errors import ServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: make sure the schema exists before serving."""
    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(e, exc_info=True)
        # re-raise so startup fails visibly
        raise
    yield


app = FastAPI(title="cloudblitz_svc", version=config.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in config.CORS_ORIGIN.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


def error_body(message: str, **extra) -> dict:
    body = {"status": "error", "message": message}
    body.update(extra)
    return body


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Validation failed", errors=errors))


@app.get("/api", tags=["meta"])
def api_root() -> dict:
    return {
        "message": "Welcome to CloudBlitz Enquiry Management API",
        "version": config.APP_VERSION,
        "endpoints": {
            "health": "/api/health",
            "auth": "/api/auth",
            "enquiries": "/api/enquiries",
            "users": "/api/users",
        },
    }


@app.get("/api/health", tags=["meta"])
def health() -> dict:
    return {
        "status": "OK",
        "message": "CloudBlitz API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": config.APP_VERSION,
    }


# Import and register routers directly. Keep app file minimal.
from cloudblitz_svc.routers import auth_router, users_router, enquiries_router

app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/users", tags=["users"])
app.include_router(enquiries_router, prefix="/api/enquiries", tags=["enquiries"])
