from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from taskboard.core import config
from taskboard.core.database.engine import init_db
from taskboard.core.errors import (
    AuditWriteFailure,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationFailure,
)
from taskboard.features.audit.routes import router as audit_router
from taskboard.features.organizations.routes import router as organization_router
from taskboard.features.tasks.routes import router as task_router
from taskboard.features.users.auth_routes import router as auth_router
from taskboard.features.users.routes import router as user_router
from taskboard.features.users.dependencies import get_authorization_header
from taskboard.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Taskboard API",
    description="Organization-scoped task management with role-based access control",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
limiter = Limiter(key_func=get_authorization_header, default_limits=[config.RATE_LIMIT])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.taskboard.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.STRICT_ORGANIZATION_SCOPE:
    log.warning("Strict organization scope enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(_request: Request, exc: ValidationFailure):
    log.info("Validation failure: %s", exc.detail)
    return JSONResponse(status_code=400, content={"detail": exc.detail})


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(_request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"detail": exc.detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ForbiddenError)
async def forbidden_error_handler(_request: Request, exc: ForbiddenError):
    return JSONResponse(status_code=403, content={"detail": exc.detail, "reason": exc.reason.value})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(_request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.detail})


@app.exception_handler(AuditWriteFailure)
async def audit_write_failure_handler(_request: Request, exc: AuditWriteFailure):
    return JSONResponse(status_code=500, content={"detail": exc.detail})


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Initialize database on application startup."""
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Taskboard API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "All /api endpoints require Bearer token in Authorization header",
        },
        "features": {
            "tasks": "Task management scoped to the caller's accessible organizations",
            "organizations": "Two-level organization hierarchy",
            "users": "Users with Owner/Admin/Viewer roles bound to one organization",
            "audit": "Append-only audit trail of task, user and organization changes",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(user_router, prefix="/api/users", tags=["users"])
app.include_router(organization_router, prefix="/api/organizations", tags=["organizations"])
app.include_router(task_router, prefix="/api/tasks", tags=["tasks"])
app.include_router(audit_router, prefix="/api/audit-log", tags=["audit"])
