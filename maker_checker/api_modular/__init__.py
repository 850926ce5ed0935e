"""
Maker-Checker API Application Factory
"""

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import MakerCheckerSystem, get_system
from .global_config import router as global_config_router
from .inbox import router as inbox_router
from .permissions import router as permissions_router
from .submissions import router as submissions_router
from .super_checkers import router as super_checkers_router
from .. import __version__
from ..config import get_config
from ..credentials import credentials_middleware_func
from ..errors import InvalidRequest, MakerCheckerError
from ..logging_config import get_logger, setup_logging
from ..tenancy import tenant_middleware_func

logger = get_logger("maker_checker.api")


def _validation_details(exc: RequestValidationError):
    details = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        details.setdefault(".".join(location) or "body", []).append(error.get("msg", "Invalid value"))
    return details


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(level=config.log_level, log_format=config.log_format, log_file=config.log_file)
    if not config.auth_enabled:
        logger.warning(
            "Authentication is disabled: callers are identified by Basic credentials "
            f"or the unauthenticated '{config.actor_header}' header. "
            "Set MAKER_CHECKER_AUTH_ENABLED=true outside development."
        )

    app = FastAPI(
        title="Maker-Checker API",
        description="Dual-control approval workflow over the banking core platform",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def credentials_middleware(request: Request, call_next):
        return await credentials_middleware_func(request, call_next)

    @app.middleware("http")
    async def tenant_middleware(request: Request, call_next):
        return await tenant_middleware_func(
            request, call_next, config.tenant_headers, config.default_tenant
        )

    @app.exception_handler(MakerCheckerError)
    async def maker_checker_error_handler(request: Request, exc: MakerCheckerError):
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = InvalidRequest("Request validation failed", details=_validation_details(exc))
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    # Include routers
    app.include_router(global_config_router, prefix="/maker-checker", tags=["Global Toggle"])
    app.include_router(inbox_router, prefix="/maker-checker", tags=["Inbox"])
    app.include_router(super_checkers_router, prefix="/maker-checker", tags=["Super Checkers"])
    app.include_router(submissions_router, prefix="/maker-checker", tags=["Submissions"])
    app.include_router(permissions_router, prefix="/permissions", tags=["Permissions"])

    # Health check endpoint
    @app.get("/health")
    def health_check(system: MakerCheckerSystem = Depends(get_system)):
        """Health check endpoint"""
        upstream = system.client.health_check()
        return {
            "status": "healthy" if upstream else "degraded",
            "service": "maker_checker_api",
            "version": __version__,
            "upstream": "reachable" if upstream else "unreachable"
        }

    # Root endpoint
    @app.get("/")
    def get_api_info():
        """Get API information"""
        return {
            "name": "Maker-Checker API",
            "version": __version__,
            "description": "Dual-control approval workflow",
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "global": "/maker-checker/global",
                "permissions": "/permissions",
                "inbox": "/maker-checker/inbox",
                "super-checkers": "/maker-checker/super-checkers",
                "searchtemplate": "/maker-checker/searchtemplate",
                "impact": "/maker-checker/impact",
                "submissions": "/maker-checker/submissions",
            }
        }

    return app


# Create the app instance for uvicorn
app = create_app()
