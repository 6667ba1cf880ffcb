"""FastAPI application entry point."""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .dependencies import session_from_request
from .errors import AuthError, DashboardError
from .routes import auth, tools, users
from .services import CredentialStore, SessionAuthenticator
from .utils.logger import logger


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(
    config: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    authenticator: Optional[SessionAuthenticator] = None,
) -> FastAPI:
    """Build the application with its credential store and authenticator.

    Args:
        config: Settings to use. Defaults to the global settings
        store: Credential store. Defaults to one parsed from DEMO_USERS
        authenticator: Session authenticator. Defaults to one over ``store``

    Returns:
        Configured FastAPI app
    """
    config = config or default_settings
    store = store or CredentialStore.from_config(config.demo_users, config.admin_username)
    authenticator = authenticator or SessionAuthenticator(
        store, secret=config.session_secret, ttl_seconds=config.session_ttl_seconds
    )

    app = FastAPI(
        title="Firecrawl Dashboard API",
        description="Session-gated proxy for Firecrawl scrape, crawl, map, extract and agent",
        version="1.0.0",
        debug=config.debug,
    )
    app.state.settings = config
    app.state.store = store
    app.state.authenticator = authenticator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify actual origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Unauthenticated API calls get 401 even when the body cannot be parsed
        if request.url.path.startswith("/api/"):
            try:
                session_from_request(request)
            except AuthError as e:
                return await dashboard_error_handler(request, e)
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": _validation_message(exc)},
        )

    app.include_router(auth.router)
    app.include_router(tools.router)
    app.include_router(users.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "firecrawl-dashboard"}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Firecrawl Dashboard API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
        }

    @app.on_event("startup")
    async def startup_event():
        """Run on application startup."""
        logger.info("Starting Firecrawl Dashboard API")
        logger.info(f"Firecrawl API: {config.firecrawl_api_url}")
        if not config.firecrawl_api_key:
            logger.warning("FIRECRAWL_API_KEY is not set; tool calls will fail")
        logger.info(
            f"Agent poll interval {config.agent_poll_interval}s, timeout {config.agent_timeout}s"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Run on application shutdown."""
        logger.info("Shutting down Firecrawl Dashboard API")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "firecrawl_dashboard.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level="info",
    )
