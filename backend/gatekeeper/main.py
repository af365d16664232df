"""
Gatekeeper — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, pipeline registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn gatekeeper.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Interception Chain:                                │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐ │
    │  │  LoggingRule │→│ BasicAuthRule│→│ PassThrough │ │
    │  └──────────────┘ └──────────────┘ └─────────────┘ │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌─────────────────┐              │
    │  │ GET /        │ │ GET /health     │              │
    │  └──────────────┘ └─────────────────┘              │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐  │
    │  │ RuleFailure→500 │ Exception→500              │  │
    │  └──────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Factory:
    1. Build the rule chain (fails fast on missing credentials)
    2. Register interception middleware, handlers and routes

    Startup:
    1. Initialize logging
    2. Validate credentials (a ConfigurationError aborts startup)
    3. Log startup complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gatekeeper import __version__
from gatekeeper.config import Settings, settings
from gatekeeper.exceptions import ConfigurationError, RuleFailure
from gatekeeper.middleware.chain import Chain
from gatekeeper.middleware.interception import InterceptionMiddleware, build_chain, get_chain
from gatekeeper.middleware.rule import rule_name
from gatekeeper.routes import health, home

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # LoggingRule already records every intercepted request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging and refuse to start without credentials.
    Shutdown: log it. The pipeline holds no resources to release.
    """
    config: Settings = app.state.settings
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Gatekeeper starting up...")

    try:
        config.validate_credentials()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e.message)
        logger.error("Fix the configuration and restart the server.")
        raise

    chain: Chain = app.state.chain
    logger.info("Interception chain: %s", " → ".join(rule_name(rule) for rule in chain))
    logger.info("Excluded paths: %s", ", ".join(config.excluded_paths_list) or "(none)")
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Gatekeeper shutting down...")
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the catch-all handler for failures that escape the pipeline.

    Only 401 and pass-through are defined outcomes of the chain; anything
    else surfaces as a generic 500 with the details logged server-side.
    """

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        if isinstance(exc, RuleFailure):
            logger.error(
                "Rule %s failed on %s %s",
                exc.rule,
                request.method,
                request.url.path,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.error("Unexpected error: %s", str(exc), exc_info=exc)

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(config: Optional[Settings] = None, chain: Optional[Chain] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use; defaults to the process-wide `settings`
        chain:  Interception chain; defaults to `build_chain(config)`, or the
                process-wide `get_chain()` when no config is given either

    Raises:
        ConfigurationError: credentials are missing and no chain was given
    """
    if chain is None:
        # Without a custom config, share the chain behind handler()
        chain = get_chain() if config is None else build_chain(config)
    config = config or settings

    app = FastAPI(
        title="Gatekeeper",
        description="Request-interception pipeline protecting a site with HTTP Basic authentication.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.chain = chain

    app.add_middleware(
        InterceptionMiddleware,
        chain=chain,
        excluded_prefixes=config.excluded_paths_list,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(home.router)

    return app


# uvicorn expects `gatekeeper.main:app` to be importable
app = create_app()
