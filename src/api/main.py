"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import get_event_parser, get_user_manager
from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import events_router, health_router, users_router
from core.config import API_DEBUG, API_VERSION, CORS_ORIGINS
from core.database import init_database
from core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    setup_logging()
    init_database()

    parser = get_event_parser()
    user_manager = get_user_manager()
    logger.info(
        "Calendar assistant started - AI parser: %s, registered users: %d",
        "ready" if parser.is_available() else "not available",
        len(user_manager.get_all_users()),
    )

    yield


app = FastAPI(
    title="Smart Calendar Assistant API",
    description="Natural-language event parsing and Google Calendar event creation",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if API_DEBUG else CORS_ORIGINS,
    allow_credentials=not API_DEBUG,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code=ErrorCodes.INTERNAL_ERROR,
            details=[],
        ).model_dump(),
    )


# Include routers
app.include_router(health_router)
app.include_router(events_router)
app.include_router(users_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
