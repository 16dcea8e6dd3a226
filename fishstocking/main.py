"""
Fish Stocking Registry FastAPI Application
Entry point for the fish stocking REST API
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from fishstocking.api.v1.api_router import api_router
from fishstocking.core.config import settings
from fishstocking.core.database import check_db_connection, init_db
from fishstocking.core.exceptions import (
    ConcurrentModificationError,
    FishStockingException,
    InsufficientPermissionsError,
    NotFoundError,
    ValidationError,
)
from fishstocking.core.logging import setup_logging

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Fish Stocking Registry API

    Registration, review, inspection and cancellation of fish stocking events.

    ### Lifecycle statuses:
    - **UPCOMING**: registered, the stocking day has not started
    - **ONGOING**: within the stocking and review window
    - **NOT_FINISHED**: the review window closed without a review
    - **FINISHED**: every batch has been reviewed
    - **INSPECTED**: reviewed and countersigned
    - **CANCELED**: canceled after the stocking window opened
    """,
    docs_url=settings.DOCS_URL,
    openapi_url=settings.OPENAPI_URL,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# (exception class, HTTP status, error category); first match wins
ERROR_MAPPING = (
    (InsufficientPermissionsError, 401, "unauthorized"),
    (NotFoundError, 404, "not_found"),
    (ConcurrentModificationError, 409, "conflict"),
    (ValidationError, 422, "validation_error"),
)


@app.get("/health", tags=["System"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers

    Returns system status and database connectivity
    """
    try:
        db_status = check_db_connection()

        return {
            "status": "healthy" if db_status else "degraded",
            "version": settings.APP_VERSION,
            "database": "connected" if db_status else "disconnected",
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")


@app.on_event("startup")
async def startup_event():
    """
    Application startup tasks

    Configure logging and make sure the tables exist
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not check_db_connection():
        logger.error("Failed to connect to database on startup")
        return

    init_db()
    logger.info("Application startup completed successfully")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")


@app.exception_handler(FishStockingException)
async def fish_stocking_exception_handler(request: Request, exc: FishStockingException):
    """
    Translate service errors into JSON bodies with a stable code

    Returns:
        JSON error response
    """
    status_code, category = 400, "error"
    for exc_class, mapped_status, mapped_category in ERROR_MAPPING:
        if isinstance(exc, exc_class):
            status_code, category = mapped_status, mapped_category
            break

    logger.info(f"{request.method} {request.url.path} rejected: {exc.code.value} {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": category, "code": exc.code.value, "message": exc.message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "server_error",
            "code": None,
            "message": str(exc) if settings.DEBUG else "An unexpected error occurred",
        }
    )


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fishstocking.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
