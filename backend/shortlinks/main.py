import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import links
from .config import settings
from .database import init_db
from .exceptions import ShortLinksError, StorageError

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup"""
    init_db()
    logger.info("Short links service started")
    yield
    logger.info("Short links service stopped")


# Initialize FastAPI app
app = FastAPI(
    title="Short Links",
    description="URL shortening service with visit analytics",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(ShortLinksError)
async def short_links_error_handler(request: Request, exc: ShortLinksError):
    """Domain errors become readable JSON errors"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error_code": exc.error_code},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=StorageError.status_code,
        content={"detail": "Storage failure", "error_code": StorageError.error_code},
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Short Links"}


# Include routers
app.include_router(links.router, prefix="/api", tags=["links"])

# Redirect endpoint (must be last to not conflict with other routes)
app.get("/{identifier}")(links.redirect_to_url)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
