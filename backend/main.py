from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings
from routes import jokes, ratings, categories, health, ai_jokes
from middleware.rate_limit import limiter, create_rate_limit_exceeded_handler
from database.session import db_manager
from database.repositories.base import RepositoryError
from middleware.error_handler import (
    http_exception_handler,
    validation_exception_handler,
    repository_error_handler,
    general_exception_handler
)
from utils.logging import setup_logging, get_logger, log_request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Setup logging
setup_logging()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.APP_NAME}...")

    try:
        await db_manager.initialize()
        logger.info("Database manager initialized successfully")

        # Check health
        health = await db_manager.health_check()
        if health["status"] == "healthy":
            logger.info("Database is healthy")
        else:
            logger.warning(f"Database health check failed: {health}")
    except Exception as e:
        logger.error(f"Failed to initialize database manager: {str(e)}")

    yield

    # Cleanup database connections on shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    try:
        await db_manager.close()
        logger.info("All database connections cleaned up successfully")
    except Exception as e:
        logger.error(f"Error during database cleanup: {str(e)}")

app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for the Punchline joke manager",
    version="1.0.0",
    lifespan=lifespan
)

# Add rate limiter to app state
app.state.limiter = limiter

# Add exception handlers
app.add_exception_handler(RateLimitExceeded, create_rate_limit_exceeded_handler())
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RepositoryError, repository_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(BaseHTTPMiddleware, dispatch=log_request)

# Include routers
app.include_router(jokes.router)
app.include_router(ratings.router)
app.include_router(categories.router)
app.include_router(ai_jokes.router)
app.include_router(health.router)

@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME}"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
