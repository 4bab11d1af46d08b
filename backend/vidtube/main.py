import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from vidtube.config import settings
from vidtube.exceptions import AppError, app_error_handler, unhandled_error_handler
from vidtube.logger import app_logger, db_logger, redis_logger
from vidtube.routers import auth, users

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    docs_url=f"{settings.api_prefix}/docs" if not settings.is_production else None,
    redoc_url=f"{settings.api_prefix}/redoc" if not settings.is_production else None,
    openapi_url=f"{settings.api_prefix}/openapi.json",
)

# Configure CORS for local and production
# Credentials are allowed so the browser sends the token cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["*"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

# Add trusted host middleware in production for additional security
if settings.is_production:
    trusted_hosts = [
        origin.replace("https://", "").replace("http://", "")
        for origin in settings.cors_origins
    ]
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

# Error handling
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Include routers
app.include_router(auth.router, prefix=settings.api_prefix, tags=["Authentication"])
app.include_router(users.router, prefix=settings.api_prefix, tags=["Users"])

# Serve locally stored media when Cloudinary is not configured
if not settings.use_cloudinary:
    os.makedirs(settings.media_dir, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.media_dir), name="media")


@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    app_logger.info(f"Starting {settings.app_name}")
    app_logger.info(f"Environment: {settings.environment}")
    app_logger.info(f"Debug mode: {settings.debug}")

    # Test database connection; local runs create the schema, production uses Alembic
    try:
        from vidtube.database import Base, engine
        import vidtube.models  # noqa: F401

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_logger.info("Database connection successful")

        if settings.is_local:
            Base.metadata.create_all(bind=engine)
            db_logger.info("Database tables created/verified")
    except Exception as e:
        db_logger.error(f"Database connection failed: {e}")

    from vidtube.redis_client import redis_client

    if redis_client.client:
        redis_logger.info("Redis connection successful")
    else:
        redis_logger.warning("Redis not available (caching disabled)")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    app_logger.info("Shutting down application")

    from vidtube.redis_client import redis_client

    redis_client.close()
    redis_logger.info("Redis connection closed")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.environment,
    }


@app.get("/health")
async def health_check():
    """Detailed health check endpoint."""
    from vidtube.database import engine
    from vidtube.redis_client import redis_client

    # Test database
    db_status = "connected"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"error: {str(e)}"

    # Test Redis
    redis_status = "connected"
    try:
        if not redis_client.client or not redis_client.client.ping():
            redis_status = "disconnected"
    except Exception as e:
        redis_status = f"error: {str(e)}"

    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0",
        "environment": settings.environment,
        "database": db_status,
        "redis": redis_status,
    }
