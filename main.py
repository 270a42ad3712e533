"""
Dental Lab Order API
REST backend for a dental laboratory's order ledger: orders, payments, notes,
doctors and staff notifications
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import uvicorn
from contextlib import asynccontextmanager
import logging
from datetime import datetime

# Import our modules
from dentallab.config import settings
from dentallab.database import engine, Base, SessionLocal, get_db
from dentallab import models  # noqa: F401  registers tables on Base.metadata
from dentallab.routers import orders, doctors, notifications, catalog, auth
from dentallab.services.activity_logger import ActivityLogger
from dentallab.services.order_numbers import initialize_counters
from dentallab.services.user_service import UserService
from dentallab.scheduler import start_scheduler
from dentallab.utils.error_handler import DatabaseError, ErrorContext, ErrorHandler

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Startup
    logger.info("Starting Dental Lab Order API...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    db = SessionLocal()
    try:
        counters = initialize_counters(db)
        logger.info(f"Order counters initialized: {counters}")
        if settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD:
            UserService(db).ensure_admin(
                settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD, settings.ADMIN_EMAIL
            )
    finally:
        db.close()

    scheduler = start_scheduler() if settings.SCHEDULER_ENABLED else None

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
    logger.info("Shutting down Dental Lab Order API...")


# Create FastAPI app
app = FastAPI(
    title="Dental Lab Order API",
    description="Order ledger for a dental laboratory: orders, job items, payments, notes and notifications",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(doctors.router, prefix="/api/v1/doctors", tags=["doctors"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(catalog.router, prefix="/api/v1", tags=["catalog"])


@app.get("/")
@limiter.limit("10/minute")
async def root(request: Request):
    """Root endpoint with API information - publicly accessible"""
    return {
        "message": "Dental Lab Order API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health")
@limiter.limit("30/minute")
async def health_check(request: Request):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


async def _record_failure(request: Request, error_id: str, exc: Exception):
    session_source = request.app.dependency_overrides.get(get_db, get_db)
    sessions = session_source()
    try:
        db = next(sessions)
        await ActivityLogger(db).log_activity(
            endpoint=str(request.url.path),
            method=request.method,
            status_code=500,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            error_message=f"[{error_id}] {str(exc)}"
        )
    except Exception as log_error:
        logger.error(f"Failed to log error activity: {log_error}")
    finally:
        sessions.close()


@app.exception_handler(DatabaseError)
async def database_exception_handler(request: Request, exc: DatabaseError):
    """Storage failures surface as a structured 500"""
    context = ErrorContext(request)
    await _record_failure(request, context.request_id, exc)
    return ErrorHandler.create_error_response(
        context, exc, status_code=500, include_details=settings.INCLUDE_ERROR_DETAILS
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler with error tracking"""
    context = ErrorContext(request)
    logger.error(
        f"Unhandled exception {context.request_id}: {type(exc).__name__} in {request.method} {request.url.path}",
        exc_info=True
    )
    await _record_failure(request, context.request_id, exc)
    return ErrorHandler.create_error_response(
        context, exc, status_code=500, include_details=settings.INCLUDE_ERROR_DETAILS
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
