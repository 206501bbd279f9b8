"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from verifiedmeasure import __version__
from verifiedmeasure.config import settings
from verifiedmeasure.database import Base

# Import models to register them with SQLAlchemy
from verifiedmeasure.models import Lead, LeadAccess, CreditLedgerEntry, AuditLogEntry, AdminUser  # noqa: F401

from verifiedmeasure.errors import register_exception_handlers
from verifiedmeasure.routers import admin_routes, auth_routes, claim_routes, lead_routes

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="VerifiedMeasure API",
    description="Lead preview pool with credit-based entitlements",
    version=__version__,
    redirect_slashes=False
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ============================================
# ROUTER REGISTRATION
# ============================================

app.include_router(auth_routes.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(claim_routes.router, prefix="/api", tags=["Entitlements"])
app.include_router(lead_routes.router, prefix="/api", tags=["Leads"])
app.include_router(admin_routes.router, prefix="/api/admin", tags=["Admin"])


# ============================================
# HEALTH & ROOT ENDPOINTS
# ============================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "tables": sorted(Base.metadata.tables.keys()),
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "VerifiedMeasure API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Starting VerifiedMeasure API...")
    logger.info(f"Registered {len(Base.metadata.tables)} tables: {', '.join(sorted(Base.metadata.tables))}")
    if settings.BALANCE_FUNCTION:
        logger.info(f"Balances delegated to stored procedure {settings.BALANCE_FUNCTION}()")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down VerifiedMeasure API...")
