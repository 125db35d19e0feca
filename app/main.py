"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.infrastructure.database import engine, Base
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from app.domain.models.issue import Issue, IssueTimelineEntry, IssueUpvote
from app.domain.models.user import User
from app.domain.models.payment import Payment

# Import routers
from app.interfaces.api.issues import router as issues_router
from app.interfaces.api.users import router as users_router
from app.interfaces.api.staff import router as staff_router
from app.interfaces.api.payments import router as payments_router
from app.interfaces.webhooks.payments import router as payment_webhook_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting UrbanFix API...", env=settings.ENVIRONMENT)

    # Create DB tables (no migration tooling yet)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if settings.ADMIN_EMAIL:
        from app.infrastructure.database import SessionLocal
        from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
        from app.application.services.user_service import ensure_admin
        db = SessionLocal()
        try:
            ensure_admin(SQLAlchemyUserRepository(db, User), settings.ADMIN_EMAIL)
        finally:
            db.close()

    yield

    logger.info("UrbanFix API stopped")


app = FastAPI(
    title="UrbanFix — Municipal Issue Reporting",
    description="API Backend — citizens report issues, staff resolve them, admins manage accounts",
    version="1.0.0",
    lifespan=lifespan,
)

# Correlation ID + request logging
setup_middleware(app)

# AppError subclasses render as problem responses; anything else is a generic 500
app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(payment_webhook_router)
app.include_router(issues_router)
app.include_router(users_router)
app.include_router(staff_router)
app.include_router(payments_router)

app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/")
def root():
    return {
        "name": "UrbanFix",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
