from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import auth, users, jobs, resumes, health
from .models.db.database import engine, Base
from .models.db import user as user_model  # noqa: F401
from .models.db import job as job_model  # noqa: F401
from .models.db import resume as resume_model  # noqa: F401
from .utils.logging_config import setup_logging, get_logger
from .config.settings import get_settings

# Initialize settings
settings = get_settings()

# Setup logging configuration
setup_logging(
    level=settings.log_level,
    log_file=settings.log_file
)
logger = get_logger(__name__)

# Validate configuration on startup
missing_settings = settings.validate_required_settings()
if missing_settings:
    for setting in missing_settings:
        logger.error("Configuration error: %s", setting)
    if settings.is_production():
        raise RuntimeError("Invalid configuration for production environment")

if settings.uses_default_jwt_secret():
    logger.warning("JWT_SECRET is not set, signing tokens with the development fallback secret")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.api_docs_enabled else None,
    redoc_url="/redoc" if settings.api_docs_enabled else None,
)

# Add CORS middleware if enabled
if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Routers
app.include_router(health.router, prefix="/api", tags=["Health Check"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["Job Tracker"])
app.include_router(resumes.router, prefix="/api/resumes", tags=["Resumes"])


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log application startup."""
    logger.info("Starting %s...", settings.app_name)
    # Models are imported above so their tables are registered on Base.metadata
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized successfully")


@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.app_name}", "version": settings.app_version}
