"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Builds the conversation engine and its collaborators once at startup
- Registers API routes (webhook) and health probes
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.db.database import connect_to_database, close_database_connection, check_database_health
from app.flow.dispatcher import ConversationEngine
from app.services.ledger_service import TransactionLedger
from app.services.message_log_service import MessageLogService
from app.services.reseller_api import ResellerAPIClient
from app.services.session_service import SessionStore
from app.services.twilio_service import TwilioService
from app.services.user_service import UserService
from app.api import webhook

APP_VERSION = "1.0.0"

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"🚀 Starting {settings.BOT_NAME} application...")

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        logger.info("Connecting to database...")
        database = await connect_to_database()
        logger.info("✅ Database connected")

        reseller = ResellerAPIClient.from_settings(settings)
        app.state.settings = settings
        app.state.reseller = reseller
        app.state.twilio = TwilioService.from_settings(settings)
        app.state.message_log = MessageLogService(database, settings.DUPLICATE_WINDOW_SECONDS)
        app.state.engine = ConversationEngine(
            reseller=reseller,
            sessions=SessionStore(database, settings.SESSION_TIMEOUT_MINUTES),
            ledger=TransactionLedger(database),
            users=UserService(database),
            config=settings,
        )

        if not app.state.twilio.is_configured():
            logger.warning("⚠️ Twilio credentials missing; replies will not be delivered")

        logger.info(f"🎉 {settings.BOT_NAME} started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Reseller API: {settings.RESELLER_API_ENVIRONMENT} ({settings.reseller_api_url})")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info(f"🛑 Shutting down {settings.BOT_NAME} application...")

    try:
        await app.state.reseller.close()
        logger.info("✅ Reseller client closed")

        await close_database_connection()
        logger.info("✅ Database connection closed")

        logger.info("👋 Shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title=f"{settings.BOT_NAME} - WhatsApp Bundle & Airtime Bot",
    description="WhatsApp bot for Lycamobile Uganda data bundles and airtime",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Reseller retries can legitimately take several seconds
    if process_time > 10.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


app.include_router(webhook.router, prefix=settings.API_PREFIX, tags=["Webhook"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": f"{settings.BOT_NAME} API",
        "version": APP_VERSION,
        "description": "WhatsApp bundle and airtime purchase bot",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Checks database connectivity and service configuration.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
        "checks": {}
    }

    db_healthy = await check_database_health()
    health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
    if not db_healthy:
        health_status["status"] = "unhealthy"

    # Reseller API is not probed; a balance call costs a real request
    health_status["checks"]["reseller_api"] = "not_checked"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
