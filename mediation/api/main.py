"""
FastAPI application

Intake (both parties), case administration, panel management and panelist
resolutions are served from one app; authentication is delegated to the
gateway (see mediation.api.auth).
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from config.settings import settings
from mediation.utils.logger import setup_logging, get_logger
from mediation.api.middleware import LoggingMiddleware
from mediation.api.error_handler import (
    validation_exception_handler,
    mediation_error_handler,
    database_error_handler,
    http_exception_handler,
    general_exception_handler
)
from mediation.db.connection import db_manager
from mediation.utils.exceptions import MediationError, DatabaseError

API_TITLE = "Mediation Case API"
API_VERSION = "0.1.0"

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=API_TITLE,
    description="Dispute intake, panel assignment and resolution tracking",
    version=API_VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# DatabaseError before MediationError so internals never leak
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(DatabaseError, database_error_handler)
app.add_exception_handler(MediationError, mediation_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.on_event("startup")
async def startup_event():
    logger.info(f"{API_TITLE} {API_VERSION} starting ({settings.environment})")

    if db_manager.health_check():
        logger.info("Database connection OK")
    else:
        logger.warning("Database connection check failed, requests will error until it recovers")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{API_TITLE} stopping")
    db_manager.close()


@app.get("/")
async def root():
    return {
        "message": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Liveness plus database reachability (503 when the database is down)"""
    db_healthy = db_manager.health_check()
    body = {
        "status": "healthy" if db_healthy else "unhealthy",
        "database": "healthy" if db_healthy else "unhealthy",
        "version": API_VERSION
    }
    return JSONResponse(status_code=200 if db_healthy else 503, content=body)


from mediation.api.routers import intake, cases, panelists, resolutions  # noqa: E402

for module in (intake, cases, panelists, resolutions):
    app.include_router(module.router)
