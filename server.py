from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
import logging
import os
from datetime import datetime, timezone

# Load config first (triggers dotenv)
import config  # noqa: F401
from database import db, client, ensure_indexes
from core.storage import BlobStoreError

# Import all routers
from routes.auth import router as auth_router
from routes.projects import router as projects_router
from routes.daily_logs import router as daily_logs_router
from routes.resources import router as resources_router
from routes.ai import router as ai_router

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(title="Giornale dei Lavori API")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register all routers under /api prefix
API_PREFIX = "/api"
app.include_router(auth_router,       prefix=API_PREFIX)
app.include_router(projects_router,   prefix=API_PREFIX)
app.include_router(daily_logs_router, prefix=API_PREFIX)
app.include_router(resources_router,  prefix=API_PREFIX)
app.include_router(ai_router,         prefix=API_PREFIX)


# ── Error handling ─────────────────────────────────────────

@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "The database is unavailable, your changes were not saved. Please retry."})


@app.exception_handler(BlobStoreError)
async def blob_store_error_handler(request: Request, exc: BlobStoreError):
    logger.error(f"File storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": f"File storage error: {exc}"})


# ── Root / Health ──────────────────────────────────────────

@app.get("/api/")
async def root():
    return {"message": "Giornale dei Lavori API", "version": "1.0.0"}


@app.get("/api/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── Startup / Shutdown ─────────────────────────────────────

@app.on_event("startup")
async def create_indexes():
    await ensure_indexes(db)
    logger.info("Database indexes ensured")


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
