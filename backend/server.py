from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
import os
import logging
from pathlib import Path

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"

        # HSTS - Enable in production
        if os.environ.get("ENVIRONMENT") == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

from database import db, ensure_indexes
from routes.slipgaji import router as slipgaji_router
from routes.projects import router as projects_router
from utils.error_codes import AppError, format_error_message
from seed import seed_database

APP_VERSION = "1.0"
SERVICE_NAME = "MTERP Payroll"

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(title=SERVICE_NAME, version=APP_VERSION, redirect_slashes=False)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(slipgaji_router)
app.include_router(projects_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc}")
    return JSONResponse(status_code=exc.status_code, content=format_error_message(exc))


@app.on_event("startup")
async def startup():
    await ensure_indexes(db)
    logger.info("Indexes ensured")

    if os.environ.get("SEED_DATABASE", "").lower() == "true":
        result = await seed_database(db)
        logger.info(f"Seed: {result['message']}")


# Health endpoint for liveness/readiness probes (without /api prefix)
@app.get("/health")
async def health_check():
    return {"status": "ok", "service": SERVICE_NAME, "version": APP_VERSION}


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": SERVICE_NAME, "version": APP_VERSION}
