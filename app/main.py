from fastapi import FastAPI
from app.auth.rate_limiter import limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from fastapi.responses import JSONResponse
from app.core.errors import ProvisioningError, RecordStoreError
from app.core.lifecycle import setup_startup_tasks
from app.api import admin_routes, claim_routes

import logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Subdomain provisioner")

# Middleware
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

setup_startup_tasks(app)

# Error handler for rate limit
@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request, exc):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later."}
    )

@app.exception_handler(ProvisioningError)
async def provisioning_error_handler(request, exc: ProvisioningError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code}
    )

# Store failures outside the coordinators (admin listings, role lookups)
@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request, exc: RecordStoreError):
    logger.error(f"Record store error on {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Record store unavailable", "code": "store_error"}
    )

@app.get("/health")
async def health():
    return {"status": "ok"}

# Routes
app.include_router(claim_routes.router, prefix="/api/claims")
app.include_router(admin_routes.router, prefix="/api/admin")
