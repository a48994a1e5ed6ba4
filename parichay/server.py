"""
Parichay - API Backend
Digital business cards and Brand/Branch microsites

Start with:
    uvicorn parichay.server:app --host 0.0.0.0 --port 8001 --reload
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from pathlib import Path
import logging

from parichay.config import CORS_ORIGINS, UPLOAD_ROOT, SCHEDULER_ENABLED

# Logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("parichay")

app = FastAPI(
    title="Parichay API",
    description="Digital business cards, microsites and lead capture for multi-branch brands",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== ERROR HANDLERS ====================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", []) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": details}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ==================== ROUTES ====================

from parichay.routes import (
    auth, brands, branches, leads, upload, reviews, short_links, notifications, imports, reminders
)

# Routes with /api prefix
app.include_router(auth.router, prefix="/api")
app.include_router(brands.router, prefix="/api")
app.include_router(branches.router, prefix="/api")
app.include_router(branches.microsite_router, prefix="/api")
app.include_router(leads.router, prefix="/api")
app.include_router(upload.router, prefix="/api")
app.include_router(reviews.router, prefix="/api")
app.include_router(reviews.admin_router, prefix="/api")
app.include_router(short_links.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(imports.router, prefix="/api")
app.include_router(reminders.router, prefix="/api")

# Short link redirects live at the site root: /s/{code}
app.include_router(short_links.redirect_router)

# Uploaded files
Path(UPLOAD_ROOT).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_ROOT)), name="uploads")


# ==================== ROOT ====================

@app.get("/")
async def root():
    return {
        "name": "Parichay API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


# ==================== STARTUP ====================

@app.on_event("startup")
async def startup():
    logger.info("Parichay API starting")

    from parichay.config import db

    await db.users.create_index("email", unique=True)
    await db.sessions.create_index("token")
    await db.sessions.create_index("expires_at")
    await db.brands.create_index("slug", unique=True)
    await db.branches.create_index([("brand_id", 1), ("slug", 1)], unique=True)
    await db.leads.create_index("branch_id")
    await db.leads.create_index("brand_id")
    await db.leads.create_index("created_at")
    await db.short_links.create_index("code", unique=True)
    await db.notifications.create_index("user_id")
    await db.analytics_events.create_index([("event_type", 1), ("created_at", -1)])

    logger.info("MongoDB indexes created")

    if SCHEDULER_ENABLED:
        from parichay.scheduler_service import task_scheduler
        task_scheduler.start()


@app.on_event("shutdown")
async def shutdown():
    from parichay.config import client
    from parichay.scheduler_service import task_scheduler

    task_scheduler.stop()
    client.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
