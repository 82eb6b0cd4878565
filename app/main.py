import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import settings
from app.core.database import SessionLocal, check_database
from app.core.errors import HelpdeskError, Unauthenticated
from app.services.sequences import ensure_sequences
from app.api.routes.auth import router as auth_router
from app.api.routes.tickets import router as tickets_router
from app.api.routes.updates import router as updates_router
from app.api.routes.users import router as users_router
from app.api.routes.ai import router as ai_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # no store, no service
    check_database()
    if not settings.JWT_SECRET:
        logger.critical("JWT_SECRET is not set: every authenticated request will be rejected")
    db = SessionLocal()
    try:
        ensure_sequences(db)
    finally:
        db.close()
    yield


# 1) Create the app FIRST
app = FastAPI(title="Helpdesk Ticketing Backend", lifespan=lifespan)

# 2) Add CORS Middleware BEFORE routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 3) Error rendering: {"message": ..., "errors": [...]}
@app.exception_handler(HelpdeskError)
async def helpdesk_error_handler(request: Request, exc: HelpdeskError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


# 4) Include routers AFTER app is created
app.include_router(auth_router)
app.include_router(tickets_router)
app.include_router(updates_router)
app.include_router(users_router)
app.include_router(ai_router)

# 5) Health check endpoints
@app.get("/health")
def health():
    return {"ok": True, "service": "helpdesk"}

@app.get("/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
