import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from contentgen.utils.config import settings
from contentgen.db import engine, Base
from contentgen.routes.auth import router as auth_router
from contentgen.routes.content import router as content_router
from contentgen.routes.feedback import router as feedback_router
from contentgen.routes.generations import router as generations_router
from contentgen.routes.subscription import router as subscription_router
from contentgen.routes.users import router as users_router
from contentgen.services.storage import storage_root
from contentgen.utils.limiter import limiter
from contentgen.utils.responses import QuotaExceeded, UpstreamError, fail


logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="ContentGen API", version="0.1.0")

# Ensure models are imported and tables are created at import time (helps tests)
import contentgen.models  # noqa: F401,E402
Base.metadata.create_all(bind=engine)


@app.get("/")
def root():
    return {"success": True, "message": "ContentGen API is running!"}


@app.get("/health")
def health_check():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.exception("Database health check failed")
        database = "error"
    return {"status": "ok", "database": database}


# Error envelope: every failure becomes {"success": false, "message": ...}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"
    return JSONResponse(status_code=exc.status_code, content=fail(str(message)),
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content=fail("Validation failed", errors=errors))


@app.exception_handler(QuotaExceeded)
async def quota_exception_handler(request: Request, exc: QuotaExceeded):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=fail(exc.message))


@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError):
    logger.error("Upstream failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content=fail(exc.message))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                        content=fail(f"Too many requests: {exc.detail}"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method,
                 request.url.path, exc_info=exc)
    if settings.is_development:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content=fail(str(exc) or "Something went wrong!", error=repr(exc)))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content=fail("An internal server error occurred"))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    resp = await call_next(request)
    level = logging.INFO if settings.is_development else logging.DEBUG
    logger.log(level, "%s %s -> %s", request.method,
               request.url.path, resp.status_code)
    return resp


# Rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(generations_router)
app.include_router(content_router)
app.include_router(subscription_router)
app.include_router(feedback_router)

# Locally stored artifacts (mock storage mode)
os.makedirs(storage_root(), exist_ok=True)
app.mount("/uploads", StaticFiles(directory=storage_root()), name="uploads")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
