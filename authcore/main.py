import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware

from authcore.core.config import settings
from authcore.core.logging import setup_logger
from .database import engine, Base
from .errors import AuthError, AuthenticationError, InternalError
from .routers import auth
from .schemas import field_errors

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger()
    Base.metadata.create_all(bind=engine)
    logger.info("Startup: database tables checked/created")
    yield


middleware = [
    Middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS),
    Middleware(CORSMiddleware,
               allow_origins=settings.CORS_ORIGINS,
               allow_credentials=True,
               allow_methods=["*"],
               allow_headers=["*"]),

    Middleware(GZipMiddleware, minimum_size=1000)
]

app = FastAPI(
    title="authcore",
    description="Credential checks, session tokens and OTP-backed email verification",
    version="1.0.0",
    lifespan=lifespan,
    middleware=middleware
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=field_errors(exc.errors(), exc.body))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    return response


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Nice and Healthy"}
