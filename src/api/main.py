import logging
import time
import uuid
from botocore.exceptions import ClientError
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum
from starlette.middleware.base import BaseHTTPMiddleware

from api import routers
from core.config import get_settings
from core.errors import AppError
from core.logging_config import configure_logging, request_id_var

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pawlume API",
    root_path=settings.ROOT_PATH
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain(s)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = request_id
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return response
        finally:
            request_id_var.reset(token)


app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logger.info(
        f"{exc.kind}: {exc.detail}",
        extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail}
    )


def _without_input(errors) -> list[dict]:
    # Rejected values may be NaN or Infinity and ctx may hold exceptions, neither serializes.
    return [{k: v for k, v in error.items() if k not in ("input", "ctx")} for error in errors]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_input", "detail": jsonable_encoder(_without_input(exc.errors()))}
    )


@app.exception_handler(ClientError)
async def store_error_handler(request: Request, exc: ClientError):
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal", "detail": "Internal server error"}
    )


@app.get("/")
def read_root():
    return {"message": "Welcome to the Pawlume API"}


app.include_router(routers.router)

handler = Mangum(app)
