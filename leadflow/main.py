import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadflow.api.v1.router import api_router
from leadflow.core.config import settings
from leadflow.core.exceptions import LeadflowError
from leadflow.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    logger.info("Leadflow API starting (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Leadflow API",
    description="Lead intake, client pipeline and update-request quota service",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeadflowError)
async def leadflow_error_handler(request: Request, exc: LeadflowError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code.value, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code.value, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "leadflow-api", "version": "0.1.0"}
