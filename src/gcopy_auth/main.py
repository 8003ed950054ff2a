"""GCopy auth FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gcopy_auth.config import settings
from gcopy_auth.database import engine, init_db
from gcopy_auth.errors import AuthError
from gcopy_auth.routers import api
from gcopy_auth.services.cleanup import cleanup_expired_sessions

logger = logging.getLogger(__name__)


def run_cleanup(bind: Engine = engine) -> int:
    """Purge expired session records once. Database errors are logged, not raised."""
    try:
        with Session(bind) as session:
            return cleanup_expired_sessions(session)
    except SQLAlchemyError as e:
        logger.error(f"Session cleanup failed: {e}")
        return 0


async def periodic_cleanup():
    """Purge expired session records on a fixed interval."""
    while True:
        await asyncio.sleep(settings.cleanup_interval_seconds)
        run_cleanup()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    init_db()
    run_cleanup()

    cleanup_task = asyncio.create_task(periodic_cleanup())

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="GCopy Auth",
    description="Email one-time code and share code login",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api.router)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render authentication errors as ``{"message": ...}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies as ``{"message": ...}``."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(status_code=422, content={"message": message or "Invalid input"})


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


def main():
    """Run the application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "gcopy_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
