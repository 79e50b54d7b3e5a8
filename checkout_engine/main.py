# checkout_engine/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from checkout_engine.api import api_router
from checkout_engine.data.database import init_db
from checkout_engine.domain.errors import (
    CheckoutError,
    ConflictError,
    ConsistencyViolation,
    NotFound,
    TransientError,
    ValidationError,
)
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

try:
    init_db()
    logger.info("Database tables ready")
except Exception as e:
    logger.critical(f"Failed to create tables: {e}")
    raise


async def handle_client_error(request: Request, exc: CheckoutError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def handle_server_error(request: Request, exc: CheckoutError):
    if isinstance(exc, ConsistencyViolation):
        logger.critical(f"{request.method} {request.url.path}: consistency violation: {exc.message}")
    else:
        logger.error(f"{request.method} {request.url.path}: {exc.message}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "the server encountered a problem and could not process your request"},
    )


async def handle_permission_error(request: Request, exc: PermissionError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
    )

    app.include_router(api_router)

    for exc_class in (ValidationError, NotFound, ConflictError):
        app.add_exception_handler(exc_class, handle_client_error)
    for exc_class in (TransientError, ConsistencyViolation):
        app.add_exception_handler(exc_class, handle_server_error)
    app.add_exception_handler(PermissionError, handle_permission_error)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
