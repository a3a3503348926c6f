import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging
from app.database.connection import Database
from app.middleware.request_logging import RequestLoggingMiddleware
from app.routes.products import router as product_router
from app.routes.users import router as user_router

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _validation_messages(exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        prefix = f"{'.'.join(loc)}: " if loc else ""
        messages.append(prefix + error.get("msg", "Invalid value"))
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        content = {"success": False, "error": exc.detail}
        details = getattr(exc, "details", None)
        if details is not None:
            content["details"] = details
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": _validation_messages(exc)},
        )

    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception):
        logger.exception("Server Error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Server error"},
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = app.state.database
    database.create_all()
    os.makedirs(app.state.settings.UPLOAD_DIR, exist_ok=True)
    logger.info("Database ready at %s", database.engine.url.render_as_string(hide_password=True))
    yield
    database.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Retail Inventory API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(product_router)
    app.include_router(user_router)

    # must stay the last route registered
    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def route_not_found(path: str):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Route not found"})

    register_exception_handlers(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)
