import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
import errors
from auth import AllowAll, Authorizer
from routes import api_routes, build_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # run() and the tests install the database before startup
    connected = False
    if database.db is None:
        try:
            database.connect()
        except PyMongoError as exc:
            logger.critical("MongoDB connection error: %s", exc)
            sys.exit(1)
        connected = True
    yield
    if connected:
        database.close()


# ---------------------- Error handlers ----------------------

def api_error_handler(request: Request, exc: errors.ApiError) -> JSONResponse:
    if isinstance(exc, errors.StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc,
                     exc_info=exc)
        return JSONResponse(status_code=500, content={"error": errors.StoreError.message})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths and unsupported methods on known paths are both unmatched routes
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                        headers=getattr(exc, "headers", None))


def request_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ---------------------- App ----------------------

def create_app(authorizer: Optional[Authorizer] = None,
               strict_transitions: Optional[bool] = None) -> FastAPI:
    if strict_transitions is None:
        strict_transitions = config.ORDER_STRICT_TRANSITIONS

    app = FastAPI(title="ASH Store API", version="1.0.0", lifespan=lifespan)
    app.state.authorizer = authorizer or AllowAll()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(errors.ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_error_handler)

    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        return "ASH API is running!"

    @app.get("/test")
    def test_database():
        response = {
            "backend": "Running",
            "database": "Not Available",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        if database.db is None:
            return response
        response["database"] = "Available"
        response["database_name"] = database.db.name
        try:
            response["collections"] = database.db.list_collection_names()[:10]
            response["database"] = "Connected & Working"
            response["connection_status"] = "Connected"
        except PyMongoError as exc:
            logger.warning("Database check failed: %s", exc)
            response["database"] = "Connected but Error"
        return response

    app.include_router(build_router(api_routes(strict_transitions)))
    app.mount("/images", StaticFiles(directory=config.IMAGES_DIR, check_dir=False), name="images")
    return app


app = create_app()


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        database.connect()
    except PyMongoError as exc:
        logger.critical("MongoDB connection error: %s", exc)
        sys.exit(1)
    logger.info("Server running on port %s", config.PORT)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
