import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

import config
from database import ensure_indexes, get_db
from errors import DomainError, Internal
from routes_admin import router as admin_router
from routes_user import router as user_router

config.configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes()
    except PyMongoError as e:
        logger.error("Could not ensure MongoDB indexes: %s", e)
    yield


app = FastAPI(title="The Pizza Unlimited API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if isinstance(exc, Internal):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(500, Internal.default_message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        errors.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return _error(400, "Validation failed", errors=errors)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error(500, Internal.default_message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, Internal.default_message)


app.include_router(user_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"success": True, "message": "The Pizza Unlimited API running"}


@app.get("/test")
def test_db():
    try:
        collections = get_db().list_collection_names()
        return {
            "backend": "fastapi",
            "database": "mongodb",
            "database_name": config.DATABASE_NAME,
            "connection_status": "ok",
            "collections": collections,
        }
    except PyMongoError as e:
        logger.warning("Database connectivity check failed: %s", e)
        return {"backend": "fastapi", "database": "mongodb", "connection_status": "error"}
